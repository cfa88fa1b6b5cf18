"""Test helpers for Beach Radar tests.

Helpers:
    make_report: Build a Report of a given age relative to a fixed clock
    FIXED_NOW: The fixed clock used across tests

Usage:
    from tests.helpers import FIXED_NOW, make_report
"""

from tests.helpers.reports import FIXED_NOW, make_report

__all__ = ["FIXED_NOW", "make_report"]
