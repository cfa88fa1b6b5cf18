"""Domain layer for Beach Radar.

Pure models, errors and services. Nothing in this package performs I/O.
"""
