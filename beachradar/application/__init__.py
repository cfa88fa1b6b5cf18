"""Application layer for Beach Radar.

Ports define the interfaces to external collaborators; services orchestrate
domain logic over those ports.
"""
