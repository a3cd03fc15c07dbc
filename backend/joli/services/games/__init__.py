"""Game domain services: lifecycle, join codes, scoring, leaderboard and analytics.

This package holds the engine logic imported by HTTP routes and socket
handlers, keeping transport concerns separated from core game mechanics.
"""
