"""
ScreenDiary - Personal Digital Wellness Journal

A self-hosted Python system for logging daily app usage, screen time,
reflections and mood tags, and reviewing them on a dashboard.

This system exists to build awareness, not to judge.
"""

__version__ = "0.1.0"
