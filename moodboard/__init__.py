"""
Moodboard - a single-screen mood tracker.

This package holds the mood and theme state containers, the tables that map a
mood to its on-screen look, and an HTTP/SSE view layer that serves the screen.
"""

__version__ = "0.1.0"
