"""Suggestion providers consulted by DEEP-mode simulation."""
