"""Scenario storage and schedule sources/writers."""
