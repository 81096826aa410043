"""Pydantic domain models: schedule items, changes, state, scenarios, results."""
