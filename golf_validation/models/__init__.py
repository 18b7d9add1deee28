"""Derived per-event and per-season models."""
