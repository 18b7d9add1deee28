"""Orchestration of validation runs."""
