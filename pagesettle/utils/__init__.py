"""Logging and retry helpers."""
