"""Logging, metrics and progress reporting."""
