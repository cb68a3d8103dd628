"""Shared helpers: errors, retry/backoff and identifier generation."""
