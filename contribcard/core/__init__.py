"""Core infrastructure: database engines, logging, settings, GitHub helpers."""
