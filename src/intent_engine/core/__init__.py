"""Shared core: errors, ports, application state."""
