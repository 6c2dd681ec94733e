"""Command parsing and reply formatting (no I/O)."""
