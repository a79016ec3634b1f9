"""Core runtime utilities: logging and core diagnostics."""
