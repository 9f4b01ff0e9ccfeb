"""Concrete implementations of the capabilities the core depends on."""
