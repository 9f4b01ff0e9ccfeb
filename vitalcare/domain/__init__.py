"""Pure domain models and calculations with no I/O."""
