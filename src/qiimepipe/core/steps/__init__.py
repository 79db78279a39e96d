"""Step implementations for the supported workflows."""
