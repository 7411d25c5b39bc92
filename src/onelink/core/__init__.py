"""Core package of OneLink."""
