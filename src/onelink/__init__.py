"""OneLink content protection package."""
