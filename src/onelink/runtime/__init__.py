"""Runtime wiring for OneLink: settings, context and logging."""
