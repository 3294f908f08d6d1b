"""authcore: authentication and session-lifecycle core."""
