"""Agent HTTP endpoint."""
