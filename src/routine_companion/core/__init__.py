"""Core wiring: ports, app state, notifications and the assistant turn."""
