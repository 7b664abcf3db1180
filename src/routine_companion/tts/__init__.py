"""Optional speech output."""
