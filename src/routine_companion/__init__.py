"""Routine companion: a personal task tracker with recurring reminders and a planning assistant."""

__version__ = "0.1.0"
