"""Standards audit: compile coding standards into rules, audit, and auto-fix."""

__version__ = "0.1.0"
