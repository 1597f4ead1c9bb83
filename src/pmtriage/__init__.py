"""Rule-based triage of messages into projects, packages and work items."""

__version__ = "0.1.0"
