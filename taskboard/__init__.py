"""taskboard - task management API with token authentication."""

__version__ = "1.0.0"
