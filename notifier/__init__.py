"""Push-notification dispatch service for MacroBalance clients."""

__version__ = "0.1.0"
