"""System log service: structured event logging with retention."""

__version__ = "1.0.0"
