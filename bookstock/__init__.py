"""Personal library tracker that reconciles book availability across library sources."""

__version__ = "0.1.0"
