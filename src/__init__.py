"""contentops: channel content generation and revision highlighting."""

__version__ = "0.1.0"
