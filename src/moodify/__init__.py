"""moodify - media graph recommendations across streaming backends."""

__version__ = "0.1.0"
