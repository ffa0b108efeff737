"""Two-tier extraction of construction daily reports."""

__version__ = "0.1.0"
