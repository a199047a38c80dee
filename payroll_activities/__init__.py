"""Activity pricing and selection engine for daily and monthly work logs."""

__version__ = "0.1.0"
