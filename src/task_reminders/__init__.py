"""Task list with due-date reminders."""

__version__ = "0.1.0"
