"""Office Tracker: quarterly office-attendance pacing with push reminders."""

__version__ = "1.0.0"
