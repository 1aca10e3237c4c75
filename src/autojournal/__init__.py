"""AutoJournal - recurring journal generation from connected tool activity."""

__version__ = "0.1.0"
