"""Matchboard: kiosk match predictions kept in sync across viewing contexts."""

__version__ = "0.1.0"
