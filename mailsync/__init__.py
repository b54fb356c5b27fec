"""Back up, sync and re-tag a notmuch mail store."""

__version__ = "0.1.0"
