"""Transcriptor: cache YouTube transcripts centrally and link them into projects."""

__version__ = "1.0.0"
