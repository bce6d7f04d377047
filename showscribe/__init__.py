"""Transcription and show-note generation across hosted and local providers."""

__version__ = "0.1.0"
