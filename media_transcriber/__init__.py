"""Upload, transcribe and clean up media files with AWS."""

__version__ = "0.3.0"
