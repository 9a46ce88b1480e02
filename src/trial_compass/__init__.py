"""Client for uploading health data to Clinical Trial Compass sessions."""

__version__ = "0.1.0"
