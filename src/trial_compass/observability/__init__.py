"""Session event log for upload and tracking diagnostics."""
