"""SQLite persistence for reports and the processing queue."""
