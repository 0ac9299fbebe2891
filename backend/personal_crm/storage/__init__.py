"""Repository interfaces and their SQL-backed implementations."""
