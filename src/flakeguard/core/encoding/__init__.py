"""Serialization of log entries, data snapshots and run reports."""
