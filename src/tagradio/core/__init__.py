"""Shared infrastructure: settings, logging, errors, database, middleware."""
