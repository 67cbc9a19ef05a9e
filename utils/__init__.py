"""Shared infrastructure: settings, logging, errors, database and HTTP clients."""
