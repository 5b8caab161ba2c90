"""Core infrastructure: database, models, schemas, logging and exceptions."""
