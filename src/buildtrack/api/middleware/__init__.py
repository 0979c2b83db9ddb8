"""API middleware and error handlers."""
