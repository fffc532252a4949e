"""Rider and coach roster records."""
