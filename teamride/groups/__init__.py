"""Ride group partitioning, resizing and coach role assignment."""
