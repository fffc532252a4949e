"""Attendance resolution for materialized practices."""
