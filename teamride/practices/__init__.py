"""Materialized practice records and the application state holding them."""
