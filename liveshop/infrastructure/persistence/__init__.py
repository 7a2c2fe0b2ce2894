"""Relational persistence for stream records."""
