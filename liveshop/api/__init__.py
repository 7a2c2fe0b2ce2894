"""HTTP API for the live shopping stream service."""
