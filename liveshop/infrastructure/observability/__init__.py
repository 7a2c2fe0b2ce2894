"""Observability integrations."""

from .logfire_setup import configure_logfire

__all__ = ["configure_logfire"]
