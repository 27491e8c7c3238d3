"""Knotty: OpenAPI/Swagger specs as a cached, searchable MCP knowledge source."""

from .__version__ import __version__

__all__ = ["__version__"]
