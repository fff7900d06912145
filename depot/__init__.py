"""Metadata depot: refresh and purge engine for SDLC project versions."""

__version__ = "0.4.0"
