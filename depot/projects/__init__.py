"""Projects catalog."""

from .service import ProjectsService

__all__ = ["ProjectsService"]
