"""Application services (use cases)."""

from .authorizer import Authorizer
from .gas_tank import GasTank
from .project import Project
from .registry import ProjectsManager

__all__ = [
    "Authorizer",
    "GasTank",
    "Project",
    "ProjectsManager",
]
