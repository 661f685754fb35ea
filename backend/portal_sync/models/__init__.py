from .client import Client
from .project import Project, ProjectStatus

__all__ = ["Client", "Project", "ProjectStatus"]
