"""Generation records, background execution and project workspaces."""

from .projects import ProjectService, owned_project
from .service import GenerationService, estimate_cost

__all__ = ["GenerationService", "ProjectService", "estimate_cost", "owned_project"]
