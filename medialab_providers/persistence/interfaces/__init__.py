"""Persistence interfaces package.

Defines repository protocols and shared DTOs for credentials, generations,
provider routes, provider health and projects, plus a Unit of Work
abstraction. Concrete implementations live under ``persistence/sqlite``.
"""

from .repos import (  # noqa: F401
    Credential,
    GenerationOutcome,
    GenerationRecord,
    GenerationStatus,
    HealthStatus,
    ICredentialRepo,
    IGenerationRepo,
    IHealthRepo,
    IProjectRepo,
    IRouteRepo,
    IUnitOfWork,
    Project,
    ProviderHealth,
    ProviderRoute,
)
