"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from rbac.infrastructure or rbac.api.
"""

from rbac.application.interfaces.repositories import (
    IAssignmentRepository,
    ICatalogRepository,
    IPermissionStore,
    IRoleRepository,
    ISubjectRepository,
    ITeamRepository,
    IUnitOfWork,
)
from rbac.application.interfaces.services import (
    IAccessInvalidator,
    IPermissionResolver,
    IResolutionCache,
)

__all__ = [
    "IAccessInvalidator",
    "IAssignmentRepository",
    "ICatalogRepository",
    "IPermissionResolver",
    "IPermissionStore",
    "IResolutionCache",
    "IRoleRepository",
    "ISubjectRepository",
    "ITeamRepository",
    "IUnitOfWork",
]
