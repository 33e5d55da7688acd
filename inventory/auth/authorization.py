"""
Role-based authorization gate.

Every protected operation is classified once at the boundary and the
decision is taken before any handler code runs.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ..models.session import Session
from ..models.user import Role
from ..utils.exceptions import ForbiddenError, UnauthorizedError


class Decision(str, Enum):
    PERMIT = "permit"
    DENY = "deny"
    REQUIRE_AUTHENTICATION = "require_authentication"


@dataclass(frozen=True)
class Public:
    """Reachable by anyone, including anonymous sessions"""


@dataclass(frozen=True)
class AuthenticatedOnly:
    """Reachable by any bound session"""


@dataclass(frozen=True)
class RoleRestricted:
    """Reachable only by a bound session holding `role`"""
    role: Role

    def __post_init__(self):
        if not isinstance(self.role, Role):
            raise TypeError(f"RoleRestricted requires a Role, got {self.role!r}")


ResourceClassification = Union[Public, AuthenticatedOnly, RoleRestricted]

PUBLIC = Public()
AUTHENTICATED = AuthenticatedOnly()
ADMIN_ONLY = RoleRestricted(Role.ADMIN)


class AuthorizationGate:
    """Stateless decision table: (session, classification) -> Decision"""

    def authorize(self, session: Optional[Session], resource: ResourceClassification) -> Decision:
        bound = session is not None and session.is_bound

        if isinstance(resource, Public):
            return Decision.PERMIT

        if isinstance(resource, AuthenticatedOnly):
            return Decision.PERMIT if bound else Decision.REQUIRE_AUTHENTICATION

        if isinstance(resource, RoleRestricted):
            if not bound:
                return Decision.REQUIRE_AUTHENTICATION
            return Decision.PERMIT if session.role is resource.role else Decision.DENY

        raise TypeError(f"Unknown resource classification: {resource!r}")

    def enforce(self, session: Optional[Session], resource: ResourceClassification) -> None:
        """Raise UnauthorizedError / ForbiddenError unless the decision is PERMIT"""
        decision = self.authorize(session, resource)
        if decision is Decision.REQUIRE_AUTHENTICATION:
            raise UnauthorizedError()
        if decision is Decision.DENY:
            raise ForbiddenError("Insufficient role")
