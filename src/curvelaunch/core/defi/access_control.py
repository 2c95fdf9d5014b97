"""
Capability-based access control for curve administration.

Administrative setters do not trust a caller address. They require an
``AdminCapability``: an unforgeable token issued by the contract's
``AccessControl`` when the contract is created. Holding the token is the
permission and it can be revoked.

Every check is appended to an audit trail. The trail records attempts, so it
is not a rollback participant: a denied call still leaves its entry after the
unit of work around it is undone.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple

from ..curve_exceptions import AccessDeniedError

logger = logging.getLogger(__name__)


class Role(Enum):
    """Roles an administrative capability can carry."""
    ADMIN = "admin"


@dataclass(frozen=True)
class AdminCapability:
    """Bearer token granting ``role`` on one access-controlled contract."""

    holder: str
    role: Role
    secret: str = field(repr=False)

    @property
    def fingerprint(self) -> str:
        return hashlib.sha256(self.secret.encode()).hexdigest()[:16]


@dataclass
class AuditEntry:
    operation: str
    holder: str
    role: str
    granted: bool
    timestamp: int


@dataclass
class AccessControl:
    """
    Issues and verifies administrative capabilities.

    Usage:
        ac = AccessControl()
        cap = ac.issue("0xadmin", Role.ADMIN)
        ac.require(cap, Role.ADMIN, "set_fee_sink", now)
    """

    # sha256(secret) -> (holder, role)
    grants: Dict[str, Tuple[str, Role]] = field(default_factory=dict)
    audit_log: List[AuditEntry] = field(default_factory=list)

    def issue(self, holder: str, role: Role = Role.ADMIN) -> AdminCapability:
        secret = secrets.token_hex(32)
        self.grants[self._digest(secret)] = (holder.lower(), role)
        logger.info(
            "Capability issued",
            extra={"event": "access.issued", "holder": holder[:10], "role": role.value},
        )
        return AdminCapability(holder=holder.lower(), role=role, secret=secret)

    def revoke(self, capability: AdminCapability) -> None:
        self.grants.pop(self._digest(capability.secret), None)
        logger.info(
            "Capability revoked",
            extra={"event": "access.revoked", "holder": capability.holder[:10]},
        )

    def has_role(self, capability: AdminCapability, role: Role) -> bool:
        digest = self._digest(capability.secret)
        for known, (holder, granted_role) in self.grants.items():
            if hmac.compare_digest(known, digest):
                return holder == capability.holder and granted_role == role
        return False

    def require(self, capability: AdminCapability, role: Role, operation: str, now: int = 0) -> str:
        """
        Verify ``capability`` carries ``role``.

        Returns:
            The capability holder's address

        Raises:
            AccessDeniedError: If the capability is unknown, revoked or lacks the role
        """
        granted = isinstance(capability, AdminCapability) and self.has_role(capability, role)
        holder = capability.holder if isinstance(capability, AdminCapability) else ""
        self.audit_log.append(
            AuditEntry(
                operation=operation,
                holder=holder,
                role=role.value,
                granted=granted,
                timestamp=now,
            )
        )
        if not granted:
            logger.warning(
                "Access denied",
                extra={"event": "access.denied", "operation": operation, "holder": holder[:10]},
            )
            raise AccessDeniedError(
                f"Capability does not grant {role.value} for {operation}",
                details={"operation": operation, "role": role.value},
            )
        return holder

    @staticmethod
    def _digest(secret: str) -> str:
        return hashlib.sha256(secret.encode()).hexdigest()
