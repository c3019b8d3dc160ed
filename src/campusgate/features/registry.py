"""FeatureResolver — decides whether a feature is on for a role.

Pure reads over the registry and an injected override store.  Nothing here
raises: unknown ids, unknown roles and missing overrides all resolve to a
denied ``FeatureDecision`` (fail closed).
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from campusgate.features.catalog import (
    FEATURES,
    FeatureDescriptor,
    FeatureId,
    NavigationLayout,
    Role,
    parse_feature_id,
    parse_role,
)
from campusgate.features.store import OverrideStore

# ---------------------------------------------------------------------------
# Stable reason codes
# ---------------------------------------------------------------------------


class ReasonCode:
    """Stable string constants for allow/deny reasons, in evaluation order."""

    ALLOWED = "ALLOWED"
    UNKNOWN_FEATURE = "UNKNOWN_FEATURE"
    UNKNOWN_ROLE = "UNKNOWN_ROLE"
    GLOBALLY_DISABLED = "GLOBALLY_DISABLED"
    ROLE_NOT_APPLICABLE = "ROLE_NOT_APPLICABLE"
    OVERRIDE_MISSING = "OVERRIDE_MISSING"
    ROLE_DISABLED = "ROLE_DISABLED"


# ---------------------------------------------------------------------------
# Decision result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FeatureDecision:
    """Immutable result of a feature check."""

    allowed: bool
    reason_code: str
    feature_id: str
    role: str
    decision_fingerprint: str  # stable SHA-256 hex

    def __bool__(self) -> bool:
        return self.allowed

    def to_dict(self) -> dict[str, Any]:
        return {
            "allowed": self.allowed,
            "reason_code": self.reason_code,
            "feature_id": self.feature_id,
            "role": self.role,
            "decision_fingerprint": self.decision_fingerprint,
        }


def _compute_fingerprint(feature_id: str, role: str, allowed: bool, reason_code: str) -> str:
    canonical = json.dumps(
        {
            "feature_id": feature_id,
            "role": role,
            "allowed": allowed,
            "reason_code": reason_code,
        },
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _make_decision(
    feature_id: object, role: object, allowed: bool, reason_code: str
) -> FeatureDecision:
    fid = str(feature_id) if feature_id is not None else ""
    r = str(role) if role is not None else ""
    return FeatureDecision(
        allowed=allowed,
        reason_code=reason_code,
        feature_id=fid,
        role=r,
        decision_fingerprint=_compute_fingerprint(fid, r, allowed, reason_code),
    )


# ---------------------------------------------------------------------------
# Summary (feature-management screen)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RoleSummary:
    role: Role
    enabled: int
    applicable: int

    @property
    def percent(self) -> int:
        if not self.applicable:
            return 0
        return round(self.enabled * 100 / self.applicable)


@dataclass(frozen=True)
class FeatureSummary:
    total: int
    active: int  # non-beta
    beta: int
    roles: tuple[RoleSummary, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "active": self.active,
            "beta": self.beta,
            "roles": {
                r.role.value: {
                    "enabled": r.enabled,
                    "applicable": r.applicable,
                    "percent": r.percent,
                }
                for r in self.roles
            },
        }


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class FeatureResolver:
    """Combines registry + override store + role into a decision.

    Rules, first match wins::

        1. Unknown feature id           → deny  UNKNOWN_FEATURE
        2. Unknown role                 → deny  UNKNOWN_ROLE
        3. globally_enabled is False    → deny  GLOBALLY_DISABLED
        4. role not in allowed_roles    → deny  ROLE_NOT_APPLICABLE
        5. no override for (role, id)   → deny  OVERRIDE_MISSING
        6. override is False            → deny  ROLE_DISABLED
        7. otherwise                    → allow
    """

    def __init__(
        self,
        store: OverrideStore,
        registry: Mapping[FeatureId, FeatureDescriptor] | None = None,
        layout: NavigationLayout | None = None,
    ) -> None:
        self._store = store
        self._registry = registry if registry is not None else FEATURES
        self._layout = layout or NavigationLayout()

    @property
    def store(self) -> OverrideStore:
        return self._store

    @property
    def registry(self) -> Mapping[FeatureId, FeatureDescriptor]:
        return self._registry

    def descriptor(self, feature_id: object) -> FeatureDescriptor | None:
        fid = parse_feature_id(feature_id)
        if fid is None:
            return None
        return self._registry.get(fid)

    def decide(self, feature_id: object, role: object) -> FeatureDecision:
        """Check *feature_id* for *role*.  Accepts enums or plain strings."""
        descriptor = self.descriptor(feature_id)
        if descriptor is None:
            return _make_decision(feature_id, role, False, ReasonCode.UNKNOWN_FEATURE)

        r = parse_role(role)
        if r is None:
            return _make_decision(descriptor.id, role, False, ReasonCode.UNKNOWN_ROLE)

        if not descriptor.globally_enabled:
            return _make_decision(descriptor.id, r, False, ReasonCode.GLOBALLY_DISABLED)

        if not descriptor.applies_to(r):
            return _make_decision(descriptor.id, r, False, ReasonCode.ROLE_NOT_APPLICABLE)

        override = self._store.get(r, descriptor.id)
        if override is None:
            return _make_decision(descriptor.id, r, False, ReasonCode.OVERRIDE_MISSING)
        if not override:
            return _make_decision(descriptor.id, r, False, ReasonCode.ROLE_DISABLED)

        return _make_decision(descriptor.id, r, True, ReasonCode.ALLOWED)

    def is_feature_enabled(self, feature_id: object, role: object) -> bool:
        return self.decide(feature_id, role).allowed

    def get_enabled_features(self, role: object) -> list[FeatureDescriptor]:
        """Features on for *role*, in registry order."""
        return [d for d in self._registry.values() if self.is_feature_enabled(d.id, role)]

    def get_navigation_features(self, role: object) -> list[FeatureDescriptor]:
        return [d for d in self.get_enabled_features(role) if d.id in self._layout.navigation]

    def get_bottom_nav_features(self, role: object) -> list[FeatureDescriptor]:
        r = parse_role(role)
        if r is None:
            return []
        allow = self._layout.bottom_nav_for(r)
        return [d for d in self.get_enabled_features(r) if d.id in allow]

    def get_feature_status(self) -> dict[str, Any]:
        """Debug dump of the registry and the override matrix as plain data."""
        table = self._store.snapshot()
        return {
            "features": {fid.value: d.to_dict() for fid, d in self._registry.items()},
            "role_config": {
                role.value: {fid.value: {"enabled": on} for fid, on in entries.items()}
                for role, entries in table.items()
            },
        }

    def get_role_summary(self) -> FeatureSummary:
        descriptors = list(self._registry.values())
        roles = []
        for role in Role:
            applicable = [d for d in descriptors if d.applies_to(role)]
            # Counts overrides only, like the management screen does
            enabled = sum(1 for d in applicable if self._store.get(role, d.id))
            roles.append(RoleSummary(role=role, enabled=enabled, applicable=len(applicable)))
        beta = sum(1 for d in descriptors if d.beta)
        return FeatureSummary(
            total=len(descriptors),
            active=len(descriptors) - beta,
            beta=beta,
            roles=tuple(roles),
        )
