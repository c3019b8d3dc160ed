"""
Role-scoped feature access for the signed-in user.

``FeatureProvider`` owns one resolver and one mutator over an injected
override store.  ``provider.for_user(user)`` hands out a ``FeatureContext``
bound to that user's role; UI code only ever talks to the context.

Authorization rule for mutations::

    target role == caller role      → allowed
    caller role == admin            → allowed for any target role
    otherwise                       → DENIED (no state change)

The standard toggle additionally refuses beta features and refuses to
switch a core feature (dashboard, profile, settings) off.  The admin-only
``update_role_feature`` path is not subject to that lock.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from campusgate.core.constants import SIMULATED_REMOTE_DELAY_S
from campusgate.core.exceptions import FeatureAccessDenied
from campusgate.features.catalog import (
    CORE_FEATURES,
    FeatureDescriptor,
    FeatureId,
    NavigationLayout,
    Role,
    parse_role,
)
from campusgate.features.guard import AuditCallback, require_feature
from campusgate.features.mutator import FeatureMutator, MutationResult, MutationStatus
from campusgate.features.registry import FeatureDecision, FeatureResolver
from campusgate.features.store import InMemoryOverrideStore, OverrideStore, YamlOverrideStore

if TYPE_CHECKING:
    from campusgate.core.config import CampusGateConfig

logger = structlog.get_logger()


@dataclass(frozen=True)
class SessionUser:
    """The authenticated user, as supplied by the auth layer."""

    id: str
    name: str
    role: str
    email: str = ""


class FeatureContext:
    """Resolver and mutator bound to one user's role."""

    def __init__(
        self,
        user: SessionUser | None,
        resolver: FeatureResolver,
        mutator: FeatureMutator,
        *,
        raise_on_denied: bool = False,
        audit_callback: AuditCallback | None = None,
        remote_delay_s: float = SIMULATED_REMOTE_DELAY_S,
    ) -> None:
        self._user = user
        self._role = parse_role(user.role) if user is not None else None
        self._resolver = resolver
        self._mutator = mutator
        self._raise_on_denied = raise_on_denied
        self._audit = audit_callback
        self._remote_delay_s = remote_delay_s

    @property
    def user(self) -> SessionUser | None:
        return self._user

    @property
    def user_role(self) -> Role | None:
        return self._role

    @property
    def is_admin(self) -> bool:
        return self._role == Role.ADMIN

    # -- Reads --------------------------------------------------------------

    def is_feature_enabled(self, feature_id: object) -> bool:
        if self._role is None:
            return False
        return self._resolver.is_feature_enabled(feature_id, self._role)

    def decide(self, feature_id: object) -> FeatureDecision:
        return self._resolver.decide(feature_id, self._role)

    def require(self, feature_id: object) -> FeatureDecision:
        """Raise ``FeatureUnavailableError`` unless the feature is on for this user."""
        return require_feature(
            self._resolver, feature_id, self._role, audit_callback=self._audit
        )

    def get_enabled_features(self) -> list[FeatureDescriptor]:
        if self._role is None:
            return []
        return self._resolver.get_enabled_features(self._role)

    def get_navigation_features(self) -> list[FeatureDescriptor]:
        if self._role is None:
            return []
        return self._resolver.get_navigation_features(self._role)

    def get_bottom_nav_features(self) -> list[FeatureDescriptor]:
        if self._role is None:
            return []
        return self._resolver.get_bottom_nav_features(self._role)

    def get_feature_status(self) -> dict[str, Any]:
        return self._resolver.get_feature_status()

    # -- Mutations ----------------------------------------------------------

    def enable_feature(self, feature_id: object, role: object = None) -> MutationResult:
        target = self._target(role)
        if not self._may_target(target):
            return self._deny(feature_id, target, "enable")
        return self._record(self._mutator.enable_feature(feature_id, target))

    def disable_feature(self, feature_id: object, role: object = None) -> MutationResult:
        target = self._target(role)
        if not self._may_target(target):
            return self._deny(feature_id, target, "disable")
        return self._record(self._mutator.disable_feature(feature_id, target))

    def toggle_feature(self, feature_id: object, target: object = None) -> MutationResult:
        """Flip a feature for *target* (a role), or for the caller's own role.

        Passing a bool sets the caller's own role to that value instead.
        """
        if isinstance(target, bool):
            role = self._role
            if not self._may_target(role):
                return self._deny(feature_id, role, "toggle")
            if self._toggle_locked(feature_id, turning_off=not target):
                return self._locked(feature_id, role)
            return self._record(self._mutator.set_feature(feature_id, role, target))

        role = self._target(target)
        if not self._may_target(role):
            return self._deny(feature_id, role, "toggle")
        descriptor = self._resolver.descriptor(feature_id)
        r = parse_role(role)
        store = self._resolver.store
        # Lock check and flip must see the same value
        with store.locked():
            current = store.get(r, descriptor.id) if descriptor and r else None
            if self._toggle_locked(feature_id, turning_off=bool(current)):
                return self._locked(feature_id, role)
            result = self._mutator.toggle_feature(feature_id, role)
        return self._record(result)

    async def update_role_feature(
        self, feature_id: object, role: object, enabled: bool
    ) -> MutationResult:
        """Admin-only: set *feature_id* for *role*, then await the simulated remote call."""
        if not self.is_admin:
            return self._deny(feature_id, role, "update")
        result = self._record(self._mutator.set_feature(feature_id, role, enabled))
        await asyncio.sleep(self._remote_delay_s)
        return result

    # -- Internals ----------------------------------------------------------

    def _target(self, role: object) -> object:
        # None or "" means "my own role"
        if role is None or role == "":
            return self._role
        return parse_role(role) or role

    def _may_target(self, target: object) -> bool:
        if self._role is None or target is None:
            return False
        return self.is_admin or target == self._role

    def _toggle_locked(self, feature_id: object, *, turning_off: bool) -> bool:
        descriptor = self._resolver.descriptor(feature_id)
        if descriptor is None:
            return False
        if descriptor.beta:
            return True
        return turning_off and descriptor.id in CORE_FEATURES

    def _locked(self, feature_id: object, role: object) -> MutationResult:
        logger.info("feature_toggle_locked", feature_id=str(feature_id), role=str(role))
        return MutationResult(MutationStatus.LOCKED, str(feature_id), str(role))

    def _deny(self, feature_id: object, target: object, action: str) -> MutationResult:
        caller = self._role.value if self._role is not None else None
        payload = {
            "action": action,
            "feature_id": str(feature_id),
            "caller_id": self._user.id if self._user is not None else None,
            "caller_role": caller,
            "target_role": str(target) if target is not None else None,
        }
        logger.warning("feature_mutation_denied", **payload)
        if self._audit is not None:
            self._audit("feature.mutation_denied", payload)
        if self._raise_on_denied:
            raise FeatureAccessDenied(caller, payload["target_role"], str(feature_id))
        return MutationResult(MutationStatus.DENIED, str(feature_id), str(target))

    def _record(self, result: MutationResult) -> MutationResult:
        if result.ok and self._audit is not None:
            payload = result.to_dict()
            payload["caller_id"] = self._user.id if self._user is not None else None
            self._audit("feature.mutated", payload)
        return result


class FeatureProvider:
    """Owns the shared resolver/mutator and hands out per-user contexts.

    Each provider gets its own store, so providers (per test, per tenant) never
    share override state unless they are given the same store object.
    """

    def __init__(
        self,
        store: OverrideStore | None = None,
        registry: Mapping[FeatureId, FeatureDescriptor] | None = None,
        *,
        layout: NavigationLayout | None = None,
        auto_create: bool = False,
        raise_on_denied: bool = False,
        audit_callback: AuditCallback | None = None,
        remote_delay_s: float = SIMULATED_REMOTE_DELAY_S,
    ) -> None:
        self._store = store if store is not None else InMemoryOverrideStore()
        self._resolver = FeatureResolver(self._store, registry, layout)
        self._mutator = FeatureMutator(self._store, registry, auto_create=auto_create)
        self._raise_on_denied = raise_on_denied
        self._audit = audit_callback
        self._remote_delay_s = remote_delay_s

    @classmethod
    def from_config(
        cls,
        config: CampusGateConfig,
        *,
        audit_callback: AuditCallback | None = None,
    ) -> FeatureProvider:
        return cls(
            build_store(config),
            auto_create=config.features.auto_create_overrides,
            raise_on_denied=config.features.raise_on_denied,
            audit_callback=audit_callback,
            remote_delay_s=config.features.remote_delay_s,
        )

    @property
    def store(self) -> OverrideStore:
        return self._store

    @property
    def resolver(self) -> FeatureResolver:
        return self._resolver

    @property
    def mutator(self) -> FeatureMutator:
        return self._mutator

    def for_user(self, user: SessionUser | None) -> FeatureContext:
        return FeatureContext(
            user,
            self._resolver,
            self._mutator,
            raise_on_denied=self._raise_on_denied,
            audit_callback=self._audit,
            remote_delay_s=self._remote_delay_s,
        )


def build_store(config: CampusGateConfig) -> OverrideStore:
    """Create the override store selected by ``[features].store``."""
    if config.features.store == "yaml":
        return YamlOverrideStore(config.overrides_path)
    return InMemoryOverrideStore()
