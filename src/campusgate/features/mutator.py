"""FeatureMutator — enable, disable, and toggle role overrides.

The mutator changes the override store only.  It knows nothing about who is
asking; authorization lives in ``FeatureContext``.  Every call returns a
``MutationResult`` so callers can assert on the outcome instead of
inferring it from the absence of an effect.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import structlog

from campusgate.features.catalog import (
    FEATURES,
    FeatureDescriptor,
    FeatureId,
    parse_feature_id,
    parse_role,
)
from campusgate.features.store import OverrideStore

logger = structlog.get_logger()


class MutationStatus(StrEnum):
    OK = "ok"
    NOT_FOUND = "not_found"  # unknown id/role, or no override entry
    DENIED = "denied"  # caller may not target that role
    LOCKED = "locked"  # beta or core feature refused by the standard toggle


@dataclass(frozen=True)
class MutationResult:
    status: MutationStatus
    feature_id: str
    role: str
    previous: bool | None = None
    enabled: bool | None = None

    @property
    def ok(self) -> bool:
        return self.status == MutationStatus.OK

    @property
    def changed(self) -> bool:
        return self.ok and self.previous != self.enabled

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "feature_id": self.feature_id,
            "role": self.role,
            "previous": self.previous,
            "enabled": self.enabled,
        }


class FeatureMutator:
    """Writes (role, feature) overrides.

    Args:
        store: Override table to mutate.
        registry: Known features; ids outside it are NOT_FOUND.
        auto_create: Insert a missing override instead of reporting NOT_FOUND.
    """

    def __init__(
        self,
        store: OverrideStore,
        registry: Mapping[FeatureId, FeatureDescriptor] | None = None,
        *,
        auto_create: bool = False,
    ) -> None:
        self._store = store
        self._registry = registry if registry is not None else FEATURES
        self._auto_create = auto_create

    @property
    def auto_create(self) -> bool:
        return self._auto_create

    def enable_feature(self, feature_id: object, role: object) -> MutationResult:
        return self._apply(feature_id, role, lambda _current: True)

    def disable_feature(self, feature_id: object, role: object) -> MutationResult:
        return self._apply(feature_id, role, lambda _current: False)

    def toggle_feature(self, feature_id: object, role: object) -> MutationResult:
        return self._apply(feature_id, role, lambda current: not current)

    def set_feature(self, feature_id: object, role: object, enabled: bool) -> MutationResult:
        return self._apply(feature_id, role, lambda _current: bool(enabled))

    def _apply(
        self,
        feature_id: object,
        role: object,
        change: Callable[[bool], bool],
    ) -> MutationResult:
        fid = parse_feature_id(feature_id)
        r = parse_role(role)
        if fid is None or fid not in self._registry or r is None:
            logger.info(
                "feature_mutation_unknown",
                feature_id=str(feature_id),
                role=str(role),
            )
            return MutationResult(MutationStatus.NOT_FOUND, str(feature_id), str(role))

        with self._store.locked():
            current = self._store.get(r, fid)
            if current is None and not self._auto_create:
                logger.warning("feature_override_missing", feature_id=fid.value, role=r.value)
                return MutationResult(MutationStatus.NOT_FOUND, fid.value, r.value)

            new_value = change(bool(current))
            if current != new_value:
                self._store.put(r, fid, new_value)

        logger.info(
            "feature_mutated",
            feature_id=fid.value,
            role=r.value,
            previous=current,
            enabled=new_value,
            created=current is None,
        )
        return MutationResult(MutationStatus.OK, fid.value, r.value, current, new_value)
