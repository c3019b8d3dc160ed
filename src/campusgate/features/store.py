"""
Role override stores.

The override matrix answers "is feature F switched on for role R?".  It is
held by an ``OverrideStore`` object that callers inject into the resolver
and mutator, so tests and tenants each get their own table.

  InMemoryOverrideStore  — volatile, process-lifetime state (default)
  YamlOverrideStore      — same table, persisted to a YAML file

Correctness invariants:
  - get() never raises for a missing pair; it returns None.
  - put() on the YAML store writes the whole table atomically
    (temp file + rename) before returning; a failed write leaves the
    in-memory table unchanged.
  - Read-modify-write sequences hold ``locked()``; single reads do not.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from contextlib import contextmanager, suppress
from pathlib import Path
from typing import Any

import structlog

from campusgate.core.exceptions import StoreError
from campusgate.features.catalog import (
    FeatureId,
    Role,
    default_overrides,
    parse_feature_id,
    parse_role,
)

logger = structlog.get_logger()

OverrideTable = dict[Role, dict[FeatureId, bool]]

STORE_FORMAT_VERSION = 1


def _copy_table(table: Mapping[Role, Mapping[FeatureId, bool]]) -> OverrideTable:
    return {role: dict(entries) for role, entries in table.items()}


class OverrideStore(ABC):
    """Abstract (role, feature) → enabled table."""

    def __init__(self) -> None:
        self._lock = threading.RLock()

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the writer lock for a read-modify-write sequence."""
        with self._lock:
            yield

    @abstractmethod
    def get(self, role: Role, feature_id: FeatureId) -> bool | None:
        """Return the override, or None if the pair has no entry."""

    @abstractmethod
    def put(self, role: Role, feature_id: FeatureId, enabled: bool) -> None:
        """Create or replace the override for a pair."""

    @abstractmethod
    def snapshot(self) -> OverrideTable:
        """Return a detached copy of the whole table."""

    def has(self, role: Role, feature_id: FeatureId) -> bool:
        return self.get(role, feature_id) is not None


class InMemoryOverrideStore(OverrideStore):
    """Volatile override table; lost when the process exits."""

    def __init__(self, overrides: Mapping[Role, Mapping[FeatureId, bool]] | None = None) -> None:
        super().__init__()
        self._table = _copy_table(overrides) if overrides is not None else default_overrides()

    def get(self, role: Role, feature_id: FeatureId) -> bool | None:
        return self._table.get(role, {}).get(feature_id)

    def put(self, role: Role, feature_id: FeatureId, enabled: bool) -> None:
        with self._lock:
            self._table.setdefault(role, {})[feature_id] = bool(enabled)

    def snapshot(self) -> OverrideTable:
        with self._lock:
            return _copy_table(self._table)


class YamlOverrideStore(OverrideStore):
    """Override table persisted as YAML.

    File layout::

        version: 1
        roles:
          admin:
            dashboard: true
          student:
            documents: false

    A missing file is seeded from *defaults* (the built-in matrix when
    omitted) on first write.  Unknown roles or feature ids in the file are
    skipped with a warning, which leaves those pairs disabled.
    """

    def __init__(
        self,
        path: Path | str,
        defaults: Mapping[Role, Mapping[FeatureId, bool]] | None = None,
    ) -> None:
        super().__init__()
        self._path = Path(path).expanduser()
        self._defaults = _copy_table(defaults) if defaults is not None else default_overrides()
        self._table: OverrideTable = {}
        self.reload()

    @property
    def path(self) -> Path:
        return self._path

    def reload(self) -> None:
        """Re-read the file, discarding in-memory state."""
        with self._lock:
            if not self._path.exists():
                self._table = _copy_table(self._defaults)
                logger.debug("override_store_seeded", path=str(self._path))
                return
            self._table = self._parse(self._read())
            logger.debug("override_store_loaded", path=str(self._path))

    def get(self, role: Role, feature_id: FeatureId) -> bool | None:
        return self._table.get(role, {}).get(feature_id)

    def put(self, role: Role, feature_id: FeatureId, enabled: bool) -> None:
        with self._lock:
            table = _copy_table(self._table)
            table.setdefault(role, {})[feature_id] = bool(enabled)
            self._write(table)
            # Memory only changes once the file does
            self._table = table

    def snapshot(self) -> OverrideTable:
        with self._lock:
            return _copy_table(self._table)

    # -- Internals ----------------------------------------------------------

    def _read(self) -> Any:
        import yaml

        try:
            with open(self._path) as f:
                return yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise StoreError(f"Cannot read override file {self._path}: {exc}") from exc

    def _parse(self, data: Any) -> OverrideTable:
        if data is None:
            return {}
        if not isinstance(data, dict) or not isinstance(data.get("roles", {}), dict):
            raise StoreError(f"Override file {self._path} does not contain a 'roles' mapping")

        table: OverrideTable = {}
        for raw_role, entries in (data.get("roles") or {}).items():
            role = parse_role(raw_role)
            if role is None or not isinstance(entries, dict):
                logger.warning("override_role_skipped", path=str(self._path), role=str(raw_role))
                continue
            row = table.setdefault(role, {})
            for raw_id, enabled in entries.items():
                feature_id = parse_feature_id(raw_id)
                if feature_id is None or not isinstance(enabled, bool):
                    logger.warning(
                        "override_entry_skipped",
                        path=str(self._path),
                        role=role.value,
                        feature_id=str(raw_id),
                    )
                    continue
                row[feature_id] = enabled
        return table

    def _write(self, table: OverrideTable) -> None:
        import yaml

        payload = {
            "version": STORE_FORMAT_VERSION,
            "roles": {
                role.value: {fid.value: enabled for fid, enabled in entries.items()}
                for role, entries in table.items()
            },
        }
        tmp_path = self._path.with_suffix(".tmp")
        try:
            self._path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            with open(tmp_path, "w") as f:
                yaml.safe_dump(payload, f, default_flow_style=False, sort_keys=False)
            tmp_path.replace(self._path)
        except OSError as exc:
            with suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            raise StoreError(f"Cannot write override file {self._path}: {exc}") from exc
