"""Feature enforcement guard.

``require_feature()`` is the guard helper called at feature entrypoints
(page handlers, service calls).  On deny it optionally emits an audit event
and raises ``FeatureUnavailableError``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from campusgate.features.registry import FeatureDecision, FeatureResolver

# Callback signature: (event_type: str, payload: dict) -> None
AuditCallback = Callable[[str, dict[str, Any]], None]


class FeatureUnavailableError(Exception):
    """Raised when a feature is off for the caller's role."""

    def __init__(self, decision: FeatureDecision, feature_id: str) -> None:
        self.decision = decision
        self.feature_id = feature_id
        super().__init__(
            f"Feature {feature_id!r} unavailable for role {decision.role!r}: "
            f"{decision.reason_code}"
        )


def require_feature(
    resolver: FeatureResolver,
    feature_id: object,
    role: object,
    *,
    audit_callback: AuditCallback | None = None,
) -> FeatureDecision:
    """Guard: check a feature and raise ``FeatureUnavailableError`` on deny.

    On deny:
      1. Calls ``audit_callback("feature.denied", {...})`` if provided.
      2. Raises ``FeatureUnavailableError``.

    On allow:
      Returns the ``FeatureDecision``.
    """
    decision = resolver.decide(feature_id, role)

    if not decision.allowed:
        if audit_callback is not None:
            audit_callback("feature.denied", decision.to_dict())
        raise FeatureUnavailableError(decision, decision.feature_id)

    return decision
