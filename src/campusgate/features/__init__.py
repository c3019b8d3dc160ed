"""
campusgate features — role-based feature gating.

A feature is on for a role when it is globally enabled, applies to that
role, and the role's override says so.  Anything missing resolves to off.

Check a feature::

    >>> from campusgate.features import FeatureProvider, SessionUser
    >>> provider = FeatureProvider()
    >>> ctx = provider.for_user(SessionUser(id="u1", name="Ada", role="student"))
    >>> ctx.is_feature_enabled("attendance")
    True
    >>> ctx.is_feature_enabled("user_management")
    False

Change one (admins may target any role, everyone else only their own)::

    >>> admin = provider.for_user(SessionUser(id="a1", name="Grace", role="admin"))
    >>> admin.disable_feature("attendance", "student").status
    <MutationStatus.OK: 'ok'>
"""

from __future__ import annotations

from campusgate.features.catalog import (
    CORE_FEATURES,
    FEATURES,
    FeatureCategory,
    FeatureDescriptor,
    FeatureId,
    Icon,
    NavigationLayout,
    Role,
    build_registry,
)
from campusgate.features.context import FeatureContext, FeatureProvider, SessionUser
from campusgate.features.guard import FeatureUnavailableError, require_feature
from campusgate.features.mutator import FeatureMutator, MutationResult, MutationStatus
from campusgate.features.pages import PageAccess, check_page_access, resolve_page
from campusgate.features.registry import (
    FeatureDecision,
    FeatureResolver,
    FeatureSummary,
    ReasonCode,
)
from campusgate.features.store import (
    InMemoryOverrideStore,
    OverrideStore,
    YamlOverrideStore,
)

__all__ = [
    "CORE_FEATURES",
    "FEATURES",
    "FeatureCategory",
    "FeatureContext",
    "FeatureDecision",
    "FeatureDescriptor",
    "FeatureId",
    "FeatureMutator",
    "FeatureProvider",
    "FeatureResolver",
    "FeatureSummary",
    "FeatureUnavailableError",
    "Icon",
    "InMemoryOverrideStore",
    "MutationResult",
    "MutationStatus",
    "NavigationLayout",
    "OverrideStore",
    "PageAccess",
    "ReasonCode",
    "Role",
    "SessionUser",
    "YamlOverrideStore",
    "build_registry",
    "check_page_access",
    "require_feature",
    "resolve_page",
]
