"""Unit tests for FeatureResolver: the fail-closed decision function."""

from __future__ import annotations

import pytest

from campusgate.features.catalog import (
    BOTTOM_NAV_FEATURES,
    FEATURES,
    FeatureDescriptor,
    FeatureId,
    Role,
    build_registry,
)
from campusgate.features.registry import FeatureResolver, ReasonCode
from campusgate.features.store import InMemoryOverrideStore

ALL_ROLES = list(Role)
ALL_IDS = list(FEATURES)


@pytest.fixture()
def store() -> InMemoryOverrideStore:
    return InMemoryOverrideStore()


@pytest.fixture()
def resolver(store: InMemoryOverrideStore) -> FeatureResolver:
    return FeatureResolver(store)


# ---------------------------------------------------------------------------
# Decision rules
# ---------------------------------------------------------------------------


class TestDecide:
    def test_allowed(self, resolver: FeatureResolver) -> None:
        d = resolver.decide("attendance", "student")
        assert d.allowed is True
        assert d.reason_code == ReasonCode.ALLOWED
        assert d.feature_id == "attendance"
        assert d.role == "student"

    def test_unknown_feature(self, resolver: FeatureResolver) -> None:
        d = resolver.decide("time_travel", "admin")
        assert d.allowed is False
        assert d.reason_code == ReasonCode.UNKNOWN_FEATURE

    @pytest.mark.parametrize("role", ["principal", "", None])
    def test_unknown_role(self, resolver: FeatureResolver, role) -> None:
        d = resolver.decide("attendance", role)
        assert d.allowed is False
        assert d.reason_code == ReasonCode.UNKNOWN_ROLE

    def test_globally_disabled_beats_override(self, store, resolver) -> None:
        store.put(Role.STUDENT, FeatureId.VIDEO_CALLS, True)
        d = resolver.decide(FeatureId.VIDEO_CALLS, Role.STUDENT)
        assert d.reason_code == ReasonCode.GLOBALLY_DISABLED

    def test_role_not_applicable_beats_override(self, store, resolver) -> None:
        store.put(Role.TEACHER, FeatureId.USER_MANAGEMENT, True)
        d = resolver.decide("user_management", "teacher")
        assert d.allowed is False
        assert d.reason_code == ReasonCode.ROLE_NOT_APPLICABLE

    def test_missing_override(self) -> None:
        resolver = FeatureResolver(InMemoryOverrideStore({Role.ADMIN: {}}))
        d = resolver.decide("dashboard", "admin")
        assert d.allowed is False
        assert d.reason_code == ReasonCode.OVERRIDE_MISSING

    def test_role_disabled(self, resolver: FeatureResolver) -> None:
        d = resolver.decide("documents", "student")
        assert d.allowed is False
        assert d.reason_code == ReasonCode.ROLE_DISABLED

    def test_fingerprint_is_stable(self, resolver: FeatureResolver) -> None:
        a = resolver.decide("grades", "teacher")
        b = resolver.decide(FeatureId.GRADES, Role.TEACHER)
        assert a.decision_fingerprint == b.decision_fingerprint
        assert len(a.decision_fingerprint) == 64

    def test_fingerprint_differs_by_outcome(self, resolver: FeatureResolver) -> None:
        a = resolver.decide("documents", "teacher")
        b = resolver.decide("documents", "student")
        assert a.decision_fingerprint != b.decision_fingerprint

    def test_decision_is_truthy_when_allowed(self, resolver: FeatureResolver) -> None:
        assert resolver.decide("grades", "admin")
        assert not resolver.decide("grades", "nobody")


class TestFailClosed:
    """is_feature_enabled is False whenever any precondition is missing."""

    @pytest.mark.parametrize("feature_id", ALL_IDS)
    @pytest.mark.parametrize("role", ALL_ROLES)
    def test_matches_invariant(self, store, resolver, feature_id, role) -> None:
        d = FEATURES[feature_id]
        expected = (
            d.globally_enabled
            and role in d.allowed_roles
            and store.get(role, feature_id) is True
        )
        assert resolver.is_feature_enabled(feature_id, role) is expected

    def test_empty_store_disables_everything(self) -> None:
        resolver = FeatureResolver(InMemoryOverrideStore({}))
        for role in Role:
            assert resolver.get_enabled_features(role) == []

    def test_never_raises_on_garbage(self, resolver: FeatureResolver) -> None:
        for fid in (None, 0, object(), "", "DASHBOARD"):
            assert resolver.is_feature_enabled(fid, "admin") is False

    def test_user_management_never_for_teacher(self, store, resolver) -> None:
        store.put(Role.TEACHER, FeatureId.USER_MANAGEMENT, True)
        assert resolver.is_feature_enabled("user_management", "teacher") is False


class TestAttendanceScenario:
    def test_disable_then_resolve(self, store, resolver) -> None:
        assert resolver.is_feature_enabled("attendance", "student") is True
        store.put(Role.STUDENT, FeatureId.ATTENDANCE, False)
        assert resolver.is_feature_enabled("attendance", "student") is False


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


class TestEnabledFeatures:
    @pytest.mark.parametrize("role", ALL_ROLES)
    def test_subset_of_registry_and_all_enabled(self, resolver, role) -> None:
        enabled = resolver.get_enabled_features(role)
        assert all(d.id in FEATURES for d in enabled)
        assert all(resolver.is_feature_enabled(d.id, role) for d in enabled)

    @pytest.mark.parametrize("role", ALL_ROLES)
    def test_registry_order(self, resolver, role) -> None:
        order = list(FEATURES)
        ids = [d.id for d in resolver.get_enabled_features(role)]
        assert ids == sorted(ids, key=order.index)

    def test_student_set(self, resolver: FeatureResolver) -> None:
        ids = [d.id.value for d in resolver.get_enabled_features("student")]
        assert ids == [
            "dashboard",
            "profile",
            "settings",
            "notifications",
            "assignments",
            "grades",
            "attendance",
            "calendar",
            "messages",
            "announcements",
            "library",
        ]

    def test_unknown_role_is_empty(self, resolver: FeatureResolver) -> None:
        assert resolver.get_enabled_features("janitor") == []
        assert resolver.get_navigation_features("janitor") == []
        assert resolver.get_bottom_nav_features("janitor") == []


class TestNavigation:
    def test_admin_navigation(self, resolver: FeatureResolver) -> None:
        ids = [d.id for d in resolver.get_navigation_features(Role.ADMIN)]
        assert FeatureId.USER_MANAGEMENT in ids
        assert FeatureId.AI_TUTOR not in ids
        assert ids[0] == FeatureId.DASHBOARD

    def test_teacher_bottom_nav_in_registry_order(self, resolver: FeatureResolver) -> None:
        ids = [d.id.value for d in resolver.get_bottom_nav_features("teacher")]
        assert ids == ["dashboard", "assignments", "grades", "attendance", "teacher_classes"]

    def test_bottom_nav_drops_disabled(self, store, resolver) -> None:
        store.put(Role.TEACHER, FeatureId.GRADES, False)
        ids = {d.id for d in resolver.get_bottom_nav_features(Role.TEACHER)}
        assert FeatureId.GRADES not in ids
        assert ids <= BOTTOM_NAV_FEATURES[Role.TEACHER]

    def test_student_bottom_nav(self, resolver: FeatureResolver) -> None:
        ids = [d.id.value for d in resolver.get_bottom_nav_features("student")]
        assert ids == ["dashboard", "profile", "assignments", "messages", "library"]


# ---------------------------------------------------------------------------
# Status and summary
# ---------------------------------------------------------------------------


class TestFeatureStatus:
    def test_shape(self, resolver: FeatureResolver) -> None:
        status = resolver.get_feature_status()
        assert set(status) == {"features", "role_config"}
        assert status["features"]["attendance"]["name"] == "Attendance"
        assert status["role_config"]["student"]["documents"] == {"enabled": False}

    def test_status_is_a_copy(self, store, resolver) -> None:
        status = resolver.get_feature_status()
        status["role_config"]["student"]["attendance"]["enabled"] = False
        assert store.get(Role.STUDENT, FeatureId.ATTENDANCE) is True


class TestRoleSummary:
    def test_totals(self, resolver: FeatureResolver) -> None:
        summary = resolver.get_role_summary()
        assert summary.total == 18
        assert summary.beta == 2
        assert summary.active == 16

    def test_per_role_counts(self, resolver: FeatureResolver) -> None:
        roles = {r.role: r for r in resolver.get_role_summary().roles}
        assert roles[Role.ADMIN].applicable == 16
        assert roles[Role.ADMIN].enabled == 15
        assert roles[Role.STUDENT].applicable == 14
        assert roles[Role.STUDENT].enabled == 11
        assert roles[Role.STUDENT].percent == 79

    def test_to_dict(self, resolver: FeatureResolver) -> None:
        data = resolver.get_role_summary().to_dict()
        assert data["roles"]["teacher"]["applicable"] == 15
        assert data["roles"]["teacher"]["enabled"] == 14


class TestCustomRegistry:
    def test_resolver_only_knows_its_registry(self, store) -> None:
        registry = build_registry([FEATURES[FeatureId.DASHBOARD]])
        resolver = FeatureResolver(store, registry)
        assert resolver.is_feature_enabled("dashboard", "admin") is True
        assert resolver.is_feature_enabled("grades", "admin") is False

    def test_custom_descriptor(self) -> None:
        registry = build_registry(
            [
                FeatureDescriptor(
                    "grades", "Marks", "custom", "Award", True, frozenset({"student"})
                )
            ]
        )
        resolver = FeatureResolver(
            InMemoryOverrideStore({Role.STUDENT: {FeatureId.GRADES: True}}), registry
        )
        assert [d.name for d in resolver.get_enabled_features("student")] == ["Marks"]
