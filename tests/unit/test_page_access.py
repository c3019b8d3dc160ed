"""Unit tests for page access rules."""

from __future__ import annotations

import pytest

from campusgate.features.catalog import FeatureId, Role
from campusgate.features.context import FeatureProvider, SessionUser
from campusgate.features.pages import (
    FALLBACK_PAGE,
    FEATURE_MANAGEMENT_PAGE,
    PAGE_RULES,
    check_page_access,
    resolve_page,
)


@pytest.fixture()
def provider() -> FeatureProvider:
    return FeatureProvider(remote_delay_s=0)


def _ctx(provider: FeatureProvider, role: str):
    return provider.for_user(SessionUser(id=f"{role}-1", name=role, role=role))


class TestFeaturePages:
    @pytest.mark.parametrize(
        "page",
        ["attendance", "announcements", "grades", "calendar", "library", "assignments", "messages"],
    )
    def test_common_pages_open_for_every_role(self, provider, page) -> None:
        for role in Role:
            assert check_page_access(_ctx(provider, role.value), page) is True

    def test_disabled_feature_blocks_page(self, provider: FeatureProvider) -> None:
        provider.store.put(Role.STUDENT, FeatureId.ATTENDANCE, False)
        assert check_page_access(_ctx(provider, "student"), "attendance") is False
        assert check_page_access(_ctx(provider, "teacher"), "attendance") is True

    def test_documents(self, provider: FeatureProvider) -> None:
        assert check_page_access(_ctx(provider, "student"), "documents") is False
        assert check_page_access(_ctx(provider, "teacher"), "documents") is True

    def test_unlisted_page_is_open(self, provider: FeatureProvider) -> None:
        assert check_page_access(_ctx(provider, "student"), "help") is True
        assert check_page_access(_ctx(provider, "student"), FALLBACK_PAGE) is True


class TestRolePages:
    @pytest.mark.parametrize("page", ["classes", "teacher_classes", "my-classes"])
    def test_classes_pages(self, provider, page) -> None:
        assert check_page_access(_ctx(provider, "admin"), page) is True
        assert check_page_access(_ctx(provider, "teacher"), page) is True
        assert check_page_access(_ctx(provider, "student"), page) is False

    def test_reports_staff_only(self, provider: FeatureProvider) -> None:
        assert check_page_access(_ctx(provider, "admin"), "reports") is True
        assert check_page_access(_ctx(provider, "teacher"), "reports") is True
        assert check_page_access(_ctx(provider, "student"), "reports") is False

    def test_reports_follows_feature(self, provider: FeatureProvider) -> None:
        provider.store.put(Role.TEACHER, FeatureId.REPORTS, False)
        assert check_page_access(_ctx(provider, "teacher"), "reports") is False

    def test_user_management_admin_only(self, provider: FeatureProvider) -> None:
        assert check_page_access(_ctx(provider, "admin"), "user-management") is True
        assert check_page_access(_ctx(provider, "teacher"), "user-management") is False
        provider.store.put(Role.ADMIN, FeatureId.USER_MANAGEMENT, False)
        assert check_page_access(_ctx(provider, "admin"), "user-management") is False

    def test_feature_management_admin_only(self, provider: FeatureProvider) -> None:
        assert check_page_access(_ctx(provider, "admin"), FEATURE_MANAGEMENT_PAGE) is True
        assert check_page_access(_ctx(provider, "teacher"), FEATURE_MANAGEMENT_PAGE) is False
        assert check_page_access(_ctx(provider, "student"), FEATURE_MANAGEMENT_PAGE) is False

    def test_no_user_blocks_gated_pages(self, provider: FeatureProvider) -> None:
        ctx = provider.for_user(None)
        for page in PAGE_RULES:
            if page in ("classes", "teacher_classes", "my-classes"):
                continue
            assert check_page_access(ctx, page) is False, page


class TestResolvePage:
    def test_blocked_page_details(self, provider: FeatureProvider) -> None:
        access = resolve_page(_ctx(provider, "student"), "documents")
        assert access.allowed is False
        assert access.feature_id == "documents"
        assert access.can_manage_features is False
        assert access.fallback_page == FALLBACK_PAGE

    def test_admin_can_manage(self, provider: FeatureProvider) -> None:
        provider.store.put(Role.ADMIN, FeatureId.LIBRARY, False)
        access = resolve_page(_ctx(provider, "admin"), "library")
        assert access.allowed is False
        assert access.can_manage_features is True

    def test_unlisted_page(self, provider: FeatureProvider) -> None:
        access = resolve_page(_ctx(provider, "teacher"), "help")
        assert access.allowed is True
        assert access.feature_id is None

    def test_to_dict(self, provider: FeatureProvider) -> None:
        data = resolve_page(_ctx(provider, "teacher"), "my-classes").to_dict()
        assert data == {
            "page": "my-classes",
            "allowed": True,
            "feature_id": "classes",
            "can_manage_features": False,
            "fallback_page": "dashboard",
        }
