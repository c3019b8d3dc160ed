"""Page access: which app pages the signed-in user may open.

Most pages map one-to-one onto a feature.  A few add a role condition on
top.  Pages not listed here are always reachable.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from campusgate.features.catalog import FeatureId, Role
from campusgate.features.context import FeatureContext

FALLBACK_PAGE = "dashboard"
FEATURE_MANAGEMENT_PAGE = "feature-management"

PageCheck = Callable[[FeatureContext], bool]


def _feature(feature_id: FeatureId) -> PageCheck:
    return lambda ctx: ctx.is_feature_enabled(feature_id)


def _classes(ctx: FeatureContext) -> bool:
    return ctx.user_role != Role.STUDENT or ctx.is_feature_enabled(FeatureId.CLASSES)


def _reports(ctx: FeatureContext) -> bool:
    return ctx.is_feature_enabled(FeatureId.REPORTS) and ctx.user_role in (
        Role.ADMIN,
        Role.TEACHER,
    )


def _user_management(ctx: FeatureContext) -> bool:
    return ctx.is_admin and ctx.is_feature_enabled(FeatureId.USER_MANAGEMENT)


def _admin_only(ctx: FeatureContext) -> bool:
    return ctx.is_admin


PAGE_RULES: dict[str, tuple[FeatureId | None, PageCheck]] = {
    "attendance": (FeatureId.ATTENDANCE, _feature(FeatureId.ATTENDANCE)),
    "announcements": (FeatureId.ANNOUNCEMENTS, _feature(FeatureId.ANNOUNCEMENTS)),
    "classes": (FeatureId.CLASSES, _classes),
    "teacher_classes": (FeatureId.CLASSES, _classes),
    "my-classes": (FeatureId.CLASSES, _classes),
    "grades": (FeatureId.GRADES, _feature(FeatureId.GRADES)),
    "reports": (FeatureId.REPORTS, _reports),
    "calendar": (FeatureId.CALENDAR, _feature(FeatureId.CALENDAR)),
    "library": (FeatureId.LIBRARY, _feature(FeatureId.LIBRARY)),
    "assignments": (FeatureId.ASSIGNMENTS, _feature(FeatureId.ASSIGNMENTS)),
    "messages": (FeatureId.MESSAGES, _feature(FeatureId.MESSAGES)),
    "documents": (FeatureId.DOCUMENTS, _feature(FeatureId.DOCUMENTS)),
    "user-management": (FeatureId.USER_MANAGEMENT, _user_management),
    FEATURE_MANAGEMENT_PAGE: (None, _admin_only),
}


@dataclass(frozen=True)
class PageAccess:
    """Outcome of a page check, with what the "not available" screen needs."""

    page: str
    allowed: bool
    feature_id: str | None
    can_manage_features: bool
    fallback_page: str = FALLBACK_PAGE

    def to_dict(self) -> dict[str, object]:
        return {
            "page": self.page,
            "allowed": self.allowed,
            "feature_id": self.feature_id,
            "can_manage_features": self.can_manage_features,
            "fallback_page": self.fallback_page,
        }


def check_page_access(ctx: FeatureContext, page: str) -> bool:
    rule = PAGE_RULES.get(page)
    if rule is None:
        return True
    _, check = rule
    return check(ctx)


def resolve_page(ctx: FeatureContext, page: str) -> PageAccess:
    rule = PAGE_RULES.get(page)
    feature_id = rule[0].value if rule is not None and rule[0] is not None else None
    return PageAccess(
        page=page,
        allowed=check_page_access(ctx, page),
        feature_id=feature_id,
        can_manage_features=ctx.is_admin,
    )
