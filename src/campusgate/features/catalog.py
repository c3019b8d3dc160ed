"""Feature catalog: roles, feature ids, descriptors, and the default tables.

``FEATURES`` is the single source of truth for which features exist.  The
role override defaults and the navigation allow-lists are keyed by the
same enums, so an unknown id or icon fails at import time instead of
silently resolving to "disabled".
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum


class Role(StrEnum):
    """Authorization class of the signed-in user."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class FeatureId(StrEnum):
    DASHBOARD = "dashboard"
    PROFILE = "profile"
    SETTINGS = "settings"
    NOTIFICATIONS = "notifications"
    ASSIGNMENTS = "assignments"
    GRADES = "grades"
    ATTENDANCE = "attendance"
    CALENDAR = "calendar"
    MESSAGES = "messages"
    ANNOUNCEMENTS = "announcements"
    LIBRARY = "library"
    DOCUMENTS = "documents"
    CLASSES = "classes"
    USER_MANAGEMENT = "user_management"
    TEACHER_CLASSES = "teacher_classes"
    REPORTS = "reports"
    AI_TUTOR = "ai_tutor"
    VIDEO_CALLS = "video_calls"


class Icon(StrEnum):
    """Symbolic icon keys; the presentation layer maps them to glyphs."""

    HOME = "Home"
    USER = "User"
    SETTINGS = "Settings"
    BELL = "Bell"
    CLIPBOARD_LIST = "ClipboardList"
    AWARD = "Award"
    USER_CHECK = "UserCheck"
    CALENDAR = "Calendar"
    MESSAGE_SQUARE = "MessageSquare"
    BOOK_OPEN = "BookOpen"
    BOOK_MARKED = "BookMarked"
    HARD_DRIVE = "HardDrive"
    GRADUATION_CAP = "GraduationCap"
    USER_PLUS = "UserPlus"
    USERS = "Users"
    BAR_CHART = "BarChart3"
    BOT = "Bot"
    VIDEO = "Video"


class FeatureCategory(StrEnum):
    CORE = "core"
    ACADEMIC = "academic"
    COMMUNICATION = "communication"
    RESOURCES = "resources"
    ADMINISTRATIVE = "administrative"
    EXPERIMENTAL = "experimental"


def parse_role(value: object) -> Role | None:
    """Return the matching Role, or None for anything unrecognised."""
    if isinstance(value, Role):
        return value
    if isinstance(value, str):
        try:
            return Role(value.strip().lower())
        except ValueError:
            return None
    return None


def parse_feature_id(value: object) -> FeatureId | None:
    """Return the matching FeatureId, or None for anything unrecognised."""
    if isinstance(value, FeatureId):
        return value
    if isinstance(value, str):
        try:
            return FeatureId(value.strip())
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class FeatureDescriptor:
    """Static description of one feature.

    Attributes:
        id: Unique feature key.
        name: Display name.
        description: One-line display description.
        icon: Opaque icon key, resolved by the UI.
        globally_enabled: Kill switch that applies to every role.
        allowed_roles: Roles the feature applies to at all.
        beta: Beta features cannot be flipped through the standard toggle.
        category: Grouping used by the feature-management screen.
    """

    id: FeatureId
    name: str
    description: str
    icon: Icon
    globally_enabled: bool
    allowed_roles: frozenset[Role]
    beta: bool = False
    category: FeatureCategory = FeatureCategory.CORE

    def __post_init__(self) -> None:
        # Coerce plain strings so typos fail here rather than resolve to "disabled"
        object.__setattr__(self, "id", FeatureId(self.id))
        object.__setattr__(self, "icon", Icon(self.icon))
        object.__setattr__(self, "category", FeatureCategory(self.category))
        roles = frozenset(Role(r) for r in self.allowed_roles)
        if not roles:
            raise ValueError(f"Feature {self.id.value!r} must allow at least one role")
        object.__setattr__(self, "allowed_roles", roles)

    def applies_to(self, role: Role) -> bool:
        return role in self.allowed_roles

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id.value,
            "name": self.name,
            "description": self.description,
            "icon": self.icon.value,
            "enabled": self.globally_enabled,
            "roles": [r.value for r in Role if r in self.allowed_roles],
            "beta": self.beta,
            "category": self.category.value,
        }


def build_registry(descriptors: Iterable[FeatureDescriptor]) -> dict[FeatureId, FeatureDescriptor]:
    """Index descriptors by id, preserving declaration order.

    Raises:
        ValueError: if two descriptors share an id.
    """
    registry: dict[FeatureId, FeatureDescriptor] = {}
    for d in descriptors:
        if d.id in registry:
            raise ValueError(f"Duplicate feature id {d.id.value!r}")
        registry[d.id] = d
    return registry


_ALL = frozenset(Role)
_ADMIN = frozenset({Role.ADMIN})
_TEACHER = frozenset({Role.TEACHER})
_STAFF = frozenset({Role.ADMIN, Role.TEACHER})
_STUDENT = frozenset({Role.STUDENT})

_F = FeatureId
_C = FeatureCategory

# ---------------------------------------------------------------------------
# Feature registry (declaration order is registry order)
# ---------------------------------------------------------------------------

FEATURES: dict[FeatureId, FeatureDescriptor] = build_registry(
    [
        # Core
        FeatureDescriptor(
            _F.DASHBOARD, "Dashboard", "Main overview and statistics", Icon.HOME, True, _ALL
        ),
        FeatureDescriptor(
            _F.PROFILE, "Profile", "User profile and account settings", Icon.USER, True, _ALL
        ),
        FeatureDescriptor(
            _F.SETTINGS, "Settings", "Application configuration", Icon.SETTINGS, True, _ALL
        ),
        FeatureDescriptor(
            _F.NOTIFICATIONS, "Notifications", "System and app notifications", Icon.BELL, True, _ALL
        ),
        # Academic
        FeatureDescriptor(
            _F.ASSIGNMENTS,
            "Assignments",
            "Create, manage, and submit assignments",
            Icon.CLIPBOARD_LIST,
            True,
            _ALL,
            category=_C.ACADEMIC,
        ),
        FeatureDescriptor(
            _F.GRADES,
            "Grades",
            "Grade management and viewing",
            Icon.AWARD,
            True,
            _ALL,
            category=_C.ACADEMIC,
        ),
        FeatureDescriptor(
            _F.ATTENDANCE,
            "Attendance",
            "Track and manage attendance",
            Icon.USER_CHECK,
            True,
            _ALL,
            category=_C.ACADEMIC,
        ),
        FeatureDescriptor(
            _F.CALENDAR,
            "Calendar",
            "Schedule and events management",
            Icon.CALENDAR,
            True,
            _ALL,
            category=_C.ACADEMIC,
        ),
        # Communication
        FeatureDescriptor(
            _F.MESSAGES,
            "Messages",
            "Direct messaging and communication",
            Icon.MESSAGE_SQUARE,
            True,
            _ALL,
            category=_C.COMMUNICATION,
        ),
        FeatureDescriptor(
            _F.ANNOUNCEMENTS,
            "Announcements",
            "School and class announcements",
            Icon.BOOK_OPEN,
            True,
            _ALL,
            category=_C.COMMUNICATION,
        ),
        # Resources
        FeatureDescriptor(
            _F.LIBRARY,
            "Digital Library",
            "Educational resources and materials",
            Icon.BOOK_MARKED,
            True,
            _ALL,
            category=_C.RESOURCES,
        ),
        FeatureDescriptor(
            _F.DOCUMENTS,
            "Documents",
            "File management and sharing",
            Icon.HARD_DRIVE,
            True,
            _ALL,
            category=_C.RESOURCES,
        ),
        # Administrative
        FeatureDescriptor(
            _F.CLASSES,
            "Class Management",
            "Manage classes and students",
            Icon.GRADUATION_CAP,
            True,
            _ADMIN,
            category=_C.ADMINISTRATIVE,
        ),
        FeatureDescriptor(
            _F.USER_MANAGEMENT,
            "User Management",
            "Create and manage student and teacher accounts",
            Icon.USER_PLUS,
            True,
            _ADMIN,
            category=_C.ADMINISTRATIVE,
        ),
        FeatureDescriptor(
            _F.TEACHER_CLASSES,
            "My Classes",
            "Manage your assigned classes and students",
            Icon.USERS,
            True,
            _TEACHER,
            category=_C.ADMINISTRATIVE,
        ),
        FeatureDescriptor(
            _F.REPORTS,
            "Reports & Analytics",
            "Performance reports and analytics",
            Icon.BAR_CHART,
            True,
            _STAFF,
            category=_C.ADMINISTRATIVE,
        ),
        # Experimental
        FeatureDescriptor(
            _F.AI_TUTOR,
            "AI Tutor",
            "AI-powered tutoring assistance",
            Icon.BOT,
            False,
            _STUDENT,
            beta=True,
            category=_C.EXPERIMENTAL,
        ),
        FeatureDescriptor(
            _F.VIDEO_CALLS,
            "Video Calls",
            "Virtual classroom meetings",
            Icon.VIDEO,
            False,
            _ALL,
            beta=True,
            category=_C.EXPERIMENTAL,
        ),
    ]
)

# Never switched off through the standard toggle.
CORE_FEATURES: frozenset[FeatureId] = frozenset({_F.DASHBOARD, _F.PROFILE, _F.SETTINGS})

# ---------------------------------------------------------------------------
# Role override defaults
# ---------------------------------------------------------------------------

_COMMON_ON = (
    _F.DASHBOARD,
    _F.PROFILE,
    _F.SETTINGS,
    _F.NOTIFICATIONS,
    _F.ASSIGNMENTS,
    _F.GRADES,
    _F.ATTENDANCE,
    _F.CALENDAR,
    _F.MESSAGES,
    _F.ANNOUNCEMENTS,
    _F.LIBRARY,
)

DEFAULT_ROLE_OVERRIDES: dict[Role, dict[FeatureId, bool]] = {
    Role.ADMIN: {
        **dict.fromkeys(_COMMON_ON, True),
        _F.DOCUMENTS: True,
        _F.CLASSES: True,
        _F.USER_MANAGEMENT: True,
        _F.TEACHER_CLASSES: True,
        _F.REPORTS: True,
        _F.AI_TUTOR: False,
        _F.VIDEO_CALLS: False,
    },
    Role.TEACHER: {
        **dict.fromkeys(_COMMON_ON, True),
        _F.DOCUMENTS: True,
        _F.REPORTS: True,
        _F.TEACHER_CLASSES: True,
        _F.AI_TUTOR: True,
        _F.VIDEO_CALLS: False,
    },
    Role.STUDENT: {
        **dict.fromkeys(_COMMON_ON, True),
        _F.DOCUMENTS: False,
        _F.AI_TUTOR: False,
        _F.VIDEO_CALLS: False,
    },
}

# ---------------------------------------------------------------------------
# Navigation allow-lists
# ---------------------------------------------------------------------------

NAVIGATION_FEATURES: frozenset[FeatureId] = frozenset(
    {
        _F.DASHBOARD,
        _F.ASSIGNMENTS,
        _F.GRADES,
        _F.ATTENDANCE,
        _F.CALENDAR,
        _F.MESSAGES,
        _F.ANNOUNCEMENTS,
        _F.LIBRARY,
        _F.DOCUMENTS,
        _F.CLASSES,
        _F.USER_MANAGEMENT,
        _F.TEACHER_CLASSES,
        _F.REPORTS,
        _F.PROFILE,
        _F.SETTINGS,
        _F.NOTIFICATIONS,
    }
)

# Mobile bottom bar, hand-picked per role.
BOTTOM_NAV_FEATURES: dict[Role, frozenset[FeatureId]] = {
    Role.ADMIN: frozenset({_F.DASHBOARD, _F.CLASSES, _F.LIBRARY, _F.MESSAGES, _F.DOCUMENTS}),
    Role.TEACHER: frozenset(
        {_F.DASHBOARD, _F.ASSIGNMENTS, _F.TEACHER_CLASSES, _F.GRADES, _F.ATTENDANCE}
    ),
    Role.STUDENT: frozenset({_F.DASHBOARD, _F.ASSIGNMENTS, _F.LIBRARY, _F.MESSAGES, _F.PROFILE}),
}
DEFAULT_BOTTOM_NAV: frozenset[FeatureId] = frozenset({_F.DASHBOARD})


def default_overrides() -> dict[Role, dict[FeatureId, bool]]:
    """Fresh, independently mutable copy of the default override matrix."""
    return {role: dict(entries) for role, entries in DEFAULT_ROLE_OVERRIDES.items()}


@dataclass(frozen=True)
class NavigationLayout:
    """Allow-lists consulted by the navigation filters."""

    navigation: frozenset[FeatureId] = NAVIGATION_FEATURES
    bottom_nav: Mapping[Role, frozenset[FeatureId]] = field(
        default_factory=lambda: dict(BOTTOM_NAV_FEATURES)
    )
    bottom_nav_fallback: frozenset[FeatureId] = DEFAULT_BOTTOM_NAV

    def bottom_nav_for(self, role: Role) -> frozenset[FeatureId]:
        return self.bottom_nav.get(role, self.bottom_nav_fallback)
