"""campusgate exception hierarchy."""

from __future__ import annotations


class CampusGateError(Exception):
    """Base exception for all campusgate errors."""


class ConfigError(CampusGateError):
    """Raised when the configuration is invalid or cannot be read."""


class ConfigNotFoundError(ConfigError):
    """Raised when the configuration file does not exist."""


class StoreError(CampusGateError):
    """Raised when the override store cannot be read or written."""


class FeatureAccessDenied(CampusGateError):
    """Raised for an unauthorized feature mutation when raise_on_denied is set."""

    def __init__(self, caller_role: str | None, target_role: str | None, feature_id: str) -> None:
        self.caller_role = caller_role
        self.target_role = target_role
        self.feature_id = feature_id
        super().__init__(
            f"Role {caller_role!r} may not change feature {feature_id!r} for role {target_role!r}"
        )
