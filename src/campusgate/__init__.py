"""
campusgate — role-based feature gating for the school-management app.

Decides which features, navigation entries and pages an authenticated
admin, teacher or student gets to see.  The registry is static; the
per-role override matrix lives in an injectable store.

Package layout (src/campusgate/):
  core/      — constants, config, logging, exceptions
  features/  — catalog, override stores, resolver, mutator, context, guard, pages
  cli/       — Click CLI entry point (admin/debug surface)
"""

__version__ = "0.4.0"
__all__ = ["__version__"]
