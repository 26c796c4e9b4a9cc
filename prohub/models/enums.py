"""Domain enums used across SQLAlchemy models and Pydantic schemas.

All enums use str mixin for JSON serialization.
"""

from __future__ import annotations

from enum import Enum


class ServiceVersionState(str, Enum):
    """Lifecycle of a service content version — forward only."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class AppRole(str, Enum):
    """Roles stored in user_roles."""

    ADMIN = "admin"
    AGENT = "agent"
    VENDOR = "vendor"


class CtaType(str, Enum):
    """Call-to-action behaviour on a service card or funnel step."""

    BOOK = "book"
    LINK = "link"
    ADD_TO_CART = "add_to_cart"


class FunnelStepKind(str, Enum):
    """Content block types in a service funnel."""

    HERO = "hero"
    PROOF = "proof"
    PACKAGE_CHOOSER = "package-chooser"
    FAQ = "faq"
    CTA = "cta"
    CUSTOM = "custom"
