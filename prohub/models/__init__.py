"""SQLAlchemy ORM models for ProHub.

Import all models here so Alembic and Base.metadata.create_all() discover them.
"""

from __future__ import annotations

from prohub.models.audit import AuditLog
from prohub.models.base import Base
from prohub.models.enums import AppRole, CtaType, FunnelStepKind, ServiceVersionState
from prohub.models.service import Service
from prohub.models.service_version import ServiceVersion
from prohub.models.user import Profile, UserRole
from prohub.models.vendor_partner import VendorPartnerRecord

__all__ = [
    # Base
    "Base",
    # Models
    "Service",
    "ServiceVersion",
    "VendorPartnerRecord",
    "UserRole",
    "Profile",
    "AuditLog",
    # Enums
    "ServiceVersionState",
    "AppRole",
    "CtaType",
    "FunnelStepKind",
]
