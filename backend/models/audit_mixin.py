from sqlalchemy import Boolean, Column, DateTime, String

from utils.dates import local_now


class TimestampMixin:
    """Created/updated timestamps plus the acting user for each.

    Timestamps are timezone-aware and stamped in the configured business
    timezone (APP_TIMEZONE).
    """
    created_at = Column(DateTime(timezone=True), default=local_now)
    updated_at = Column(DateTime(timezone=True), onupdate=local_now)
    created_by = Column(String, nullable=True)
    updated_by = Column(String, nullable=True)


class ActiveFlagMixin:
    """Soft-delete flag. Queries filter on `is_active` explicitly."""
    is_active = Column(Boolean, nullable=False, default=True, index=True)


class AuditMixin(TimestampMixin, ActiveFlagMixin):
    """Audit stamps + soft-delete flag, shared by every financial record."""
    pass
