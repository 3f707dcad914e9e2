"""
Common mixins for multi-tenant models
"""
from sqlalchemy import Column, DateTime, Boolean
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from datetime import datetime


class TenantMixin:
    """Mixin for multi-tenant models that adds company_id and ensures tenant isolation"""

    company_id = Column(UUID(as_uuid=True), nullable=False, index=True)


class TimestampMixin:
    """Mixin for models that need timestamp tracking"""

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)


class SoftDeleteMixin:
    """Mixin for soft delete functionality (requires TimestampMixin.deleted_at)"""

    is_active = Column(Boolean, default=True, nullable=False)

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    def soft_delete(self):
        self.deleted_at = datetime.utcnow()
        self.is_active = False

    def restore(self):
        self.deleted_at = None
        self.is_active = True


def live(model):
    """Condición 'no eliminado' para cualquier modelo con deleted_at."""
    return model.deleted_at.is_(None)
