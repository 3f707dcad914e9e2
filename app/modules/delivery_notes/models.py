"""
Modelos SQLAlchemy para el módulo de Albaranes (Delivery Notes)

- PurchaseDeliveryNote / PurchaseDeliveryNoteLine: mercancía recibida de
  un proveedor (incrementa stock)
- SalesDeliveryNote / SalesDeliveryNoteLine: mercancía entregada a un
  cliente (decrementa stock)

Las líneas se calculan y congelan al crear el albarán; no existe operación
de edición de líneas. El albarán posee sus líneas en exclusiva (cascade).
Arquitectura multi-tenant: todas las cabeceras incluyen company_id.
"""

from app.database.database import Base
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Numeric, Index
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from app.common.mixins import TenantMixin, TimestampMixin, SoftDeleteMixin
import enum


class BillingStatus(enum.IntEnum):
    """Estado de facturación del albarán"""
    PENDING = 0     # Pendiente de facturar
    INVOICED = 1    # Facturado (fuera del alcance del motor)


class PurchaseDeliveryNote(Base, TenantMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "purchase_delivery_notes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    supplier_id = Column(UUID(as_uuid=True), ForeignKey("suppliers.id"), nullable=False, index=True)
    date = Column(DateTime(timezone=True), nullable=False)
    reference = Column(String(100), nullable=True, index=True)
    billing_status = Column(Integer, nullable=False, default=int(BillingStatus.PENDING))

    # Totales calculados
    subtotal = Column(Numeric(18, 4), nullable=False, default=0)
    iva_total = Column(Numeric(18, 4), nullable=False, default=0)
    total = Column(Numeric(18, 4), nullable=False, default=0)

    # Relationships
    supplier = relationship("Supplier", back_populates="delivery_notes")
    lines = relationship(
        "PurchaseDeliveryNoteLine",
        back_populates="delivery_note",
        cascade="all, delete-orphan",
        order_by="PurchaseDeliveryNoteLine.position"
    )

    __table_args__ = (
        Index("ix_purchase_delivery_notes_company_date", "company_id", "date"),
    )

    @property
    def partner_id(self):
        return self.supplier_id

    @property
    def partner(self):
        return self.supplier


class PurchaseDeliveryNoteLine(Base, TimestampMixin):
    __tablename__ = "purchase_delivery_note_lines"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    delivery_note_id = Column(
        UUID(as_uuid=True),
        ForeignKey("purchase_delivery_notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    article_id = Column(UUID(as_uuid=True), ForeignKey("articles.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)

    # Snapshot del artículo al momento del albarán
    article_code = Column(String(10), nullable=False)
    article_name = Column(String(50), nullable=False)

    quantity = Column(Numeric(18, 4), nullable=False)
    price = Column(Numeric(18, 4), nullable=False)
    iva_percentage = Column(Numeric(5, 2), nullable=False)

    # Calculados
    subtotal = Column(Numeric(18, 4), nullable=False)
    iva_amount = Column(Numeric(18, 4), nullable=False)
    total = Column(Numeric(18, 4), nullable=False)

    # Relationships
    delivery_note = relationship("PurchaseDeliveryNote", back_populates="lines")
    article = relationship("Article")


class SalesDeliveryNote(Base, TenantMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "sales_delivery_notes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=False, index=True)
    date = Column(DateTime(timezone=True), nullable=False)
    reference = Column(String(100), nullable=True, index=True)
    billing_status = Column(Integer, nullable=False, default=int(BillingStatus.PENDING))

    # Totales calculados
    subtotal = Column(Numeric(18, 4), nullable=False, default=0)
    iva_total = Column(Numeric(18, 4), nullable=False, default=0)
    total = Column(Numeric(18, 4), nullable=False, default=0)

    # Relationships
    customer = relationship("Customer", back_populates="delivery_notes")
    lines = relationship(
        "SalesDeliveryNoteLine",
        back_populates="delivery_note",
        cascade="all, delete-orphan",
        order_by="SalesDeliveryNoteLine.position"
    )

    __table_args__ = (
        Index("ix_sales_delivery_notes_company_date", "company_id", "date"),
    )

    @property
    def partner_id(self):
        return self.customer_id

    @property
    def partner(self):
        return self.customer


class SalesDeliveryNoteLine(Base, TimestampMixin):
    __tablename__ = "sales_delivery_note_lines"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    delivery_note_id = Column(
        UUID(as_uuid=True),
        ForeignKey("sales_delivery_notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    article_id = Column(UUID(as_uuid=True), ForeignKey("articles.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)

    # Snapshot del artículo al momento del albarán
    article_code = Column(String(10), nullable=False)
    article_name = Column(String(50), nullable=False)

    quantity = Column(Numeric(18, 4), nullable=False)
    price = Column(Numeric(18, 4), nullable=False)
    iva_percentage = Column(Numeric(5, 2), nullable=False)

    # Calculados
    subtotal = Column(Numeric(18, 4), nullable=False)
    iva_amount = Column(Numeric(18, 4), nullable=False)
    total = Column(Numeric(18, 4), nullable=False)

    # Relationships
    delivery_note = relationship("SalesDeliveryNote", back_populates="lines")
    article = relationship("Article")
