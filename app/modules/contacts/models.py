"""
Modelos SQLAlchemy para el módulo de Contactos

Terceros de la empresa que participan en los albaranes:
- Supplier: proveedores, con tarifa de compra opcional (buy_tariff_id)
- Customer: clientes, con tarifa de venta opcional (sell_tariff_id)

El motor de albaranes sólo los lee; su alta y edición pertenece al CRUD.
Arquitectura multi-tenant: todas las tablas incluyen company_id.
"""

from app.database.database import Base
from sqlalchemy import Column, String, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from app.common.mixins import TenantMixin, TimestampMixin, SoftDeleteMixin


class Supplier(Base, TenantMixin, TimestampMixin, SoftDeleteMixin):
    """Proveedores de la empresa"""
    __tablename__ = "suppliers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(200), nullable=False, index=True)
    tax_id = Column(String(50), nullable=True)  # NIF/CIF
    email = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    buy_tariff_id = Column(UUID(as_uuid=True), ForeignKey("tariffs.id"), nullable=True)

    # Relationships
    buy_tariff = relationship("Tariff")
    delivery_notes = relationship("PurchaseDeliveryNote", back_populates="supplier")

    @property
    def tariff_id(self):
        return self.buy_tariff_id

    @property
    def tariff(self):
        return self.buy_tariff


class Customer(Base, TenantMixin, TimestampMixin, SoftDeleteMixin):
    """Clientes de la empresa"""
    __tablename__ = "customers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(200), nullable=False, index=True)
    tax_id = Column(String(50), nullable=True)
    email = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    sell_tariff_id = Column(UUID(as_uuid=True), ForeignKey("tariffs.id"), nullable=True)

    # Relationships
    sell_tariff = relationship("Tariff")
    delivery_notes = relationship("SalesDeliveryNote", back_populates="customer")

    @property
    def tariff_id(self):
        return self.sell_tariff_id

    @property
    def tariff(self):
        return self.sell_tariff
