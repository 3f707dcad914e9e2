"""
Modelos SQLAlchemy para Tarifas

Una Tariff es una lista de precios de compra (BUY) o de venta (SELL) de la
empresa. Cada TariffItem sobrescribe el precio base de un artículo.
"""

from app.database.database import Base
from sqlalchemy import Column, String, ForeignKey, Numeric, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from app.common.mixins import TenantMixin, TimestampMixin, SoftDeleteMixin
import enum


class TariffType(enum.Enum):
    """Tipo de tarifa"""
    BUY = 1    # Compra (proveedores)
    SELL = 2   # Venta (clientes)


class Tariff(Base, TenantMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "tariffs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(200), nullable=False, index=True)
    description = Column(String(500), nullable=True)
    type = Column(Enum(TariffType), nullable=False)

    items = relationship("TariffItem", back_populates="tariff", cascade="all, delete-orphan")


class TariffItem(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "tariff_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    tariff_id = Column(UUID(as_uuid=True), ForeignKey("tariffs.id"), nullable=False, index=True)
    article_id = Column(UUID(as_uuid=True), ForeignKey("articles.id"), nullable=False, index=True)
    price = Column(Numeric(18, 4), nullable=False)

    tariff = relationship("Tariff", back_populates="items")
    article = relationship("Article")
