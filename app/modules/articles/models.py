"""
Modelos SQLAlchemy para Artículos y Familias

- Family: agrupa artículos que comparten porcentaje de IVA
- Article: precios de compra/venta y stock actual

Importes y cantidades en Numeric(18, 4). El stock nunca puede quedar
negativo tras una operación confirmada (CHECK en base de datos).
"""

from app.database.database import Base
from sqlalchemy import Column, String, ForeignKey, Numeric, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from app.common.mixins import TenantMixin, TimestampMixin, SoftDeleteMixin


class Family(Base, TenantMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "families"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(100), nullable=False)
    description = Column(String(255), nullable=True)
    iva_percentage = Column(Numeric(5, 2), nullable=False)  # ej. 21.00

    articles = relationship("Article", back_populates="family")

    __table_args__ = (
        CheckConstraint("iva_percentage >= 0", name="ck_family_iva_nonneg"),
    )


class Article(Base, TenantMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "articles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    family_id = Column(UUID(as_uuid=True), ForeignKey("families.id"), nullable=False, index=True)
    code = Column(String(10), nullable=False)
    name = Column(String(50), nullable=False, index=True)
    description = Column(String(255), nullable=True)
    buy_price = Column(Numeric(18, 4), nullable=False, default=0)
    sell_price = Column(Numeric(18, 4), nullable=False, default=0)
    stock = Column(Numeric(18, 4), nullable=False, default=0)

    # Relationships
    family = relationship("Family", back_populates="articles", lazy="joined")

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_article_company_code"),
        CheckConstraint("buy_price >= 0", name="ck_article_buy_price_nonneg"),
        CheckConstraint("sell_price >= 0", name="ck_article_sell_price_nonneg"),
        CheckConstraint("stock >= 0", name="ck_article_stock_nonneg"),
    )
