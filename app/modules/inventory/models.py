from app.database.database import Base
from sqlalchemy import Column, String, ForeignKey, Numeric, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from app.common.mixins import TenantMixin, TimestampMixin


class StockMovement(Base, TenantMixin, TimestampMixin):
    __tablename__ = "stock_movements"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    article_id = Column(UUID(as_uuid=True), ForeignKey("articles.id"), nullable=False, index=True)

    movement_type = Column(String(10), nullable=False)  # IN, OUT
    quantity = Column(Numeric(18, 4), nullable=False)   # siempre positiva, el signo lo da movement_type
    reference = Column(String(100), nullable=True)      # albarán que origina el movimiento

    # Relationships
    article = relationship("Article")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_stock_movement_qty_pos"),
    )
