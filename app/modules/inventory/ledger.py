"""
Libro de stock (StockLedger)

Contrato consumido por el motor de albaranes:
- increase_stock(article_id, quantity): suma hasta la capacidad de Numeric(18,4)
- decrease_stock(article_id, quantity): resta; falla con InsufficientStock
  antes que dejar el stock negativo
- has_enough_stock(article_id, quantity): stock actual >= cantidad

Implementaciones:
- SqlStockLedger: sobre la sesión SQLAlchemy de la unidad de trabajo. La
  resta es un UPDATE condicional atómico (stock >= :qty); 0 filas afectadas
  significa stock insuficiente. El bloqueo de fila del UPDATE se mantiene
  hasta el commit, de modo que dos ventas concurrentes sobre el mismo
  artículo se serializan y la segunda vuelve a evaluar la condición.
- InMemoryStockLedger: implementación de referencia protegida con un
  threading.Lock, usada en tests de contrato y concurrencia.
"""

import logging
import threading
from decimal import Decimal
from typing import Dict, Optional, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session
from sqlalchemy.orm.util import identity_key

from app.common.exceptions import ArticleNotFound, InsufficientStock, ValidationError
from app.common.mixins import live
from app.modules.articles.models import Article
from app.modules.inventory.models import StockMovement
from app.modules.taxes.calculator import MAX_AMOUNT

logger = logging.getLogger(__name__)


@runtime_checkable
class StockLedger(Protocol):
    """Interfaz del libro de stock por artículo."""

    def increase_stock(self, article_id: UUID, quantity: Decimal, reference: Optional[str] = None) -> None:
        ...

    def decrease_stock(self, article_id: UUID, quantity: Decimal, reference: Optional[str] = None) -> None:
        ...

    def has_enough_stock(self, article_id: UUID, quantity: Decimal) -> bool:
        ...


class SqlStockLedger:
    """Libro de stock sobre la tabla articles, con alcance de empresa."""

    def __init__(self, db: Session, company_id: UUID):
        self.db = db
        self.company_id = company_id
        # Salidas ya aplicadas en esta unidad de trabajo, por artículo
        self._debited: Dict[UUID, Decimal] = {}

    def _scope(self, article_id: UUID):
        return (
            Article.id == article_id,
            Article.company_id == self.company_id,
            live(Article),
        )

    def current_stock(self, article_id: UUID) -> Optional[Decimal]:
        return self.db.execute(
            select(Article.stock).where(*self._scope(article_id))
        ).scalar_one_or_none()

    def has_enough_stock(self, article_id: UUID, quantity: Decimal) -> bool:
        stock = self.current_stock(article_id)
        return stock is not None and stock >= quantity

    def increase_stock(self, article_id: UUID, quantity: Decimal, reference: Optional[str] = None) -> None:
        result = self.db.execute(
            update(Article)
            .where(*self._scope(article_id))
            .where(Article.stock < MAX_AMOUNT - quantity)
            .values(stock=Article.stock + quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            if self.current_stock(article_id) is None:
                raise ArticleNotFound(article_id)
            raise ValidationError(
                f"El stock del artículo {article_id} excedería el máximo permitido", field="quantity"
            )

        self._expire_cached(article_id)
        self._record_movement(article_id, "IN", quantity, reference)
        logger.info(f"Stock increased for article {article_id}: +{quantity}")

    def decrease_stock(self, article_id: UUID, quantity: Decimal, reference: Optional[str] = None) -> None:
        result = self.db.execute(
            update(Article)
            .where(*self._scope(article_id))
            .where(Article.stock >= quantity)
            .values(stock=Article.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            article = self.db.execute(
                select(Article)
                .where(*self._scope(article_id))
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
            if article is None:
                raise ArticleNotFound(article_id)
            logger.warning(
                f"Conditional decrement rejected for article {article_id}: "
                f"available={article.stock}, requested={quantity}"
            )
            raise InsufficientStock(
                article.id, article.name, article.stock, quantity,
                reserved=self._debited.get(article_id)
            )

        self._debited[article_id] = self._debited.get(article_id, Decimal("0")) + quantity
        self._expire_cached(article_id)
        self._record_movement(article_id, "OUT", quantity, reference)
        logger.info(f"Stock decreased for article {article_id}: -{quantity}")

    def _expire_cached(self, article_id: UUID):
        cached = self.db.identity_map.get(identity_key(Article, article_id))
        if cached is not None:
            self.db.expire(cached, ["stock", "updated_at"])

    def _record_movement(self, article_id: UUID, movement_type: str, quantity: Decimal, reference: Optional[str]):
        self.db.add(StockMovement(
            company_id=self.company_id,
            article_id=article_id,
            movement_type=movement_type,
            quantity=quantity,
            reference=reference
        ))


class InMemoryStockLedger:
    """Implementación de referencia en memoria, segura entre hilos."""

    def __init__(self, initial: Optional[Dict[UUID, Decimal]] = None, names: Optional[Dict[UUID, str]] = None):
        self._stock: Dict[UUID, Decimal] = {k: Decimal(v) for k, v in (initial or {}).items()}
        self._names: Dict[UUID, str] = dict(names or {})
        self._lock = threading.Lock()
        self.movements = []

    def register(self, article_id: UUID, stock: Decimal = Decimal("0"), name: Optional[str] = None) -> None:
        with self._lock:
            self._stock[article_id] = Decimal(stock)
            if name:
                self._names[article_id] = name

    def stock_of(self, article_id: UUID) -> Decimal:
        with self._lock:
            if article_id not in self._stock:
                raise ArticleNotFound(article_id)
            return self._stock[article_id]

    def has_enough_stock(self, article_id: UUID, quantity: Decimal) -> bool:
        with self._lock:
            return article_id in self._stock and self._stock[article_id] >= quantity

    def increase_stock(self, article_id: UUID, quantity: Decimal, reference: Optional[str] = None) -> None:
        with self._lock:
            if article_id not in self._stock:
                raise ArticleNotFound(article_id)
            if self._stock[article_id] + quantity >= MAX_AMOUNT:
                raise ValidationError(
                    f"El stock del artículo {article_id} excedería el máximo permitido", field="quantity"
                )
            self._stock[article_id] += quantity
            self.movements.append((article_id, "IN", quantity, reference))

    def decrease_stock(self, article_id: UUID, quantity: Decimal, reference: Optional[str] = None) -> None:
        with self._lock:
            if article_id not in self._stock:
                raise ArticleNotFound(article_id)
            available = self._stock[article_id]
            if available < quantity:
                raise InsufficientStock(article_id, self._names.get(article_id), available, quantity)
            self._stock[article_id] = available - quantity
            self.movements.append((article_id, "OUT", quantity, reference))
