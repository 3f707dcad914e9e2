"""
Servicios de negocio para el módulo de Albaranes (Delivery Notes)

Flujo de creación (una unidad de trabajo por llamada):
1. Validar la petición (líneas, cantidades, precios) sin tocar la base de datos
2. Cargar el tercero de la empresa (con su tarifa) o PartnerNotFound
3. Ventas: comprobar stock suficiente de todas las líneas antes de mutar nada
4. Por cada línea, en el orden recibido: cargar artículo, resolver precio,
   calcular importes, mover stock (entrada en compras, salida en ventas)
5. Acumular totales y confirmar; cualquier error deshace todo

El albarán resultante queda en estado PENDING de facturación.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from app.common.exceptions import (
    ArticleNotFound, DeliveryNoteError, InsufficientStock,
    NoteNotFound, PartnerNotFound, PersistenceError, ValidationError
)
from app.common.mixins import live
from app.core.config import settings
from app.modules.articles.models import Article
from app.modules.contacts.models import Customer, Supplier
from app.modules.delivery_notes.models import (
    BillingStatus,
    PurchaseDeliveryNote, PurchaseDeliveryNoteLine,
    SalesDeliveryNote, SalesDeliveryNoteLine
)
from app.modules.delivery_notes.schemas import (
    DeliveryNoteLineCreate, DeliveryNoteList, DeliveryNoteSummary
)
from app.modules.inventory.ledger import SqlStockLedger, StockLedger
from app.modules.taxes.calculator import LineCalculator, fits_money, quantize_money
from app.modules.tariffs.models import Tariff
from app.modules.tariffs.pricing import purchase_price_resolver, sales_price_resolver

logger = logging.getLogger(__name__)

LedgerFactory = Callable[[Session, UUID], StockLedger]


def _as_decimal(value, field: str, line_index: int) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Valor no numérico en {field}", field=field, line_index=line_index)


def validate_lines(lines: Sequence[DeliveryNoteLineCreate]) -> List[DeliveryNoteLineCreate]:
    """
    Validar y normalizar las líneas de un albarán

    Reglas:
    - Al menos una línea
    - quantity > 0, con un máximo de 4 decimales y menor que 10^14
    - price (si se indica) >= 0, con un máximo de 4 decimales y menor que 10^14

    Returns:
        Lista de líneas con cantidades y precios como Decimal

    Raises:
        ValidationError: en la primera regla incumplida
    """
    if not lines:
        raise ValidationError("El albarán debe tener al menos una línea", field="lines")

    normalized = []
    for index, line in enumerate(lines):
        if line.quantity is None:
            raise ValidationError("La cantidad es obligatoria", field="quantity", line_index=index)
        quantity = _as_decimal(line.quantity, "quantity", index)
        if not quantity.is_finite() or quantity <= 0:
            raise ValidationError(
                "La cantidad debe ser mayor que cero", field="quantity", line_index=index
            )
        if not fits_money(quantity):
            raise ValidationError(
                "La cantidad excede el máximo permitido", field="quantity", line_index=index
            )
        if quantity != quantize_money(quantity):
            raise ValidationError(
                "La cantidad admite como máximo 4 decimales", field="quantity", line_index=index
            )

        price = None
        if line.price is not None:
            price = _as_decimal(line.price, "price", index)
            if not price.is_finite() or price < 0:
                raise ValidationError(
                    "El precio no puede ser negativo", field="price", line_index=index
                )
            if not fits_money(price):
                raise ValidationError(
                    "El precio excede el máximo permitido", field="price", line_index=index
                )
            if price != quantize_money(price):
                raise ValidationError(
                    "El precio admite como máximo 4 decimales", field="price", line_index=index
                )

        normalized.append(DeliveryNoteLineCreate(article_id=line.article_id, quantity=quantity, price=price))
    return normalized


class DeliveryNoteService(ABC):
    """
    Lógica común de albaranes de compra y venta

    Clase abstracta: las subclases fijan los modelos, el tercero, el resolvedor de precios y
    el sentido del movimiento de stock.
    """

    note_model = None
    line_model = None
    partner_model = None
    partner_field = None
    partner_relation = None
    partner_kind = None
    partner_tariff = None
    price_resolver = None
    reference_prefix = None

    def __init__(self, db: Session, ledger_factory: Optional[LedgerFactory] = None):
        self.db = db
        self.ledger_factory = ledger_factory or SqlStockLedger

    # ===== CREATE =====

    def create_delivery_note(
        self,
        company_id: UUID,
        partner_id: UUID,
        note_date: datetime,
        reference: Optional[str],
        lines: Sequence[DeliveryNoteLineCreate]
    ):
        """
        Crear un albarán con sus líneas y aplicar el movimiento de stock

        Todo o nada: si cualquier línea falla no queda albarán, ni líneas,
        ni cambios de stock.
        """
        lines = validate_lines(lines)
        if reference is not None and len(reference) > 100:
            raise ValidationError("La referencia admite como máximo 100 caracteres", field="reference")

        logger.info(
            f"Creating {self.note_model.__tablename__} for company {company_id}, "
            f"{self.partner_kind} {partner_id}, {len(lines)} line(s)"
        )

        try:
            self._apply_lock_timeout()
            ledger = self.ledger_factory(self.db, company_id)
            partner = self._load_partner(company_id, partner_id)
            self._check_stock(company_id, ledger, lines)

            note = self.note_model(
                company_id=company_id,
                date=note_date,
                reference=reference,
                billing_status=int(BillingStatus.PENDING),
                **{self.partner_field: partner.id}
            )
            self.db.add(note)
            self.db.flush()

            movement_reference = f"{self.reference_prefix} {note.id}"
            amounts = []
            for position, line in enumerate(lines, start=1):
                article = self._load_article(company_id, line.article_id)
                price = self.price_resolver.resolve(line.price, partner, article)
                iva_percentage = article.family.iva_percentage
                try:
                    computed = LineCalculator.compute(line.quantity, price, iva_percentage)
                except ValidationError as e:
                    raise ValidationError(e.message, field=e.field, line_index=position - 1) from e

                note.lines.append(self.line_model(
                    article_id=article.id,
                    position=position,
                    article_code=article.code,
                    article_name=article.name,
                    quantity=line.quantity,
                    price=price,
                    iva_percentage=iva_percentage,
                    subtotal=computed.subtotal,
                    iva_amount=computed.iva_amount,
                    total=computed.total
                ))
                self._move_stock(ledger, article.id, line.quantity, movement_reference)
                amounts.append(computed)

            totals = LineCalculator.totals(amounts)
            note.subtotal = totals.subtotal
            note.iva_total = totals.iva_amount
            note.total = totals.total

            self.db.commit()
            note_id = note.id
        except DeliveryNoteError as e:
            self.db.rollback()
            logger.warning(f"Delivery note rejected for company {company_id}: {e.message}")
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating delivery note for company {company_id}: {str(e)}")
            raise PersistenceError("create_delivery_note", e) from e

        logger.info(f"Delivery note {note_id} created for company {company_id}, total {totals.total}")
        return self.get_delivery_note(company_id, note_id)

    def _apply_lock_timeout(self):
        # En PostgreSQL acota la espera por bloqueos de fila a la transacción actual
        if self.db.get_bind().dialect.name != "postgresql":
            return
        timeout = int(settings.STOCK_LOCK_TIMEOUT_MS)
        self.db.execute(text(f"SET LOCAL lock_timeout = {timeout}"))
        self.db.execute(text(f"SET LOCAL statement_timeout = {timeout}"))

    def _load_partner(self, company_id: UUID, partner_id: UUID):
        partner = self.db.execute(
            select(self.partner_model)
            .options(
                selectinload(getattr(self.partner_model, self.partner_tariff))
                .selectinload(Tariff.items)
            )
            .where(
                self.partner_model.id == partner_id,
                self.partner_model.company_id == company_id,
                live(self.partner_model)
            )
        ).scalar_one_or_none()
        if partner is None:
            raise PartnerNotFound(partner_id, self.partner_kind)
        return partner

    def _find_article(self, company_id: UUID, article_id: UUID) -> Optional[Article]:
        return self.db.execute(
            select(Article).where(
                Article.id == article_id,
                Article.company_id == company_id,
                live(Article)
            )
        ).scalar_one_or_none()

    def _load_article(self, company_id: UUID, article_id: UUID) -> Article:
        article = self._find_article(company_id, article_id)
        if article is None:
            raise ArticleNotFound(article_id)
        return article

    def _check_stock(self, company_id: UUID, ledger: StockLedger, lines: List[DeliveryNoteLineCreate]):
        pass

    @abstractmethod
    def _move_stock(self, ledger: StockLedger, article_id: UUID, quantity: Decimal, reference: str):
        """Entrada o salida de stock de una línea"""

    # ===== CONFIRM =====

    def confirm_delivery_note(self, company_id: UUID, note_id: UUID) -> None:
        """
        Confirmar un albarán

        Sólo actualiza updated_at; no cambia estado, líneas ni stock.
        """
        try:
            note = self._query_note(company_id, note_id).scalar_one_or_none()
            if note is None:
                raise NoteNotFound(note_id)

            note.updated_at = datetime.utcnow()
            self.db.commit()
        except DeliveryNoteError as e:
            self.db.rollback()
            logger.warning(f"Confirm rejected for company {company_id}: {e.message}")
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error confirming delivery note {note_id}: {str(e)}")
            raise PersistenceError("confirm_delivery_note", e) from e

        logger.info(f"Delivery note {note_id} confirmed for company {company_id}")

    # ===== QUERIES =====

    def _query_note(self, company_id: UUID, note_id: UUID):
        return self.db.execute(
            select(self.note_model)
            .options(
                selectinload(self.note_model.lines),
                joinedload(getattr(self.note_model, self.partner_relation))
            )
            .where(
                self.note_model.id == note_id,
                self.note_model.company_id == company_id,
                live(self.note_model)
            )
        )

    def get_delivery_note(self, company_id: UUID, note_id: UUID):
        """Obtener un albarán no eliminado de la empresa, con sus líneas"""
        try:
            note = self._query_note(company_id, note_id).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error loading delivery note {note_id}: {str(e)}")
            raise PersistenceError("get_delivery_note", e) from e
        if note is None:
            raise NoteNotFound(note_id)
        return note

    def list_delivery_notes(
        self,
        company_id: UUID,
        partner_id: Optional[UUID] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        limit: int = settings.DEFAULT_PAGE_SIZE,
        offset: int = 0
    ) -> DeliveryNoteList:
        """Listar albaranes de la empresa, más recientes primero"""
        conditions = [self.note_model.company_id == company_id, live(self.note_model)]
        if partner_id:
            conditions.append(getattr(self.note_model, self.partner_field) == partner_id)
        if date_from:
            conditions.append(self.note_model.date >= date_from)
        if date_to:
            conditions.append(self.note_model.date <= date_to)

        limit = max(1, min(limit, settings.MAX_PAGE_SIZE))
        offset = max(0, offset)

        try:
            total = self.db.execute(
                select(func.count()).select_from(self.note_model).where(*conditions)
            ).scalar_one()
            notes = self.db.execute(
                select(self.note_model)
                .options(joinedload(getattr(self.note_model, self.partner_relation)))
                .where(*conditions)
                .order_by(self.note_model.date.desc(), self.note_model.created_at.desc())
                .offset(offset)
                .limit(limit)
            ).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Error listing delivery notes for company {company_id}: {str(e)}")
            raise PersistenceError("list_delivery_notes", e) from e

        return DeliveryNoteList(
            items=[DeliveryNoteSummary.model_validate(note) for note in notes],
            total=total,
            limit=limit,
            offset=offset
        )


class PurchaseDeliveryNoteService(DeliveryNoteService):
    """Albaranes de compra: la mercancía recibida incrementa el stock"""

    note_model = PurchaseDeliveryNote
    line_model = PurchaseDeliveryNoteLine
    partner_model = Supplier
    partner_field = "supplier_id"
    partner_relation = "supplier"
    partner_kind = "proveedor"
    partner_tariff = "buy_tariff"
    price_resolver = purchase_price_resolver
    reference_prefix = "PDN"

    def _move_stock(self, ledger: StockLedger, article_id: UUID, quantity: Decimal, reference: str):
        ledger.increase_stock(article_id, quantity, reference)


class SalesDeliveryNoteService(DeliveryNoteService):
    """Albaranes de venta: la mercancía entregada decrementa el stock"""

    note_model = SalesDeliveryNote
    line_model = SalesDeliveryNoteLine
    partner_model = Customer
    partner_field = "customer_id"
    partner_relation = "customer"
    partner_kind = "cliente"
    partner_tariff = "sell_tariff"
    price_resolver = sales_price_resolver
    reference_prefix = "SDN"

    def _check_stock(self, company_id: UUID, ledger: StockLedger, lines: List[DeliveryNoteLineCreate]):
        # Comprobación previa de todas las líneas; el decremento condicional
        # de cada línea sigue siendo la garantía final
        for line in lines:
            if ledger.has_enough_stock(line.article_id, line.quantity):
                continue
            article = self._find_article(company_id, line.article_id)
            if article is None:
                raise ArticleNotFound(line.article_id)
            raise InsufficientStock(article.id, article.name, article.stock, line.quantity)

    def _move_stock(self, ledger: StockLedger, article_id: UUID, quantity: Decimal, reference: str):
        ledger.decrease_stock(article_id, quantity, reference)
