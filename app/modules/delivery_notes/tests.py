"""
Tests para el módulo de Albaranes (Delivery Notes)

Tests que cubren:
- Creación de albaranes de compra (entrada de stock) y venta (salida)
- Resolución de precios e importes por línea y totales de cabecera
- Todo o nada: ningún rastro de un albarán rechazado
- Guarda de stock insuficiente, también con comprobación previa obsoleta
- Alcance por empresa y borrado lógico
- Confirmación, consulta y listado
- Traducción de errores a HTTP

Todos los tests validan que los datos estén correctamente scoped por company_id.
"""

import sys
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from app.common.exceptions import (
    ArticleNotFound, InsufficientStock, NoteNotFound, PartnerNotFound, ValidationError
)
from app.modules.articles.models import Article
from app.modules.delivery_notes.models import (
    BillingStatus,
    PurchaseDeliveryNote, PurchaseDeliveryNoteLine,
    SalesDeliveryNote, SalesDeliveryNoteLine
)
from app.modules.delivery_notes.schemas import DeliveryNoteLineCreate
from app.modules.delivery_notes.service import (
    DeliveryNoteService, PurchaseDeliveryNoteService, SalesDeliveryNoteService
)
from app.modules.inventory.ledger import SqlStockLedger
from app.modules.inventory.models import StockMovement
from app.modules.tariffs.models import TariffType


NOTE_DATE = datetime(2026, 1, 15, 10, 0)


def line(article_id, quantity, price=None):
    return DeliveryNoteLineCreate(
        article_id=article_id,
        quantity=Decimal(str(quantity)),
        price=Decimal(str(price)) if price is not None else None
    )


def stock_of(session, article_id):
    session.expire_all()
    return session.get(Article, article_id).stock


def count(session, model):
    return session.query(model).count()


class OptimisticLedger(SqlStockLedger):
    """Simula una comprobación previa que otra venta deja obsoleta"""

    def has_enough_stock(self, article_id, quantity):
        return True


# ===== ALBARANES DE COMPRA =====

class TestPurchaseDeliveryNote:
    """Tests para PurchaseDeliveryNoteService.create_delivery_note"""

    def test_purchase_increases_stock(self, db_session, company_id, sample_supplier, sample_article):
        service = PurchaseDeliveryNoteService(db_session)

        note = service.create_delivery_note(
            company_id, sample_supplier.id, NOTE_DATE, "ALB-001", [line(sample_article.id, 5)]
        )

        assert stock_of(db_session, sample_article.id) == Decimal("15")
        assert note.billing_status == BillingStatus.PENDING
        assert note.supplier_id == sample_supplier.id
        assert note.company_id == company_id
        assert note.reference == "ALB-001"

    def test_purchase_uses_buy_price_by_default(self, db_session, company_id, sample_supplier, sample_article):
        service = PurchaseDeliveryNoteService(db_session)

        note = service.create_delivery_note(
            company_id, sample_supplier.id, NOTE_DATE, None, [line(sample_article.id, 5)]
        )

        [note_line] = note.lines
        assert note_line.price == Decimal("5")
        assert note_line.subtotal == Decimal("25")
        assert note_line.iva_amount == Decimal("5.25")
        assert note_line.total == Decimal("30.25")
        assert note.total == Decimal("30.25")

    def test_line_amounts_with_explicit_price(self, db_session, company_id, sample_supplier, sample_article):
        service = PurchaseDeliveryNoteService(db_session)

        note = service.create_delivery_note(
            company_id, sample_supplier.id, NOTE_DATE, None, [line(sample_article.id, 3, 10)]
        )

        [note_line] = note.lines
        assert note_line.iva_percentage == Decimal("21")
        assert note_line.subtotal == Decimal("30.0000")
        assert note_line.iva_amount == Decimal("6.3000")
        assert note_line.total == Decimal("36.3000")
        assert note.subtotal == Decimal("30")
        assert note.iva_total == Decimal("6.3")
        assert note.total == Decimal("36.3")

    def test_supplier_buy_tariff_is_applied(
        self, db_session, company_id, sample_supplier, sample_article, tariff_factory
    ):
        tariff = tariff_factory(TariffType.BUY, {sample_article: "4.5"})
        sample_supplier.buy_tariff_id = tariff.id
        db_session.commit()

        service = PurchaseDeliveryNoteService(db_session)
        note = service.create_delivery_note(
            company_id, sample_supplier.id, NOTE_DATE, None, [line(sample_article.id, 2)]
        )

        assert note.lines[0].price == Decimal("4.5")

    def test_line_snapshot_and_order(
        self, db_session, company_id, sample_supplier, sample_article, second_article
    ):
        service = PurchaseDeliveryNoteService(db_session)

        note = service.create_delivery_note(
            company_id, sample_supplier.id, NOTE_DATE, None,
            [line(second_article.id, 1), line(sample_article.id, 2)]
        )

        assert [(l.position, l.article_code, l.article_name) for l in note.lines] == [
            (1, "A002", "Tuerca M6"),
            (2, "A001", "Tornillo M6"),
        ]

    def test_purchase_records_stock_movements(self, db_session, company_id, sample_supplier, sample_article):
        service = PurchaseDeliveryNoteService(db_session)

        note = service.create_delivery_note(
            company_id, sample_supplier.id, NOTE_DATE, None, [line(sample_article.id, 5)]
        )

        [movement] = db_session.query(StockMovement).all()
        assert movement.movement_type == "IN"
        assert movement.quantity == Decimal("5")
        assert movement.reference == f"PDN {note.id}"

    def test_missing_article_rolls_back_everything(
        self, db_session, company_id, sample_supplier, sample_article
    ):
        service = PurchaseDeliveryNoteService(db_session)

        with pytest.raises(ArticleNotFound):
            service.create_delivery_note(
                company_id, sample_supplier.id, NOTE_DATE, None,
                [line(sample_article.id, 5), line(uuid4(), 1)]
            )

        assert count(db_session, PurchaseDeliveryNote) == 0
        assert count(db_session, PurchaseDeliveryNoteLine) == 0
        assert count(db_session, StockMovement) == 0
        assert stock_of(db_session, sample_article.id) == Decimal("10")


# ===== ALBARANES DE VENTA =====

class TestSalesDeliveryNote:
    """Tests para SalesDeliveryNoteService.create_delivery_note"""

    def test_sale_decreases_stock(self, db_session, company_id, sample_customer, sample_article):
        service = SalesDeliveryNoteService(db_session)

        note = service.create_delivery_note(
            company_id, sample_customer.id, NOTE_DATE, None, [line(sample_article.id, 4)]
        )

        assert stock_of(db_session, sample_article.id) == Decimal("6")
        assert note.lines[0].price == Decimal("10")
        assert note.customer_id == sample_customer.id
        [movement] = db_session.query(StockMovement).all()
        assert movement.movement_type == "OUT"
        assert movement.reference == f"SDN {note.id}"

    def test_sale_can_empty_the_stock(self, db_session, company_id, sample_customer, sample_article):
        service = SalesDeliveryNoteService(db_session)

        service.create_delivery_note(
            company_id, sample_customer.id, NOTE_DATE, None, [line(sample_article.id, 10)]
        )

        assert stock_of(db_session, sample_article.id) == Decimal("0")

    def test_insufficient_stock(self, db_session, company_id, sample_customer, sample_article):
        service = SalesDeliveryNoteService(db_session)

        with pytest.raises(InsufficientStock) as exc_info:
            service.create_delivery_note(
                company_id, sample_customer.id, NOTE_DATE, None, [line(sample_article.id, 20)]
            )

        error = exc_info.value
        assert error.article_id == sample_article.id
        assert error.article_name == "Tornillo M6"
        assert error.available == Decimal("10")
        assert error.requested == Decimal("20")
        assert stock_of(db_session, sample_article.id) == Decimal("10")
        assert count(db_session, SalesDeliveryNote) == 0

    def test_insufficient_stock_on_second_line_changes_nothing(
        self, db_session, company_id, sample_customer, sample_article, second_article
    ):
        service = SalesDeliveryNoteService(db_session)

        with pytest.raises(InsufficientStock) as exc_info:
            service.create_delivery_note(
                company_id, sample_customer.id, NOTE_DATE, None,
                [line(sample_article.id, 2), line(second_article.id, 5)]
            )

        assert exc_info.value.article_id == second_article.id
        assert stock_of(db_session, sample_article.id) == Decimal("10")
        assert stock_of(db_session, second_article.id) == Decimal("3")
        assert count(db_session, SalesDeliveryNoteLine) == 0

    def test_stale_pre_check_is_caught_by_conditional_decrement(
        self, db_session, company_id, sample_customer, sample_article, second_article
    ):
        service = SalesDeliveryNoteService(db_session, ledger_factory=OptimisticLedger)

        with pytest.raises(InsufficientStock) as exc_info:
            service.create_delivery_note(
                company_id, sample_customer.id, NOTE_DATE, None,
                [line(sample_article.id, 2), line(second_article.id, 5)]
            )

        assert exc_info.value.available == Decimal("3")
        assert stock_of(db_session, sample_article.id) == Decimal("10")
        assert stock_of(db_session, second_article.id) == Decimal("3")
        assert count(db_session, SalesDeliveryNote) == 0
        assert count(db_session, StockMovement) == 0

    def test_same_article_on_two_lines_beyond_stock(
        self, db_session, company_id, sample_customer, sample_article
    ):
        """Cada línea por separado cabe en el stock, juntas no"""
        service = SalesDeliveryNoteService(db_session)

        with pytest.raises(InsufficientStock) as exc_info:
            service.create_delivery_note(
                company_id, sample_customer.id, NOTE_DATE, None,
                [line(sample_article.id, 6), line(sample_article.id, 6)]
            )

        # El disponible es el que queda tras la primera línea
        assert exc_info.value.available == Decimal("4")
        assert exc_info.value.reserved == Decimal("6")
        assert exc_info.value.available + exc_info.value.reserved == Decimal("10")

        assert stock_of(db_session, sample_article.id) == Decimal("10")
        assert count(db_session, SalesDeliveryNote) == 0

    def test_missing_article_in_sale(self, db_session, company_id, sample_customer, sample_article):
        service = SalesDeliveryNoteService(db_session)

        with pytest.raises(ArticleNotFound):
            service.create_delivery_note(
                company_id, sample_customer.id, NOTE_DATE, None,
                [line(sample_article.id, 1), line(uuid4(), 1)]
            )

        assert stock_of(db_session, sample_article.id) == Decimal("10")
        assert count(db_session, SalesDeliveryNote) == 0
        assert count(db_session, SalesDeliveryNoteLine) == 0

    def test_customer_sell_tariff_is_applied(
        self, db_session, company_id, sample_customer, sample_article, tariff_factory
    ):
        tariff = tariff_factory(TariffType.SELL, {sample_article: "8"})
        sample_customer.sell_tariff_id = tariff.id
        db_session.commit()

        service = SalesDeliveryNoteService(db_session)
        note = service.create_delivery_note(
            company_id, sample_customer.id, NOTE_DATE, None, [line(sample_article.id, 1)]
        )

        assert note.lines[0].price == Decimal("8")

    def test_buy_tariff_on_customer_is_ignored(
        self, db_session, company_id, sample_customer, sample_article, tariff_factory
    ):
        tariff = tariff_factory(TariffType.BUY, {sample_article: "1"})
        sample_customer.sell_tariff_id = tariff.id
        db_session.commit()

        service = SalesDeliveryNoteService(db_session)
        note = service.create_delivery_note(
            company_id, sample_customer.id, NOTE_DATE, None, [line(sample_article.id, 1)]
        )

        assert note.lines[0].price == Decimal("10")

    def test_deleted_tariff_falls_back_to_base_price(
        self, db_session, company_id, sample_customer, sample_article, tariff_factory
    ):
        tariff = tariff_factory(TariffType.SELL, {sample_article: "8"})
        tariff.soft_delete()
        sample_customer.sell_tariff_id = tariff.id
        db_session.commit()

        service = SalesDeliveryNoteService(db_session)
        note = service.create_delivery_note(
            company_id, sample_customer.id, NOTE_DATE, None, [line(sample_article.id, 1)]
        )

        assert note.lines[0].price == Decimal("10")


class TestConcurrentSales:
    """Dos ventas que juntas superan el stock: como mucho una tiene éxito"""

    @pytest.mark.parametrize("first_qty, second_qty", [
        ("6", "6"),
        ("10", "1"),
        ("3", "8"),
        ("9.5", "0.5001"),
    ])
    def test_only_one_sale_succeeds(
        self, session_factory, db_session, company_id, sample_customer, sample_article,
        first_qty, second_qty
    ):
        first = session_factory()
        second = session_factory()
        try:
            # La segunda venta pasó su comprobación previa antes de que la primera confirmase
            late_service = SalesDeliveryNoteService(second, ledger_factory=OptimisticLedger)
            SalesDeliveryNoteService(first).create_delivery_note(
                company_id, sample_customer.id, NOTE_DATE, None, [line(sample_article.id, first_qty)]
            )

            with pytest.raises(InsufficientStock):
                late_service.create_delivery_note(
                    company_id, sample_customer.id, NOTE_DATE, None, [line(sample_article.id, second_qty)]
                )
        finally:
            first.close()
            second.close()

        remaining = stock_of(db_session, sample_article.id)
        assert remaining == Decimal("10") - Decimal(first_qty)
        assert remaining >= 0
        assert count(db_session, SalesDeliveryNote) == 1


# ===== VALIDACIONES =====

class TestValidation:
    """La petición se valida antes de leer o modificar nada"""

    @pytest.mark.parametrize("lines_factory, field", [
        (lambda article_id: [], "lines"),
        (lambda article_id: [line(article_id, 0)], "quantity"),
        (lambda article_id: [line(article_id, -1)], "quantity"),
        (lambda article_id: [line(article_id, "0.00001")], "quantity"),
        (lambda article_id: [line(article_id, 1, -1)], "price"),
        (lambda article_id: [line(article_id, 1), line(article_id, 1, "0.12345")], "price"),
        (lambda article_id: [line(article_id, "1e30")], "quantity"),
        (lambda article_id: [line(article_id, "100000000000000")], "quantity"),
        (lambda article_id: [line(article_id, 1, "1e30")], "price"),
    ])
    def test_invalid_request(self, db_session, company_id, sample_article, lines_factory, field):
        service = PurchaseDeliveryNoteService(db_session)

        # Tercero inexistente: la validación debe saltar antes que PartnerNotFound
        with pytest.raises(ValidationError) as exc_info:
            service.create_delivery_note(company_id, uuid4(), NOTE_DATE, None, lines_factory(sample_article.id))

        assert exc_info.value.field == field
        assert stock_of(db_session, sample_article.id) == Decimal("10")

    def test_line_index_is_reported(self, db_session, company_id, sample_article):
        service = SalesDeliveryNoteService(db_session)

        with pytest.raises(ValidationError) as exc_info:
            service.create_delivery_note(
                company_id, uuid4(), NOTE_DATE, None,
                [line(sample_article.id, 1), line(sample_article.id, 0)]
            )

        assert exc_info.value.line_index == 1

    def test_reference_too_long(self, db_session, company_id, sample_supplier, sample_article):
        service = PurchaseDeliveryNoteService(db_session)

        with pytest.raises(ValidationError) as exc_info:
            service.create_delivery_note(
                company_id, sample_supplier.id, NOTE_DATE, "R" * 101, [line(sample_article.id, 1)]
            )

        assert exc_info.value.field == "reference"
        assert stock_of(db_session, sample_article.id) == Decimal("10")

    def test_line_amount_beyond_capacity_reports_line(
        self, db_session, company_id, sample_supplier, sample_article
    ):
        """Cantidad y precio caben por separado, su producto no"""
        service = PurchaseDeliveryNoteService(db_session)

        with pytest.raises(ValidationError) as exc_info:
            service.create_delivery_note(
                company_id, sample_supplier.id, NOTE_DATE, None,
                [line(sample_article.id, 1), line(sample_article.id, "99999999999999", "99999999999999")]
            )

        assert exc_info.value.field == "subtotal"
        assert exc_info.value.line_index == 1
        assert stock_of(db_session, sample_article.id) == Decimal("10")
        assert count(db_session, PurchaseDeliveryNote) == 0
        assert count(db_session, StockMovement) == 0

    def test_note_total_beyond_capacity(self, db_session, company_id, sample_supplier, sample_article):
        service = PurchaseDeliveryNoteService(db_session)

        with pytest.raises(ValidationError) as exc_info:
            service.create_delivery_note(
                company_id, sample_supplier.id, NOTE_DATE, None,
                [line(sample_article.id, 1, "50000000000000"), line(sample_article.id, 1, "50000000000000")]
            )

        assert exc_info.value.field == "total"
        assert stock_of(db_session, sample_article.id) == Decimal("10")
        assert count(db_session, PurchaseDeliveryNote) == 0

    def test_base_service_is_abstract(self, db_session):
        with pytest.raises(TypeError):
            DeliveryNoteService(db_session)

    def test_explicit_zero_price_is_valid(self, db_session, company_id, sample_supplier, sample_article):
        service = PurchaseDeliveryNoteService(db_session)

        note = service.create_delivery_note(
            company_id, sample_supplier.id, NOTE_DATE, None, [line(sample_article.id, 1, 0)]
        )

        assert note.total == Decimal("0")


# ===== MULTI-TENANT Y BORRADO LÓGICO =====

class TestTenantScope:
    """Tests de aislamiento por company_id"""

    def test_supplier_of_other_company(self, db_session, other_company_id, sample_supplier, sample_article):
        service = PurchaseDeliveryNoteService(db_session)

        with pytest.raises(PartnerNotFound) as exc_info:
            service.create_delivery_note(
                other_company_id, sample_supplier.id, NOTE_DATE, None, [line(sample_article.id, 1)]
            )

        assert exc_info.value.partner_kind == "proveedor"

    def test_article_of_other_company(
        self, db_session, company_id, other_company_id, sample_supplier, article_factory
    ):
        foreign_article = article_factory("X001", stock="10", company=other_company_id)
        service = PurchaseDeliveryNoteService(db_session)

        with pytest.raises(ArticleNotFound):
            service.create_delivery_note(
                company_id, sample_supplier.id, NOTE_DATE, None, [line(foreign_article.id, 1)]
            )

        assert stock_of(db_session, foreign_article.id) == Decimal("10")

    def test_sale_of_other_company_article(
        self, db_session, company_id, other_company_id, sample_customer, article_factory
    ):
        foreign_article = article_factory("X001", stock="10", company=other_company_id)
        service = SalesDeliveryNoteService(db_session)

        with pytest.raises(ArticleNotFound):
            service.create_delivery_note(
                company_id, sample_customer.id, NOTE_DATE, None, [line(foreign_article.id, 1)]
            )

    def test_customer_used_as_supplier(self, db_session, company_id, sample_customer, sample_article):
        service = PurchaseDeliveryNoteService(db_session)

        with pytest.raises(PartnerNotFound):
            service.create_delivery_note(
                company_id, sample_customer.id, NOTE_DATE, None, [line(sample_article.id, 1)]
            )


class TestSoftDelete:
    """Los registros eliminados no participan en albaranes nuevos"""

    def test_deleted_supplier(self, db_session, company_id, sample_supplier, sample_article):
        sample_supplier.soft_delete()
        db_session.commit()
        service = PurchaseDeliveryNoteService(db_session)

        with pytest.raises(PartnerNotFound):
            service.create_delivery_note(
                company_id, sample_supplier.id, NOTE_DATE, None, [line(sample_article.id, 1)]
            )

    def test_deleted_customer(self, db_session, company_id, sample_customer, sample_article):
        sample_customer.soft_delete()
        db_session.commit()
        service = SalesDeliveryNoteService(db_session)

        with pytest.raises(PartnerNotFound):
            service.create_delivery_note(
                company_id, sample_customer.id, NOTE_DATE, None, [line(sample_article.id, 1)]
            )

    def test_deleted_article(self, db_session, company_id, sample_supplier, sample_article):
        sample_article.soft_delete()
        db_session.commit()
        service = PurchaseDeliveryNoteService(db_session)

        with pytest.raises(ArticleNotFound):
            service.create_delivery_note(
                company_id, sample_supplier.id, NOTE_DATE, None, [line(sample_article.id, 1)]
            )

        assert count(db_session, PurchaseDeliveryNote) == 0


# ===== CONFIRMACIÓN Y CONSULTAS =====

class TestConfirmAndQueries:
    """Tests para confirm_delivery_note, get_delivery_note y list_delivery_notes"""

    def test_confirm_only_touches_updated_at(self, db_session, company_id, sample_customer, sample_article):
        service = SalesDeliveryNoteService(db_session)
        note = service.create_delivery_note(
            company_id, sample_customer.id, NOTE_DATE, "ALB-9", [line(sample_article.id, 2)]
        )
        note_id, before = note.id, note.updated_at

        service.confirm_delivery_note(company_id, note_id)

        db_session.expire_all()
        confirmed = service.get_delivery_note(company_id, note_id)
        assert confirmed.updated_at >= before
        assert confirmed.billing_status == BillingStatus.PENDING
        assert confirmed.total == note.total
        assert len(confirmed.lines) == 1
        assert stock_of(db_session, sample_article.id) == Decimal("8")

    def test_confirm_unknown_note(self, db_session, company_id):
        service = PurchaseDeliveryNoteService(db_session)

        with pytest.raises(NoteNotFound):
            service.confirm_delivery_note(company_id, uuid4())

    def test_confirm_note_of_other_company(
        self, db_session, company_id, other_company_id, sample_supplier, sample_article
    ):
        service = PurchaseDeliveryNoteService(db_session)
        note = service.create_delivery_note(
            company_id, sample_supplier.id, NOTE_DATE, None, [line(sample_article.id, 1)]
        )

        with pytest.raises(NoteNotFound):
            service.confirm_delivery_note(other_company_id, note.id)

    def test_deleted_note_is_not_found(self, db_session, company_id, sample_supplier, sample_article):
        service = PurchaseDeliveryNoteService(db_session)
        note = service.create_delivery_note(
            company_id, sample_supplier.id, NOTE_DATE, None, [line(sample_article.id, 1)]
        )
        note.soft_delete()
        db_session.commit()

        with pytest.raises(NoteNotFound):
            service.get_delivery_note(company_id, note.id)
        with pytest.raises(NoteNotFound):
            service.confirm_delivery_note(company_id, note.id)

    def test_list_filters_and_pagination(
        self, db_session, company_id, sample_supplier, sample_article
    ):
        service = PurchaseDeliveryNoteService(db_session)
        for day in (10, 20, 30):
            service.create_delivery_note(
                company_id, sample_supplier.id, datetime(2026, 1, day), f"ALB-{day}",
                [line(sample_article.id, 1)]
            )

        everything = service.list_delivery_notes(company_id)
        assert everything.total == 3
        assert [n.reference for n in everything.items] == ["ALB-30", "ALB-20", "ALB-10"]

        recent = service.list_delivery_notes(company_id, date_from=datetime(2026, 1, 15))
        assert recent.total == 2

        page = service.list_delivery_notes(company_id, limit=1, offset=1)
        assert page.total == 3
        assert [n.reference for n in page.items] == ["ALB-20"]

        assert service.list_delivery_notes(company_id, partner_id=uuid4()).total == 0

    def test_list_is_scoped_by_company(
        self, db_session, company_id, other_company_id, sample_supplier, sample_article
    ):
        service = PurchaseDeliveryNoteService(db_session)
        service.create_delivery_note(
            company_id, sample_supplier.id, NOTE_DATE, None, [line(sample_article.id, 1)]
        )

        assert service.list_delivery_notes(other_company_id).total == 0


# ===== API =====

class TestDeliveryNoteAPI:
    """Tests de los endpoints y de la traducción de errores a HTTP"""

    def test_create_purchase_endpoint(
        self, client, db_session, company_headers, sample_supplier, sample_article
    ):
        response = client.post("/purchase-delivery-notes/", headers=company_headers, json={
            "supplier_id": str(sample_supplier.id),
            "date": "2026-01-15T10:00:00",
            "reference": "ALB-API",
            "lines": [{"article_id": str(sample_article.id), "quantity": "3", "price": "10"}]
        })

        assert response.status_code == 201
        data = response.json()
        assert data["partner"]["name"] == "Suministros Norte S.L."
        assert Decimal(str(data["total"])) == Decimal("36.3")
        assert Decimal(str(data["lines"][0]["iva_amount"])) == Decimal("6.3")
        assert data["billing_status"] == 0
        assert stock_of(db_session, sample_article.id) == Decimal("13")

    def test_insufficient_stock_maps_to_409(
        self, client, db_session, company_headers, sample_customer, sample_article
    ):
        response = client.post("/sales-delivery-notes/", headers=company_headers, json={
            "customer_id": str(sample_customer.id),
            "date": "2026-01-15T10:00:00",
            "lines": [{"article_id": str(sample_article.id), "quantity": "20"}]
        })

        assert response.status_code == 409
        data = response.json()
        assert data["code"] == "insufficient_stock"
        assert data["article_name"] == "Tornillo M6"
        assert Decimal(data["available"]) == Decimal("10")
        assert stock_of(db_session, sample_article.id) == Decimal("10")

    def test_oversized_quantity_maps_to_400(
        self, client, db_session, company_headers, sample_supplier, sample_article
    ):
        response = client.post("/purchase-delivery-notes/", headers=company_headers, json={
            "supplier_id": str(sample_supplier.id),
            "date": "2026-01-15T10:00:00",
            "lines": [{"article_id": str(sample_article.id), "quantity": "1e30"}]
        })

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "validation_error"
        assert data["field"] == "quantity"
        assert data["line_index"] == 0
        assert stock_of(db_session, sample_article.id) == Decimal("10")

    def test_unknown_partner_maps_to_404(self, client, company_headers, sample_article):
        response = client.post("/sales-delivery-notes/", headers=company_headers, json={
            "customer_id": str(uuid4()),
            "date": "2026-01-15T10:00:00",
            "lines": [{"article_id": str(sample_article.id), "quantity": "1"}]
        })

        assert response.status_code == 404
        assert response.json()["code"] == "partner_not_found"

    def test_invalid_quantity_maps_to_400(self, client, company_headers, sample_supplier, sample_article):
        response = client.post("/purchase-delivery-notes/", headers=company_headers, json={
            "supplier_id": str(sample_supplier.id),
            "date": "2026-01-15T10:00:00",
            "lines": [{"article_id": str(sample_article.id), "quantity": "0"}]
        })

        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"
        assert response.json()["line_index"] == 0

    def test_missing_company_header(self, client, sample_supplier, sample_article):
        response = client.get("/purchase-delivery-notes/")

        assert response.status_code == 400

    def test_get_list_and_confirm_endpoints(
        self, client, db_session, company_id, company_headers, other_company_id,
        sample_customer, sample_article
    ):
        note = SalesDeliveryNoteService(db_session).create_delivery_note(
            company_id, sample_customer.id, NOTE_DATE, None, [line(sample_article.id, 1)]
        )

        response = client.get(f"/sales-delivery-notes/{note.id}", headers=company_headers)
        assert response.status_code == 200
        assert response.json()["customer_id"] == str(sample_customer.id)

        response = client.get("/sales-delivery-notes/", headers=company_headers)
        assert response.status_code == 200
        assert response.json()["total"] == 1

        response = client.post(f"/sales-delivery-notes/{note.id}/confirm", headers=company_headers)
        assert response.status_code == 204

        other_headers = {"X-Company-ID": str(other_company_id)}
        response = client.get(f"/sales-delivery-notes/{note.id}", headers=other_headers)
        assert response.status_code == 404
        assert response.json()["code"] == "note_not_found"

    def test_confirm_unknown_note_maps_to_404(self, client, company_headers):
        response = client.post(f"/purchase-delivery-notes/{uuid4()}/confirm", headers=company_headers)

        assert response.status_code == 404

    def test_health_needs_no_company(self, client):
        assert client.get("/health").json()["status"] == "healthy"


class TestPackageImport:
    """Los modelos se registran una sola vez en el metadata"""

    def test_tests_share_the_application_modules(self):
        assert __name__ == "app.modules.delivery_notes.tests"
        assert sys.modules["app.modules.delivery_notes.models"].PurchaseDeliveryNote is PurchaseDeliveryNote
