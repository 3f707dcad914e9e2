"""
Tests para el libro de stock

Cubre:
- SqlStockLedger: entradas, salidas, alcance por empresa, borrado lógico y
  movimientos de auditoría
- Decremento condicional con dos sesiones concurrentes
- InMemoryStockLedger: contrato y concurrencia entre hilos
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from app.common.exceptions import ArticleNotFound, InsufficientStock, ValidationError
from app.modules.articles.models import Article
from app.modules.inventory.ledger import InMemoryStockLedger, SqlStockLedger, StockLedger
from app.modules.inventory.models import StockMovement


def stock_of(session, article_id):
    session.expire_all()
    return session.get(Article, article_id).stock


# ===== TESTS DEL LIBRO SQL =====

class TestSqlStockLedger:
    """Tests para SqlStockLedger"""

    def test_implements_contract(self, db_session, company_id):
        assert isinstance(SqlStockLedger(db_session, company_id), StockLedger)

    def test_increase_stock(self, db_session, company_id, sample_article):
        ledger = SqlStockLedger(db_session, company_id)

        ledger.increase_stock(sample_article.id, Decimal("5"), "PDN test")
        db_session.commit()

        assert stock_of(db_session, sample_article.id) == Decimal("15")

    def test_decrease_stock(self, db_session, company_id, sample_article):
        ledger = SqlStockLedger(db_session, company_id)

        ledger.decrease_stock(sample_article.id, Decimal("4"))
        db_session.commit()

        assert stock_of(db_session, sample_article.id) == Decimal("6")

    def test_decrease_to_exactly_zero(self, db_session, company_id, sample_article):
        ledger = SqlStockLedger(db_session, company_id)

        ledger.decrease_stock(sample_article.id, Decimal("10"))
        db_session.commit()

        assert stock_of(db_session, sample_article.id) == Decimal("0")

    def test_decrease_insufficient_stock(self, db_session, company_id, sample_article):
        ledger = SqlStockLedger(db_session, company_id)

        with pytest.raises(InsufficientStock) as exc_info:
            ledger.decrease_stock(sample_article.id, Decimal("20"))
        db_session.rollback()

        assert exc_info.value.available == Decimal("10")
        assert exc_info.value.requested == Decimal("20")
        assert exc_info.value.reserved is None
        assert exc_info.value.article_name == "Tornillo M6"
        assert stock_of(db_session, sample_article.id) == Decimal("10")

    def test_rejection_reports_units_already_debited(self, db_session, company_id, sample_article):
        ledger = SqlStockLedger(db_session, company_id)
        ledger.decrease_stock(sample_article.id, Decimal("6"))

        with pytest.raises(InsufficientStock) as exc_info:
            ledger.decrease_stock(sample_article.id, Decimal("6"))
        db_session.rollback()

        error = exc_info.value
        assert error.available == Decimal("4")
        assert error.reserved == Decimal("6")
        assert error.available + error.reserved == stock_of(db_session, sample_article.id)
        assert "líneas anteriores" in error.message

    def test_increase_beyond_column_capacity(self, db_session, company_id, article_factory):
        article = article_factory("BIG", stock="99999999999999")
        ledger = SqlStockLedger(db_session, company_id)

        with pytest.raises(ValidationError) as exc_info:
            ledger.increase_stock(article.id, Decimal("1"))
        db_session.rollback()

        assert exc_info.value.field == "quantity"
        assert stock_of(db_session, article.id) == Decimal("99999999999999")
        assert db_session.query(StockMovement).count() == 0

    def test_has_enough_stock(self, db_session, company_id, sample_article):
        ledger = SqlStockLedger(db_session, company_id)

        assert ledger.has_enough_stock(sample_article.id, Decimal("10"))
        assert not ledger.has_enough_stock(sample_article.id, Decimal("10.0001"))
        assert not ledger.has_enough_stock(uuid4(), Decimal("1"))

    def test_unknown_article(self, db_session, company_id):
        ledger = SqlStockLedger(db_session, company_id)

        with pytest.raises(ArticleNotFound):
            ledger.increase_stock(uuid4(), Decimal("1"))
        with pytest.raises(ArticleNotFound):
            ledger.decrease_stock(uuid4(), Decimal("1"))

    def test_article_of_other_company_is_invisible(self, db_session, other_company_id, sample_article):
        ledger = SqlStockLedger(db_session, other_company_id)

        assert not ledger.has_enough_stock(sample_article.id, Decimal("1"))
        with pytest.raises(ArticleNotFound):
            ledger.decrease_stock(sample_article.id, Decimal("1"))

    def test_soft_deleted_article_is_invisible(self, db_session, company_id, sample_article):
        sample_article.soft_delete()
        db_session.commit()
        ledger = SqlStockLedger(db_session, company_id)

        assert not ledger.has_enough_stock(sample_article.id, Decimal("1"))
        with pytest.raises(ArticleNotFound):
            ledger.increase_stock(sample_article.id, Decimal("1"))

    def test_movements_are_recorded(self, db_session, company_id, sample_article):
        ledger = SqlStockLedger(db_session, company_id)

        ledger.increase_stock(sample_article.id, Decimal("2"), "PDN 1")
        ledger.decrease_stock(sample_article.id, Decimal("3"), "SDN 1")
        db_session.commit()

        movements = db_session.query(StockMovement).filter(
            StockMovement.article_id == sample_article.id
        ).order_by(StockMovement.movement_type).all()
        assert [(m.movement_type, m.quantity, m.reference) for m in movements] == [
            ("IN", Decimal("2"), "PDN 1"),
            ("OUT", Decimal("3"), "SDN 1"),
        ]
        assert all(m.company_id == company_id for m in movements)

    def test_cached_article_sees_new_stock(self, db_session, company_id, sample_article):
        ledger = SqlStockLedger(db_session, company_id)

        ledger.increase_stock(sample_article.id, Decimal("1"))

        assert sample_article.stock == Decimal("11")

    def test_negative_stock_rejected_by_database(self, db_session, sample_article):
        with pytest.raises(IntegrityError):
            db_session.execute(
                update(Article)
                .where(Article.id == sample_article.id)
                .values(stock=Decimal("-1"))
                .execution_options(synchronize_session=False)
            )
        db_session.rollback()


class TestConcurrentDecrease:
    """Dos unidades de trabajo compiten por el mismo stock"""

    def test_second_decrease_sees_committed_stock(self, session_factory, company_id, sample_article):
        first = session_factory()
        second = session_factory()
        try:
            first_ledger = SqlStockLedger(first, company_id)
            second_ledger = SqlStockLedger(second, company_id)

            # Ambas comprobaciones previas pasan con stock 10
            assert first_ledger.has_enough_stock(sample_article.id, Decimal("6"))
            assert second_ledger.has_enough_stock(sample_article.id, Decimal("6"))

            first_ledger.decrease_stock(sample_article.id, Decimal("6"))
            first.commit()

            with pytest.raises(InsufficientStock) as exc_info:
                second_ledger.decrease_stock(sample_article.id, Decimal("6"))
            second.rollback()

            assert exc_info.value.available == Decimal("4")
            assert stock_of(second, sample_article.id) == Decimal("4")
        finally:
            first.close()
            second.close()


# ===== TESTS DEL LIBRO EN MEMORIA =====

class TestInMemoryStockLedger:
    """Tests para InMemoryStockLedger"""

    def test_implements_contract(self):
        assert isinstance(InMemoryStockLedger(), StockLedger)

    def test_increase_and_decrease(self):
        article_id = uuid4()
        ledger = InMemoryStockLedger({article_id: Decimal("10")})

        ledger.increase_stock(article_id, Decimal("5"))
        ledger.decrease_stock(article_id, Decimal("3"))

        assert ledger.stock_of(article_id) == Decimal("12")
        assert [m[1] for m in ledger.movements] == ["IN", "OUT"]

    def test_insufficient_stock_leaves_stock_unchanged(self):
        article_id = uuid4()
        ledger = InMemoryStockLedger()
        ledger.register(article_id, Decimal("2"), name="Arandela")

        with pytest.raises(InsufficientStock) as exc_info:
            ledger.decrease_stock(article_id, Decimal("3"))

        assert exc_info.value.article_name == "Arandela"
        assert ledger.stock_of(article_id) == Decimal("2")
        assert ledger.movements == []

    def test_increase_beyond_column_capacity(self):
        article_id = uuid4()
        ledger = InMemoryStockLedger({article_id: Decimal("99999999999999")})

        with pytest.raises(ValidationError):
            ledger.increase_stock(article_id, Decimal("1"))

        assert ledger.stock_of(article_id) == Decimal("99999999999999")
        assert ledger.movements == []

    def test_unknown_article(self):
        ledger = InMemoryStockLedger()

        assert not ledger.has_enough_stock(uuid4(), Decimal("1"))
        with pytest.raises(ArticleNotFound):
            ledger.increase_stock(uuid4(), Decimal("1"))

    def test_two_threads_cannot_both_take_the_last_units(self):
        article_id = uuid4()
        ledger = InMemoryStockLedger({article_id: Decimal("10")})
        barrier = threading.Barrier(2)

        def sell():
            barrier.wait()
            try:
                ledger.decrease_stock(article_id, Decimal("6"))
                return True
            except InsufficientStock:
                return False

        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(pool.map(lambda _: sell(), range(2)))

        assert sorted(results) == [False, True]
        assert ledger.stock_of(article_id) == Decimal("4")

    def test_many_concurrent_debits_never_go_negative(self):
        article_id = uuid4()
        ledger = InMemoryStockLedger({article_id: Decimal("10")})

        def sell(_):
            try:
                ledger.decrease_stock(article_id, Decimal("1"))
                return True
            except InsufficientStock:
                return False

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(sell, range(25)))

        assert results.count(True) == 10
        assert ledger.stock_of(article_id) == Decimal("0")
