"""
Tests para la resolución de precios de línea

Precedencia: precio explícito, tarifa del tercero, precio base del artículo.
"""

from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest

from app.modules.tariffs.models import TariffType
from app.modules.tariffs.pricing import PriceResolver, purchase_price_resolver, sales_price_resolver


@pytest.fixture
def article():
    return SimpleNamespace(id=uuid4(), buy_price=Decimal("5"), sell_price=Decimal("10"))


def make_partner(tariff_type, items, deleted=False):
    tariff = SimpleNamespace(
        id=uuid4(),
        type=tariff_type,
        deleted_at=datetime(2024, 1, 1) if deleted else None,
        items=items
    )
    return SimpleNamespace(tariff_id=tariff.id, tariff=tariff)


def make_item(article_id, price, deleted=False):
    return SimpleNamespace(
        article_id=article_id,
        price=Decimal(price),
        deleted_at=datetime(2024, 1, 1) if deleted else None
    )


class TestPricePrecedence:
    """Tests para el orden explícito > tarifa > precio base"""

    def test_explicit_price_wins_over_tariff(self, article):
        partner = make_partner(TariffType.SELL, [make_item(article.id, "7")])

        assert sales_price_resolver.resolve(Decimal("12"), partner, article) == Decimal("12")

    def test_explicit_zero_price_is_used(self, article):
        partner = make_partner(TariffType.SELL, [make_item(article.id, "7")])

        assert sales_price_resolver.resolve(Decimal("0"), partner, article) == Decimal("0")

    def test_tariff_price_wins_over_base_price(self, article):
        partner = make_partner(TariffType.SELL, [make_item(article.id, "7")])

        assert sales_price_resolver.resolve(None, partner, article) == Decimal("7")

    def test_base_sell_price_without_tariff(self, article):
        partner = SimpleNamespace(tariff_id=None, tariff=None)

        assert sales_price_resolver.resolve(None, partner, article) == Decimal("10")

    def test_base_buy_price_without_tariff(self, article):
        partner = SimpleNamespace(tariff_id=None, tariff=None)

        assert purchase_price_resolver.resolve(None, partner, article) == Decimal("5")

    def test_tariff_without_item_for_article(self, article):
        partner = make_partner(TariffType.BUY, [make_item(uuid4(), "1")])

        assert purchase_price_resolver.resolve(None, partner, article) == Decimal("5")


class TestTariffEligibility:
    """Tests para tarifas e ítems que no participan"""

    def test_deleted_item_is_ignored(self, article):
        partner = make_partner(TariffType.SELL, [make_item(article.id, "7", deleted=True)])

        assert sales_price_resolver.resolve(None, partner, article) == Decimal("10")

    def test_first_live_item_is_used(self, article):
        partner = make_partner(TariffType.SELL, [
            make_item(article.id, "6", deleted=True),
            make_item(article.id, "8"),
        ])

        assert sales_price_resolver.resolve(None, partner, article) == Decimal("8")

    def test_deleted_tariff_is_ignored(self, article):
        partner = make_partner(TariffType.SELL, [make_item(article.id, "7")], deleted=True)

        assert sales_price_resolver.resolve(None, partner, article) == Decimal("10")

    def test_tariff_of_wrong_type_is_ignored(self, article):
        partner = make_partner(TariffType.SELL, [make_item(article.id, "7")])

        assert purchase_price_resolver.resolve(None, partner, article) == Decimal("5")

    def test_resolver_has_no_side_effects(self, article):
        item = make_item(article.id, "7")
        partner = make_partner(TariffType.BUY, [item])
        resolver = PriceResolver(TariffType.BUY)

        resolver.resolve(None, partner, article)

        assert item.price == Decimal("7")
        assert article.buy_price == Decimal("5")
