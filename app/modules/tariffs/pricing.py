"""
Resolución del precio unitario de una línea de albarán

Precedencia (gana la primera que aplique):
1. Precio explícito de la línea
2. TariffItem no eliminado de la tarifa del tercero para el artículo
3. Precio base del artículo (buy_price en compras, sell_price en ventas)

Sólo participa la tarifa del tipo correspondiente (BUY para proveedores,
SELL para clientes) y no eliminada. Sin efectos secundarios.
"""

from decimal import Decimal
from typing import Optional

from app.modules.tariffs.models import TariffType


class PriceResolver:

    def __init__(self, tariff_type: TariffType):
        self.tariff_type = tariff_type

    def resolve(self, explicit_price: Optional[Decimal], partner, article) -> Decimal:
        if explicit_price is not None:
            return Decimal(explicit_price)

        tariff_price = self._tariff_price(partner, article)
        if tariff_price is not None:
            return tariff_price

        return self._base_price(article)

    def _tariff_price(self, partner, article) -> Optional[Decimal]:
        if partner is None or partner.tariff_id is None:
            return None
        tariff = partner.tariff
        if tariff is None or tariff.deleted_at is not None or tariff.type != self.tariff_type:
            return None
        for item in tariff.items:
            if item.article_id == article.id and item.deleted_at is None:
                return item.price
        return None

    def _base_price(self, article) -> Decimal:
        if self.tariff_type == TariffType.BUY:
            return article.buy_price
        return article.sell_price


purchase_price_resolver = PriceResolver(TariffType.BUY)
sales_price_resolver = PriceResolver(TariffType.SELL)
