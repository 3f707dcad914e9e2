"""
Helper para cálculo de importes de línea con IVA

Usado por los albaranes de compra y venta. Todos los importes se guardan
con 4 decimales en columnas Numeric(18,4); el redondeo es ROUND_HALF_UP
(redondeo comercial). Un importe que no cabe en esa columna se rechaza con
ValidationError antes de llegar a la base de datos.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from app.common.exceptions import ValidationError

MONEY_QUANTUM = Decimal('0.0001')
HUNDRED = Decimal('100')
# Numeric(18,4): 14 dígitos enteros
MAX_AMOUNT = Decimal(10) ** 14


def fits_money(value: Decimal) -> bool:
    """Indica si el valor cabe en una columna Numeric(18,4)."""
    value = Decimal(value)
    return value.is_finite() and abs(value) < MAX_AMOUNT


def quantize_money(value: Decimal) -> Decimal:
    """Redondear a la precisión de Money (4 decimales)."""
    return Decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LineAmounts:
    subtotal: Decimal
    iva_amount: Decimal
    total: Decimal


class LineCalculator:
    """Calcula subtotal, IVA y total de una línea de albarán"""

    @staticmethod
    def compute(quantity: Decimal, price: Decimal, iva_percentage: Decimal) -> LineAmounts:
        """
        Calcular los importes de una línea

        Args:
            quantity: Cantidad de la línea
            price: Precio unitario ya resuelto
            iva_percentage: Porcentaje de IVA de la familia (ej. 21 para 21%)

        Returns:
            LineAmounts con subtotal, iva_amount y total

        Raises:
            ValidationError: si el subtotal o el total no caben en Numeric(18,4)
        """
        raw_subtotal = Decimal(quantity) * Decimal(price)
        if not fits_money(raw_subtotal):
            raise ValidationError("El importe de la línea excede el máximo permitido", field="subtotal")

        subtotal = quantize_money(raw_subtotal)
        iva_amount = quantize_money(subtotal * (Decimal(iva_percentage) / HUNDRED))
        total = subtotal + iva_amount
        if not fits_money(total):
            raise ValidationError("El importe de la línea excede el máximo permitido", field="total")

        return LineAmounts(subtotal=subtotal, iva_amount=iva_amount, total=total)

    @staticmethod
    def totals(lines: Iterable[LineAmounts]) -> LineAmounts:
        """Sumar los importes de varias líneas"""
        subtotal = Decimal('0.0000')
        iva_amount = Decimal('0.0000')
        for line in lines:
            subtotal += line.subtotal
            iva_amount += line.iva_amount
        total = subtotal + iva_amount
        if not fits_money(total):
            raise ValidationError("El total del albarán excede el máximo permitido", field="total")
        return LineAmounts(subtotal=subtotal, iva_amount=iva_amount, total=total)
