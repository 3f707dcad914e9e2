"""
Tests para el cálculo de importes de línea

Cubre el cálculo de subtotal, IVA y total, el redondeo comercial a 4
decimales y la acumulación de totales del albarán.
"""

from decimal import Decimal

import pytest

from app.common.exceptions import ValidationError
from app.modules.taxes.calculator import LineAmounts, LineCalculator, fits_money, quantize_money


class TestQuantizeMoney:
    """Tests para el redondeo de importes"""

    def test_rounds_half_up(self):
        assert quantize_money(Decimal("2.00005")) == Decimal("2.0001")
        assert quantize_money(Decimal("2.00004")) == Decimal("2.0000")

    def test_keeps_four_decimals(self):
        assert str(quantize_money(Decimal("7"))) == "7.0000"


class TestLineCalculator:
    """Tests para LineCalculator.compute"""

    def test_compute_basic_line(self):
        """3 unidades a 10 con IVA 21%"""
        amounts = LineCalculator.compute(Decimal("3"), Decimal("10"), Decimal("21"))

        assert amounts.subtotal == Decimal("30.0000")
        assert amounts.iva_amount == Decimal("6.3000")
        assert amounts.total == Decimal("36.3000")

    def test_total_is_subtotal_plus_iva(self):
        amounts = LineCalculator.compute(Decimal("2.5"), Decimal("3.3333"), Decimal("10"))

        assert amounts.subtotal == Decimal("8.3333")
        assert amounts.iva_amount == Decimal("0.8333")
        assert amounts.total == amounts.subtotal + amounts.iva_amount

    def test_iva_rounding_is_half_up(self):
        """0.0005 * 10% = 0.00005, que redondea hacia arriba"""
        amounts = LineCalculator.compute(Decimal("1"), Decimal("0.0005"), Decimal("10"))

        assert amounts.iva_amount == Decimal("0.0001")

    def test_zero_iva(self):
        amounts = LineCalculator.compute(Decimal("4"), Decimal("1.25"), Decimal("0"))

        assert amounts.iva_amount == Decimal("0")
        assert amounts.total == Decimal("5.0000")

    def test_zero_price(self):
        amounts = LineCalculator.compute(Decimal("4"), Decimal("0"), Decimal("21"))

        assert amounts.total == Decimal("0")

    def test_subtotal_beyond_column_capacity(self):
        with pytest.raises(ValidationError) as exc_info:
            LineCalculator.compute(Decimal("99999999999999"), Decimal("99999999999999"), Decimal("21"))

        assert exc_info.value.field == "subtotal"

    def test_total_with_iva_beyond_column_capacity(self):
        # El subtotal cabe, el total con IVA no
        with pytest.raises(ValidationError) as exc_info:
            LineCalculator.compute(Decimal("1"), Decimal("90000000000000"), Decimal("21"))

        assert exc_info.value.field == "total"


class TestTotals:

    def test_totals_accumulate_lines(self):
        lines = [
            LineCalculator.compute(Decimal("3"), Decimal("10"), Decimal("21")),
            LineCalculator.compute(Decimal("1"), Decimal("4"), Decimal("10")),
        ]

        totals = LineCalculator.totals(lines)

        assert totals == LineAmounts(
            subtotal=Decimal("34.0000"),
            iva_amount=Decimal("6.7000"),
            total=Decimal("40.7000")
        )

    def test_totals_of_no_lines(self):
        assert LineCalculator.totals([]).total == Decimal("0")

    def test_note_total_beyond_column_capacity(self):
        line = LineCalculator.compute(Decimal("1"), Decimal("50000000000000"), Decimal("21"))

        with pytest.raises(ValidationError) as exc_info:
            LineCalculator.totals([line, line])

        assert exc_info.value.field == "total"


class TestFitsMoney:

    @pytest.mark.parametrize("value, expected", [
        (Decimal("99999999999999.9999"), True),
        (Decimal("-99999999999999.9999"), True),
        (Decimal("100000000000000"), False),
        (Decimal("1e30"), False),
        (Decimal("NaN"), False),
        (Decimal("Infinity"), False),
    ])
    def test_column_capacity(self, value, expected):
        assert fits_money(value) is expected
