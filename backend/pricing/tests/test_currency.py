from decimal import Decimal

import pytest

from pricing.services.currency import CurrencyRateError, CurrencyTable


class TestCurrencyTable:
    def test_base_currency_is_always_one(self):
        table = CurrencyTable("mad", {"USD": "9.80"})
        assert table.base_currency == "MAD"
        assert table.lookup("MAD") == (Decimal("1"), True)

    def test_snapshot_ignores_base_override_and_junk(self):
        table = CurrencyTable("MAD", {"MAD": "5", "USD": "abc", "EUR": "-1", "GBP": "12.5", "JPY": "1e9"})
        assert table.lookup("MAD") == (Decimal("1"), True)
        assert table.lookup("USD") == (Decimal("1"), False)
        assert table.lookup("EUR") == (Decimal("1"), False)
        assert table.lookup("GBP") == (Decimal("12.5"), True)
        assert table.lookup("JPY") == (Decimal("1"), False)

    def test_unknown_code_falls_back_to_one(self):
        table = CurrencyTable("MAD")
        assert table.lookup("JPY") == (Decimal("1"), False)

    def test_lookup_is_case_insensitive(self):
        table = CurrencyTable("MAD", {"usd": "9.80"})
        assert table.lookup("Usd")[0] == Decimal("9.80")

    def test_set_rate_accepts_comma_decimal(self):
        table = CurrencyTable("MAD")
        assert table.set_rate("eur", "10,75") == Decimal("10.75")
        assert table.as_dict() == {"EUR": "10.75", "MAD": "1"}

    @pytest.mark.parametrize("bad", ["", "abc", "0", "-3", None, "nan", "1000001"])
    def test_set_rate_rejects_unusable_values(self, bad):
        table = CurrencyTable("MAD", {"USD": "9.80"})
        with pytest.raises(CurrencyRateError):
            table.set_rate("USD", bad)
        assert table.lookup("USD")[0] == Decimal("9.80")

    def test_base_rate_cannot_change(self):
        table = CurrencyTable("MAD")
        with pytest.raises(CurrencyRateError):
            table.set_rate("MAD", "2")
        assert table.set_rate("MAD", "1") == Decimal("1")

    def test_set_rate_requires_code(self):
        with pytest.raises(CurrencyRateError):
            CurrencyTable("MAD").set_rate("  ", "2")

    def test_copy_is_independent(self):
        table = CurrencyTable("MAD", {"USD": "9.80"})
        clone = table.copy()
        assert clone == table
        clone.set_rate("USD", "10")
        assert table.lookup("USD")[0] == Decimal("9.80")
