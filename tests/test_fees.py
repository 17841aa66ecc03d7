import pytest

from cryptovault.services.fees import fee_rate, quote_fee


class TestFeeSchedule:
    """Tests for the tiered withdrawal fee schedule"""

    @pytest.mark.parametrize(
        "amount,rate",
        [
            (0.5, 0.02),
            (1, 0.015),
            (9.99, 0.015),
            (10, 0.01),
            (100, 0.01),
            (999, 0.01),
            (1000, 0.005),
            (10000, 0.003),
            (250000, 0.003),
        ],
    )
    def test_fee_rate_brackets(self, amount, rate):
        assert fee_rate(amount) == rate

    def test_quote_for_ten_units(self):
        quote = quote_fee(10, min_fee=0.0001)

        assert quote.fee == pytest.approx(0.1)
        assert quote.total == pytest.approx(10.1)

    def test_quote_for_hundred_units(self):
        quote = quote_fee(100, min_fee=0.0001)

        assert quote.fee == pytest.approx(1)
        assert quote.total == pytest.approx(101)

    def test_minimum_fee_applies_to_dust(self):
        quote = quote_fee(0.001, min_fee=0.0001)

        assert quote.fee == 0.0001

    def test_default_minimum_fee_comes_from_settings(self):
        assert quote_fee(0.000001).fee == 0.0001

    @pytest.mark.parametrize("amount", [0, -1])
    def test_non_positive_amount_rejected(self, amount):
        with pytest.raises(ValueError, match="positive"):
            quote_fee(amount)
