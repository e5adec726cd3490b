from decimal import ROUND_HALF_UP, Decimal

import attrs


_CENTS = Decimal('0.01')


def _to_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP)


@attrs.frozen
class PriceQuote:
    """Price breakdown of a reservation or an extension (price + tax = total)"""

    price: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    currency: str

    @classmethod
    def for_amount(cls, *, price: Decimal, tax_rate: Decimal, currency: str) -> 'PriceQuote':
        if price <= 0:
            raise ValueError('price must be positive')
        price = _to_money(price)
        tax_amount = _to_money(price * Decimal(tax_rate))
        return cls(
            price=price,
            tax_amount=tax_amount,
            total_amount=price + tax_amount,
            currency=currency,
        )

    @classmethod
    def for_extension(
        cls, *, additional_days: int, price_per_day: Decimal, tax_rate: Decimal, currency: str
    ) -> 'PriceQuote':
        return cls.for_amount(
            price=Decimal(additional_days) * Decimal(price_per_day),
            tax_rate=tax_rate,
            currency=currency,
        )
