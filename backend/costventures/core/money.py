"""
Exact decimal money amounts.

Every amount stored or transmitted by the service goes through ``Money``;
binary floats never appear on the way in or out.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Union

from costventures.core.errors import BadRequestError, CurrencyMismatchError

CENT = Decimal("0.01")
# amounts are stored as Numeric(15, 2): at most 13 integer digits
MAX_AMOUNT = Decimal("9999999999999.99")


def normalize_currency(currency: str) -> str:
    if not currency or not isinstance(currency, str):
        raise BadRequestError("Currency code is required")
    code = currency.strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise BadRequestError(f"Invalid currency code '{currency}'")
    return code


@dataclass(frozen=True)
class Money:
    """Immutable amount with a fixed scale of two decimal places."""
    amount: Decimal
    currency: str

    def __post_init__(self):
        if isinstance(self.amount, float) or not isinstance(self.amount, Decimal):
            raise TypeError("Money amount must be a Decimal")
        if not self.amount.is_finite():
            raise BadRequestError("Amount must be a finite number")
        try:
            amount = self.amount.quantize(CENT, rounding=ROUND_DOWN)
        except InvalidOperation:
            raise BadRequestError("Amount is out of range")
        if abs(amount) > MAX_AMOUNT:
            raise BadRequestError("Amount is out of range")
        if amount == 0:
            amount = abs(amount)  # no "-0.00"
        # frozen dataclass: bypass __setattr__ to store the canonical form
        object.__setattr__(self, "amount", amount)
        object.__setattr__(self, "currency", normalize_currency(self.currency))

    @classmethod
    def parse(cls, text: Union[str, int, Decimal], currency: str) -> "Money":
        """
        Parse user input into Money.

        Accepts strings like "50", "50.5" or "-6.00". Digits beyond the second
        decimal place are rounded down.
        """
        if isinstance(text, float):
            raise BadRequestError("Amounts must not be given as floating point numbers")
        if isinstance(text, str):
            text = text.strip()
            if not text:
                raise BadRequestError("Amount is required")
        try:
            value = Decimal(text)
        except (InvalidOperation, TypeError, ValueError):
            raise BadRequestError(f"Invalid amount '{text}'")
        if not value.is_finite():
            raise BadRequestError(f"Invalid amount '{text}'")
        return cls(value, currency)

    @classmethod
    def zero(cls, currency: str) -> "Money":
        return cls(Decimal("0"), currency)

    @classmethod
    def from_db(cls, amount, currency: str) -> "Money":
        """Wrap a value read from a Numeric column."""
        if amount is None:
            return cls.zero(currency)
        if not isinstance(amount, Decimal):
            amount = Decimal(str(amount))
        return cls(amount, currency)

    def _check_currency(self, other: "Money"):
        if not isinstance(other, Money):
            raise TypeError(f"Cannot combine Money with {type(other).__name__}")
        if other.currency != self.currency:
            raise CurrencyMismatchError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    def negate(self) -> "Money":
        return Money(-self.amount, self.currency)

    def add(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def subtract(self, other: "Money") -> "Money":
        return self.add(other.negate())

    def abs(self) -> "Money":
        return Money(abs(self.amount), self.currency)

    def __neg__(self) -> "Money":
        return self.negate()

    def __add__(self, other: "Money") -> "Money":
        return self.add(other)

    def __sub__(self, other: "Money") -> "Money":
        return self.subtract(other)

    def __lt__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.amount < other.amount

    def __le__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.amount <= other.amount

    def __gt__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.amount > other.amount

    def __ge__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.amount >= other.amount

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    def require_positive(self) -> "Money":
        """Return self, or raise BadRequestError for zero and negative amounts."""
        if not self.is_positive:
            raise BadRequestError("Amount must be greater than zero")
        return self

    def to_string(self) -> str:
        # "f" formatting keeps the two decimals and avoids exponent notation
        return f"{self.amount:f}"

    def __str__(self) -> str:
        return self.to_string()


def sum_money(values, currency: str) -> Money:
    """Sum an iterable of Money in one currency; empty input gives zero."""
    total = Money.zero(currency)
    for value in values:
        total = total + value
    return total
