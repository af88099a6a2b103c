"""
Shift cash reconciliation.

Derives the three figures shown on the end-of-shift form from what the
cashier enters:

    total_sales    = total_cash_sales + total_network_sales
    discrepancy    = actual_cash_in_register - (total_cash_sales + starting_cash)
    average_ticket = total_sales / total_transactions   (0 when no transactions)

A negative discrepancy is a cash shortage, a positive one a surplus.

Every report, export and dashboard figure goes through these functions so the
formula lives in exactly one place.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

ZERO = Decimal("0")
CENTS = Decimal("0.01")

# Largest amount a Numeric(12, 2) column holds
MAX_STORED_AMOUNT = Decimal("9999999999.99")
# Amounts of 10**13 and beyond are treated like infinity
MAX_AMOUNT_EXPONENT = 12

SHORTAGE = "shortage"
SURPLUS = "surplus"
BALANCED = "balanced"


def parse_amount(value: Any) -> Optional[Decimal]:
    """Parse raw form input; None when it is not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None
    if not amount.is_finite():
        return None
    return amount


def coerce_amount(value: Any) -> Decimal:
    """Turn raw form input into a Decimal; anything unusable becomes 0."""
    amount = parse_amount(value)
    if amount is None or (amount and amount.adjusted() > MAX_AMOUNT_EXPONENT):
        return ZERO
    return amount


def coerce_count(value: Any) -> int:
    """Same policy as coerce_amount, truncated to a whole count."""
    return int(coerce_amount(value))


def total_sales(total_cash_sales: Decimal, total_network_sales: Decimal) -> Decimal:
    return total_cash_sales + total_network_sales


def discrepancy(actual_cash_in_register: Decimal, total_cash_sales: Decimal, starting_cash: Decimal) -> Decimal:
    return actual_cash_in_register - (total_cash_sales + starting_cash)


def average_ticket(sales: Decimal, total_transactions: int) -> Decimal:
    if total_transactions > 0:
        return sales / Decimal(total_transactions)
    return ZERO


def discrepancy_status(value: Decimal) -> str:
    if value < 0:
        return SHORTAGE
    if value > 0:
        return SURPLUS
    return BALANCED


def to_money(value: Decimal) -> Decimal:
    """Round to cents for storage and display."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def as_float(value) -> Optional[float]:
    """Money for JSON and spreadsheet output."""
    if value is None:
        return None
    return float(value)


@dataclass(frozen=True)
class ShiftReconciliation:
    total_sales: Decimal
    discrepancy: Decimal
    average_ticket: Decimal

    @property
    def discrepancy_status(self) -> str:
        return discrepancy_status(self.discrepancy)

    def rounded(self) -> "ShiftReconciliation":
        return ShiftReconciliation(
            total_sales=to_money(self.total_sales),
            discrepancy=to_money(self.discrepancy),
            average_ticket=to_money(self.average_ticket),
        )


def reconcile(
    starting_cash: Any,
    total_cash_sales: Any,
    total_network_sales: Any,
    actual_cash_in_register: Any,
    total_transactions: Any,
) -> ShiftReconciliation:
    """Compute the derived shift figures; inputs are coerced first."""
    starting = coerce_amount(starting_cash)
    cash = coerce_amount(total_cash_sales)
    network = coerce_amount(total_network_sales)
    actual = coerce_amount(actual_cash_in_register)
    transactions = coerce_count(total_transactions)

    sales = total_sales(cash, network)
    return ShiftReconciliation(
        total_sales=sales,
        discrepancy=discrepancy(actual, cash, starting),
        average_ticket=average_ticket(sales, transactions),
    )


def cash_accuracy(discrepancy_amount: Decimal, expected_cash: Decimal) -> float:
    """Score 0-100 of how close the counted cash was to the expected cash."""
    if expected_cash <= 0:
        return 100.0 if discrepancy_amount == 0 else 0.0
    ratio = abs(discrepancy_amount) / expected_cash
    score = (Decimal("1") - ratio) * 100
    return float(max(ZERO, min(Decimal("100"), score)))
