from __future__ import annotations

from .models import AmountBreakdown, AmountSet
from .rates import Rates
from .timeutils import MONEY_DECIMALS, safe_round


def _money(value: float) -> float:
    return safe_round(value, MONEY_DECIMALS)


class AmountCalculator:
    """Regular, overtime and premium amounts for one record on every rate basis."""

    def __init__(self, multiplier: float, tier2_multiplier: float) -> None:
        self.multiplier = max(multiplier, 1.0)
        # a tier-2 multiplier configured below tier 1 never lowers pay
        self.tier2_multiplier = max(tier2_multiplier, self.multiplier)

    def breakdown(self, rate: float, regular: float, overtime: float, tier2_hours: float = 0.0) -> AmountBreakdown:
        regular_amount = _money(regular * rate)
        overtime_amount_base = _money(overtime * rate)
        tier1_premium = _money(overtime * rate * (self.multiplier - 1))
        tier2_premium = 0.0
        if tier2_hours > 0:
            tier2_premium = _money(tier2_hours * rate * (self.tier2_multiplier - self.multiplier))
        return AmountBreakdown(
            rate=_money(rate),
            regular_amount=regular_amount,
            overtime_amount_base=overtime_amount_base,
            tier1_premium=tier1_premium,
            tier2_premium=tier2_premium,
            total_amount_with_ot=_money(regular_amount + overtime_amount_base + tier1_premium + tier2_premium),
            total_amount_no_ot=_money(regular_amount + overtime_amount_base),
            overtime_rate=_money(rate * self.multiplier),
        )

    def calculate(self, rates: Rates, regular: float, overtime: float, tier2_hours: float = 0.0) -> AmountSet:
        earned = self.breakdown(rates.earned, regular, overtime, tier2_hours)
        cost = self.breakdown(rates.cost, regular, overtime, tier2_hours)
        profit = AmountBreakdown(
            rate=_money(earned.rate - cost.rate),
            regular_amount=_money(earned.regular_amount - cost.regular_amount),
            overtime_amount_base=_money(earned.overtime_amount_base - cost.overtime_amount_base),
            tier1_premium=_money(earned.tier1_premium - cost.tier1_premium),
            tier2_premium=_money(earned.tier2_premium - cost.tier2_premium),
            total_amount_with_ot=_money(earned.total_amount_with_ot - cost.total_amount_with_ot),
            total_amount_no_ot=_money(earned.total_amount_no_ot - cost.total_amount_no_ot),
            overtime_rate=_money(earned.overtime_rate - cost.overtime_rate),
        )
        return AmountSet(earned=earned, cost=cost, profit=profit)
