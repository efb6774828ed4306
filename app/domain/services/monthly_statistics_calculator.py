"""
MONTHLY STATISTICS CALCULATOR

Pure math for one month of one strategy. No I/O.

REFERENCE PRICE:
- Starts at the baseline (1000) before the first recorded day
- principal(d) = principal(d-1) + deposit/withdrawal(d)
- price(d) = price(d-1) * (1 + profit_loss(d) / principal(d)) while principal(d) > 0
- Carried month to month through the prior aggregate's closing values

RULES:
✅ Always computed from the full set of the month's daily records
✅ Fixed rounding: 4 dp for money and percentages, 8 dp for carried seeds
❌ No incremental adjustment of stored values
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Sequence

from app.domain.models import DailyRecord, MonthlyAggregate

MONEY_QUANT = Decimal("0.0001")
SEED_QUANT = Decimal("0.00000001")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def quantize_seed(value: Decimal) -> Decimal:
    return value.quantize(SEED_QUANT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class ChainSeed:
    """Values carried over from the prior month"""
    principal: Decimal
    reference_price: Decimal
    cumulative_profit_loss: Decimal

    @classmethod
    def initial(cls, baseline: Decimal) -> "ChainSeed":
        return cls(principal=ZERO, reference_price=baseline, cumulative_profit_loss=ZERO)

    @classmethod
    def from_prior(cls, prior: Optional[MonthlyAggregate], baseline: Decimal) -> "ChainSeed":
        if prior is None:
            return cls.initial(baseline)
        return cls(
            principal=prior.closing_principal,
            reference_price=prior.closing_reference_price,
            cumulative_profit_loss=prior.cumulative_profit_loss,
        )


class MonthlyStatisticsCalculator:
    """Derives a MonthlyAggregate from a month's daily records and the prior seed"""

    def __init__(self, baseline: Decimal = Decimal("1000")):
        if baseline <= ZERO:
            raise ValueError("Reference price baseline must be positive")
        self.baseline = baseline

    def calculate(
        self,
        strategy_id: int,
        analysis_month: str,
        records: Sequence[DailyRecord],
        seed: ChainSeed,
    ) -> MonthlyAggregate:
        """
        Calculate the aggregate for one month

        Args:
            strategy_id: Strategy ID
            analysis_month: YYYY-MM
            records: Every daily record of the month
            seed: Closing values of the prior month (ChainSeed.initial if none)

        Returns:
            MonthlyAggregate

        Raises:
            ValueError: If records is empty
        """
        if not records:
            raise ValueError(f"No daily records for {analysis_month}")

        principal = seed.principal
        price = seed.reference_price
        principals = []
        net_flow = ZERO
        profit_loss = ZERO

        for record in sorted(records, key=lambda r: r.date):
            dep_wd = record.dep_wd_or_zero
            pl = record.profit_loss_or_zero

            principal += dep_wd
            if principal > ZERO:
                price = price * (Decimal("1") + pl / principal)

            principals.append(principal)
            net_flow += dep_wd
            profit_loss += pl

        closing_price = quantize_seed(price)
        average_principal = sum(principals, ZERO) / Decimal(len(principals))

        return MonthlyAggregate(
            strategy_id=strategy_id,
            analysis_month=analysis_month,
            average_principal=quantize_money(average_principal),
            net_flow=quantize_money(net_flow),
            monthly_profit_loss=quantize_money(profit_loss),
            monthly_return=self.return_pct(closing_price, seed.reference_price),
            cumulative_profit_loss=quantize_money(profit_loss + seed.cumulative_profit_loss),
            cumulative_return=self.return_pct(closing_price, self.baseline),
            closing_principal=quantize_seed(principal),
            closing_reference_price=closing_price,
        )

    @staticmethod
    def return_pct(current_price: Decimal, previous_price: Decimal) -> Decimal:
        """((current / previous) - 1) * 100, 0 when previous is not positive"""
        if previous_price <= ZERO:
            return quantize_money(ZERO)
        return quantize_money((current_price / previous_price - Decimal("1")) * HUNDRED)
