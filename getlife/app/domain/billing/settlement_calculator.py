"""
Work-Session Settlement Calculator.

Converts the elapsed duration of a finished work session into a billable
amount, takes the platform commission out of the provider's balance and
decides whether the provider account has to be suspended.

Pure domain logic: no database, no clock, no settings.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_EVEN, ROUND_HALF_UP, InvalidOperation, localcontext
from typing import Union

from getlife.app.core.exceptions import InvalidSettlementInputError

SECONDS_PER_HOUR = 3600

ROUNDING_MODES = {
    "half_up": ROUND_HALF_UP,
    "half_even": ROUND_HALF_EVEN,
}

Number = Union[int, str, Decimal]


def _to_decimal(value: Number, name: str) -> Decimal:
    if isinstance(value, bool) or isinstance(value, float):
        # no binary floats in currency amounts
        raise InvalidSettlementInputError(f"{name} must be an int, str or Decimal")
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidSettlementInputError(f"{name} is not a number: {value!r}")
    if not result.is_finite():
        raise InvalidSettlementInputError(f"{name} must be finite")
    return result


def _working_precision(*values: Number) -> int:
    # enough significant digits that nothing is lost before the final rounding
    digits = sum(len(Decimal(v).as_tuple().digits) for v in values)
    return max(28, digits + 28)


@dataclass(frozen=True)
class SettlementConfig:
    """
    Billing constants for a settlement.

    The per-second rate is never stored; it is derived from hourly_rate
    every time a settlement is computed.
    """
    hourly_rate: Decimal = Decimal("125000")
    commission_fraction: Decimal = Decimal("0.25")
    rounding: str = "half_up"

    def __post_init__(self) -> None:
        hourly_rate = _to_decimal(self.hourly_rate, "hourly_rate")
        commission_fraction = _to_decimal(self.commission_fraction, "commission_fraction")

        if hourly_rate <= 0:
            raise InvalidSettlementInputError("hourly_rate must be positive")
        if not (Decimal(0) <= commission_fraction <= Decimal(1)):
            raise InvalidSettlementInputError("commission_fraction must be within [0, 1]")
        if self.rounding not in ROUNDING_MODES:
            raise InvalidSettlementInputError(
                f"rounding must be one of {sorted(ROUNDING_MODES)}, got {self.rounding!r}"
            )

        object.__setattr__(self, "hourly_rate", hourly_rate)
        object.__setattr__(self, "commission_fraction", commission_fraction)

    @property
    def rate_per_second(self) -> Decimal:
        return self.hourly_rate / SECONDS_PER_HOUR

    def round_amount(self, value: Decimal) -> int:
        """Round to a whole currency unit with the configured tie-break."""
        return int(value.quantize(Decimal(1), rounding=ROUNDING_MODES[self.rounding]))


@dataclass(frozen=True)
class SettlementResult:
    """Outcome of one settlement. Not persisted on its own."""
    billable_amount: int
    commission_amount: int
    new_balance: int
    should_block: bool

    @property
    def outstanding_debt(self) -> int:
        return max(0, -self.new_balance)

    @property
    def provider_earnings(self) -> int:
        return self.billable_amount - self.commission_amount


def billable_amount(elapsed_seconds: int, config: SettlementConfig) -> int:
    """Whole-unit cost of elapsed_seconds of work."""
    if isinstance(elapsed_seconds, bool) or not isinstance(elapsed_seconds, int):
        raise InvalidSettlementInputError("elapsed_seconds must be an integer number of seconds")
    if elapsed_seconds < 0:
        raise InvalidSettlementInputError("elapsed_seconds cannot be negative")
    with localcontext() as ctx:
        ctx.prec = _working_precision(elapsed_seconds, config.hourly_rate)
        # multiply before dividing so the per-second rate is exact
        return config.round_amount(Decimal(elapsed_seconds) * config.hourly_rate / SECONDS_PER_HOUR)


def settle(
    elapsed_seconds: int,
    prior_balance: int,
    config: SettlementConfig = SettlementConfig(),
) -> SettlementResult:
    """
    Settle a finished work session.

    Args:
        elapsed_seconds: Non-negative whole seconds worked
        prior_balance: Provider balance before the session (any sign)
        config: Billing constants

    Returns:
        SettlementResult with billable amount, commission, new balance and
        whether the provider must be blocked

    Raises:
        InvalidSettlementInputError: For negative or non-integer input
    """
    if isinstance(prior_balance, bool) or not isinstance(prior_balance, int):
        raise InvalidSettlementInputError("prior_balance must be an integer currency amount")

    billed = billable_amount(elapsed_seconds, config)
    with localcontext() as ctx:
        ctx.prec = _working_precision(billed, config.commission_fraction)
        commission = config.round_amount(Decimal(billed) * config.commission_fraction)
    new_balance = prior_balance - commission

    return SettlementResult(
        billable_amount=billed,
        commission_amount=commission,
        new_balance=new_balance,
        should_block=new_balance < 0,
    )
