"""Weekly deposit schedule generation for savings challenges"""

import logging
import math
from typing import Dict, List, Optional, Sequence

from savings_gateway.domain.exceptions import InvalidScheduleParams
from savings_gateway.domain.models import ChallengeMode, Direction, Simulation

logger = logging.getLogger(__name__)

# Salary Cycle Method: share of a 4-week month deposited in each week
SALARY_CYCLE_WEIGHTS = (0.40, 0.30, 0.20, 0.10)

WEEKS_PER_MONTH = 4
GROWTH_START = 0.85  # First month saves 85% of the monthly average
GROWTH_SPAN = 0.30  # ...ramping linearly to 115% in the last month

DEFAULT_FLOOR_CENTS = 5

# Catalog targets, in cents
TEMPLATES: Dict[str, int] = {
    "5k": 5000_00,
    "10k": 10000_00,
}


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def template_target(key: str) -> int:
    """Resolve a catalog template key ("5k", "10k") to its target in cents"""
    try:
        return TEMPLATES[key]
    except KeyError:
        raise InvalidScheduleParams(f"Unknown challenge template: {key!r}") from None


def arithmetic_last_term(start_amount_cents: int, step_amount_cents: int, total_weeks: int) -> int:
    """a_n = a_1 + (n - 1) * r"""
    return start_amount_cents + (total_weeks - 1) * step_amount_cents


def arithmetic_target(start_amount_cents: int, step_amount_cents: int, total_weeks: int) -> int:
    """S_n = n * (a_1 + a_n) / 2, always an integer for integer inputs"""
    last = arithmetic_last_term(start_amount_cents, step_amount_cents, total_weeks)
    return total_weeks * (start_amount_cents + last) // 2


def _check_horizon(target_amount_cents: int, total_weeks: int) -> None:
    if total_weeks < 1:
        raise InvalidScheduleParams(f"total_weeks must be >= 1, got {total_weeks}")
    if target_amount_cents < 0:
        raise InvalidScheduleParams(f"target_amount_cents must be >= 0, got {target_amount_cents}")


def _restore_floor(amounts: List[int], floor_cents: int) -> None:
    """Lift the last week back to the floor, borrowing from earlier weeks (latest first)"""
    deficit = floor_cents - amounts[-1]
    if deficit <= 0:
        return

    amounts[-1] = floor_cents
    for week in range(len(amounts) - 2, -1, -1):
        take = min(deficit, amounts[week] - floor_cents)
        if take > 0:
            amounts[week] -= take
            deficit -= take
        if deficit == 0:
            return


def salary_cycle_amounts(
    target_amount_cents: int,
    total_weeks: int,
    direction: Direction = Direction.STANDARD,
    floor_cents: int = DEFAULT_FLOOR_CENTS,
) -> List[int]:
    """
    Spread a fixed target over the horizon using the Salary Cycle Method.

    Requirements:
    - Months of 4 weeks; each month weighted 40/30/20/10% (standard, heaviest
      right after payday) or 10/20/30/40% (inverse)
    - Monthly targets ramp linearly from 85% to 115% of the average, then are
      rescaled to the exact target
    - A short final month renormalizes its leading weights to sum to 1
    - Every week is at least floor_cents
    - Rounding residue goes first to the heavy weeks (week 1 of each month),
      then whatever is left to the last week

    Args:
        target_amount_cents: Total the schedule must sum to
        total_weeks: Horizon length (>= 1)
        direction: standard (front-loaded) or inverse (back-loaded)
        floor_cents: Minimum weekly deposit

    Returns:
        total_weeks integer amounts summing exactly to target_amount_cents

    Raises:
        InvalidScheduleParams: Bad horizon, negative target, or a target too
            small to give every week the floor
    """
    _check_horizon(target_amount_cents, total_weeks)
    if target_amount_cents < floor_cents * total_weeks:
        raise InvalidScheduleParams(
            f"Target {target_amount_cents} cannot cover the {floor_cents} floor over {total_weeks} weeks"
        )

    weights: Sequence[float] = SALARY_CYCLE_WEIGHTS
    if direction == Direction.INVERSE:
        weights = tuple(reversed(SALARY_CYCLE_WEIGHTS))

    month_count = math.ceil(total_weeks / WEEKS_PER_MONTH)

    # Gentle growth across months, then scale back to the exact target
    base_monthly = target_amount_cents / month_count
    raw_targets = [
        base_monthly * (GROWTH_START + GROWTH_SPAN * month / max(1, month_count - 1))
        for month in range(month_count)
    ]
    raw_total = sum(raw_targets)
    scale = target_amount_cents / raw_total if raw_total else 0.0
    monthly_targets = [raw * scale for raw in raw_targets]

    amounts: List[int] = []
    for week in range(total_weeks):
        month, slot = divmod(week, WEEKS_PER_MONTH)
        weeks_in_month = min(WEEKS_PER_MONTH, total_weeks - month * WEEKS_PER_MONTH)

        # Partial final month: renormalize the weights it actually uses
        adjusted_weights = weights[:weeks_in_month]
        weight_sum = sum(adjusted_weights)

        amount = _round_half_up(monthly_targets[month] * adjusted_weights[slot] / weight_sum)
        amounts.append(max(floor_cents, amount))

    # Spread rounding residue over the heavy weeks without crossing the floor
    heavy_weeks = range(0, total_weeks, WEEKS_PER_MONTH)
    diff = target_amount_cents - sum(amounts)
    per_heavy_week = _round_half_up(diff / len(heavy_weeks))
    for week in heavy_weeks:
        amounts[week] = max(floor_cents, amounts[week] + per_heavy_week)

    # Last week absorbs whatever remains so the total is exact
    amounts[-1] += target_amount_cents - sum(amounts)
    _restore_floor(amounts, floor_cents)

    return amounts


def arithmetic_amounts(
    start_amount_cents: int,
    step_amount_cents: int,
    total_weeks: int,
    direction: Direction = Direction.STANDARD,
) -> List[int]:
    """
    Weekly amounts for a custom challenge: an arithmetic progression.

    Standard starts at start_amount_cents and grows by step_amount_cents each
    week; inverse walks the same progression backwards. Amounts are rounded
    and the last week absorbs any remainder, like the template schedule.

    Example:
        start=100, step=100, 4 weeks, standard -> [100, 200, 300, 400]
        same, inverse                          -> [400, 300, 200, 100]
    """
    if start_amount_cents is None or step_amount_cents is None:
        raise InvalidScheduleParams("Custom challenges need start_amount_cents and step_amount_cents")
    if start_amount_cents < 0 or step_amount_cents < 0:
        raise InvalidScheduleParams("start_amount_cents and step_amount_cents must be >= 0")

    last_term = arithmetic_last_term(start_amount_cents, step_amount_cents, total_weeks)
    target = arithmetic_target(start_amount_cents, step_amount_cents, total_weeks)
    _check_horizon(target, total_weeks)

    if direction == Direction.STANDARD:
        first, last = start_amount_cents, last_term
    else:
        first, last = last_term, start_amount_cents

    span = max(1, total_weeks - 1)
    amounts = [_round_half_up(first + (last - first) * week / span) for week in range(total_weeks)]
    amounts[-1] += target - sum(amounts)

    return amounts


def allocate(
    target_amount_cents: Optional[int],
    total_weeks: int,
    direction: Direction = Direction.STANDARD,
    mode: ChallengeMode = ChallengeMode.TEMPLATE,
    start_amount_cents: Optional[int] = None,
    step_amount_cents: Optional[int] = None,
    floor_cents: int = DEFAULT_FLOOR_CENTS,
) -> List[int]:
    """
    Main entry point: compute the full weekly schedule for a challenge.

    Custom mode derives its target from the progression; a target passed
    alongside it must agree with the derived one.

    Postcondition: len(result) == total_weeks and sum(result) is the target.
    """
    if total_weeks is None or total_weeks < 1:
        raise InvalidScheduleParams(f"total_weeks must be >= 1, got {total_weeks}")

    if mode == ChallengeMode.CUSTOM:
        amounts = arithmetic_amounts(start_amount_cents, step_amount_cents, total_weeks, direction)
        if target_amount_cents is not None and target_amount_cents != sum(amounts):
            raise InvalidScheduleParams(
                f"Target {target_amount_cents} does not match progression total {sum(amounts)}"
            )
    else:
        if target_amount_cents is None:
            raise InvalidScheduleParams("Template challenges need target_amount_cents")
        amounts = salary_cycle_amounts(target_amount_cents, total_weeks, direction, floor_cents)

    logger.debug(
        "Schedule allocated",
        extra={"mode": mode.value, "direction": direction.value, "total_weeks": total_weeks},
    )
    return amounts


def simulate(
    total_weeks: int,
    direction: Direction = Direction.STANDARD,
    mode: ChallengeMode = ChallengeMode.TEMPLATE,
    target_amount_cents: Optional[int] = None,
    start_amount_cents: Optional[int] = None,
    step_amount_cents: Optional[int] = None,
    floor_cents: int = DEFAULT_FLOOR_CENTS,
) -> Simulation:
    """Preview a schedule before the challenge is created"""
    amounts = allocate(
        target_amount_cents,
        total_weeks,
        direction,
        mode,
        start_amount_cents=start_amount_cents,
        step_amount_cents=step_amount_cents,
        floor_cents=floor_cents,
    )
    return Simulation(
        target_amount_cents=sum(amounts),
        weekly_amounts=tuple(amounts),
        first_week_amount_cents=amounts[0],
        last_week_amount_cents=amounts[-1],
    )
