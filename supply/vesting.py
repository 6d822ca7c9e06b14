"""
Vesting schedule math.
Converts a pool's parameters and the current time into a locked / unlocked split.
Integer arithmetic only; fractions are scaled by the pool's ratio precision.
"""

from supply.errors import InvalidVestingParameters
from supply.models import VESTING_LINEAR, VESTING_STEPPED, VESTING_TYPES, VestingResult
from utils.logger import get_logger

logger = get_logger(__name__)

SECONDS_PER_DAY = 86_400

# Parameter bounds
MAX_INITIAL = 10**27
MAX_SCHEDULE_DAYS = 2190
MIN_RATIO_PRECISION = 1_000
MAX_RATIO_PRECISION = 10**16

# Stepped release policy: 6 quarterly periods after the cliff,
# each releasing 16.67% of what is still locked
STEP_PERIODS = 6
STEP_PERIOD_DAYS = 90
STEP_RELEASE_NUMERATOR = 166_700
STEP_RELEASE_SCALE = 1_000_000

# Off-chain schedules carry no precision of their own
OFFCHAIN_RATIO_PRECISION = 1_000_000

def validate_parameters(
    initial: int,
    tge_percentage: int,
    cliff_days: int,
    vesting_days: int,
    ratio_precision: int,
    vesting_type: str
) -> None:
    """Raise InvalidVestingParameters when a pool's parameters are out of bounds"""
    if not 0 <= initial <= MAX_INITIAL:
        raise InvalidVestingParameters(f"initial amount {initial} outside [0, 10^27]")
    if not 0 <= tge_percentage <= 100:
        raise InvalidVestingParameters(f"tge percentage {tge_percentage} outside [0, 100]")
    if not 0 <= cliff_days <= MAX_SCHEDULE_DAYS:
        raise InvalidVestingParameters(f"cliff of {cliff_days} days outside [0, {MAX_SCHEDULE_DAYS}]")
    if not 0 <= vesting_days <= MAX_SCHEDULE_DAYS:
        raise InvalidVestingParameters(f"vesting of {vesting_days} days outside [0, {MAX_SCHEDULE_DAYS}]")
    if not MIN_RATIO_PRECISION <= ratio_precision <= MAX_RATIO_PRECISION:
        raise InvalidVestingParameters(f"ratio precision {ratio_precision} outside [10^3, 10^16]")
    if vesting_type not in VESTING_TYPES:
        raise InvalidVestingParameters(f"unknown vesting type {vesting_type!r}")

def stepped_unlocked_fraction(tge_fraction: int, ratio_precision: int, periods: int) -> int:
    """
    Unlocked fraction after a number of elapsed release periods.
    Each period releases a share of the remainder; once every period has
    elapsed the whole allocation is unlocked.
    """
    if periods >= STEP_PERIODS:
        return ratio_precision

    unlocked = tge_fraction
    remaining = ratio_precision - tge_fraction
    for _ in range(periods):
        release = remaining * STEP_RELEASE_NUMERATOR // STEP_RELEASE_SCALE
        unlocked += release
        remaining -= release

    return min(unlocked, ratio_precision)

def calculate_vesting(
    initial: int,
    tge_percentage: int,
    cliff_days: int,
    vesting_days: int,
    ratio_precision: int,
    current_timestamp: int,
    tge_timestamp: int,
    vesting_type: str = VESTING_LINEAR
) -> VestingResult:
    """
    Compute the locked amount of one pool at current_timestamp.

    Out-of-bounds parameters do not raise: the pool contributes nothing to
    the locked balance and the returned result carries a warning.

    Args:
        initial: Allocation in the token's smallest unit
        tge_percentage: Share unlocked at TGE (0-100)
        cliff_days: Days after TGE before vesting starts
        vesting_days: Length of the vesting period in days
        ratio_precision: Denominator of unlocked_fraction
        current_timestamp: Unix timestamp of the observed block
        tge_timestamp: Unix timestamp the schedule starts from
        vesting_type: "linear" or "stepped"

    Returns:
        VestingResult
    """
    try:
        validate_parameters(initial, tge_percentage, cliff_days, vesting_days, ratio_precision, vesting_type)
    except InvalidVestingParameters as e:
        logger.warning(f"Ignoring pool with invalid vesting parameters: {e}")
        return VestingResult(
            locked_amount=0,
            unlocked_fraction=0,
            days_passed=0,
            days_until_lock_ends=0,
            days_until_vesting_ends=0,
            warning=str(e)
        )

    days_passed = max(0, (current_timestamp - tge_timestamp) // SECONDS_PER_DAY)
    days_until_lock_ends = max(0, cliff_days - days_passed)
    days_until_vesting_ends = max(0, cliff_days + vesting_days - days_passed)

    tge_fraction = tge_percentage * ratio_precision // 100

    if days_passed < cliff_days:
        unlocked_fraction = tge_fraction
    elif vesting_type == VESTING_STEPPED:
        periods = min(STEP_PERIODS, (days_passed - cliff_days) // STEP_PERIOD_DAYS)
        unlocked_fraction = stepped_unlocked_fraction(tge_fraction, ratio_precision, periods)
    elif vesting_days == 0:
        unlocked_fraction = tge_fraction
    else:
        vested = (days_passed - cliff_days) * ratio_precision // vesting_days
        unlocked_fraction = min(ratio_precision, tge_fraction + vested)

    unlocked_amount = initial * unlocked_fraction // ratio_precision
    locked_amount = max(0, initial - unlocked_amount)

    return VestingResult(
        locked_amount=locked_amount,
        unlocked_fraction=unlocked_fraction,
        days_passed=days_passed,
        days_until_lock_ends=days_until_lock_ends,
        days_until_vesting_ends=days_until_vesting_ends
    )
