"""
Conversion of raw token amounts (smallest unit) into human readable strings.
Pure integer arithmetic, no rounding and no floating point.
"""

def to_human(amount: int, decimals: int) -> str:
    """
    Format a raw integer amount with the given number of decimals.

    Trailing zeros of the fractional part are stripped and the dot is dropped
    when nothing remains, e.g. to_human(1234500000000000000, 18) == "1.2345".

    Args:
        amount: Raw amount in the token's smallest unit
        decimals: Token decimals (0-255)

    Returns:
        Decimal string representation
    """
    if amount < 0:
        raise ValueError(f"Amount must be non-negative, got {amount}")
    if not 0 <= decimals <= 255:
        raise ValueError(f"Decimals must be between 0 and 255, got {decimals}")

    if decimals == 0:
        return str(amount)

    divisor = 10 ** decimals
    integer_part = amount // divisor
    fraction = str(amount % divisor).zfill(decimals).rstrip('0')

    if not fraction:
        return str(integer_part)
    return f"{integer_part}.{fraction}"
