def div_rounding_up(x: int, y: int) -> int:
    """
    Divide x by y, rounding any remainder up. Both inputs are unsigned, so no special handling of
    negative floor division is needed. Division by zero is not guarded.
    """

    quotient, remainder = divmod(x, y)
    return quotient + (remainder > 0)
