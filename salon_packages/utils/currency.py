"""
Currency display helpers.

Amounts are held in paisa everywhere; these helpers only produce the
rupee strings shown next to savings and revenue figures.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


RUPEE_SYMBOL = "₹"


def group_indian_digits(digits: str) -> str:
    """
    Apply Indian digit grouping (last three, then pairs).

    Example:
        >>> group_indian_digits("1500000")
        '15,00,000'
    """
    if len(digits) <= 3:
        return digits

    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)

    return ",".join(groups + [tail])


def format_inr(amount_in_paisa: int) -> str:
    """
    Format a paisa amount as whole rupees.

    Example:
        >>> format_inr(15000000)
        '₹1,50,000'
        >>> format_inr(-45050)
        '-₹451'
    """
    rupees = (Decimal(abs(amount_in_paisa)) / 100).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    formatted = f"{RUPEE_SYMBOL}{group_indian_digits(str(int(rupees)))}"
    if amount_in_paisa < 0 and rupees:
        return f"-{formatted}"
    return formatted
