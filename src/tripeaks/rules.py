"""Matching rule for discarding a playfield card onto the current card."""

from tripeaks.common import MAX_RANK


def can_match(a: int, b: int, difference: int = 1, cyclic: bool = True) -> bool:
    """
    True when ranks ``a`` and ``b`` are ``difference`` apart. With ``cyclic``
    the ranks wrap, so Ace (1) and King (13) are adjacent.
    """
    gap = abs(a - b)
    if gap == difference:
        return True
    return cyclic and gap == MAX_RANK - difference
