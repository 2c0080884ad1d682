"""Checks on funds attached to a message."""

from typing import Optional, Sequence

from ..exceptions import InsufficientFundsError
from .types import Coin


def validate_sent_sufficient_coin(sent: Sequence[Coin], required: Optional[Coin]) -> Optional[Coin]:
    """
    Check that *sent* carries at least ``required.amount`` of ``required.denom``
    and nothing else.

    Returns the matching coin (None when no coin is required).

    Raises:
        InsufficientFundsError: wrong denom, too little, or extra denoms attached
    """
    if required is None or required.amount == 0:
        return None

    matching = [c for c in sent if c.denom == required.denom]
    others = [c for c in sent if c.denom != required.denom]
    if others or len(matching) != 1 or matching[0].amount < required.amount:
        raise InsufficientFundsError()
    return matching[0]
