"""
Quorum / Threshold Resolver

Quorum:    tallied weight, as an integer percentage of the tokens held by the
           contract at the end of the voting period, must reach the poll's
           quorum_percentage (when one is set).
Threshold: strictly more than half of the tallied weight must be "yes".

The percentage is computed as ``tallied * 100 // pool_balance``. Dividing
first (``tallied // pool_balance * 100``) truncates every partial
participation to 0% and rejects nearly every poll that sets a quorum, so the
multiplication is done first.
"""

from dataclasses import dataclass
from typing import Optional

from ..constants import REJECTED_QUORUM, REJECTED_THRESHOLD
from ..exceptions import NoStakeError


@dataclass(frozen=True)
class PollOutcome:
    passed: bool
    rejected_reason: str = ""
    quorum: Optional[int] = None

    @classmethod
    def rejected(cls, reason: str, quorum: Optional[int] = None) -> "PollOutcome":
        return cls(passed=False, rejected_reason=reason, quorum=quorum)


def quorum_percentage_of(tallied: int, pool_balance: int) -> int:
    """Integer participation percentage, truncated toward zero."""
    return (tallied * 100) // pool_balance


def resolve(
    tallied: int,
    yes: int,
    quorum_percentage: Optional[int],
    pool_balance: int,
) -> PollOutcome:
    """
    Decide a poll from its tally.

    Args:
        tallied:            total weight of all votes (yes + no)
        yes:                weight of "yes" votes
        quorum_percentage:  required participation, or None for no quorum
        pool_balance:       contract-held balance observed at end time

    Raises:
        NoStakeError: votes exist but the pool is empty
    """
    if tallied == 0:
        return PollOutcome.rejected(REJECTED_QUORUM)

    if pool_balance == 0:
        raise NoStakeError()

    quorum = quorum_percentage_of(tallied, pool_balance)
    if quorum_percentage is not None and quorum < quorum_percentage:
        return PollOutcome.rejected(REJECTED_QUORUM, quorum)

    if yes > tallied // 2:
        return PollOutcome(passed=True, quorum=quorum)

    return PollOutcome.rejected(REJECTED_THRESHOLD, quorum)
