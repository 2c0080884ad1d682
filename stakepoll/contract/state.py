"""
Contract State: global config, custody records and polls.

Storage layout:
    config                         → State          (singleton)
    bank  / <address bytes>        → TokenManager   (one per account)
    polls / <poll_id u64 BE>       → Poll           (one per poll)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..constants import BANK_NAMESPACE, CONFIG_KEY, POLL_NAMESPACE, VOTE_YES
from ..exceptions import PollNotInProgressError
from ..storage import Bucket, Singleton, Storage


# ══════════════════════════════════════════════════════════════════════
#  GLOBAL CONFIG
# ══════════════════════════════════════════════════════════════════════

@dataclass
class State:
    """
    Contract-wide configuration.

    Fields:
        denom:          Denom accepted for staking
        owner:          Address that instantiated the contract
        poll_count:     Id of the most recently created poll
        staked_tokens:  Running sum of stake deltas (bookkeeping only)
    """
    denom: str
    owner: str
    poll_count: int = 0
    staked_tokens: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "denom": self.denom,
            "owner": self.owner,
            "poll_count": self.poll_count,
            "staked_tokens": str(self.staked_tokens),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "State":
        return cls(
            denom=data["denom"],
            owner=data["owner"],
            poll_count=int(data["poll_count"]),
            staked_tokens=int(data["staked_tokens"]),
        )


# ══════════════════════════════════════════════════════════════════════
#  CUSTODY RECORD
# ══════════════════════════════════════════════════════════════════════

@dataclass
class TokenManager:
    """Per-account stake and the locks held against open polls."""
    token_balance: int = 0
    locked_tokens: List[Tuple[int, int]] = field(default_factory=list)
    participated_polls: List[int] = field(default_factory=list)

    def largest_lock(self) -> int:
        """Largest single-poll lock; 0 when nothing is locked."""
        return max((amount for _, amount in self.locked_tokens), default=0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token_balance": str(self.token_balance),
            "locked_tokens": [[poll_id, str(amount)] for poll_id, amount in self.locked_tokens],
            "participated_polls": list(self.participated_polls),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenManager":
        return cls(
            token_balance=int(data["token_balance"]),
            locked_tokens=[(int(pid), int(amount)) for pid, amount in data["locked_tokens"]],
            participated_polls=[int(pid) for pid in data["participated_polls"]],
        )


# ══════════════════════════════════════════════════════════════════════
#  POLLS
# ══════════════════════════════════════════════════════════════════════

class PollStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    PASSED = "passed"
    REJECTED = "rejected"


# Valid forward transitions; finalized polls are immutable
_VALID_TRANSITIONS: Dict[PollStatus, set] = {
    PollStatus.IN_PROGRESS: {PollStatus.PASSED, PollStatus.REJECTED},
    PollStatus.PASSED:      set(),
    PollStatus.REJECTED:    set(),
}


@dataclass
class Voter:
    vote: str
    weight: int

    @property
    def is_yes(self) -> bool:
        # Plain string equality; anything other than "yes" counts against.
        return self.vote == VOTE_YES

    def to_dict(self) -> Dict[str, Any]:
        return {"vote": self.vote, "weight": str(self.weight)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Voter":
        return cls(vote=data["vote"], weight=int(data["weight"]))


@dataclass
class Poll:
    creator: str
    end_height: int
    description: str
    status: PollStatus = PollStatus.IN_PROGRESS
    quorum_percentage: Optional[int] = None
    yes_votes: int = 0
    no_votes: int = 0
    voters: List[str] = field(default_factory=list)
    voter_info: List[Voter] = field(default_factory=list)
    start_height: Optional[int] = None

    @property
    def is_in_progress(self) -> bool:
        return self.status == PollStatus.IN_PROGRESS

    def has_voted(self, address: str) -> bool:
        return address in self.voters

    def add_vote(self, voter: str, vote: str, weight: int) -> None:
        self.voters.append(voter)
        self.voter_info.append(Voter(vote=vote, weight=weight))

    def tally(self) -> Tuple[int, int]:
        """Return ``(yes, no)`` weight over all recorded votes."""
        yes = 0
        no = 0
        for voter in self.voter_info:
            if voter.is_yes:
                yes += voter.weight
            else:
                no += voter.weight
        return yes, no

    def transition_to(self, new_status: PollStatus) -> None:
        allowed = _VALID_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise PollNotInProgressError()
        self.status = new_status

    def to_dict(self) -> Dict[str, Any]:
        return {
            "creator": self.creator,
            "status": self.status.value,
            "quorum_percentage": self.quorum_percentage,
            "yes_votes": str(self.yes_votes),
            "no_votes": str(self.no_votes),
            "voters": list(self.voters),
            "voter_info": [v.to_dict() for v in self.voter_info],
            "end_height": self.end_height,
            "start_height": self.start_height,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Poll":
        return cls(
            creator=data["creator"],
            status=PollStatus(data["status"]),
            quorum_percentage=data.get("quorum_percentage"),
            yes_votes=int(data.get("yes_votes", "0")),
            no_votes=int(data.get("no_votes", "0")),
            voters=list(data.get("voters", [])),
            voter_info=[Voter.from_dict(v) for v in data.get("voter_info", [])],
            end_height=int(data["end_height"]),
            start_height=data.get("start_height"),
            description=data["description"],
        )

    def __repr__(self) -> str:
        return (
            f"<Poll creator={self.creator} status={self.status.value} "
            f"voters={len(self.voters)} end_height={self.end_height}>"
        )


# ══════════════════════════════════════════════════════════════════════
#  ACCESSORS
# ══════════════════════════════════════════════════════════════════════

def config(storage: Storage) -> Singleton[State]:
    return Singleton(storage, CONFIG_KEY, State)


def bank(storage: Storage) -> Bucket[TokenManager]:
    return Bucket(storage, BANK_NAMESPACE, TokenManager)


def poll(storage: Storage) -> Bucket[Poll]:
    return Bucket(storage, POLL_NAMESPACE, Poll)


def poll_key(poll_id: int) -> bytes:
    """8-byte big-endian key so polls iterate in creation order."""
    return poll_id.to_bytes(8, "big")


def account_key(address: str) -> bytes:
    return address.encode()
