"""
Contract messages.

Messages are plain dataclasses. ``parse_execute_msg`` / ``parse_query_msg``
accept the externally tagged JSON shape, e.g.::

    {"cast_vote": {"poll_id": 1, "vote": "yes", "weight": "100"}}

128-bit amounts may be given as integers or decimal strings.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Type, Union

from ..constants import UINT64_MAX, UINT128_MAX
from ..exceptions import ParseError


def _uint(value: Any, maximum: int, target: str) -> int:
    if isinstance(value, bool):
        raise ParseError(target, f"expected unsigned integer, got {value!r}")
    if isinstance(value, str) and value.isdigit():
        value = int(value)
    if not isinstance(value, int) or value < 0 or value > maximum:
        raise ParseError(target, f"expected unsigned integer, got {value!r}")
    return value


def _opt_uint(value: Any, maximum: int, target: str) -> Optional[int]:
    return None if value is None else _uint(value, maximum, target)


def _str(value: Any, target: str) -> str:
    if not isinstance(value, str):
        raise ParseError(target, f"expected string, got {value!r}")
    return value


def _unwrap(data: Dict[str, Any], target: str):
    if not isinstance(data, dict) or len(data) != 1:
        raise ParseError(target, "expected an object with exactly one variant")
    (variant, body), = data.items()
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise ParseError(target, f"variant {variant!r} must carry an object")
    return variant, body


def _set(msg, name: str, value: Any) -> None:
    """Replace a field of a frozen message with its normalised value."""
    object.__setattr__(msg, name, value)


# ══════════════════════════════════════════════════════════════════════
#  INSTANTIATE
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class InstantiateMsg:
    denom: str

    def __post_init__(self):
        _str(self.denom, "InstantiateMsg.denom")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InstantiateMsg":
        return cls(denom=data.get("denom"))


# ══════════════════════════════════════════════════════════════════════
#  EXECUTE
# ══════════════════════════════════════════════════════════════════════
#
# Range checks run in __post_init__, so a message built directly from its
# dataclass is held to the same bounds as one parsed from JSON.

@dataclass(frozen=True)
class StakeVotingTokens:
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StakeVotingTokens":
        return cls()


@dataclass(frozen=True)
class WithdrawVotingTokens:
    amount: Optional[int] = None

    def __post_init__(self):
        _set(self, "amount", _opt_uint(self.amount, UINT128_MAX, "WithdrawVotingTokens.amount"))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WithdrawVotingTokens":
        return cls(amount=data.get("amount"))


@dataclass(frozen=True)
class CastVote:
    poll_id: int
    vote: str
    weight: int

    def __post_init__(self):
        _set(self, "poll_id", _uint(self.poll_id, UINT64_MAX, "CastVote.poll_id"))
        _str(self.vote, "CastVote.vote")
        _set(self, "weight", _uint(self.weight, UINT128_MAX, "CastVote.weight"))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CastVote":
        return cls(poll_id=data.get("poll_id"), vote=data.get("vote"), weight=data.get("weight"))


@dataclass(frozen=True)
class EndPoll:
    poll_id: int

    def __post_init__(self):
        _set(self, "poll_id", _uint(self.poll_id, UINT64_MAX, "EndPoll.poll_id"))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EndPoll":
        return cls(poll_id=data.get("poll_id"))


@dataclass(frozen=True)
class CreatePoll:
    description: str
    quorum_percentage: Optional[int] = None
    start_height: Optional[int] = None
    end_height: Optional[int] = None

    def __post_init__(self):
        _str(self.description, "CreatePoll.description")
        # u8 on the wire; the 0-100 range is a contract rule checked at execution
        _set(self, "quorum_percentage",
             _opt_uint(self.quorum_percentage, 255, "CreatePoll.quorum_percentage"))
        _set(self, "start_height", _opt_uint(self.start_height, UINT64_MAX, "CreatePoll.start_height"))
        _set(self, "end_height", _opt_uint(self.end_height, UINT64_MAX, "CreatePoll.end_height"))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CreatePoll":
        return cls(
            description=data.get("description"),
            quorum_percentage=data.get("quorum_percentage"),
            start_height=data.get("start_height"),
            end_height=data.get("end_height"),
        )


ExecuteMsg = Union[StakeVotingTokens, WithdrawVotingTokens, CastVote, EndPoll, CreatePoll]

_EXECUTE_VARIANTS: Dict[str, Type] = {
    "stake_voting_tokens": StakeVotingTokens,
    "withdraw_voting_tokens": WithdrawVotingTokens,
    "cast_vote": CastVote,
    "end_poll": EndPoll,
    "create_poll": CreatePoll,
}


def parse_execute_msg(data: Dict[str, Any]) -> ExecuteMsg:
    variant, body = _unwrap(data, "ExecuteMsg")
    msg_type = _EXECUTE_VARIANTS.get(variant)
    if msg_type is None:
        raise ParseError("ExecuteMsg", f"unknown variant {variant!r}")
    return msg_type.from_dict(body)


# ══════════════════════════════════════════════════════════════════════
#  QUERY
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ConfigQuery:
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConfigQuery":
        return cls()


@dataclass(frozen=True)
class TokenStakeQuery:
    address: str

    def __post_init__(self):
        _str(self.address, "TokenStakeQuery.address")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenStakeQuery":
        return cls(address=data.get("address"))


@dataclass(frozen=True)
class PollQuery:
    poll_id: int

    def __post_init__(self):
        _set(self, "poll_id", _uint(self.poll_id, UINT64_MAX, "PollQuery.poll_id"))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PollQuery":
        return cls(poll_id=data.get("poll_id"))


QueryMsg = Union[ConfigQuery, TokenStakeQuery, PollQuery]

_QUERY_VARIANTS: Dict[str, Type] = {
    "config": ConfigQuery,
    "token_stake": TokenStakeQuery,
    "poll": PollQuery,
}


def parse_query_msg(data: Dict[str, Any]) -> QueryMsg:
    variant, body = _unwrap(data, "QueryMsg")
    msg_type = _QUERY_VARIANTS.get(variant)
    if msg_type is None:
        raise ParseError("QueryMsg", f"unknown variant {variant!r}")
    return msg_type.from_dict(body)


# ══════════════════════════════════════════════════════════════════════
#  RESPONSES
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TokenStakeResponse:
    token_balance: int

    def to_dict(self) -> Dict[str, Any]:
        return {"token_balance": str(self.token_balance)}


@dataclass(frozen=True)
class PollResponse:
    creator: str
    status: str
    quorum_percentage: Optional[int]
    end_height: Optional[int]
    start_height: Optional[int]
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "creator": self.creator,
            "status": self.status,
            "quorum_percentage": self.quorum_percentage,
            "end_height": self.end_height,
            "start_height": self.start_height,
            "description": self.description,
        }
