"""
Staking & Poll Contract

Provides:
  - instantiate / execute / query                       (entry.py)
  - State / TokenManager / Poll / PollStatus / Voter    (state.py)
  - stake / withdraw / lock / unlock                    (ledger.py)
  - create_poll / cast_vote / end_poll                  (polls.py)
  - resolve / PollOutcome                               (quorum.py)
"""

from .entry import execute, instantiate, query
from .msg import (
    CastVote,
    ConfigQuery,
    CreatePoll,
    EndPoll,
    InstantiateMsg,
    PollQuery,
    StakeVotingTokens,
    TokenStakeQuery,
    WithdrawVotingTokens,
    parse_execute_msg,
    parse_query_msg,
)
from .quorum import PollOutcome, resolve
from .state import Poll, PollStatus, State, TokenManager, Voter
from .types import (
    Api,
    BankSend,
    BlockInfo,
    Coin,
    Deps,
    Env,
    MessageInfo,
    Response,
    coin,
)

__all__ = [
    # Entry points
    "instantiate",
    "execute",
    "query",
    # Messages
    "InstantiateMsg",
    "StakeVotingTokens",
    "WithdrawVotingTokens",
    "CastVote",
    "EndPoll",
    "CreatePoll",
    "ConfigQuery",
    "TokenStakeQuery",
    "PollQuery",
    "parse_execute_msg",
    "parse_query_msg",
    # State
    "State",
    "TokenManager",
    "Poll",
    "PollStatus",
    "Voter",
    # Resolver
    "PollOutcome",
    "resolve",
    # Environment
    "Api",
    "BankSend",
    "BlockInfo",
    "Coin",
    "Deps",
    "Env",
    "MessageInfo",
    "Response",
    "coin",
]
