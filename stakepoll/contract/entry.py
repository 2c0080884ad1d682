"""
Contract entry points: instantiate, execute, query.

``execute`` and ``query`` accept either a message dataclass or its externally
tagged dict form. Failures raise a ContractError; rolling back the writes of a
failed invocation is the caller's job (see ``stakepoll.sandbox``).
"""

from typing import Any, Dict, Union

from ..exceptions import NotFoundError, ParseError
from ..logger import get_logger
from .ledger import stake_voting_tokens, withdraw_voting_tokens
from .msg import (
    CastVote,
    ConfigQuery,
    CreatePoll,
    EndPoll,
    ExecuteMsg,
    InstantiateMsg,
    PollQuery,
    PollResponse,
    QueryMsg,
    StakeVotingTokens,
    TokenStakeQuery,
    TokenStakeResponse,
    WithdrawVotingTokens,
    parse_execute_msg,
    parse_query_msg,
)
from .polls import cast_vote, create_poll, end_poll
from .state import State, TokenManager, account_key, bank, config, poll, poll_key
from .types import Deps, Env, MessageInfo, Response, to_binary

logger = get_logger(__name__)


def instantiate(deps: Deps, env: Env, info: MessageInfo, msg: InstantiateMsg) -> Response:
    if isinstance(msg, dict):
        msg = InstantiateMsg.from_dict(msg)

    state = State(
        denom=msg.denom,
        owner=info.sender,
        poll_count=0,
        staked_tokens=0,
    )
    config(deps.storage).save(state)

    logger.info(f"Instantiated: denom={state.denom} owner={state.owner}")
    return Response()


def execute(
    deps: Deps,
    env: Env,
    info: MessageInfo,
    msg: Union[ExecuteMsg, Dict[str, Any]],
) -> Response:
    if isinstance(msg, dict):
        msg = parse_execute_msg(msg)

    if isinstance(msg, StakeVotingTokens):
        return stake_voting_tokens(deps, env, info)
    if isinstance(msg, WithdrawVotingTokens):
        return withdraw_voting_tokens(deps, env, info, msg.amount)
    if isinstance(msg, CastVote):
        return cast_vote(deps, env, info, msg.poll_id, msg.vote, msg.weight)
    if isinstance(msg, EndPoll):
        return end_poll(deps, env, info, msg.poll_id)
    if isinstance(msg, CreatePoll):
        return create_poll(
            deps,
            env,
            info,
            msg.quorum_percentage,
            msg.description,
            msg.start_height,
            msg.end_height,
        )
    raise ParseError("ExecuteMsg", f"unsupported message {type(msg).__name__}")


def query(deps: Deps, env: Env, msg: Union[QueryMsg, Dict[str, Any]]) -> bytes:
    if isinstance(msg, dict):
        msg = parse_query_msg(msg)

    if isinstance(msg, ConfigQuery):
        return to_binary(config(deps.storage).load().to_dict())
    if isinstance(msg, TokenStakeQuery):
        return token_balance(deps, deps.api.addr_validate(msg.address))
    if isinstance(msg, PollQuery):
        return query_poll(deps, msg.poll_id)
    raise ParseError("QueryMsg", f"unsupported message {type(msg).__name__}")


def query_poll(deps: Deps, poll_id: int) -> bytes:
    a_poll = poll(deps.storage).may_load(poll_key(poll_id))
    if a_poll is None:
        raise NotFoundError("Poll")

    resp = PollResponse(
        creator=a_poll.creator,
        status=a_poll.status.value,
        quorum_percentage=a_poll.quorum_percentage,
        end_height=a_poll.end_height,
        start_height=a_poll.start_height,
        description=a_poll.description,
    )
    return to_binary(resp.to_dict())


def token_balance(deps: Deps, address: str) -> bytes:
    token_manager = bank(deps.storage).may_load(account_key(address)) or TokenManager()
    return to_binary(TokenStakeResponse(token_balance=token_manager.token_balance).to_dict())
