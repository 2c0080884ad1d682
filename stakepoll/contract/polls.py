"""
Poll Lifecycle

    create_poll ──► IN_PROGRESS ──end_poll──► PASSED
                        │                 └─► REJECTED
                    cast_vote

Votes are accepted whenever the poll is IN_PROGRESS; only end_poll looks at
block heights. Ending a poll releases every voter's lock on it.
"""

from typing import Optional

from ..constants import (
    DEFAULT_END_HEIGHT_BLOCKS,
    MAX_DESC_LENGTH,
    MAX_QUORUM_PERCENTAGE,
    MIN_DESC_LENGTH,
)
from ..exceptions import (
    AlreadyVotedError,
    DescriptionTooLongError,
    DescriptionTooShortError,
    InsufficientStakeError,
    InvalidQuorumError,
    NotCreatorError,
    PollCannotEndInPastError,
    PollNotExistError,
    PollNotInProgressError,
    VotingNotExpiredError,
    VotingNotStartedError,
)
from ..logger import get_logger
from .ledger import lock_tokens, unlock_tokens
from .quorum import resolve
from .state import Poll, PollStatus, TokenManager, account_key, bank, config, poll, poll_key
from .types import Deps, Env, MessageInfo, Response, to_binary

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  VALIDATION
# ══════════════════════════════════════════════════════════════════════

def validate_description(description: str) -> None:
    """Bounds are in UTF-8 bytes, not characters."""
    length = len(description.encode("utf-8"))
    if length < MIN_DESC_LENGTH:
        raise DescriptionTooShortError(min_desc_length=MIN_DESC_LENGTH)
    if length > MAX_DESC_LENGTH:
        raise DescriptionTooLongError(max_desc_length=MAX_DESC_LENGTH)


def validate_quorum_percentage(quorum_percentage: Optional[int]) -> None:
    """Quorum must be within 0-100 when given."""
    if quorum_percentage is not None and not 0 <= quorum_percentage <= MAX_QUORUM_PERCENTAGE:
        raise InvalidQuorumError(quorum_percentage=quorum_percentage)


def validate_end_height(end_height: Optional[int], env: Env) -> None:
    if end_height is not None and env.block.height >= end_height:
        raise PollCannotEndInPastError()


# ══════════════════════════════════════════════════════════════════════
#  OPERATIONS
# ══════════════════════════════════════════════════════════════════════

def create_poll(
    deps: Deps,
    env: Env,
    info: MessageInfo,
    quorum_percentage: Optional[int],
    description: str,
    start_height: Optional[int] = None,
    end_height: Optional[int] = None,
) -> Response:
    validate_quorum_percentage(quorum_percentage)
    validate_end_height(end_height, env)
    validate_description(description)

    state = config(deps.storage).load()
    poll_id = state.poll_count + 1
    state.poll_count = poll_id

    new_poll = Poll(
        creator=info.sender,
        status=PollStatus.IN_PROGRESS,
        quorum_percentage=quorum_percentage,
        end_height=end_height if end_height is not None else env.block.height + DEFAULT_END_HEIGHT_BLOCKS,
        start_height=start_height,
        description=description,
    )
    poll(deps.storage).save(poll_key(poll_id), new_poll)
    config(deps.storage).save(state)

    logger.info(
        f"Created poll #{poll_id} by {info.sender} "
        f"(quorum={quorum_percentage}, end_height={new_poll.end_height})"
    )

    response = Response(data=to_binary({"poll_id": poll_id}))
    response.add_attribute("action", "create_poll")
    response.add_attribute("creator", new_poll.creator)
    response.add_attribute("poll_id", poll_id)
    response.add_attribute("quorum_percentage", quorum_percentage or 0)
    response.add_attribute("end_height", new_poll.end_height)
    response.add_attribute("start_height", start_height or 0)
    return response


def cast_vote(
    deps: Deps,
    env: Env,
    info: MessageInfo,
    poll_id: int,
    vote: str,
    weight: int,
) -> Response:
    """
    Record *info.sender*'s vote on *poll_id* and lock *weight* of their stake.

    Raises:
        PollNotExistError:       poll_id is 0 or beyond the last created poll
        PollNotInProgressError:  poll already ended
        AlreadyVotedError:       sender voted on this poll before
        InsufficientStakeError:  weight exceeds the sender's balance
    """
    state = config(deps.storage).load()
    if poll_id == 0 or poll_id > state.poll_count:
        raise PollNotExistError()

    key = poll_key(poll_id)
    a_poll = poll(deps.storage).load(key)

    if not a_poll.is_in_progress:
        raise PollNotInProgressError()

    if a_poll.has_voted(info.sender):
        raise AlreadyVotedError()

    voter_key = account_key(info.sender)
    token_manager = bank(deps.storage).may_load(voter_key) or TokenManager()

    if token_manager.token_balance < weight:
        raise InsufficientStakeError()

    lock_tokens(token_manager, poll_id, weight)
    bank(deps.storage).save(voter_key, token_manager)

    a_poll.add_vote(info.sender, vote, weight)
    poll(deps.storage).save(key, a_poll)

    logger.info(f"Vote on poll #{poll_id}: {info.sender} weight={weight}")

    response = Response()
    response.add_attribute("action", "vote_casted")
    response.add_attribute("poll_id", poll_id)
    response.add_attribute("weight", weight)
    response.add_attribute("voter", info.sender)
    return response


def end_poll(deps: Deps, env: Env, info: MessageInfo, poll_id: int) -> Response:
    """
    Finalize *poll_id*. Only its creator may end it, and only once the
    voting period is over.
    """
    key = poll_key(poll_id)
    a_poll = poll(deps.storage).load(key)

    if a_poll.creator != info.sender:
        raise NotCreatorError(creator=a_poll.creator, sender=info.sender)

    if not a_poll.is_in_progress:
        raise PollNotInProgressError()

    if a_poll.start_height is not None and a_poll.start_height > env.block.height:
        raise VotingNotStartedError(start_height=a_poll.start_height)

    if a_poll.end_height > env.block.height:
        raise VotingNotExpiredError(expire_height=a_poll.end_height)

    yes, no = a_poll.tally()
    tallied_weight = yes + no

    pool_balance = 0
    if tallied_weight > 0:
        state = config(deps.storage).load()
        pool_balance = deps.querier.query_balance(env.contract_address, state.denom).amount

    outcome = resolve(tallied_weight, yes, a_poll.quorum_percentage, pool_balance)
    a_poll.transition_to(PollStatus.PASSED if outcome.passed else PollStatus.REJECTED)
    poll(deps.storage).save(key, a_poll)

    for voter in a_poll.voters:
        unlock_tokens(deps.storage, voter, poll_id)

    if outcome.passed:
        logger.info(f"Ended poll #{poll_id}: PASSED (yes={yes}, no={no}, quorum={outcome.quorum}%)")
    else:
        logger.info(
            f"Ended poll #{poll_id}: REJECTED (yes={yes}, no={no}) | {outcome.rejected_reason}"
        )

    response = Response()
    response.add_attribute("action", "end_poll")
    response.add_attribute("poll_id", poll_id)
    response.add_attribute("rejected_reason", outcome.rejected_reason)
    response.add_attribute("passed", outcome.passed)
    return response
