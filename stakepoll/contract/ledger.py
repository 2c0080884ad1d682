"""
Token Custody Ledger

Implements:
  - stake:    deposit the configured denom into the shared pool
  - withdraw: return unlocked stake to its owner
  - lock:     reserve stake behind an open poll (called by cast_vote)
  - unlock:   release a poll's reservation (called by end_poll)

Withdrawals are gated by the account's single largest lock, not by the sum
of its locks: the same stake may back votes in several open polls at once.
"""

from typing import Optional, Sequence

from ..constants import MIN_STAKE_AMOUNT
from ..exceptions import ExcessiveWithdrawError, NoStakeError
from ..logger import get_logger
from ..storage import Storage
from .coins import validate_sent_sufficient_coin
from .state import TokenManager, account_key, bank, config
from .types import (
    BankSend,
    Coin,
    Deps,
    Env,
    MessageInfo,
    Response,
    checked_add,
    checked_sub,
    coin,
)

logger = get_logger(__name__)


def stake_voting_tokens(deps: Deps, env: Env, info: MessageInfo) -> Response:
    key = account_key(info.sender)

    token_manager = bank(deps.storage).may_load(key) or TokenManager()
    state = config(deps.storage).load()

    funds = validate_sent_sufficient_coin(info.funds, coin(MIN_STAKE_AMOUNT, state.denom))

    token_manager.token_balance = checked_add(token_manager.token_balance, funds.amount)
    state.staked_tokens = checked_add(state.staked_tokens, funds.amount)

    config(deps.storage).save(state)
    bank(deps.storage).save(key, token_manager)

    logger.info(f"Stake: {info.sender} +{funds} (balance={token_manager.token_balance})")
    return Response()


def withdraw_voting_tokens(
    deps: Deps,
    env: Env,
    info: MessageInfo,
    amount: Optional[int] = None,
) -> Response:
    """
    Withdraw *amount* (default: the whole balance) back to the sender.

    Raises:
        NoStakeError:           sender never staked or voted
        ExcessiveWithdrawError: amount would dip into the largest lock
    """
    key = account_key(info.sender)

    token_manager = bank(deps.storage).may_load(key)
    if token_manager is None:
        raise NoStakeError()

    largest_staked = locked_amount(token_manager)
    withdraw_amount = token_manager.token_balance if amount is None else amount

    if largest_staked + withdraw_amount > token_manager.token_balance:
        max_amount = checked_sub(token_manager.token_balance, largest_staked)
        raise ExcessiveWithdrawError(max_amount=max_amount)

    token_manager.token_balance = checked_sub(token_manager.token_balance, withdraw_amount)
    bank(deps.storage).save(key, token_manager)

    state = config(deps.storage).load()
    state.staked_tokens = checked_sub(state.staked_tokens, withdraw_amount)
    config(deps.storage).save(state)

    logger.info(
        f"Withdraw: {info.sender} -{withdraw_amount} {state.denom} "
        f"(balance={token_manager.token_balance})"
    )
    return send_tokens(info.sender, [coin(withdraw_amount, state.denom)], "approve")


def lock_tokens(token_manager: TokenManager, poll_id: int, weight: int) -> None:
    """Reserve *weight* of the account's stake behind *poll_id*."""
    token_manager.participated_polls.append(poll_id)
    token_manager.locked_tokens.append((poll_id, weight))


def unlock_tokens(storage: Storage, voter: str, poll_id: int) -> None:
    """Drop the lock held for *poll_id*, keeping every other lock."""
    key = account_key(voter)
    token_manager = bank(storage).load(key)

    token_manager.locked_tokens = [
        (pid, amount) for pid, amount in token_manager.locked_tokens if pid != poll_id
    ]
    bank(storage).save(key, token_manager)


def locked_amount(token_manager: TokenManager) -> int:
    """Largest amount locked in any single participated poll."""
    return token_manager.largest_lock()


def send_tokens(to_address: str, amount: Sequence[Coin], action: str) -> Response:
    response = Response()
    response.add_attribute("action", action)
    response.add_attribute("to", to_address)
    response.add_message(BankSend(to_address=to_address, amount=tuple(amount)))
    return response
