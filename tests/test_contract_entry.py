"""
Contract Entry Point Test Suite

End-to-end runs through the sandbox Chain: native funds move with every
invocation, failed invocations roll back storage and balances, and queries
return the JSON shapes clients read.

Coverage:
  - message parsing (externally tagged dicts)
  - config / token_stake / poll queries
  - full stake → vote → end → withdraw flows
  - atomicity of failed invocations
"""

import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from stakepoll.constants import DEFAULT_END_HEIGHT_BLOCKS, REJECTED_QUORUM
from stakepoll.contract import (
    CastVote,
    CreatePoll,
    EndPoll,
    StakeVotingTokens,
    WithdrawVotingTokens,
    parse_execute_msg,
    parse_query_msg,
    resolve,
)
from stakepoll.contract.msg import ConfigQuery, PollQuery, TokenStakeQuery
from stakepoll.contract.state import TokenManager, account_key, bank, config
from stakepoll.contract.types import BankSend, Coin
from stakepoll.exceptions import (
    AlreadyVotedError,
    ArithmeticOverflowError,
    DescriptionTooShortError,
    ExcessiveWithdrawError,
    GenericError,
    InsufficientFundsError,
    InvalidAddressError,
    InvalidQuorumError,
    NotFoundError,
    ParseError,
)
from stakepoll.sandbox import Chain


# ══════════════════════════════════════════════════════════════════════
#  HELPERS
# ══════════════════════════════════════════════════════════════════════

DENOM = "voting_token"
OWNER = "owner"
CREATOR = "creator"
ALICE = "alice"
BOB = "bob"
CAROL = "carol"


def make_chain(**balances) -> Chain:
    """Instantiated chain with *balances* minted in DENOM."""
    chain = Chain()
    chain.instantiate(OWNER, denom=DENOM)
    for address, amount in balances.items():
        chain.bank.mint(address, amount, DENOM)
    return chain


def stake(chain, address, amount):
    return chain.execute(address, {"stake_voting_tokens": {}}, funds=[Coin(DENOM, amount)])


def create(chain, description="test poll", quorum=None, sender=CREATOR, **heights):
    body = {"description": description, "quorum_percentage": quorum, **heights}
    return chain.execute(sender, {"create_poll": body})


def vote(chain, address, poll_id, choice, weight):
    return chain.execute(
        address, {"cast_vote": {"poll_id": poll_id, "vote": choice, "weight": str(weight)}}
    )


def end(chain, poll_id, sender=CREATOR):
    return chain.execute(sender, {"end_poll": {"poll_id": poll_id}})


def staked(chain, address) -> int:
    return int(chain.query({"token_stake": {"address": address}})["token_balance"])


# ══════════════════════════════════════════════════════════════════════
#  MESSAGE PARSING
# ══════════════════════════════════════════════════════════════════════

class TestMessageParsing:

    def test_execute_variants(self):
        assert parse_execute_msg({"stake_voting_tokens": {}}) == StakeVotingTokens()
        assert parse_execute_msg({"withdraw_voting_tokens": {}}) == WithdrawVotingTokens()
        assert parse_execute_msg({"withdraw_voting_tokens": {"amount": "12"}}) == \
            WithdrawVotingTokens(amount=12)
        assert parse_execute_msg({"end_poll": {"poll_id": 3}}) == EndPoll(poll_id=3)
        assert parse_execute_msg(
            {"cast_vote": {"poll_id": 1, "vote": "yes", "weight": "340282366920938463463374607431768211455"}}
        ) == CastVote(poll_id=1, vote="yes", weight=2 ** 128 - 1)
        assert parse_execute_msg({"create_poll": {"description": "abc"}}) == CreatePoll(description="abc")

    def test_query_variants(self):
        assert parse_query_msg({"config": {}}) == ConfigQuery()
        assert parse_query_msg({"token_stake": {"address": "alice"}}) == TokenStakeQuery("alice")
        assert parse_query_msg({"poll": {"poll_id": 7}}) == PollQuery(poll_id=7)

    @pytest.mark.parametrize("msg", [
        {"unknown": {}},
        {},
        {"end_poll": {"poll_id": 1}, "cast_vote": {}},
        {"end_poll": {"poll_id": -1}},
        {"end_poll": {"poll_id": True}},
        {"end_poll": {"poll_id": 2 ** 64}},
        {"cast_vote": {"poll_id": 1, "vote": "yes", "weight": 2 ** 128}},
        {"cast_vote": {"poll_id": 1, "vote": 1, "weight": 1}},
        {"create_poll": {"description": "abc", "quorum_percentage": 256}},
        {"create_poll": {}},
        {"stake_voting_tokens": []},
    ])
    def test_malformed_execute(self, msg):
        with pytest.raises(ParseError):
            parse_execute_msg(msg)

    def test_quorum_above_100_parses_but_fails_execution(self):
        assert parse_execute_msg(
            {"create_poll": {"description": "abc", "quorum_percentage": 200}}
        ).quorum_percentage == 200
        chain = make_chain()
        with pytest.raises(InvalidQuorumError):
            create(chain, quorum=200)

    def test_unknown_execute_raises_through_chain(self):
        chain = make_chain()
        with pytest.raises(ParseError):
            chain.execute(ALICE, {"burn": {}})

    def test_dataclass_messages_accepted(self):
        chain = make_chain(alice=10)
        chain.execute(ALICE, StakeVotingTokens(), funds=[Coin(DENOM, 10)])
        chain.execute(ALICE, WithdrawVotingTokens(amount=4))
        assert staked(chain, ALICE) == 6


# ══════════════════════════════════════════════════════════════════════
#  QUERIES
# ══════════════════════════════════════════════════════════════════════

class TestQueries:

    def test_config(self):
        chain = make_chain(alice=100)
        stake(chain, ALICE, 100)
        create(chain)
        assert chain.query({"config": {}}) == {
            "denom": DENOM,
            "owner": OWNER,
            "poll_count": 1,
            "staked_tokens": "100",
        }

    def test_token_stake_unknown_account_is_zero(self):
        chain = make_chain()
        assert chain.query({"token_stake": {"address": BOB}}) == {"token_balance": "0"}

    def test_token_stake_invalid_address(self):
        chain = make_chain()
        with pytest.raises(InvalidAddressError):
            chain.query({"token_stake": {"address": "Not An Address"}})

    def test_poll(self):
        chain = make_chain()
        create(chain, description="budget", quorum=25, start_height=5, end_height=500)
        assert chain.query({"poll": {"poll_id": 1}}) == {
            "creator": CREATOR,
            "status": "in_progress",
            "quorum_percentage": 25,
            "end_height": 500,
            "start_height": 5,
            "description": "budget",
        }

    def test_missing_poll(self):
        chain = make_chain()
        with pytest.raises(NotFoundError) as exc:
            chain.query({"poll": {"poll_id": 1}})
        assert exc.value.kind == "Poll"

    def test_malformed_query(self):
        chain = make_chain()
        with pytest.raises(ParseError):
            chain.query({"balances": {}})


# ══════════════════════════════════════════════════════════════════════
#  FLOWS
# ══════════════════════════════════════════════════════════════════════

class TestFlows:

    def test_stake_vote_end_passes(self):
        chain = make_chain(alice=100, bob=50)
        stake(chain, ALICE, 100)
        stake(chain, BOB, 50)
        create(chain, quorum=30)
        vote(chain, ALICE, 1, "yes", 100)
        vote(chain, BOB, 1, "no", 50)

        chain.advance(DEFAULT_END_HEIGHT_BLOCKS)
        resp = end(chain, 1)

        assert resp.attribute("passed") == "true"
        assert resp.attribute("rejected_reason") == ""
        assert chain.query({"poll": {"poll_id": 1}})["status"] == "passed"
        pool = chain.balance(chain.contract_address, DENOM)
        assert pool == 150
        assert resolve(150, 100, 30, pool).quorum == 100

    def test_partial_turnout_meets_quorum(self):
        chain = make_chain(alice=100, bob=50, carol=150)
        for address, amount in ((ALICE, 100), (BOB, 50), (CAROL, 150)):
            stake(chain, address, amount)
        create(chain, quorum=30)
        vote(chain, ALICE, 1, "yes", 100)
        vote(chain, BOB, 1, "no", 50)
        chain.advance(DEFAULT_END_HEIGHT_BLOCKS)

        # 150 of 300 staked voted: 50% participation
        assert end(chain, 1).attribute("passed") == "true"

    def test_low_turnout_rejected(self):
        chain = make_chain(alice=10, bob=90)
        stake(chain, ALICE, 10)
        stake(chain, BOB, 90)
        create(chain, quorum=30)
        vote(chain, ALICE, 1, "yes", 10)
        chain.advance(DEFAULT_END_HEIGHT_BLOCKS)

        resp = end(chain, 1)
        assert resp.attribute("passed") == "false"
        assert resp.attribute("rejected_reason") == REJECTED_QUORUM
        assert chain.query({"poll": {"poll_id": 1}})["status"] == "rejected"

    def test_full_withdraw_returns_funds(self):
        chain = make_chain(alice=100)
        stake(chain, ALICE, 100)
        assert chain.balance(ALICE, DENOM) == 0

        resp = chain.execute(ALICE, {"withdraw_voting_tokens": {}})
        assert resp.messages == [BankSend(to_address=ALICE, amount=(Coin(DENOM, 100),))]
        assert staked(chain, ALICE) == 0
        assert chain.balance(ALICE, DENOM) == 100
        assert chain.balance(chain.contract_address, DENOM) == 0
        assert chain.query({"config": {}})["staked_tokens"] == "0"

    def test_lock_released_after_end(self):
        chain = make_chain(alice=100)
        stake(chain, ALICE, 100)
        create(chain)
        create(chain)
        vote(chain, ALICE, 1, "yes", 100)
        vote(chain, ALICE, 2, "yes", 100)

        with pytest.raises(ExcessiveWithdrawError) as exc:
            chain.execute(ALICE, {"withdraw_voting_tokens": {"amount": "1"}})
        assert exc.value.max_amount == 0

        chain.advance(DEFAULT_END_HEIGHT_BLOCKS)
        end(chain, 1)
        with pytest.raises(ExcessiveWithdrawError):
            chain.execute(ALICE, {"withdraw_voting_tokens": {}})

        end(chain, 2)
        chain.execute(ALICE, {"withdraw_voting_tokens": {}})
        assert chain.balance(ALICE, DENOM) == 100

    def test_short_description_changes_nothing(self):
        chain = make_chain()
        with pytest.raises(DescriptionTooShortError) as exc:
            create(chain, description="ab")
        assert exc.value.min_desc_length == 3
        assert chain.query({"config": {}})["poll_count"] == 0
        with pytest.raises(NotFoundError):
            chain.query({"poll": {"poll_id": 1}})

    def test_poll_ids_are_sequential(self):
        chain = make_chain()
        ids = [int(create(chain).attribute("poll_id")) for _ in range(3)]
        assert ids == [1, 2, 3]


# ══════════════════════════════════════════════════════════════════════
#  ATOMICITY
# ══════════════════════════════════════════════════════════════════════

class TestAtomicity:

    def test_failed_stake_returns_funds(self):
        chain = make_chain()
        chain.bank.mint(ALICE, 100, "uatom")
        with pytest.raises(InsufficientFundsError):
            chain.execute(ALICE, {"stake_voting_tokens": {}}, funds=[Coin("uatom", 100)])
        assert chain.balance(ALICE, "uatom") == 100
        assert chain.balance(chain.contract_address, "uatom") == 0

    def test_unfunded_sender_rejected(self):
        chain = make_chain()
        with pytest.raises(GenericError):
            stake(chain, ALICE, 100)
        assert staked(chain, ALICE) == 0

    def test_partial_writes_are_rolled_back(self):
        chain = make_chain(alice=100)
        stake(chain, ALICE, 100)
        # Desynchronise the pool total so the second write of withdraw fails
        state = config(chain.storage).load()
        state.staked_tokens = 10
        config(chain.storage).save(state)

        with pytest.raises(ArithmeticOverflowError):
            chain.execute(ALICE, {"withdraw_voting_tokens": {"amount": "50"}})

        assert bank(chain.storage).load(account_key(ALICE)) == TokenManager(token_balance=100)
        assert chain.balance(ALICE, DENOM) == 0
        assert chain.balance(chain.contract_address, DENOM) == 100

    def test_rejected_vote_leaves_no_lock(self):
        chain = make_chain(alice=100)
        stake(chain, ALICE, 100)
        create(chain)
        vote(chain, ALICE, 1, "yes", 10)
        with pytest.raises(AlreadyVotedError):
            vote(chain, ALICE, 1, "no", 10)
        assert bank(chain.storage).load(account_key(ALICE)).locked_tokens == [(1, 10)]

    def test_advance_cannot_go_backwards(self):
        chain = make_chain()
        with pytest.raises(ValueError):
            chain.advance(-1)
