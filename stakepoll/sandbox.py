"""
Execution Sandbox

A single-process stand-in for the chain that hosts the contract:

  - keeps native-token balances (``MemoryBank``) and the block height
  - moves attached funds to the contract before an invocation
  - runs every ``execute`` inside a storage Transaction
  - pays out the BankSend messages of a successful invocation

An invocation that raises leaves storage and balances exactly as they were.
"""

import json
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from .config import StakePollConfig
from .contract import entry
from .contract.msg import InstantiateMsg
from .contract.state import config as contract_config
from .contract.types import Api, BlockInfo, Coin, Deps, Env, MessageInfo, Response
from .exceptions import ConfigurationError, GenericError
from .logger import get_logger, set_log_level
from .storage import MemoryStorage, SQLiteStorage, Storage, Transaction

logger = get_logger(__name__)


class MemoryBank:
    """Native-token balances keyed by ``(address, denom)``."""

    def __init__(self):
        self._balances: Dict[Tuple[str, str], int] = {}

    def query_balance(self, address: str, denom: str) -> Coin:
        return Coin(denom=denom, amount=self._balances.get((address, denom), 0))

    def mint(self, address: str, amount: int, denom: str) -> None:
        if amount < 0:
            raise GenericError("Cannot mint a negative amount")
        key = (address, denom)
        self._balances[key] = self._balances.get(key, 0) + amount

    def transfer(self, sender: str, recipient: str, coins: Iterable[Coin]) -> None:
        for c in coins:
            if c.amount < 0:
                raise GenericError(f"Cannot transfer a negative amount of {c.denom}")
            available = self._balances.get((sender, c.denom), 0)
            if available < c.amount:
                raise GenericError(
                    f"{sender} balance {available} {c.denom} < transfer amount {c.amount}"
                )
            self._balances[(sender, c.denom)] = available - c.amount
            key = (recipient, c.denom)
            self._balances[key] = self._balances.get(key, 0) + c.amount

    def snapshot(self) -> Dict[Tuple[str, str], int]:
        return dict(self._balances)

    def restore(self, snapshot: Dict[Tuple[str, str], int]) -> None:
        self._balances = dict(snapshot)


class Chain:
    """
    Serial sequencer for one contract instance.

    Usage:
        >>> chain = Chain()
        >>> chain.instantiate("owner", denom="voting_token")
        >>> chain.bank.mint("alice", 100, "voting_token")
        >>> chain.execute("alice", {"stake_voting_tokens": {}}, funds=[Coin("voting_token", 100)])
    """

    def __init__(
        self,
        storage: Optional[Storage] = None,
        contract_address: str = "stakepollcontract",
        height: int = 1,
        chain_id: str = "stakepoll-1",
    ):
        self.storage = storage if storage is not None else MemoryStorage()
        self.contract_address = contract_address
        self.height = height
        self.chain_id = chain_id
        self.bank = MemoryBank()
        self.api = Api()

    @classmethod
    def from_config(cls, cfg: StakePollConfig, height: int = 1) -> "Chain":
        """
        Build a chain (and its store) from validated configuration.

        A store without contract state is instantiated by the configured
        owner for the configured denom; an existing store is reused as is.
        """
        try:
            cfg.validate()
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        set_log_level(cfg.logging.level)

        if cfg.store.backend == "sqlite":
            storage: Storage = SQLiteStorage(cfg.store.sqlite.path, wal_mode=cfg.store.sqlite.wal_mode)
        else:
            storage = MemoryStorage()
        chain = cls(storage=storage, contract_address=cfg.contract.address, height=height)

        if contract_config(chain.storage).may_load() is None:
            chain.instantiate(cfg.contract.owner, denom=cfg.contract.denom)
        return chain

    # ── Environment ───────────────────────────────────────────────────

    @property
    def env(self) -> Env:
        return Env(block=BlockInfo(height=self.height, chain_id=self.chain_id),
                   contract_address=self.contract_address)

    def advance(self, blocks: int = 1) -> int:
        """Move the block height forward and return the new height."""
        if blocks < 0:
            raise ValueError("Block height cannot go backwards")
        self.height += blocks
        return self.height

    def balance(self, address: str, denom: str) -> int:
        return self.bank.query_balance(address, denom).amount

    # ── Invocations ───────────────────────────────────────────────────

    def _run(self, sender: str, funds: Iterable[Coin], call) -> Response:
        funds = tuple(funds)
        bank_snapshot = self.bank.snapshot()
        tx = Transaction(self.storage)
        try:
            self.bank.transfer(sender, self.contract_address, funds)
            deps = Deps(storage=tx, querier=self.bank, api=self.api)
            response = call(deps, MessageInfo(sender=sender, funds=funds))
            for message in response.messages:
                self.bank.transfer(self.contract_address, message.to_address, message.amount)
            tx.commit()
        except Exception as e:
            tx.rollback()
            self.bank.restore(bank_snapshot)
            logger.warning(f"Invocation by {sender} rolled back at height {self.height}: {e}")
            raise
        return response

    def instantiate(self, sender: str, denom: Optional[str] = None,
                    msg: Optional[InstantiateMsg] = None) -> Response:
        if msg is None:
            if denom is None:
                raise ValueError("instantiate needs a denom or an InstantiateMsg")
            msg = InstantiateMsg(denom=denom)
        return self._run(sender, (), lambda deps, info: entry.instantiate(deps, self.env, info, msg))

    def execute(self, sender: str, msg: Union[Any, Dict[str, Any]],
                funds: Iterable[Coin] = ()) -> Response:
        return self._run(sender, funds, lambda deps, info: entry.execute(deps, self.env, info, msg))

    def query(self, msg: Union[Any, Dict[str, Any]]) -> Dict[str, Any]:
        deps = Deps(storage=self.storage, querier=self.bank, api=self.api)
        return json.loads(entry.query(deps, self.env, msg))

    def __repr__(self) -> str:
        return f"<Chain height={self.height} contract={self.contract_address}>"
