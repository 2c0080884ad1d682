"""
Execution environment types.

Everything the contract receives from, or hands back to, the layer that
sequences requests: block info, the sender and attached funds, the response
(attributes, bank messages, data) and the injected collaborators bundled in
``Deps``.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple

from ..constants import UINT128_MAX, VALID_ADDRESS_PATTERN
from ..exceptions import ArithmeticOverflowError, InvalidAddressError, SerializeError
from ..storage import Storage


# ══════════════════════════════════════════════════════════════════════
#  UINT128 ARITHMETIC
# ══════════════════════════════════════════════════════════════════════

def checked_add(a: int, b: int) -> int:
    result = a + b
    if a < 0 or b < 0 or result > UINT128_MAX:
        raise ArithmeticOverflowError("add", a, b)
    return result


def checked_sub(a: int, b: int) -> int:
    if a < 0 or b < 0 or b > a:
        raise ArithmeticOverflowError("sub", a, b)
    return a - b


# ══════════════════════════════════════════════════════════════════════
#  COINS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Coin:
    denom: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {"denom": self.denom, "amount": str(self.amount)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Coin":
        return cls(denom=data["denom"], amount=int(data["amount"]))

    def __str__(self) -> str:
        return f"{self.amount} {self.denom}"


def coin(amount: int, denom: str) -> Coin:
    return Coin(denom=denom, amount=amount)


# ══════════════════════════════════════════════════════════════════════
#  ENVIRONMENT
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BlockInfo:
    height: int
    chain_id: str = "stakepoll-1"


@dataclass(frozen=True)
class Env:
    block: BlockInfo
    contract_address: str


@dataclass(frozen=True)
class MessageInfo:
    sender: str
    funds: Tuple[Coin, ...] = ()


# ══════════════════════════════════════════════════════════════════════
#  RESPONSE
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BankSend:
    """Transfer of ``amount`` from the contract account to ``to_address``."""
    to_address: str
    amount: Tuple[Coin, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bank": {
                "send": {
                    "to_address": self.to_address,
                    "amount": [c.to_dict() for c in self.amount],
                }
            }
        }


def attr(key: str, value: Any) -> Tuple[str, str]:
    """Attribute pair with the value rendered the way events carry it."""
    if isinstance(value, bool):
        value = "true" if value else "false"
    return key, str(value)


@dataclass
class Response:
    attributes: List[Tuple[str, str]] = field(default_factory=list)
    messages: List[BankSend] = field(default_factory=list)
    data: Optional[bytes] = None

    def add_attribute(self, key: str, value: Any) -> "Response":
        self.attributes.append(attr(key, value))
        return self

    def add_message(self, message: BankSend) -> "Response":
        self.messages.append(message)
        return self

    def attribute(self, key: str) -> Optional[str]:
        """Value of the first attribute named *key*."""
        for k, v in self.attributes:
            if k == key:
                return v
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attributes": [{"key": k, "value": v} for k, v in self.attributes],
            "messages": [m.to_dict() for m in self.messages],
            "data": self.data.decode() if self.data is not None else None,
        }


def to_binary(payload: Dict[str, Any]) -> bytes:
    try:
        return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode()
    except (TypeError, ValueError) as e:
        raise SerializeError(type(payload).__name__, str(e)) from e


# ══════════════════════════════════════════════════════════════════════
#  COLLABORATORS
# ══════════════════════════════════════════════════════════════════════

class BankQuerier(Protocol):
    def query_balance(self, address: str, denom: str) -> Coin:
        ...


class Api:
    """Address handling used by queries that take a caller-supplied address."""

    def addr_validate(self, address: str) -> str:
        if not isinstance(address, str) or not VALID_ADDRESS_PATTERN.match(address):
            raise InvalidAddressError(str(address))
        return address


@dataclass
class Deps:
    storage: Storage
    querier: BankQuerier
    api: Api = field(default_factory=Api)
