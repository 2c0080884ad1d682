"""
StakePoll Exceptions

Every failure of a contract invocation is a ContractError subclass. Each
variant has a stable ``tag`` and carries its context as attributes, so the
caller can render a message without re-reading contract state.
"""

from typing import Any, Dict


class StakePollException(Exception):
    """Base exception for StakePoll."""
    pass


class ConfigurationError(StakePollException):
    """Configuration error."""
    pass


class ContractError(StakePollException):
    """Base class of all errors that abort a contract invocation."""

    tag = "contract_error"
    message = "Contract error"

    def __init__(self, **payload: Any):
        self.payload = payload
        for name, value in payload.items():
            setattr(self, name, value)
        super().__init__(self.render())

    def render(self) -> str:
        return self.message.format(**self.payload)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.tag, "message": str(self), **self.payload}

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and self.payload == other.payload

    def __hash__(self) -> int:
        return hash((type(self), tuple(sorted(self.payload.items()))))

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self.payload.items())
        return f"{type(self).__name__}({fields})"


# ══════════════════════════════════════════════════════════════════════
#  GENERIC / STORE ERRORS
# ══════════════════════════════════════════════════════════════════════

class StdError(ContractError):
    """Errors raised by the store, codecs and checked arithmetic."""
    tag = "std_error"


class NotFoundError(StdError):
    tag = "not_found"
    message = "{kind} not found"

    def __init__(self, kind: str):
        super().__init__(kind=kind)


class ParseError(StdError):
    tag = "parse_error"
    message = "Error parsing into type {target}: {msg}"

    def __init__(self, target: str, msg: str):
        super().__init__(target=target, msg=msg)


class SerializeError(StdError):
    tag = "serialize_error"
    message = "Error serializing type {source}: {msg}"

    def __init__(self, source: str, msg: str):
        super().__init__(source=source, msg=msg)


class ArithmeticOverflowError(StdError):
    """Checked arithmetic left the unsigned integer range."""
    tag = "overflow"
    message = "Cannot {operation} with {operand1} and {operand2}"

    def __init__(self, operation: str, operand1: int, operand2: int):
        super().__init__(operation=operation, operand1=operand1, operand2=operand2)


class InvalidAddressError(StdError):
    tag = "invalid_address"
    message = "Invalid address: {address}"

    def __init__(self, address: str):
        super().__init__(address=address)


class GenericError(StdError):
    tag = "generic_err"
    message = "Generic error: {msg}"

    def __init__(self, msg: str):
        super().__init__(msg=msg)


# ══════════════════════════════════════════════════════════════════════
#  CUSTODY LEDGER
# ══════════════════════════════════════════════════════════════════════

class InsufficientFundsError(ContractError):
    tag = "insufficient_funds"
    message = "Insufficient funds sent"

    def __init__(self):
        super().__init__()


class NoStakeError(ContractError):
    tag = "no_stake"
    message = "Nothing staked"

    def __init__(self):
        super().__init__()


class ExcessiveWithdrawError(ContractError):
    tag = "excessive_withdraw"
    message = "Cannot withdraw more than {max_amount} tokens"

    def __init__(self, max_amount: int):
        super().__init__(max_amount=max_amount)


# ══════════════════════════════════════════════════════════════════════
#  POLL VALIDATION
# ══════════════════════════════════════════════════════════════════════

class InvalidQuorumError(ContractError):
    tag = "invalid_quorum"
    message = "Quorum percentage must be between 0 and 100, got {quorum_percentage}"

    def __init__(self, quorum_percentage: int):
        super().__init__(quorum_percentage=quorum_percentage)


class PollCannotEndInPastError(ContractError):
    tag = "poll_cannot_end_in_past"
    message = "Poll cannot end in past"

    def __init__(self):
        super().__init__()


class DescriptionTooShortError(ContractError):
    tag = "description_too_short"
    message = "Description too short (minimum {min_desc_length} characters)"

    def __init__(self, min_desc_length: int):
        super().__init__(min_desc_length=min_desc_length)


class DescriptionTooLongError(ContractError):
    tag = "description_too_long"
    message = "Description too long (maximum {max_desc_length} characters)"

    def __init__(self, max_desc_length: int):
        super().__init__(max_desc_length=max_desc_length)


# ══════════════════════════════════════════════════════════════════════
#  POLL STATE PRECONDITIONS
# ══════════════════════════════════════════════════════════════════════

class PollNotExistError(ContractError):
    tag = "poll_not_exist"
    message = "Poll does not exist"

    def __init__(self):
        super().__init__()


class PollNotInProgressError(ContractError):
    tag = "poll_not_in_progress"
    message = "Poll is not in progress"

    def __init__(self):
        super().__init__()


class AlreadyVotedError(ContractError):
    tag = "already_voted"
    message = "Sender has already voted in poll"

    def __init__(self):
        super().__init__()


class InsufficientStakeError(ContractError):
    tag = "insufficient_stake"
    message = "User does not have enough staked tokens"

    def __init__(self):
        super().__init__()


class NotCreatorError(ContractError):
    tag = "not_creator"
    message = "Only the poll creator ({creator}) can end the poll, not {sender}"

    def __init__(self, creator: str, sender: str):
        super().__init__(creator=creator, sender=sender)


class VotingNotStartedError(ContractError):
    tag = "voting_not_started"
    message = "Voting period has not started (starts at height {start_height})"

    def __init__(self, start_height: int):
        super().__init__(start_height=start_height)


class VotingNotExpiredError(ContractError):
    tag = "voting_not_expired"
    message = "Voting period has not expired (expires at height {expire_height})"

    def __init__(self, expire_height: int):
        super().__init__(expire_height=expire_height)

