"""Error hierarchy for scilla.

Every failure an operation can produce is a `ScillaError`. The families are:

- input errors, raised before any network call
- lookup errors (`AccountNotFoundError`, `TransportError`)
- decode errors, raised when an address is not the expected account kind
- rejections, computed client-side from fetched state before anything is signed
- submission errors, returned by the network while sending or confirming

Rejections carry the observed and expected values both as attributes and in
the message, so the caller can act on them without another lookup.
"""

from typing import Any


class ScillaError(Exception):
    """Base class for all scilla errors."""

    pass


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class InvalidInputError(ScillaError):
    """Raised when a user-supplied value cannot be parsed or is out of range."""

    pass


class KeypairError(ScillaError):
    """Raised when a keypair file cannot be read or decoded."""

    def __init__(self, path: Any, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read keypair from {path}: {reason}")


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


class AccountNotFoundError(ScillaError):
    """Raised when a requested account does not exist on the cluster."""

    def __init__(self, pubkey: Any):
        self.pubkey = pubkey
        super().__init__(f"{pubkey} account does not exist")


class TransportError(ScillaError):
    """Raised when an RPC call fails at the HTTP or JSON-RPC level."""

    def __init__(
        self,
        method: str,
        message: str,
        code: int | None = None,
        data: Any = None,
    ):
        self.method = method
        self.message = message
        self.code = code
        self.data = data
        detail = f" (code {code})" if code is not None else ""
        super().__init__(f"RPC {method} failed{detail}: {message}")


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


class AccountDecodeError(ScillaError):
    """Base class for account decoding failures."""

    pass


class WrongOwnerError(AccountDecodeError):
    """Raised when an account is owned by a different program than expected."""

    def __init__(self, pubkey: Any, expected: Any, actual: Any):
        self.pubkey = pubkey
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{pubkey} is owned by {actual}, expected an account owned by {expected}"
        )


class MalformedAccountDataError(AccountDecodeError):
    """Raised when account bytes cannot be decoded into the expected state."""

    def __init__(self, pubkey: Any, kind: str, reason: str):
        self.pubkey = pubkey
        self.kind = kind
        self.reason = reason
        super().__init__(f"Account data of {pubkey} could not be decoded as {kind}: {reason}")


# ---------------------------------------------------------------------------
# Rejections
# ---------------------------------------------------------------------------


class RejectionError(ScillaError):
    """Base class for operations refused before submission."""

    pass


class NotAuthorizedError(RejectionError):
    """Raised when the signing identity is not an accepted authority."""

    def __init__(self, action: str, caller: Any, expected: list[Any]):
        self.action = action
        self.caller = caller
        self.expected = list(expected)
        accepted = " or ".join(str(e) for e in self.expected)
        super().__init__(f"Keypair {caller} is not authorized to {action}; expected {accepted}")


class WrongStateError(RejectionError):
    """Raised when an account is in a state the action cannot start from."""

    def __init__(self, pubkey: Any, action: str, observed: str, expected: list[str]):
        self.pubkey = pubkey
        self.action = action
        self.observed = observed
        self.expected = list(expected)
        super().__init__(
            f"Cannot {action} {pubkey}: account is {observed}, "
            f"expected {' or '.join(self.expected)}"
        )


class AlreadyDeactivatingError(RejectionError):
    """Raised when deactivating a stake that is already deactivating."""

    def __init__(self, pubkey: Any, deactivation_epoch: int):
        self.pubkey = pubkey
        self.deactivation_epoch = deactivation_epoch
        super().__init__(
            f"Stake account {pubkey} is already deactivating since epoch {deactivation_epoch}"
        )


class StillActiveError(RejectionError):
    """Raised when withdrawing from a delegated stake that was never deactivated."""

    def __init__(self, pubkey: Any):
        self.pubkey = pubkey
        super().__init__(f"Stake account {pubkey} is still active; deactivate it first")


class CoolingDownError(RejectionError):
    """Raised when withdrawing from a stake that has not finished cooling down."""

    def __init__(self, pubkey: Any, deactivation_epoch: int, current_epoch: int):
        self.pubkey = pubkey
        self.deactivation_epoch = deactivation_epoch
        self.current_epoch = current_epoch
        self.epochs_remaining = deactivation_epoch - current_epoch
        super().__init__(
            f"Stake account {pubkey} is cooling down: deactivated at epoch "
            f"{deactivation_epoch}, current epoch {current_epoch} "
            f"({self.epochs_remaining} epoch(s) remaining)"
        )


class InvalidDestinationStateError(RejectionError):
    """Raised when a merge destination is not Initialized or Stake."""

    def __init__(self, pubkey: Any, observed: str):
        self.pubkey = pubkey
        self.observed = observed
        super().__init__(
            f"Merge destination {pubkey} is {observed}, expected initialized or stake"
        )


class InvalidSourceStateError(RejectionError):
    """Raised when a merge source cannot be merged."""

    def __init__(self, pubkey: Any, observed: str, reason: str | None = None):
        self.pubkey = pubkey
        self.observed = observed
        self.reason = reason
        suffix = f" ({reason})" if reason else ""
        super().__init__(f"Merge source {pubkey} is {observed} and cannot be merged{suffix}")


class SourceDeactivatingError(RejectionError):
    """Raised when a merge source stake is deactivating."""

    def __init__(self, pubkey: Any, deactivation_epoch: int):
        self.pubkey = pubkey
        self.deactivation_epoch = deactivation_epoch
        super().__init__(
            f"Merge source {pubkey} is deactivating since epoch {deactivation_epoch}"
        )


class SameAccountError(RejectionError):
    """Raised when two roles that must differ point to the same address."""

    def __init__(self, pubkey: Any, first_role: str, second_role: str):
        self.pubkey = pubkey
        self.first_role = first_role
        self.second_role = second_role
        super().__init__(f"{first_role} {pubkey} cannot be the same as {second_role}")


class BelowMinimumDelegationError(RejectionError):
    """Raised when a split amount is below the cluster's minimum delegation."""

    def __init__(self, requested: int, minimum: int):
        self.requested = requested
        self.minimum = minimum
        super().__init__(
            f"Requested {requested} lamports is below the minimum delegation of {minimum} lamports"
        )


class BelowRentExemptionError(RejectionError):
    """Raised when a new account would be funded below its rent-exempt minimum."""

    def __init__(self, pubkey: Any, requested: int, minimum: int):
        self.pubkey = pubkey
        self.requested = requested
        self.minimum = minimum
        super().__init__(
            f"Funding {pubkey} with {requested} lamports is below the rent-exempt "
            f"minimum of {minimum} lamports"
        )


class InsufficientBalanceError(RejectionError):
    """Raised when an account does not hold the requested lamports."""

    def __init__(self, pubkey: Any, requested: int, available: int):
        self.pubkey = pubkey
        self.requested = requested
        self.available = available
        super().__init__(
            f"Account {pubkey} holds {available} lamports, {requested} lamports requested"
        )


class AccountAlreadyExistsError(RejectionError):
    """Raised when creating an account at an address that is already in use."""

    def __init__(self, pubkey: Any, kind: str, is_expected_kind: bool):
        self.pubkey = pubkey
        self.kind = kind
        self.is_expected_kind = is_expected_kind
        if is_expected_kind:
            message = f"{kind.capitalize()} account {pubkey} already exists"
        else:
            message = f"Account {pubkey} already exists and is not a {kind} account"
        super().__init__(message)

    @property
    def is_vote_account(self) -> bool:
        return self.kind == "vote" and self.is_expected_kind


class ActiveStakeError(RejectionError):
    """Raised when closing a vote account that still has stake delegated to it."""

    def __init__(self, pubkey: Any, activated_stake: int):
        self.pubkey = pubkey
        self.activated_stake = activated_stake
        super().__init__(
            f"Cannot close vote account with active stake: {pubkey} "
            f"({activated_stake} lamports activated)"
        )


class ZeroBalanceError(RejectionError):
    """Raised when there is nothing to reclaim from an account."""

    def __init__(self, pubkey: Any):
        self.pubkey = pubkey
        super().__init__(f"Vote account {pubkey} has zero balance")


class LockupInForceError(RejectionError):
    """Raised when withdrawing from a stake account whose lockup has not expired."""

    def __init__(self, pubkey: Any, lockup_epoch: int, lockup_unix_timestamp: int, custodian: Any):
        self.pubkey = pubkey
        self.lockup_epoch = lockup_epoch
        self.lockup_unix_timestamp = lockup_unix_timestamp
        self.custodian = custodian
        super().__init__(
            f"Stake account {pubkey} is locked up until epoch {lockup_epoch} / "
            f"unix time {lockup_unix_timestamp} (custodian {custodian})"
        )


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


class SubmissionError(ScillaError):
    """Base class for failures while signing, sending or confirming."""

    pass


class SigningError(SubmissionError):
    """Raised when the provided signers do not match the message's signers."""

    def __init__(self, message: str, missing: list[Any] | None = None, unexpected: list[Any] | None = None):
        self.missing = list(missing or [])
        self.unexpected = list(unexpected or [])
        super().__init__(message)


class TransactionRejectedError(SubmissionError):
    """Raised when the cluster refuses a transaction at send time."""

    def __init__(self, message: str, code: int | None = None, logs: list[str] | None = None):
        self.message = message
        self.code = code
        self.logs = list(logs or [])
        super().__init__(f"Transaction rejected: {message}")


class TransactionFailedError(SubmissionError):
    """Raised when a transaction lands with an on-chain error."""

    def __init__(self, signature: Any, err: Any):
        self.signature = signature
        self.err = err
        super().__init__(f"Transaction {signature} failed: {err}")


class BlockhashExpiredError(SubmissionError):
    """Raised when a transaction was not confirmed before its blockhash expired."""

    def __init__(self, signature: Any, last_valid_block_height: int):
        self.signature = signature
        self.last_valid_block_height = last_valid_block_height
        super().__init__(
            f"Transaction {signature} was not confirmed before block height "
            f"{last_valid_block_height}; blockhash expired"
        )
