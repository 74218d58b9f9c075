"""Helpers shared by the stake and vote validators."""

from collections.abc import Sequence

from solders.pubkey import Pubkey

from ..errors import NotAuthorizedError, RejectionError
from ..logging import get_logger

logger = get_logger("lifecycle")


def reject(error: RejectionError) -> RejectionError:
    """Log a rejection and hand it back to be raised."""
    fields = {"rejection": type(error).__name__}
    pubkey = getattr(error, "pubkey", None) or getattr(error, "caller", None)
    if pubkey is not None:
        fields["pubkey"] = str(pubkey)
    logger.info("Rejected: %s", error, extra={"extra": fields})
    return error


def require_authority(action: str, caller: Pubkey, accepted: Sequence[Pubkey | None]) -> None:
    """Raise `NotAuthorizedError` unless `caller` is one of `accepted`."""
    candidates = [a for a in accepted if a is not None]
    if caller not in candidates:
        raise reject(NotAuthorizedError(action, caller, candidates))
