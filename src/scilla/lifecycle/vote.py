"""Vote account lifecycle validation.

Pure checks over a decoded `VoteState` (or, for creation, the account found
at the target address). Each returns the instructions to submit or raises a
`RejectionError`.
"""

from solders.instruction import Instruction
from solders.pubkey import Pubkey

from ..accounts.vote import VoteState
from ..constants import VOTE_PROGRAM_ID
from ..errors import (
    AccountAlreadyExistsError,
    ActiveStakeError,
    InsufficientBalanceError,
    SameAccountError,
    WrongStateError,
    ZeroBalanceError,
)
from ..models import Commission
from ..programs import vote as vote_program
from ..programs.vote import InitializeParams, VoteAuthorize
from ..rpc.types import Account, VoteAccountInfo
from .common import reject, require_authority


def validate_create(
    fee_payer: Pubkey,
    vote_pubkey: Pubkey,
    identity: Pubkey,
    authorized_withdrawer: Pubkey,
    commission: Commission,
    rent_exempt_minimum: int,
    existing: Account | None,
) -> list[Instruction]:
    """
    Validate creating a vote account at `vote_pubkey`.

    The identity becomes the initial authorized voter. The account is funded
    with the rent-exempt minimum for a full vote state.

    Raises:
        SameAccountError: If the vote account is the fee payer or the identity
        AccountAlreadyExistsError: If anything already lives at `vote_pubkey`
    """
    if fee_payer == vote_pubkey:
        raise reject(SameAccountError(vote_pubkey, "Vote account", "the fee payer"))
    if vote_pubkey == identity:
        raise reject(SameAccountError(vote_pubkey, "Vote account", "the validator identity"))
    if existing is not None:
        raise reject(
            AccountAlreadyExistsError(vote_pubkey, "vote", existing.owner == VOTE_PROGRAM_ID)
        )

    params = InitializeParams(
        vote=vote_pubkey,
        node=identity,
        authorized_voter=identity,
        authorized_withdrawer=authorized_withdrawer,
        commission=commission.value,
    )
    return vote_program.create_account(fee_payer, params, max(rent_exempt_minimum, 1))


def validate_authorize(
    vote_pubkey: Pubkey,
    state: VoteState,
    caller: Pubkey,
    new_authority: Pubkey,
    vote_authorize: VoteAuthorize,
    current_epoch: int,
) -> list[Instruction]:
    """
    Validate rotating the voter or withdrawer of a vote account.

    A new voter may be set by the voter authorized for `current_epoch` (looked
    up by epoch, not the newest entry) or by the withdrawer. A new withdrawer
    may only be set by the current withdrawer.
    """
    if vote_authorize == VoteAuthorize.WITHDRAWER:
        require_authority(
            f"change the withdrawer of {vote_pubkey}", caller, [state.authorized_withdrawer]
        )
    else:
        current_voter = state.authorized_voter_for(current_epoch)
        if current_voter is None:
            raise reject(
                WrongStateError(
                    vote_pubkey,
                    "change the voter of",
                    f"without an authorized voter for epoch {current_epoch}",
                    ["a vote account with an authorized voter"],
                )
            )
        require_authority(
            f"change the voter of {vote_pubkey}",
            caller,
            [current_voter, state.authorized_withdrawer],
        )

    return [vote_program.authorize(vote_pubkey, caller, new_authority, vote_authorize)]


def validate_withdraw(
    vote_pubkey: Pubkey,
    state: VoteState,
    caller: Pubkey,
    recipient: Pubkey,
    lamports: int,
    account_lamports: int,
    rent_exempt_minimum: int = 0,
) -> list[Instruction]:
    """
    Validate a partial withdrawal from a vote account.

    The caller must be the withdrawer. Whatever stays behind must still cover
    the rent-exempt minimum; emptying the account is what `validate_close` is for.
    """
    require_authority(f"withdraw from {vote_pubkey}", caller, [state.authorized_withdrawer])

    available = max(account_lamports - rent_exempt_minimum, 0)
    if lamports > available:
        raise reject(InsufficientBalanceError(vote_pubkey, lamports, available))

    return [vote_program.withdraw(vote_pubkey, caller, recipient, lamports)]


def validate_close(
    vote_pubkey: Pubkey,
    state: VoteState,
    caller: Pubkey,
    recipient: Pubkey,
    balance: int,
    cluster_info: VoteAccountInfo | None,
) -> list[Instruction]:
    """
    Validate closing a vote account by withdrawing its whole balance.

    `cluster_info` is the account's entry in the cluster vote-accounts view,
    which is where activated stake is reported; None means the cluster does
    not list it, so nothing is activated.
    """
    if cluster_info is not None and cluster_info.activated_stake != 0:
        raise reject(ActiveStakeError(vote_pubkey, cluster_info.activated_stake))
    if balance == 0:
        raise reject(ZeroBalanceError(vote_pubkey))

    require_authority(f"close {vote_pubkey}", caller, [state.authorized_withdrawer])

    return [vote_program.withdraw(vote_pubkey, caller, recipient, balance)]
