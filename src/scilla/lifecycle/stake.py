"""Stake account lifecycle validation.

Each validator is a pure function of the decoded state, the caller and the
epoch facts it needs. It either returns the instructions that perform the
action or raises a `RejectionError` describing why the stake program would
refuse it. Nothing here touches the network.

Every `StakeState` variant is handled explicitly in each validator; a variant
that cannot start the action is rejected by name rather than falling through.
"""

from solders.instruction import Instruction
from solders.pubkey import Pubkey

from ..accounts.stake import (
    Delegated,
    Initialized,
    Meta,
    RewardsPool,
    StakeState,
    Uninitialized,
    state_label,
)
from ..constants import STAKE_PROGRAM_ID
from ..errors import (
    AccountAlreadyExistsError,
    AlreadyDeactivatingError,
    BelowMinimumDelegationError,
    BelowRentExemptionError,
    CoolingDownError,
    InsufficientBalanceError,
    InvalidDestinationStateError,
    InvalidSourceStateError,
    LockupInForceError,
    SameAccountError,
    SourceDeactivatingError,
    StillActiveError,
    WrongStateError,
)
from ..programs import stake as stake_program
from ..rpc.types import Account
from .common import reject, require_authority


def _meta_of(pubkey: Pubkey, state: StakeState, action: str) -> Meta:
    """Return the meta of an Initialized or Stake account, else reject."""
    if isinstance(state, (Initialized, Delegated)):
        return state.meta
    if isinstance(state, (Uninitialized, RewardsPool)):
        raise reject(WrongStateError(pubkey, action, state_label(state), ["initialized", "stake"]))
    raise reject(WrongStateError(pubkey, action, repr(state), ["initialized", "stake"]))


def validate_create(
    fee_payer: Pubkey,
    stake_pubkey: Pubkey,
    staker: Pubkey,
    withdrawer: Pubkey,
    lamports: int,
    rent_exempt_reserve: int,
    existing: Account | None,
    payer_lamports: int,
) -> list[Instruction]:
    """Validate creating and initializing a new stake account."""
    if fee_payer == stake_pubkey:
        raise reject(SameAccountError(stake_pubkey, "Stake account", "the fee payer"))
    if existing is not None:
        raise reject(
            AccountAlreadyExistsError(stake_pubkey, "stake", existing.owner == STAKE_PROGRAM_ID)
        )
    if lamports < rent_exempt_reserve:
        raise reject(BelowRentExemptionError(stake_pubkey, lamports, rent_exempt_reserve))
    if lamports > payer_lamports:
        raise reject(InsufficientBalanceError(fee_payer, lamports, payer_lamports))

    return stake_program.create_account(fee_payer, stake_pubkey, staker, withdrawer, lamports)


def validate_delegate(
    stake_pubkey: Pubkey,
    state: StakeState,
    vote_pubkey: Pubkey,
    caller: Pubkey,
    current_epoch: int,
) -> list[Instruction]:
    """
    Validate delegating a stake account to a vote account.

    Initialized accounts can be delegated directly. A delegated account can
    only be redelegated once its previous delegation has fully cooled down.
    """
    action = f"delegate {stake_pubkey}"
    if isinstance(state, Delegated):
        delegation = state.delegation
        if not delegation.is_deactivating:
            raise reject(
                WrongStateError(
                    stake_pubkey, "delegate", "stake (active)", ["initialized", "fully deactivated stake"]
                )
            )
        if not delegation.is_fully_deactivated(current_epoch):
            raise reject(
                CoolingDownError(stake_pubkey, delegation.deactivation_epoch, current_epoch)
            )
    meta = _meta_of(stake_pubkey, state, "delegate")
    require_authority(action, caller, [meta.authorized.staker])

    return [stake_program.delegate_stake(stake_pubkey, vote_pubkey, caller)]


def validate_deactivate(
    stake_pubkey: Pubkey,
    state: StakeState,
    caller: Pubkey,
) -> list[Instruction]:
    """
    Validate deactivating a delegated stake.

    An account that is already deactivating is rejected whatever the caller,
    so a second request never reaches the authority check.
    """
    if isinstance(state, Delegated):
        if state.delegation.is_deactivating:
            raise reject(
                AlreadyDeactivatingError(stake_pubkey, state.delegation.deactivation_epoch)
            )
        require_authority(f"deactivate {stake_pubkey}", caller, [state.meta.authorized.staker])
        return [stake_program.deactivate(stake_pubkey, caller)]
    if isinstance(state, (Uninitialized, Initialized, RewardsPool)):
        raise reject(WrongStateError(stake_pubkey, "deactivate", state_label(state), ["stake"]))
    raise reject(WrongStateError(stake_pubkey, "deactivate", repr(state), ["stake"]))


def validate_withdraw(
    stake_pubkey: Pubkey,
    state: StakeState,
    caller: Pubkey,
    recipient: Pubkey,
    lamports: int,
    account_lamports: int,
    current_epoch: int,
    now: int,
    custodian: Pubkey | None = None,
) -> list[Instruction]:
    """
    Validate withdrawing `lamports` from a stake account.

    Checks run in this order: account state and cooldown, withdraw authority,
    lockup, then balance.

    Args:
        stake_pubkey: The stake account
        state: Its decoded state
        caller: Signing identity, must be the withdrawer
        recipient: Account receiving the lamports
        lamports: Requested amount
        account_lamports: Current balance of the stake account
        current_epoch: Cluster epoch at fetch time
        now: Unix timestamp used for the lockup check
        custodian: Lockup custodian co-signing the withdrawal, if any
    """
    if isinstance(state, Delegated):
        delegation = state.delegation
        if not delegation.is_deactivating:
            raise reject(StillActiveError(stake_pubkey))
        if not delegation.is_fully_deactivated(current_epoch):
            raise reject(
                CoolingDownError(stake_pubkey, delegation.deactivation_epoch, current_epoch)
            )
    meta = _meta_of(stake_pubkey, state, "withdraw from")

    require_authority(f"withdraw from {stake_pubkey}", caller, [meta.authorized.withdrawer])

    lockup = meta.lockup
    if lockup.is_in_force(current_epoch, now) and custodian != lockup.custodian:
        raise reject(
            LockupInForceError(stake_pubkey, lockup.epoch, lockup.unix_timestamp, lockup.custodian)
        )

    if lamports > account_lamports:
        raise reject(InsufficientBalanceError(stake_pubkey, lamports, account_lamports))

    return [stake_program.withdraw(stake_pubkey, caller, recipient, lamports, custodian)]


def validate_merge(
    destination_pubkey: Pubkey,
    destination: StakeState,
    source_pubkey: Pubkey,
    source: StakeState,
    caller: Pubkey,
) -> list[Instruction]:
    """
    Validate merging `source` into `destination`.

    The two accounts must differ, the destination must be Initialized or
    Stake, and the source Initialized or an active Stake. The caller must be
    the staker of both, and two delegated accounts must share a vote account.
    """
    if destination_pubkey == source_pubkey:
        raise reject(SameAccountError(source_pubkey, "Merge source", "the destination"))

    if isinstance(destination, (Uninitialized, RewardsPool)):
        raise reject(InvalidDestinationStateError(destination_pubkey, state_label(destination)))
    if not isinstance(destination, (Initialized, Delegated)):
        raise reject(InvalidDestinationStateError(destination_pubkey, repr(destination)))

    if isinstance(source, Delegated) and source.delegation.is_deactivating:
        raise reject(SourceDeactivatingError(source_pubkey, source.delegation.deactivation_epoch))
    if isinstance(source, (Uninitialized, RewardsPool)):
        raise reject(InvalidSourceStateError(source_pubkey, state_label(source)))
    if not isinstance(source, (Initialized, Delegated)):
        raise reject(InvalidSourceStateError(source_pubkey, repr(source)))

    require_authority(f"merge {source_pubkey}", caller, [source.meta.authorized.staker])
    require_authority(
        f"merge into {destination_pubkey}", caller, [destination.meta.authorized.staker]
    )

    if isinstance(source, Delegated) and isinstance(destination, Delegated):
        source_voter = source.delegation.voter_pubkey
        destination_voter = destination.delegation.voter_pubkey
        if source_voter != destination_voter:
            raise reject(
                InvalidSourceStateError(
                    source_pubkey,
                    state_label(source),
                    f"delegated to {source_voter}, destination is delegated to {destination_voter}",
                )
            )

    return [stake_program.merge(destination_pubkey, source_pubkey, caller)]


def validate_split(
    stake_pubkey: Pubkey,
    state: StakeState,
    split_pubkey: Pubkey,
    caller: Pubkey,
    lamports: int,
    minimum_delegation: int,
    account_lamports: int,
    fee_payer: Pubkey,
    split_rent_reserve: int = 0,
) -> list[Instruction]:
    """
    Validate splitting `lamports` off `stake_pubkey` into a new account.

    The returned instructions prefund the new account with `split_rent_reserve`
    from the fee payer, allocate and assign it to the stake program, then split.
    """
    if stake_pubkey == split_pubkey:
        raise reject(SameAccountError(split_pubkey, "Split destination", "the source stake account"))
    if lamports < minimum_delegation:
        raise reject(BelowMinimumDelegationError(lamports, minimum_delegation))

    meta = _meta_of(stake_pubkey, state, "split")
    require_authority(f"split {stake_pubkey}", caller, [meta.authorized.staker])

    if lamports > account_lamports:
        raise reject(InsufficientBalanceError(stake_pubkey, lamports, account_lamports))

    return stake_program.split_into_new_account(
        stake_pubkey, split_pubkey, caller, lamports, fee_payer, split_rent_reserve
    )
