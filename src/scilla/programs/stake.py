"""Stake program instructions."""

from enum import IntEnum

from construct import Bytes, Int32ul, Int64sl, Int64ul, Pass, Struct, Switch  # type: ignore
from solders import system_program
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.sysvar import CLOCK, RENT

from ..constants import (
    STAKE_PROGRAM_ID,
    STAKE_STATE_SIZE,
    SYSVAR_STAKE_CONFIG_ID,
    SYSVAR_STAKE_HISTORY_ID,
)

PUBLIC_KEY_LAYOUT = Bytes(32)


class InstructionType(IntEnum):
    """Stake Instruction Types."""

    INITIALIZE = 0
    DELEGATE_STAKE = 2
    SPLIT = 3
    WITHDRAW = 4
    DEACTIVATE = 5
    MERGE = 7


AUTHORIZED_LAYOUT = Struct(
    "staker" / PUBLIC_KEY_LAYOUT,
    "withdrawer" / PUBLIC_KEY_LAYOUT,
)

LOCKUP_LAYOUT = Struct(
    "unix_timestamp" / Int64sl,
    "epoch" / Int64ul,
    "custodian" / PUBLIC_KEY_LAYOUT,
)

INITIALIZE_LAYOUT = Struct(
    "authorized" / AUTHORIZED_LAYOUT,
    "lockup" / LOCKUP_LAYOUT,
)

LAMPORTS_LAYOUT = Struct(
    "lamports" / Int64ul,
)

INSTRUCTIONS_LAYOUT = Struct(
    "instruction_type" / Int32ul,
    "args"
    / Switch(
        lambda this: this.instruction_type,
        {
            InstructionType.INITIALIZE: INITIALIZE_LAYOUT,
            InstructionType.DELEGATE_STAKE: Pass,
            InstructionType.SPLIT: LAMPORTS_LAYOUT,
            InstructionType.WITHDRAW: LAMPORTS_LAYOUT,
            InstructionType.DEACTIVATE: Pass,
            InstructionType.MERGE: Pass,
        },
    ),
)


def _encode(instruction_type: InstructionType, args: dict | None = None) -> bytes:
    return INSTRUCTIONS_LAYOUT.build(dict(instruction_type=instruction_type, args=args))


def initialize(
    stake: Pubkey,
    staker: Pubkey,
    withdrawer: Pubkey,
    lockup_epoch: int = 0,
    lockup_unix_timestamp: int = 0,
    custodian: Pubkey | None = None,
) -> Instruction:
    """Creates an instruction to initialize a new stake account."""
    data = _encode(
        InstructionType.INITIALIZE,
        dict(
            authorized=dict(staker=bytes(staker), withdrawer=bytes(withdrawer)),
            lockup=dict(
                unix_timestamp=lockup_unix_timestamp,
                epoch=lockup_epoch,
                custodian=bytes(custodian or Pubkey.default()),
            ),
        ),
    )
    return Instruction(
        program_id=STAKE_PROGRAM_ID,
        accounts=[
            AccountMeta(pubkey=stake, is_signer=False, is_writable=True),
            AccountMeta(pubkey=RENT, is_signer=False, is_writable=False),
        ],
        data=data,
    )


def create_account(
    from_pubkey: Pubkey,
    stake: Pubkey,
    staker: Pubkey,
    withdrawer: Pubkey,
    lamports: int,
) -> list[Instruction]:
    """Creates the instructions that fund, allocate and initialize a stake account."""
    return [
        system_program.create_account(
            system_program.CreateAccountParams(
                from_pubkey=from_pubkey,
                to_pubkey=stake,
                lamports=lamports,
                space=STAKE_STATE_SIZE,
                owner=STAKE_PROGRAM_ID,
            )
        ),
        initialize(stake, staker, withdrawer),
    ]


def delegate_stake(stake: Pubkey, vote: Pubkey, staker: Pubkey) -> Instruction:
    """Creates an instruction to delegate a stake account to a vote account."""
    return Instruction(
        program_id=STAKE_PROGRAM_ID,
        accounts=[
            AccountMeta(pubkey=stake, is_signer=False, is_writable=True),
            AccountMeta(pubkey=vote, is_signer=False, is_writable=False),
            AccountMeta(pubkey=CLOCK, is_signer=False, is_writable=False),
            AccountMeta(pubkey=SYSVAR_STAKE_HISTORY_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=SYSVAR_STAKE_CONFIG_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=staker, is_signer=True, is_writable=False),
        ],
        data=_encode(InstructionType.DELEGATE_STAKE),
    )


def split(stake: Pubkey, split_stake: Pubkey, staker: Pubkey, lamports: int) -> Instruction:
    """Creates an instruction moving `lamports` from `stake` into `split_stake`."""
    return Instruction(
        program_id=STAKE_PROGRAM_ID,
        accounts=[
            AccountMeta(pubkey=stake, is_signer=False, is_writable=True),
            AccountMeta(pubkey=split_stake, is_signer=False, is_writable=True),
            AccountMeta(pubkey=staker, is_signer=True, is_writable=False),
        ],
        data=_encode(InstructionType.SPLIT, dict(lamports=lamports)),
    )


def split_into_new_account(
    stake: Pubkey,
    split_stake: Pubkey,
    staker: Pubkey,
    lamports: int,
    fee_payer: Pubkey,
    rent_exempt_reserve: int = 0,
) -> list[Instruction]:
    """
    Creates the instructions that split into a not-yet-existing account.

    The new account is prefunded with its rent-exempt reserve by the fee
    payer, sized and assigned to the stake program, then receives the split.
    `split_stake` must sign the allocate and assign steps.
    """
    instructions = []
    if rent_exempt_reserve > 0:
        instructions.append(
            system_program.transfer(
                system_program.TransferParams(
                    from_pubkey=fee_payer, to_pubkey=split_stake, lamports=rent_exempt_reserve
                )
            )
        )
    instructions.extend(
        [
            system_program.allocate(
                system_program.AllocateParams(pubkey=split_stake, space=STAKE_STATE_SIZE)
            ),
            system_program.assign(
                system_program.AssignParams(pubkey=split_stake, owner=STAKE_PROGRAM_ID)
            ),
            split(stake, split_stake, staker, lamports),
        ]
    )
    return instructions


def withdraw(
    stake: Pubkey,
    withdrawer: Pubkey,
    recipient: Pubkey,
    lamports: int,
    custodian: Pubkey | None = None,
) -> Instruction:
    """Creates an instruction to withdraw lamports from a stake account."""
    accounts = [
        AccountMeta(pubkey=stake, is_signer=False, is_writable=True),
        AccountMeta(pubkey=recipient, is_signer=False, is_writable=True),
        AccountMeta(pubkey=CLOCK, is_signer=False, is_writable=False),
        AccountMeta(pubkey=SYSVAR_STAKE_HISTORY_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=withdrawer, is_signer=True, is_writable=False),
    ]
    if custodian is not None:
        accounts.append(AccountMeta(pubkey=custodian, is_signer=True, is_writable=False))
    return Instruction(
        program_id=STAKE_PROGRAM_ID,
        accounts=accounts,
        data=_encode(InstructionType.WITHDRAW, dict(lamports=lamports)),
    )


def deactivate(stake: Pubkey, staker: Pubkey) -> Instruction:
    """Creates an instruction to deactivate a delegated stake."""
    return Instruction(
        program_id=STAKE_PROGRAM_ID,
        accounts=[
            AccountMeta(pubkey=stake, is_signer=False, is_writable=True),
            AccountMeta(pubkey=CLOCK, is_signer=False, is_writable=False),
            AccountMeta(pubkey=staker, is_signer=True, is_writable=False),
        ],
        data=_encode(InstructionType.DEACTIVATE),
    )


def merge(destination: Pubkey, source: Pubkey, staker: Pubkey) -> Instruction:
    """Creates an instruction merging `source` into `destination`."""
    return Instruction(
        program_id=STAKE_PROGRAM_ID,
        accounts=[
            AccountMeta(pubkey=destination, is_signer=False, is_writable=True),
            AccountMeta(pubkey=source, is_signer=False, is_writable=True),
            AccountMeta(pubkey=CLOCK, is_signer=False, is_writable=False),
            AccountMeta(pubkey=SYSVAR_STAKE_HISTORY_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=staker, is_signer=True, is_writable=False),
        ],
        data=_encode(InstructionType.MERGE),
    )

