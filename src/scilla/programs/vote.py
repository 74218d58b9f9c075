"""Vote Program Instructions."""

from enum import IntEnum
from typing import NamedTuple

from construct import Bytes, Int8ul, Int32ul, Int64ul, Pass, Struct, Switch  # type: ignore
from solders import system_program
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.sysvar import CLOCK, RENT

from ..constants import VOTE_PROGRAM_ID, VOTE_STATE_SIZE

PUBLIC_KEY_LAYOUT = Bytes(32)


class InitializeParams(NamedTuple):
    """Initialize vote account params."""

    vote: Pubkey
    """`[w]` Uninitialized vote account"""
    node: Pubkey
    """`[s]` New validator identity."""

    authorized_voter: Pubkey
    """The authorized voter for this vote account."""
    authorized_withdrawer: Pubkey
    """The authorized withdrawer for this vote account."""
    commission: int
    """Commission, represented as a percentage"""


class InstructionType(IntEnum):
    """Vote Instruction Types."""

    INITIALIZE = 0
    AUTHORIZE = 1
    WITHDRAW = 3


class VoteAuthorize(IntEnum):
    """Which vote authority an Authorize instruction replaces."""

    VOTER = 0
    WITHDRAWER = 1


INITIALIZE_LAYOUT = Struct(
    "node" / PUBLIC_KEY_LAYOUT,
    "authorized_voter" / PUBLIC_KEY_LAYOUT,
    "authorized_withdrawer" / PUBLIC_KEY_LAYOUT,
    "commission" / Int8ul,
)

AUTHORIZE_LAYOUT = Struct(
    "new_authority" / PUBLIC_KEY_LAYOUT,
    "vote_authorize" / Int32ul,
)

WITHDRAW_LAYOUT = Struct(
    "lamports" / Int64ul,
)

INSTRUCTIONS_LAYOUT = Struct(
    "instruction_type" / Int32ul,
    "args"
    / Switch(
        lambda this: this.instruction_type,
        {
            InstructionType.INITIALIZE: INITIALIZE_LAYOUT,
            InstructionType.AUTHORIZE: AUTHORIZE_LAYOUT,
            InstructionType.WITHDRAW: WITHDRAW_LAYOUT,
        },
        default=Pass,
    ),
)


def initialize(params: InitializeParams) -> Instruction:
    """Creates a transaction instruction to initialize a new vote account."""
    data = INSTRUCTIONS_LAYOUT.build(
        dict(
            instruction_type=InstructionType.INITIALIZE,
            args=dict(
                node=bytes(params.node),
                authorized_voter=bytes(params.authorized_voter),
                authorized_withdrawer=bytes(params.authorized_withdrawer),
                commission=params.commission,
            ),
        )
    )
    return Instruction(
        program_id=VOTE_PROGRAM_ID,
        accounts=[
            AccountMeta(pubkey=params.vote, is_signer=False, is_writable=True),
            AccountMeta(pubkey=RENT, is_signer=False, is_writable=False),
            AccountMeta(pubkey=CLOCK, is_signer=False, is_writable=False),
            AccountMeta(pubkey=params.node, is_signer=True, is_writable=False),
        ],
        data=data,
    )


def create_account(from_pubkey: Pubkey, params: InitializeParams, lamports: int) -> list[Instruction]:
    """Creates the instructions that fund, allocate and initialize a vote account."""
    return [
        system_program.create_account(
            system_program.CreateAccountParams(
                from_pubkey=from_pubkey,
                to_pubkey=params.vote,
                lamports=lamports,
                space=VOTE_STATE_SIZE,
                owner=VOTE_PROGRAM_ID,
            )
        ),
        initialize(params),
    ]


def authorize(
    vote: Pubkey,
    authority: Pubkey,
    new_authority: Pubkey,
    vote_authorize: VoteAuthorize,
) -> Instruction:
    """Creates an instruction to rotate the voter or withdrawer of a vote account."""
    data = INSTRUCTIONS_LAYOUT.build(
        dict(
            instruction_type=InstructionType.AUTHORIZE,
            args=dict(new_authority=bytes(new_authority), vote_authorize=vote_authorize),
        )
    )
    return Instruction(
        program_id=VOTE_PROGRAM_ID,
        accounts=[
            AccountMeta(pubkey=vote, is_signer=False, is_writable=True),
            AccountMeta(pubkey=CLOCK, is_signer=False, is_writable=False),
            AccountMeta(pubkey=authority, is_signer=True, is_writable=False),
        ],
        data=data,
    )


def withdraw(vote: Pubkey, withdrawer: Pubkey, recipient: Pubkey, lamports: int) -> Instruction:
    """Creates an instruction to withdraw lamports from a vote account."""
    data = INSTRUCTIONS_LAYOUT.build(
        dict(instruction_type=InstructionType.WITHDRAW, args=dict(lamports=lamports))
    )
    return Instruction(
        program_id=VOTE_PROGRAM_ID,
        accounts=[
            AccountMeta(pubkey=vote, is_signer=False, is_writable=True),
            AccountMeta(pubkey=recipient, is_signer=False, is_writable=True),
            AccountMeta(pubkey=withdrawer, is_signer=True, is_writable=False),
        ],
        data=data,
    )
