"""Program ids, sysvars and sizes used when talking to the cluster."""

from solders.pubkey import Pubkey

LAMPORTS_PER_SOL: int = 1_000_000_000
"""Number of lamports per SOL."""

U64_MAX: int = 2**64 - 1

STAKE_PROGRAM_ID = Pubkey.from_string("Stake11111111111111111111111111111111111111")
"""Public key that identifies the Stake program."""

VOTE_PROGRAM_ID = Pubkey.from_string("Vote111111111111111111111111111111111111111")
"""Public key that identifies the Vote program."""

SYSVAR_OWNER_ID = Pubkey.from_string("Sysvar1111111111111111111111111111111111111")
"""Owner of every sysvar account."""

SYSVAR_STAKE_HISTORY_ID = Pubkey.from_string("SysvarStakeHistory1111111111111111111111111")

SYSVAR_STAKE_CONFIG_ID = Pubkey.from_string("StakeConfig11111111111111111111111111111111")
"""Address of the (deprecated) stake config account still required by DelegateStake."""

STAKE_STATE_SIZE: int = 200
"""Size of a stake account (StakeStateV2)."""

VOTE_STATE_SIZE: int = 3762
"""Size of a vote account."""

DEACTIVATION_EPOCH_SENTINEL: int = U64_MAX
"""Deactivation epoch stored on a delegation that is not deactivating."""

MAX_STAKE_HISTORY_ENTRIES: int = 512
"""Entries retained by the stake history sysvar."""

MAX_LOCKOUT_HISTORY: int = 31

MAX_EPOCH_CREDITS_HISTORY: int = 64

MAX_ACCOUNT_DATA_LEN: int = 10 * 1024 * 1024
"""Largest account payload the decoders will look at."""

COMMITMENT_LEVELS: tuple[str, ...] = ("processed", "confirmed", "finalized")
"""Commitment levels ordered from weakest to strongest."""
