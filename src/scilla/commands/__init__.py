"""Operations behind each CLI command, returning structured results."""

from . import account, cluster, stake, transaction, vote
from .stake import StakeAccountView
from .vote import VoteAccountView

__all__ = [
    "account",
    "cluster",
    "stake",
    "transaction",
    "vote",
    "StakeAccountView",
    "VoteAccountView",
]
