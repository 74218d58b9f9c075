"""Instruction builders for the stake and vote programs."""

from . import stake, vote
from .vote import InitializeParams, VoteAuthorize

__all__ = [
    "stake",
    "vote",
    "InitializeParams",
    "VoteAuthorize",
]
