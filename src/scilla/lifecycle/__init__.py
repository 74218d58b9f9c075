"""Client-side validation of stake and vote account actions."""

from . import stake, vote
from .common import reject, require_authority

__all__ = [
    "stake",
    "vote",
    "reject",
    "require_authority",
]
