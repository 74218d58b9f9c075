"""Pydantic models for user-supplied amounts and parameters.

Values are validated here, before any network call, and normalized into
on-chain units. Parse helpers turn pydantic's `ValidationError` into
`InvalidInputError` so callers only deal with one error family.
"""

from decimal import ROUND_DOWN, Decimal, InvalidOperation

from pydantic import BaseModel, Field, ValidationError, field_validator
from solders.pubkey import Pubkey
from solders.signature import Signature

from .constants import LAMPORTS_PER_SOL, U64_MAX
from .errors import InvalidInputError

SOL_DECIMALS = 9

# Integer digits of the largest SOL amount that fits in u64 lamports
MAX_SOL_DIGITS = len(str(U64_MAX // LAMPORTS_PER_SOL))


def lamports_to_sol(lamports: int) -> Decimal:
    """Convert lamports to SOL exactly."""
    return Decimal(lamports).scaleb(-SOL_DECIMALS)


def sol_to_lamports(sol: Decimal | int | float | str) -> int:
    """Convert SOL to lamports, dropping any fraction of a lamport.

    Floats go through their shortest repr so that 0.1 means 100_000_000
    lamports and not 99_999_999.
    """
    value = sol if isinstance(sol, Decimal) else Decimal(str(sol))
    return int(value.scaleb(SOL_DECIMALS).to_integral_value(rounding=ROUND_DOWN))


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    message = error.get("msg", str(exc))
    return message.removeprefix("Value error, ")


class SolAmount(BaseModel):
    """A positive SOL amount that fits in u64 lamports."""

    value: Decimal = Field(..., description="Amount in SOL")

    @field_validator("value")
    @classmethod
    def validate_value(cls, v: Decimal) -> Decimal:
        if not v.is_finite() or v <= 0:
            raise ValueError(f"Amount must be a positive finite number, got {v}")
        if v.adjusted() >= MAX_SOL_DIGITS:
            raise ValueError(f"Amount too large: {v} SOL would overflow")
        lamports = sol_to_lamports(v)
        if lamports > U64_MAX:
            raise ValueError(f"Amount too large: {v} SOL would overflow")
        if lamports == 0:
            raise ValueError(f"Amount {v} SOL is smaller than one lamport")
        return v

    def to_lamports(self) -> int:
        return sol_to_lamports(self.value)

    @classmethod
    def parse(cls, text: str) -> "SolAmount":
        """Parse user input such as ' 1.5 '."""
        trimmed = text.strip()
        if not trimmed:
            raise InvalidInputError("Amount cannot be empty. Please enter a SOL amount")
        try:
            value = Decimal(trimmed)
        except InvalidOperation:
            raise InvalidInputError(f"Invalid amount: {trimmed}. Must be a valid number")
        if not value.is_finite() or value <= 0:
            raise InvalidInputError(f"Amount must be a positive finite number, got {trimmed}")
        if value.adjusted() >= MAX_SOL_DIGITS:
            raise InvalidInputError(f"Amount too large: {trimmed} SOL would overflow")
        if value.adjusted() < -SOL_DECIMALS:
            raise InvalidInputError(f"Amount {trimmed} SOL is smaller than one lamport")
        try:
            return cls(value=trimmed)
        except ValidationError as e:
            raise InvalidInputError(_first_error(e)) from e


class Commission(BaseModel):
    """Validator commission as a whole percentage."""

    value: int = Field(default=0, ge=0, le=100, description="Commission percentage")

    @property
    def bps(self) -> int:
        return self.value * 100

    @classmethod
    def parse(cls, text: str) -> "Commission":
        """Parse user input; an empty string means 0%."""
        trimmed = text.strip()
        if not trimmed:
            return cls()
        if not trimmed.lstrip("+-").isdigit():
            raise InvalidInputError(f"Invalid commission: {trimmed}. Must be a valid number")
        value = int(trimmed)
        if not 0 <= value <= 100:
            raise InvalidInputError(f"Commission must be between 0 and 100, got {value}")
        try:
            return cls(value=value)
        except ValidationError as e:
            raise InvalidInputError(_first_error(e)) from e


def parse_pubkey(text: str, field_name: str = "address") -> Pubkey:
    """Parse a base58 public key."""
    trimmed = text.strip()
    try:
        return Pubkey.from_string(trimmed)
    except (ValueError, TypeError) as e:
        raise InvalidInputError(f"Invalid {field_name}: {trimmed!r} ({e})") from e


def parse_signature(text: str) -> Signature:
    """Parse a base58 transaction signature."""
    trimmed = text.strip()
    try:
        return Signature.from_string(trimmed)
    except (ValueError, TypeError) as e:
        raise InvalidInputError(f"Invalid signature: {trimmed!r} ({e})") from e
