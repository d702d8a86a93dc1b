"""Sigma coin denominations.

A Sigma coin carries one of seven fixed face values. Every conversion that can
see external input (amounts, labels, wire tags) reports failure with
``InvalidDenominationError`` so that consensus code can turn it into a peer
penalty via ``dos_score``.
"""

from enum import Enum
from typing import Tuple

from sigmacoin.exceptions import InvalidDenominationError

# Smallest currency units per whole coin
COIN = 100_000_000

DENOMINATION_TAG_SIZE = 4  # bytes, little-endian signed int


class Denomination(Enum):
    """Face values a Sigma coin may hold; the value is the wire tag."""

    X1 = 0
    X10 = 1
    X50 = 2
    X100 = 3
    X500 = 4
    X1000 = 5
    X5000 = 6

    @property
    def face_value(self) -> int:
        return _FACE_VALUES[self]

    @property
    def amount(self) -> int:
        return self.face_value * COIN

    @property
    def label(self) -> str:
        return str(self.face_value)

    @property
    def tag(self) -> int:
        return self.value

    def tag_bytes(self) -> bytes:
        """Fixed-width wire tag."""
        return self.value.to_bytes(DENOMINATION_TAG_SIZE, byteorder="little", signed=True)

    @classmethod
    def from_tag(cls, tag: int) -> "Denomination":
        try:
            return cls(tag)
        except ValueError:
            raise InvalidDenominationError(f"Unknown denomination tag {tag}") from None

    @classmethod
    def from_tag_bytes(cls, data: bytes) -> "Denomination":
        if len(data) != DENOMINATION_TAG_SIZE:
            raise InvalidDenominationError(
                f"Denomination tag must be {DENOMINATION_TAG_SIZE} bytes, got {len(data)}"
            )
        return cls.from_tag(int.from_bytes(data, byteorder="little", signed=True))

    def __str__(self) -> str:
        return self.label


_FACE_VALUES = {
    Denomination.X1: 1,
    Denomination.X10: 10,
    Denomination.X50: 50,
    Denomination.X100: 100,
    Denomination.X500: 500,
    Denomination.X1000: 1000,
    Denomination.X5000: 5000,
}

_BY_AMOUNT = {d.amount: d for d in Denomination}
_BY_LABEL = {d.label: d for d in Denomination}

# Largest first; greedy amount decomposition depends on this order
_DESCENDING = tuple(sorted(Denomination, key=lambda d: d.face_value, reverse=True))


def denomination_to_amount(denomination: Denomination) -> int:
    """
    Convert a denomination to its amount in smallest currency units.

    Raises:
        InvalidDenominationError: If ``denomination`` is not a Denomination
    """
    if not isinstance(denomination, Denomination):
        raise InvalidDenominationError(
            "invalid denomination value, unable to convert to integer"
        )
    return denomination.amount


def amount_to_denomination(amount: int) -> Denomination:
    """
    Convert an exact amount to its denomination.

    Args:
        amount: Amount in smallest currency units (e.g. ``100 * COIN``)

    Raises:
        InvalidDenominationError: If ``amount`` is not exactly a legal amount
    """
    # bool is an int subclass but never a legal amount
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidDenominationError(f"Amount must be an integer, got {type(amount).__name__}")
    try:
        return _BY_AMOUNT[amount]
    except KeyError:
        raise InvalidDenominationError(
            f"invalid denomination value {amount}, unable to convert to enum"
        ) from None


def real_number_to_denomination(value: float) -> Denomination:
    """
    Scale a decimal coin amount by COIN, truncate, and convert.

    ``0.5`` or ``99.99999999999`` are rejected, never rounded.
    """
    try:
        amount = int(value * COIN)
    except (TypeError, ValueError, OverflowError):
        raise InvalidDenominationError(f"Not a finite coin amount: {value!r}") from None
    return amount_to_denomination(amount)


def label_to_denomination(label: str) -> Denomination:
    """
    Parse a canonical label such as ``"100"``.

    Raises:
        InvalidDenominationError: If ``label`` is not an exact canonical label
    """
    try:
        return _BY_LABEL[label]
    except (KeyError, TypeError):
        raise InvalidDenominationError(f"Unsupported denomination label {label!r}") from None


def denomination_to_label(denomination: Denomination) -> str:
    """Canonical decimal label of a denomination."""
    if not isinstance(denomination, Denomination):
        raise InvalidDenominationError(
            "Unsupported denomination, unable to convert to string."
        )
    return denomination.label


def all_denominations() -> Tuple[Denomination, ...]:
    """All denominations in strictly descending face-value order."""
    return _DESCENDING
