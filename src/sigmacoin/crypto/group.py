"""Prime-order group and scalar field used by Sigma commitments and proofs.

Group elements are ``Crypto.PublicKey.ECC.EccPoint`` instances on NIST P-256.
The curve has cofactor 1, so every point on the curve (other than the
identity) is a member of the prime-order group. Scalars are plain ``int``
values in ``[0, ORDER)``.

Wire encodings are fixed size:
    - Group element: 33-byte SEC1 compressed point
    - Scalar: 32-byte big-endian integer

Example Usage:
    >>> from sigmacoin.crypto.group import Params, random_scalar
    >>> params = Params.default()
    >>> point = params.g * random_scalar()
    >>> point_from_bytes(point_to_bytes(point)) == point
    True
"""

import logging
import secrets
from functools import lru_cache
from typing import Union

from Crypto.PublicKey import ECC

from sigmacoin.exceptions import (
    InvalidGroupElementError,
    InvalidScalarError,
    RandomnessUnavailableError,
)
from sigmacoin.utils.encoding import int_to_fixed_bytes
from sigmacoin.utils.hash import hash_concatenate

logger = logging.getLogger(__name__)

CURVE_NAME = "P-256"

# Prime order of the P-256 group
ORDER = 0xffffffff00000000ffffffffffffffffbce6faada7179e84f3b9cac2fc632551

SCALAR_SIZE = 32
GROUP_ELEMENT_SIZE = 33

_EVEN_PREFIX = 0x02
_ODD_PREFIX = 0x03


def random_scalar() -> int:
    """
    Sample a uniformly random non-zero scalar.

    Raises:
        RandomnessUnavailableError: If the OS entropy source fails
    """
    try:
        return 1 + secrets.randbelow(ORDER - 1)
    except (OSError, NotImplementedError) as e:
        raise RandomnessUnavailableError("Unable to generate randomness") from e


def hash_to_scalar(*data: Union[bytes, str]) -> int:
    """SHA-256 of the concatenated inputs, reduced into the scalar field."""
    return int.from_bytes(hash_concatenate(*data), byteorder="big") % ORDER


def scalar_to_bytes(scalar: int) -> bytes:
    """Encode a scalar as 32 big-endian bytes."""
    return int_to_fixed_bytes(scalar % ORDER, SCALAR_SIZE)


def scalar_from_bytes(data: bytes) -> int:
    """
    Decode a 32-byte scalar.

    Raises:
        InvalidScalarError: On wrong length or a value outside ``[0, ORDER)``
    """
    if len(data) != SCALAR_SIZE:
        raise InvalidScalarError(f"Scalar must be {SCALAR_SIZE} bytes, got {len(data)}")
    value = int.from_bytes(data, byteorder="big")
    if value >= ORDER:
        raise InvalidScalarError("Scalar encoding is not reduced modulo the group order")
    return value


def is_member(point: object) -> bool:
    """Check that ``point`` is a non-identity element of the group."""
    if not isinstance(point, ECC.EccPoint):
        return False
    return not point.is_point_at_infinity()


def point_to_bytes(point: ECC.EccPoint) -> bytes:
    """
    Encode a group element as a 33-byte compressed point.

    Raises:
        InvalidGroupElementError: If ``point`` is the identity
    """
    if not is_member(point):
        raise InvalidGroupElementError("Cannot encode the identity element")
    key = ECC.EccKey(curve=CURVE_NAME, point=point)
    return key.export_key(format="SEC1", compress=True)


def point_from_bytes(data: bytes) -> ECC.EccPoint:
    """
    Decode a 33-byte compressed point and check group membership.

    Raises:
        InvalidGroupElementError: On wrong length, prefix, or an off-curve x
    """
    data = bytes(data)
    if len(data) != GROUP_ELEMENT_SIZE:
        raise InvalidGroupElementError(
            f"Group element must be {GROUP_ELEMENT_SIZE} bytes, got {len(data)}"
        )
    prefix = data[0]
    if prefix not in (_EVEN_PREFIX, _ODD_PREFIX):
        raise InvalidGroupElementError(f"Unknown point prefix {prefix:#04x}")
    try:
        point = ECC.import_key(data, curve_name=CURVE_NAME).pointQ
    except (ValueError, IndexError, TypeError) as e:
        raise InvalidGroupElementError(f"Not a point on {CURVE_NAME}: {e}") from e

    # x >= p would decode to the reduced point; only canonical bytes are accepted
    if not is_member(point) or point_to_bytes(point) != data:
        raise InvalidGroupElementError("Non-canonical group element encoding")
    return point


def hash_to_point(label: Union[bytes, str]) -> ECC.EccPoint:
    """
    Derive a group element with unknown discrete log (try-and-increment).

    The first counter value whose hash is a valid x-coordinate wins; the
    even-y point is taken.
    """
    counter = 0
    while True:
        digest = hash_concatenate(label, counter.to_bytes(4, byteorder="big"))
        try:
            return point_from_bytes(bytes([_EVEN_PREFIX]) + digest)
        except InvalidGroupElementError:
            counter += 1


class Params:
    """
    Shared group parameters: the base point ``g`` and the blinding generator ``h0``.

    Instances are immutable and safe to share between threads.
    """

    def __init__(self, g: ECC.EccPoint, h0: ECC.EccPoint):
        if not is_member(g):
            raise TypeError('Bad type or value for generator g!')
        if not is_member(h0):
            raise TypeError('Bad type or value for generator h0!')
        if g == h0:
            raise ValueError('Generators g and h0 must be independent!')

        self._g = g
        self._h0 = h0

    @property
    def g(self) -> ECC.EccPoint:
        return self._g.copy()

    @property
    def h0(self) -> ECC.EccPoint:
        return self._h0.copy()

    @property
    def order(self) -> int:
        return ORDER

    @classmethod
    def from_label(cls, h0_label: str) -> "Params":
        """Build parameters with ``h0`` hashed from ``h0_label``."""
        return _params_for_label(h0_label)

    @classmethod
    def default(cls) -> "Params":
        """Parameters for the configured ``h0`` label."""
        # Imported here so that settings are read lazily
        from sigmacoin.config import get_settings

        return _params_for_label(get_settings().h0_label)

    def __repr__(self) -> str:
        return (
            f"Params(curve={CURVE_NAME}, g={point_to_bytes(self._g).hex()[:16]}..., "
            f"h0={point_to_bytes(self._h0).hex()[:16]}...)"
        )


@lru_cache(maxsize=None)
def _params_for_label(h0_label: str) -> Params:
    g = ECC.construct(curve=CURVE_NAME, d=1).pointQ
    h0 = hash_to_point(h0_label)
    logger.debug(f"Derived h0 for label {h0_label!r}")
    return Params(g, h0)
