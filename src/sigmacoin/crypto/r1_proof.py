"""R1 proof container for one-out-of-many proofs.

The R1 proof shows that a committed ``m x n`` bit matrix has exactly one set
bit per row, i.e. that it encodes the digits of a single index into an
anonymity set of size ``n**m``. It is a building block of the Sigma spend
proof; challenge derivation and verification live with the spend proof.

Wire format (no length prefixes):

    A || C || D || f[0] || ... || f[m*(n-1)-1] || ZA || ZC

``n`` and ``m`` are consensus parameters and must be supplied by the caller.
They are never read from the wire, so a proof cannot claim a different
anonymity-set partition than the verifier expects.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from Crypto.PublicKey import ECC

from sigmacoin.crypto.group import (
    GROUP_ELEMENT_SIZE,
    ORDER,
    SCALAR_SIZE,
    point_from_bytes,
    point_to_bytes,
    scalar_from_bytes,
    scalar_to_bytes,
)
from sigmacoin.exceptions import MalformedProofError, ValidationError
from sigmacoin.utils.encoding import bytes_to_hex, hex_to_bytes, read_exact

logger = logging.getLogger(__name__)

Buffer = Union[bytes, bytearray, memoryview]


class R1Proof:
    """
    R1 proof elements ``(A, C, D, f, ZA, ZC)``.

    ``f`` holds ``m*(n-1)`` scalars; the first digit of each row is implied
    by the challenge and is not transmitted.
    """

    def __init__(
        self,
        A: ECC.EccPoint,
        C: ECC.EccPoint,
        D: ECC.EccPoint,
        f: Sequence[int],
        ZA: int,
        ZC: int,
    ):
        for name, point in (("A", A), ("C", C), ("D", D)):
            if not isinstance(point, ECC.EccPoint):
                raise TypeError(f'Bad type for proof element {name}!')
        f = list(f)
        self._check_scalars(f, ZA, ZC)

        self.A = A
        self.C = C
        self.D = D
        self.f: List[int] = f
        self.ZA = ZA
        self.ZC = ZC

    @staticmethod
    def _check_scalars(f: Sequence[int], ZA: int, ZC: int) -> None:
        # Scalars must already be reduced so that encoding is one-to-one
        for name, scalar in [("ZA", ZA), ("ZC", ZC)] + [(f"f[{i}]", x) for i, x in enumerate(f)]:
            if isinstance(scalar, bool) or not isinstance(scalar, int):
                raise TypeError(f'Bad type for proof element {name}!')
            if not 0 <= scalar < ORDER:
                raise ValueError(f'Proof element {name} is not a reduced scalar!')

    @staticmethod
    def f_size(n: int, m: int) -> int:
        """Number of transmitted ``f`` scalars for base ``n`` and ``m`` digits."""
        if n < 2 or m < 1:
            raise ValueError(f"Invalid proof dimensions n={n}, m={m}")
        return m * (n - 1)

    @staticmethod
    def required_size(n: int, m: int) -> int:
        """Serialized size in bytes for dimensions ``(n, m)``."""
        return GROUP_ELEMENT_SIZE * 3 + SCALAR_SIZE * (R1Proof.f_size(n, m) + 2)

    def serialized_size(self) -> int:
        """Serialized size for this proof's own ``f`` length."""
        return GROUP_ELEMENT_SIZE * 3 + SCALAR_SIZE * (len(self.f) + 2)

    def validate_shape(self, n: int, m: int) -> None:
        """
        Raises:
            MalformedProofError: If ``len(f) != m*(n-1)``
        """
        expected = self.f_size(n, m)
        if len(self.f) != expected:
            raise MalformedProofError(
                f"R1 proof has {len(self.f)} f elements, expected {expected} for n={n}, m={m}"
            )

    def serialize(self, n: Optional[int] = None, m: Optional[int] = None) -> bytes:
        """
        Serialize in wire order.

        When ``n`` and ``m`` are given, the shape is checked first.
        """
        buffer = bytearray(self.serialized_size())
        self.serialize_into(buffer, 0, n, m)
        return bytes(buffer)

    def serialize_into(
        self,
        buffer: Union[bytearray, memoryview],
        offset: int = 0,
        n: Optional[int] = None,
        m: Optional[int] = None,
    ) -> int:
        """
        Write the proof into a caller-allocated buffer.

        Returns:
            int: Number of bytes written

        Raises:
            MalformedProofError: If ``n, m`` are given and ``f`` has the wrong length
            ValueError: If the buffer is too small or a scalar is not reduced
        """
        if n is not None or m is not None:
            if n is None or m is None:
                raise ValueError("Both n and m are required to check the proof shape")
            self.validate_shape(n, m)

        size = self.serialized_size()
        if offset < 0 or len(buffer) - offset < size:
            raise ValueError(
                f"Buffer too small for R1 proof: need {size} bytes at offset {offset}"
            )

        self._check_scalars(self.f, self.ZA, self.ZC)

        parts = [point_to_bytes(self.A), point_to_bytes(self.C), point_to_bytes(self.D)]
        parts.extend(scalar_to_bytes(x) for x in self.f)
        parts.append(scalar_to_bytes(self.ZA))
        parts.append(scalar_to_bytes(self.ZC))

        encoded = b"".join(parts)
        buffer[offset:offset + size] = encoded
        return size

    @classmethod
    def deserialize(cls, data: Buffer, n: int, m: int) -> "R1Proof":
        """
        Parse a proof for trusted dimensions ``(n, m)``.

        Only the first ``required_size(n, m)`` bytes are read.

        Raises:
            MalformedProofError: If the buffer is short or an element is invalid
        """
        proof, _ = cls.deserialize_from(data, n, m)
        return proof

    @classmethod
    def deserialize_from(
        cls, data: Buffer, n: int, m: int, offset: int = 0
    ) -> Tuple["R1Proof", int]:
        """
        Parse a proof starting at ``offset``.

        Returns:
            tuple: (proof, bytes consumed)
        """
        try:
            size = cls.required_size(n, m)
        except ValueError as e:
            raise MalformedProofError(str(e)) from e

        if offset < 0 or len(data) - offset < size:
            logger.warning(
                f"Rejected R1 proof: {len(data) - offset} bytes available, {size} required"
            )
            raise MalformedProofError(
                f"R1 proof needs {size} bytes for n={n}, m={m}"
            )

        cursor = offset

        def take(width: int) -> bytes:
            nonlocal cursor
            chunk = read_exact(data, cursor, width)
            cursor += width
            return chunk

        try:
            A = point_from_bytes(take(GROUP_ELEMENT_SIZE))
            C = point_from_bytes(take(GROUP_ELEMENT_SIZE))
            D = point_from_bytes(take(GROUP_ELEMENT_SIZE))
            f = [scalar_from_bytes(take(SCALAR_SIZE)) for _ in range(cls.f_size(n, m))]
            ZA = scalar_from_bytes(take(SCALAR_SIZE))
            ZC = scalar_from_bytes(take(SCALAR_SIZE))
        except ValidationError as e:
            logger.warning(f"Rejected R1 proof element: {e}")
            raise MalformedProofError(f"Invalid R1 proof element: {e}") from e

        return cls(A, C, D, f, ZA, ZC), cursor - offset

    def to_dict(self) -> Dict[str, Any]:
        return {
            "A": bytes_to_hex(point_to_bytes(self.A)),
            "C": bytes_to_hex(point_to_bytes(self.C)),
            "D": bytes_to_hex(point_to_bytes(self.D)),
            "f": [bytes_to_hex(scalar_to_bytes(x)) for x in self.f],
            "ZA": bytes_to_hex(scalar_to_bytes(self.ZA)),
            "ZC": bytes_to_hex(scalar_to_bytes(self.ZC)),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "R1Proof":
        try:
            return cls(
                A=point_from_bytes(hex_to_bytes(data["A"])),
                C=point_from_bytes(hex_to_bytes(data["C"])),
                D=point_from_bytes(hex_to_bytes(data["D"])),
                f=[scalar_from_bytes(hex_to_bytes(x)) for x in data["f"]],
                ZA=scalar_from_bytes(hex_to_bytes(data["ZA"])),
                ZC=scalar_from_bytes(hex_to_bytes(data["ZC"])),
            )
        except (KeyError, ValueError, ValidationError) as e:
            raise MalformedProofError(f"Invalid R1 proof data: {e}") from e

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, R1Proof):
            return NotImplemented
        return (
            self.A == other.A
            and self.C == other.C
            and self.D == other.D
            and self.f == other.f
            and self.ZA == other.ZA
            and self.ZC == other.ZC
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"<R1Proof> A:{point_to_bytes(self.A).hex()[:16]}|f:{len(self.f)}"
