"""Pedersen commitments over the Sigma group."""

from Crypto.PublicKey import ECC

from sigmacoin.crypto.group import ORDER, Params, is_member
from sigmacoin.exceptions import InvalidCommitmentError


class Commitment:
    """
    Pedersen commitment ``Commit(s, r) = g*s + h*r``.

    Binding and hiding rest on the discrete log of ``h`` relative to ``g``
    being unknown, which is why ``Params.h0`` is hashed to the curve.
    """

    @staticmethod
    def _check_scalar(value: int, name: str) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidCommitmentError(f"{name} must be an integer scalar")
        return value % ORDER

    @staticmethod
    def commit(g: ECC.EccPoint, s: int, h: ECC.EccPoint, r: int) -> ECC.EccPoint:
        """
        Compute ``g*s + h*r``.

        Args:
            g: First generator
            s: Committed scalar
            h: Blinding generator
            r: Blinding scalar

        Returns:
            ECC.EccPoint: The commitment

        Raises:
            InvalidCommitmentError: If inputs are not group elements or scalars
        """
        if not is_member(g) or not is_member(h):
            raise InvalidCommitmentError("Generators must be non-identity group elements")
        s = Commitment._check_scalar(s, "Committed value")
        r = Commitment._check_scalar(r, "Randomness")

        return g * s + h * r

    @staticmethod
    def commit_coin(params: Params, serial_number: int, randomness: int) -> ECC.EccPoint:
        """Commit to a coin serial number under ``params.g`` and ``params.h0``."""
        return Commitment.commit(params.g, serial_number, params.h0, randomness)

    @staticmethod
    def verify(
        params: Params,
        serial_number: int,
        randomness: int,
        expected_commitment: ECC.EccPoint,
    ) -> bool:
        """
        Check that ``expected_commitment`` opens to ``(serial_number, randomness)``.

        Returns:
            bool: True if commitment is valid, False otherwise
        """
        try:
            computed = Commitment.commit_coin(params, serial_number, randomness)
        except InvalidCommitmentError:
            return False
        return computed == expected_commitment
