"""Sigma coin structures and minting.

A Sigma coin is a Pedersen commitment ``C = g*S + h0*r`` to a serial number
``S`` and blinding value ``r``:

    - ``PublicCoin`` is ``(C, denomination)`` and is published in the
      anonymity set.
    - ``PrivateCoin`` is the opening ``(S, r)`` plus the ECDSA secret key the
      serial number was derived from. It never leaves the wallet.

Serial numbers are derived from a fresh secp256k1 key pair, so a spend can be
signed with that key while revealing ``S`` for double-spend detection.

Example Usage:
    >>> from sigmacoin.core.coin import PrivateCoin
    >>> from sigmacoin.core.denomination import Denomination
    >>> from sigmacoin.crypto.group import Params
    >>>
    >>> coin = PrivateCoin(Params.default(), Denomination.X100)
    >>> coin.public_coin.validate()
    True
"""

import logging
import secrets
from typing import Any, Dict, Optional, Union

from Crypto.PublicKey import ECC
from cryptography.hazmat.primitives.asymmetric import ec

from sigmacoin.config import get_settings
from sigmacoin.core.commitment import Commitment
from sigmacoin.core.denomination import (
    DENOMINATION_TAG_SIZE,
    Denomination,
    label_to_denomination,
)
from sigmacoin.crypto.group import (
    GROUP_ELEMENT_SIZE,
    Params,
    hash_to_scalar,
    is_member,
    point_from_bytes,
    point_to_bytes,
    random_scalar,
    scalar_from_bytes,
    scalar_to_bytes,
)
from sigmacoin.exceptions import (
    DeserializationError,
    InvalidDenominationError,
    InvalidGroupElementError,
    InvalidSecretKeyError,
    RandomnessUnavailableError,
)
from sigmacoin.utils.encoding import bytes_to_hex, hex_to_bytes
from sigmacoin.utils.hash import sha256

logger = logging.getLogger(__name__)

# Domain separation tag for serial number derivation
PUBLICKEY_TO_SERIALNUMBER = b"PUBLICKEY_TO_SERIALNUMBER"

SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


def _random_bytes(size: int) -> bytes:
    try:
        return secrets.token_bytes(size)
    except (OSError, NotImplementedError) as e:
        raise RandomnessUnavailableError("Unable to generate randomness") from e


class EcdsaSecretKey:
    """
    A 32-byte secp256k1 secret key.

    The constructor is the only way in, and it rejects anything that is not
    exactly 32 bytes or is not a valid secret (zero, or not below the curve
    order).
    """

    SIZE = 32

    __slots__ = ("_data",)

    def __init__(self, data: Union[bytes, bytearray]):
        if not isinstance(data, (bytes, bytearray)):
            raise InvalidSecretKeyError("EcdsaSeckey must be bytes.")
        if len(data) != self.SIZE:
            raise InvalidSecretKeyError("EcdsaSeckey size does not match.")
        value = int.from_bytes(data, byteorder="big")
        if not 0 < value < SECP256K1_ORDER:
            raise InvalidSecretKeyError("EcdsaSeckey is not a valid secp256k1 secret.")
        self._data = bytes(data)

    @classmethod
    def from_int(cls, value: int) -> "EcdsaSecretKey":
        """Build a key from a 256-bit integer."""
        if value < 0 or value.bit_length() > 8 * cls.SIZE:
            raise InvalidSecretKeyError("EcdsaSeckey size does not match.")
        return cls(value.to_bytes(cls.SIZE, byteorder="big"))

    @classmethod
    def generate(cls) -> "EcdsaSecretKey":
        """
        Sample keys until one yields a public key.

        Raises:
            RandomnessUnavailableError: If the entropy source fails
        """
        attempts = 0
        while True:
            attempts += 1
            candidate = _random_bytes(cls.SIZE)
            try:
                key = cls(candidate)
                key.private_key()
            except ValueError:
                logger.debug(f"Discarded unusable ECDSA key candidate (attempt {attempts})")
                continue
            return key

    def to_int(self) -> int:
        return int.from_bytes(self._data, byteorder="big")

    def private_key(self) -> ec.EllipticCurvePrivateKey:
        return ec.derive_private_key(self.to_int(), ec.SECP256K1())

    def public_key(self) -> ec.EllipticCurvePublicKey:
        return self.private_key().public_key()

    def hex(self) -> str:
        return self._data.hex()

    def __bytes__(self) -> bytes:
        return self._data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EcdsaSecretKey):
            return NotImplemented
        return secrets.compare_digest(self._data, other._data)

    def __hash__(self) -> int:
        return hash(sha256(self._data))

    def __repr__(self) -> str:
        return "EcdsaSecretKey(<hidden>)"


def serial_number_from_public_key(public_key: ec.EllipticCurvePublicKey) -> int:
    """
    Derive a coin serial number from a secp256k1 public key.

    The key is first evaluated through ECDH against the fixed scalar 1 and
    the shared secret is hashed, rather than serializing the public key
    directly, to avoid a timing channel in point serialization. The result is
    then hashed with ``PUBLICKEY_TO_SERIALNUMBER`` into the scalar field.

    ECDH only yields the x-coordinate of the shared point, so ``P`` and ``-P``
    map to the same serial number, and serials differ from a derivation that
    hashes the full compressed point.
    """
    one = ec.derive_private_key(1, ec.SECP256K1())
    pubkey_hash = sha256(one.exchange(ec.ECDH(), public_key))
    return hash_to_scalar(PUBLICKEY_TO_SERIALNUMBER, pubkey_hash)


class PublicCoin:
    """
    Published half of a Sigma coin: the commitment and its denomination.

    Equality only looks at the commitment. The denomination is authenticated
    separately by the spend protocol.
    """

    SERIALIZED_SIZE = GROUP_ELEMENT_SIZE + DENOMINATION_TAG_SIZE

    def __init__(self, value: ECC.EccPoint, denomination: Denomination):
        if not isinstance(value, ECC.EccPoint):
            raise TypeError('Bad type for coin value!')
        if not isinstance(denomination, Denomination):
            raise InvalidDenominationError('Bad type for coin denomination!')

        self._value = value.copy()
        self._denomination = denomination
        self._value_hash: Optional[bytes] = None

    @property
    def value(self) -> ECC.EccPoint:
        return self._value.copy()

    @property
    def denomination(self) -> Denomination:
        return self._denomination

    def get_value_hash(self) -> bytes:
        """
        SHA-256 of the serialized commitment, used as the coin's lookup key.

        Computed on first use and cached. Recomputing yields the same bytes,
        so racing first readers are harmless.
        """
        value_hash = self._value_hash
        if value_hash is None:
            value_hash = sha256(point_to_bytes(self._value))
            self._value_hash = value_hash
        return value_hash

    def validate(self) -> bool:
        """Check that the commitment is a non-identity group element."""
        return is_member(self._value)

    def serialized_size(self) -> int:
        return self.SERIALIZED_SIZE

    def serialize(self) -> bytes:
        """Wire format: compressed point followed by the 4-byte denomination tag."""
        return point_to_bytes(self._value) + self._denomination.tag_bytes()

    @classmethod
    def deserialize(cls, data: bytes) -> "PublicCoin":
        """
        Parse a coin off the wire and re-validate it.

        Raises:
            DeserializationError: On a wrong buffer size
            InvalidGroupElementError: If the commitment is not a group member
            InvalidDenominationError: If the tag is unknown
        """
        if len(data) != cls.SERIALIZED_SIZE:
            raise DeserializationError(
                f"Public coin must be {cls.SERIALIZED_SIZE} bytes, got {len(data)}"
            )
        value = point_from_bytes(bytes(data[:GROUP_ELEMENT_SIZE]))
        denomination = Denomination.from_tag_bytes(bytes(data[GROUP_ELEMENT_SIZE:]))

        coin = cls(value, denomination)
        if not coin.validate():
            raise InvalidGroupElementError("Public coin value is not a group member")
        return coin

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": bytes_to_hex(point_to_bytes(self._value)),
            "denomination": self._denomination.label,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PublicCoin":
        return cls(
            point_from_bytes(hex_to_bytes(data["value"])),
            label_to_denomination(data["denomination"]),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PublicCoin):
            return NotImplemented
        return self._value == other._value

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        return hash(self.get_value_hash())

    def __repr__(self) -> str:
        if not self.validate():
            return f"PublicCoin(value=<identity>, denomination={self._denomination})"
        return (
            f"PublicCoin(value_hash={self.get_value_hash().hex()[:16]}, "
            f"denomination={self._denomination})"
        )


class PrivateCoin:
    """
    Opening of a Sigma coin, held only by the wallet.

    Invariant after minting: ``public_coin.value == Commit(serial_number, randomness)``.
    The setters exist for restoring coins from wallet storage; they do not
    re-check that invariant, the caller restoring the coin is responsible
    for it (see ``verify_binding``).
    """

    def __init__(
        self,
        params: Params,
        denomination: Denomination,
        version: Optional[int] = None,
    ):
        if not isinstance(params, Params):
            raise TypeError('Bad type for parameters!')

        self._params = params
        self._version = get_settings().coin_version if version is None else version
        self._public_coin: Optional[PublicCoin] = None
        self._serial_number: Optional[int] = None
        self._randomness: Optional[int] = None
        self._ecdsa_seckey: Optional[EcdsaSecretKey] = None

        self.mint_coin(denomination)

    def mint_coin(self, denomination: Denomination) -> None:
        """
        Mint a fresh coin of ``denomination``.

        1. Rejection-sample an ECDSA key pair
        2. Derive the serial number from its public key
        3. Sample commitment randomness
        4. Commit and wrap the commitment with the denomination

        Fields are only assigned once every step has succeeded.

        Raises:
            InvalidDenominationError: If ``denomination`` is not a Denomination
            RandomnessUnavailableError: If the entropy source fails
        """
        if not isinstance(denomination, Denomination):
            raise InvalidDenominationError('Bad type for coin denomination!')

        seckey = EcdsaSecretKey.generate()
        serial_number = serial_number_from_public_key(seckey.public_key())
        randomness = random_scalar()
        commitment = Commitment.commit_coin(self._params, serial_number, randomness)
        public_coin = PublicCoin(commitment, denomination)

        self._ecdsa_seckey = seckey
        self._serial_number = serial_number
        self._randomness = randomness
        self._public_coin = public_coin

        logger.debug(
            f"Minted {denomination} coin {public_coin.get_value_hash().hex()[:16]}"
        )

    @property
    def params(self) -> Params:
        return self._params

    @property
    def public_coin(self) -> PublicCoin:
        return self._public_coin

    @property
    def serial_number(self) -> int:
        return self._serial_number

    @property
    def randomness(self) -> int:
        return self._randomness

    @property
    def ecdsa_seckey(self) -> EcdsaSecretKey:
        return self._ecdsa_seckey

    @property
    def version(self) -> int:
        return self._version

    @property
    def denomination(self) -> Denomination:
        return self._public_coin.denomination

    def set_public_coin(self, public_coin: PublicCoin) -> None:
        if not isinstance(public_coin, PublicCoin):
            raise TypeError('Bad type for public coin!')
        self._public_coin = public_coin

    def set_serial_number(self, serial_number: int) -> None:
        self._serial_number = serial_number

    def set_randomness(self, randomness: int) -> None:
        self._randomness = randomness

    def set_ecdsa_seckey(self, seckey: Union[EcdsaSecretKey, bytes, bytearray, int]) -> None:
        """
        Replace the ECDSA secret key.

        Accepts an ``EcdsaSecretKey``, exactly 32 bytes, or a 256-bit integer.

        Raises:
            InvalidSecretKeyError: If the key has the wrong size or is invalid
        """
        if isinstance(seckey, EcdsaSecretKey):
            self._ecdsa_seckey = seckey
        elif isinstance(seckey, int) and not isinstance(seckey, bool):
            self._ecdsa_seckey = EcdsaSecretKey.from_int(seckey)
        else:
            self._ecdsa_seckey = EcdsaSecretKey(seckey)

    def set_version(self, version: int) -> None:
        self._version = version

    def verify_binding(self) -> bool:
        """Check ``public_coin.value == Commit(serial_number, randomness)``."""
        return Commitment.verify(
            self._params,
            self._serial_number,
            self._randomness,
            self._public_coin.value,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Export for the wallet persistence layer. Contains secrets."""
        return {
            "version": self._version,
            "public_coin": self._public_coin.to_dict(),
            "serial_number": bytes_to_hex(scalar_to_bytes(self._serial_number)),
            "randomness": bytes_to_hex(scalar_to_bytes(self._randomness)),
            "ecdsa_seckey": bytes_to_hex(bytes(self._ecdsa_seckey)),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], params: Params) -> "PrivateCoin":
        """
        Restore a coin exported with ``to_dict``.

        The binding invariant is not re-checked here.
        """
        if not isinstance(params, Params):
            raise TypeError('Bad type for parameters!')

        # Restored coins are not minted
        coin = cls.__new__(cls)
        coin._params = params
        coin._version = data["version"]
        coin._ecdsa_seckey = None

        public_coin = PublicCoin.from_dict(data["public_coin"])
        coin.set_public_coin(public_coin)
        coin.set_serial_number(scalar_from_bytes(hex_to_bytes(data["serial_number"])))
        coin.set_randomness(scalar_from_bytes(hex_to_bytes(data["randomness"])))
        coin.set_ecdsa_seckey(hex_to_bytes(data["ecdsa_seckey"]))
        return coin

    def __repr__(self) -> str:
        return f"PrivateCoin(version={self._version}, public_coin={self._public_coin!r})"
