"""Tests for public and private Sigma coins."""

import pytest
from cryptography.hazmat.primitives.asymmetric import ec

import sigmacoin.core.coin as coin_module
from sigmacoin.core.coin import (
    PUBLICKEY_TO_SERIALNUMBER,
    SECP256K1_ORDER,
    EcdsaSecretKey,
    PrivateCoin,
    PublicCoin,
    serial_number_from_public_key,
)
from sigmacoin.core.commitment import Commitment
from sigmacoin.core.denomination import COIN, Denomination, denomination_to_amount
from sigmacoin.crypto.group import hash_to_scalar, point_to_bytes, random_scalar
from sigmacoin.exceptions import (
    DeserializationError,
    InvalidDenominationError,
    InvalidGroupElementError,
    InvalidSecretKeyError,
    RandomnessUnavailableError,
)
from sigmacoin.utils.hash import sha256


class TestEcdsaSecretKey:
    """Tests for the fixed-size ECDSA secret key."""

    def test_generate(self):
        """Test generated keys are valid and distinct."""
        key1 = EcdsaSecretKey.generate()
        key2 = EcdsaSecretKey.generate()

        assert len(bytes(key1)) == 32
        assert 0 < key1.to_int() < SECP256K1_ORDER
        assert key1 != key2

    @pytest.mark.parametrize("size", [0, 31, 33, 64])
    def test_wrong_size_rejected(self, size):
        """Test only 32-byte keys are accepted."""
        with pytest.raises(InvalidSecretKeyError):
            EcdsaSecretKey(b"\x01" * size)

    def test_zero_key_rejected(self):
        """Test the all-zero key is rejected."""
        with pytest.raises(InvalidSecretKeyError):
            EcdsaSecretKey(b"\x00" * 32)

    def test_out_of_range_key_rejected(self):
        """Test keys at or above the curve order are rejected."""
        with pytest.raises(InvalidSecretKeyError):
            EcdsaSecretKey.from_int(SECP256K1_ORDER)

    def test_wrong_size_is_value_error(self):
        """Test the size check is a programming error."""
        with pytest.raises(ValueError):
            EcdsaSecretKey(b"short")

    def test_from_int(self):
        """Test integer construction."""
        key = EcdsaSecretKey.from_int(12345)
        assert key.to_int() == 12345
        with pytest.raises(InvalidSecretKeyError):
            EcdsaSecretKey.from_int(2 ** 256)

    def test_public_key_on_secp256k1(self):
        """Test public keys are derived on secp256k1."""
        key = EcdsaSecretKey.from_int(1)
        assert isinstance(key.public_key().curve, ec.SECP256K1)

    def test_repr_hides_secret(self):
        """Test repr does not reveal key material."""
        key = EcdsaSecretKey.generate()
        assert key.hex() not in repr(key)

    def test_generate_retries_invalid_candidates(self, monkeypatch):
        """Test rejection sampling skips unusable candidates."""
        candidates = iter([
            b"\x00" * 32,
            SECP256K1_ORDER.to_bytes(32, "big"),
            (7).to_bytes(32, "big"),
        ])
        monkeypatch.setattr(coin_module, "_random_bytes", lambda size: next(candidates))

        key = EcdsaSecretKey.generate()

        assert key.to_int() == 7

    def test_generate_fails_without_entropy(self, monkeypatch):
        """Test an entropy failure is fatal, not retried."""
        calls = []

        def broken(size):
            calls.append(size)
            raise OSError("no entropy")

        monkeypatch.setattr(coin_module.secrets, "token_bytes", broken)

        with pytest.raises(RandomnessUnavailableError):
            EcdsaSecretKey.generate()
        assert len(calls) == 1


class TestSerialNumberDerivation:
    """Tests for serial number derivation."""

    def test_deterministic(self):
        """Test the same public key always gives the same serial."""
        key = EcdsaSecretKey.generate()
        assert serial_number_from_public_key(key.public_key()) == \
            serial_number_from_public_key(key.public_key())

    def test_evaluate_then_hash(self):
        """Test the serial is H(tag || H(ECDH(pubkey, 1)))."""
        key = EcdsaSecretKey.from_int(2)
        public_numbers = key.public_key().public_numbers()
        shared_x = public_numbers.x.to_bytes(32, "big")

        expected = hash_to_scalar(PUBLICKEY_TO_SERIALNUMBER, sha256(shared_x))

        assert serial_number_from_public_key(key.public_key()) == expected

    def test_different_keys_different_serials(self):
        """Test distinct keys give distinct serials."""
        serials = {
            serial_number_from_public_key(EcdsaSecretKey.generate().public_key())
            for _ in range(20)
        }
        assert len(serials) == 20

    def test_negated_key_gives_same_serial(self):
        """Test P and -P share a serial, since ECDH exposes only x."""
        key = EcdsaSecretKey.generate()
        negated = EcdsaSecretKey.from_int(SECP256K1_ORDER - key.to_int())

        p = key.public_key().public_numbers()
        minus_p = negated.public_key().public_numbers()
        assert p.x == minus_p.x
        assert p.y != minus_p.y

        assert serial_number_from_public_key(key.public_key()) == \
            serial_number_from_public_key(negated.public_key())


class TestPublicCoin:
    """Tests for PublicCoin."""

    def test_equality_ignores_denomination(self, params):
        """Test coins compare equal on commitment alone."""
        value = params.g * random_scalar()

        assert PublicCoin(value, Denomination.X1) == PublicCoin(value, Denomination.X5000)
        assert not PublicCoin(value, Denomination.X1) != PublicCoin(value, Denomination.X10)

    def test_inequality(self, params):
        """Test coins with different commitments differ."""
        coin1 = PublicCoin(params.g * random_scalar(), Denomination.X10)
        coin2 = PublicCoin(params.g * random_scalar(), Denomination.X10)

        assert coin1 != coin2

    def test_value_hash_cached(self, params):
        """Test the value hash is computed once and stable."""
        coin = PublicCoin(params.g * random_scalar(), Denomination.X50)

        first = coin.get_value_hash()
        second = coin.get_value_hash()

        assert first is second
        assert first == sha256(point_to_bytes(coin.value))

    def test_usable_as_set_key(self, params):
        """Test coins hash by commitment."""
        value = params.g * random_scalar()
        coins = {PublicCoin(value, Denomination.X1), PublicCoin(value, Denomination.X10)}
        assert len(coins) == 1

    def test_validate(self, params):
        """Test membership validation."""
        assert PublicCoin(params.g * random_scalar(), Denomination.X1).validate()
        assert not PublicCoin(params.g * 0, Denomination.X1).validate()

    def test_bad_denomination_type(self, params):
        """Test construction requires a Denomination."""
        with pytest.raises(InvalidDenominationError):
            PublicCoin(params.g, 100)

    def test_bad_value_type(self):
        """Test construction requires a group element."""
        with pytest.raises(TypeError):
            PublicCoin(b"\x02" * 33, Denomination.X1)

    def test_wire_format(self, params):
        """Test the serialized layout and size."""
        coin = PublicCoin(params.g * random_scalar(), Denomination.X500)

        data = coin.serialize()

        assert len(data) == coin.serialized_size() == 37
        assert data[:33] == point_to_bytes(coin.value)
        assert data[33:] == Denomination.X500.tag_bytes()

        restored = PublicCoin.deserialize(data)
        assert restored == coin
        assert restored.denomination is Denomination.X500

    def test_deserialize_rejects_bad_point(self, params):
        """Test an invalid commitment is rejected off the wire."""
        data = bytearray(PublicCoin(params.g, Denomination.X1).serialize())
        data[0] = 0x04

        with pytest.raises(InvalidGroupElementError):
            PublicCoin.deserialize(bytes(data))

    def test_deserialize_rejects_bad_tag(self, params):
        """Test an unknown denomination tag is rejected."""
        data = PublicCoin(params.g, Denomination.X1).serialize()[:33] + (9).to_bytes(4, "little")

        with pytest.raises(InvalidDenominationError):
            PublicCoin.deserialize(data)

    def test_deserialize_rejects_bad_size(self, params):
        """Test truncated and padded buffers are rejected."""
        data = PublicCoin(params.g, Denomination.X1).serialize()

        with pytest.raises(DeserializationError):
            PublicCoin.deserialize(data[:-1])
        with pytest.raises(DeserializationError):
            PublicCoin.deserialize(data + b"\x00")

    def test_dict_round_trip(self, params):
        """Test hex export used by wallet storage."""
        coin = PublicCoin(params.g * random_scalar(), Denomination.X1000)

        restored = PublicCoin.from_dict(coin.to_dict())

        assert restored == coin
        assert restored.denomination is Denomination.X1000


class TestPrivateCoinMinting:
    """Tests for PrivateCoin.mint_coin."""

    def test_binding_invariant(self, params, minted_coin):
        """Test the public coin commits to serial and randomness."""
        expected = Commitment.commit_coin(
            params, minted_coin.serial_number, minted_coin.randomness
        )

        assert minted_coin.public_coin.value == expected
        assert minted_coin.verify_binding()

    def test_serial_from_seckey(self, minted_coin):
        """Test the serial number is derived from the stored key."""
        expected = serial_number_from_public_key(minted_coin.ecdsa_seckey.public_key())

        assert minted_coin.serial_number == expected

    def test_denomination_preserved(self, minted_coin):
        """Test the minted coin carries the requested denomination."""
        assert minted_coin.denomination is Denomination.X100
        assert denomination_to_amount(minted_coin.public_coin.denomination) == 100 * COIN

    def test_two_mints_differ(self, params):
        """Test two mints of the same denomination are unrelated."""
        coin1 = PrivateCoin(params, Denomination.X100)
        coin2 = PrivateCoin(params, Denomination.X100)

        assert coin1.public_coin != coin2.public_coin
        assert coin1.serial_number != coin2.serial_number
        assert coin1.randomness != coin2.randomness

    def test_public_coin_validates(self, minted_coin):
        """Test minted commitments are group members."""
        assert minted_coin.public_coin.validate()

    def test_default_version(self, minted_coin):
        """Test the default version comes from settings."""
        assert minted_coin.version == 30

    def test_version_from_environment(self, params, monkeypatch):
        """Test SIGMA_COIN_VERSION overrides the default."""
        monkeypatch.setenv("SIGMA_COIN_VERSION", "31")

        assert PrivateCoin(params, Denomination.X1).version == 31

    def test_explicit_version(self, params):
        """Test an explicit version wins over settings."""
        assert PrivateCoin(params, Denomination.X1, version=7).version == 7

    def test_invalid_denomination(self, params):
        """Test minting requires a Denomination."""
        with pytest.raises(InvalidDenominationError):
            PrivateCoin(params, 100)

    def test_invalid_params(self):
        """Test minting requires Params."""
        with pytest.raises(TypeError):
            PrivateCoin(None, Denomination.X1)

    def test_failed_remint_leaves_coin_unchanged(self, minted_coin, monkeypatch):
        """Test a failed mint does not leave partial state."""
        before = minted_coin.to_dict()

        def broken(size):
            raise RandomnessUnavailableError("Unable to generate randomness")

        monkeypatch.setattr(coin_module, "_random_bytes", broken)

        with pytest.raises(RandomnessUnavailableError):
            minted_coin.mint_coin(Denomination.X10)
        assert minted_coin.to_dict() == before

    def test_repr_hides_secrets(self, minted_coin):
        """Test repr does not contain the opening."""
        text = repr(minted_coin)

        assert hex(minted_coin.serial_number)[2:] not in text
        assert minted_coin.ecdsa_seckey.hex() not in text


class TestPrivateCoinRestore:
    """Tests for setters and storage round trips."""

    def test_setters(self, params, minted_coin):
        """Test setters overwrite fields without re-verification."""
        other = PrivateCoin(params, Denomination.X10)

        minted_coin.set_serial_number(other.serial_number)
        minted_coin.set_randomness(other.randomness)
        minted_coin.set_ecdsa_seckey(other.ecdsa_seckey)
        minted_coin.set_version(42)

        assert minted_coin.serial_number == other.serial_number
        assert minted_coin.version == 42
        # public coin was not replaced, so the binding no longer holds
        assert not minted_coin.verify_binding()

        minted_coin.set_public_coin(other.public_coin)
        assert minted_coin.verify_binding()

    def test_set_ecdsa_seckey_forms(self, minted_coin):
        """Test bytes and uint256 forms of the key setter."""
        minted_coin.set_ecdsa_seckey(b"\x11" * 32)
        assert bytes(minted_coin.ecdsa_seckey) == b"\x11" * 32

        minted_coin.set_ecdsa_seckey(0x22)
        assert minted_coin.ecdsa_seckey.to_int() == 0x22

    def test_set_ecdsa_seckey_wrong_size(self, minted_coin):
        """Test a wrong-size key is rejected and the old key kept."""
        before = minted_coin.ecdsa_seckey

        with pytest.raises(InvalidSecretKeyError):
            minted_coin.set_ecdsa_seckey(b"\x11" * 31)
        assert minted_coin.ecdsa_seckey == before

    def test_set_public_coin_type(self, minted_coin):
        """Test set_public_coin requires a PublicCoin."""
        with pytest.raises(TypeError):
            minted_coin.set_public_coin(b"coin")

    def test_dict_round_trip(self, params, minted_coin):
        """Test restoring a coin from its storage export."""
        restored = PrivateCoin.from_dict(minted_coin.to_dict(), params)

        assert restored.public_coin == minted_coin.public_coin
        assert restored.denomination is minted_coin.denomination
        assert restored.serial_number == minted_coin.serial_number
        assert restored.randomness == minted_coin.randomness
        assert restored.ecdsa_seckey == minted_coin.ecdsa_seckey
        assert restored.version == minted_coin.version
        assert restored.verify_binding()

    def test_restore_does_not_mint(self, params, minted_coin, monkeypatch, caplog):
        """Test restoring draws no randomness and logs no mint."""
        data = minted_coin.to_dict()

        def no_entropy(*args):
            raise AssertionError("restore must not draw randomness")

        monkeypatch.setattr(coin_module, "_random_bytes", no_entropy)
        monkeypatch.setattr(coin_module, "random_scalar", no_entropy)

        with caplog.at_level("DEBUG", logger="sigmacoin.core.coin"):
            restored = PrivateCoin.from_dict(data, params)

        assert restored.public_coin == minted_coin.public_coin
        assert restored.verify_binding()
        assert not any("Minted" in record.getMessage() for record in caplog.records)

    def test_restore_requires_params(self, minted_coin):
        """Test restoring checks the parameter type."""
        with pytest.raises(TypeError):
            PrivateCoin.from_dict(minted_coin.to_dict(), "params")
