"""Pytest configuration and fixtures."""

import pytest
import sys
from pathlib import Path

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from sigmacoin.config import reset_settings
from sigmacoin.core.coin import PrivateCoin
from sigmacoin.core.denomination import Denomination
from sigmacoin.crypto.group import Params, random_scalar
from sigmacoin.crypto.r1_proof import R1Proof


@pytest.fixture(autouse=True)
def fresh_settings():
    """Re-read settings for every test so monkeypatched env vars apply."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(scope="session")
def params():
    """Fixture providing the default group parameters."""
    return Params.default()


@pytest.fixture
def minted_coin(params):
    """Fixture providing a freshly minted 100-unit coin."""
    return PrivateCoin(params, Denomination.X100)


@pytest.fixture
def make_proof(params):
    """Factory for random R1 proofs of given dimensions."""

    def _make(n: int, m: int) -> R1Proof:
        return R1Proof(
            A=params.g * random_scalar(),
            C=params.g * random_scalar(),
            D=params.h0 * random_scalar(),
            f=[random_scalar() for _ in range(m * (n - 1))],
            ZA=random_scalar(),
            ZC=random_scalar(),
        )

    return _make
