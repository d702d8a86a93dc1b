"""Main package initialization."""

__version__ = "0.1.0"
__author__ = "Sigma Coin Team"
__description__ = "Sigma privacy coins: denominations, Pedersen commitments, minting and R1 proofs"

from .core.denomination import (
    COIN,
    Denomination,
    all_denominations,
    amount_to_denomination,
    denomination_to_amount,
    denomination_to_label,
    label_to_denomination,
    real_number_to_denomination,
)
from .core.commitment import Commitment
from .core.coin import EcdsaSecretKey, PrivateCoin, PublicCoin
from .crypto.group import Params
from .crypto.r1_proof import R1Proof

__all__ = [
    "COIN",
    "Denomination",
    "all_denominations",
    "amount_to_denomination",
    "denomination_to_amount",
    "denomination_to_label",
    "label_to_denomination",
    "real_number_to_denomination",
    "Commitment",
    "EcdsaSecretKey",
    "PrivateCoin",
    "PublicCoin",
    "Params",
    "R1Proof",
]
