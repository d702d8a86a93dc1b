#!/usr/bin/env python3
"""
Quick start guide for Sigma coins.

Run this to see minting, publishing and proof framing end to end.
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sigmacoin import (
    PrivateCoin,
    PublicCoin,
    R1Proof,
    all_denominations,
    denomination_to_amount,
    label_to_denomination,
)
from sigmacoin.config import configure_logging
from sigmacoin.crypto.group import Params, random_scalar


def main():
    """Mint a coin, relay its public half and frame an R1 proof."""
    configure_logging()
    params = Params.default()

    print("=" * 70)
    print("SIGMA COIN QUICK START EXAMPLE")
    print("=" * 70)
    print()

    print("Step 1: Denominations (largest first)")
    print("-" * 70)
    for denomination in all_denominations():
        print(f"  {denomination}: {denomination_to_amount(denomination)} units")
    print()

    print("Step 2: Mint a 100 coin")
    print("-" * 70)
    coin = PrivateCoin(params, label_to_denomination("100"))
    print(f"✓ Coin minted: {coin!r}")
    print(f"  Binding holds: {coin.verify_binding()}")
    print()

    print("Step 3: Publish the commitment")
    print("-" * 70)
    wire = coin.public_coin.serialize()
    relayed = PublicCoin.deserialize(wire)
    print(f"✓ {len(wire)} bytes on the wire, matches: {relayed == coin.public_coin}")
    print(f"  Value hash: {relayed.get_value_hash().hex()}")
    print()

    print("Step 4: Frame an R1 proof for n=16, m=4")
    print("-" * 70)
    n, m = 16, 4
    proof = R1Proof(
        A=params.g * random_scalar(),
        C=params.g * random_scalar(),
        D=params.g * random_scalar(),
        f=[random_scalar() for _ in range(R1Proof.f_size(n, m))],
        ZA=random_scalar(),
        ZC=random_scalar(),
    )
    data = proof.serialize(n, m)
    print(f"✓ {len(data)} bytes (required {R1Proof.required_size(n, m)})")
    print(f"  Round trip ok: {R1Proof.deserialize(data, n, m) == proof}")


if __name__ == "__main__":
    main()
