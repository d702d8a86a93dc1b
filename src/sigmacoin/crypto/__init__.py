"""Cryptographic primitives module"""

from sigmacoin.crypto.group import (
    GROUP_ELEMENT_SIZE,
    ORDER,
    SCALAR_SIZE,
    Params,
    hash_to_point,
    hash_to_scalar,
    is_member,
    point_from_bytes,
    point_to_bytes,
    random_scalar,
    scalar_from_bytes,
    scalar_to_bytes,
)

from sigmacoin.crypto.r1_proof import R1Proof

__all__ = [
    'GROUP_ELEMENT_SIZE',
    'ORDER',
    'SCALAR_SIZE',
    'Params',
    'hash_to_point',
    'hash_to_scalar',
    'is_member',
    'point_from_bytes',
    'point_to_bytes',
    'random_scalar',
    'scalar_from_bytes',
    'scalar_to_bytes',
    'R1Proof',
]
