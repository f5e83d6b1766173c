"""
STARK message signing.

Server endpoints issue message hashes in two encodings: hex (orders,
internal transfers) and, for withdrawals, either hex or a bare decimal
integer. Every hash is normalised to an integer scalar before signing;
signing the wrong interpretation yields a valid-looking signature the
server rejects.

Withdrawal signatures carry ``recoveryParam`` (needed by the on-chain
verifier); order and internal-transfer signatures must not.
"""

import re
import logging
from typing import Union

from starkware.crypto.signature.signature import (
    ALPHA,
    EC_GEN,
    FIELD_PRIME,
    N_ELEMENT_BITS_ECDSA,
    ec_mult,
    generate_k_rfc6979,
    sign,
    verify,
)

from .key_derivation import StarkKeyPair
from ..exceptions import SigningError, ValidationError
from ..models import OrderNonce, SignedOrder, StarkSignature

logger = logging.getLogger(__name__)


MAX_SIGNABLE_HASH = 2 ** N_ELEMENT_BITS_ECDSA

# Seeds tried when recovering the nonce point of a signature
MAX_NONCE_SEEDS = 64

HashInput = Union[int, str]


def normalize_message_hash(value: HashInput, *, decimal_strings: bool = False) -> int:
    """
    Parse a server message hash into the integer that gets signed.

    Args:
        value: int, 0x-prefixed hex, or bare hex string
        decimal_strings: Read a bare all-digit string as decimal

    Returns:
        Hash as int

    Raises:
        ValidationError: If the value is unparseable or outside the signable range
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid message hash: {value!r}")

    if isinstance(value, int):
        msg_hash = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            if text[:2] in ("0x", "0X"):
                msg_hash = int(text[2:], 16)
            elif decimal_strings and text.isdigit():
                msg_hash = int(text, 10)
            else:
                msg_hash = int(text, 16)
        except ValueError as e:
            raise ValidationError(f"Invalid message hash: {value!r}") from e
    else:
        raise ValidationError(f"Message hash must be int or str, got {type(value)}")

    if not 0 <= msg_hash < MAX_SIGNABLE_HASH:
        raise ValidationError(f"Message hash out of signable range: {value!r}")

    return msg_hash


def to_fixed_width_hex(value: int) -> str:
    """Scalar as ``0x`` + 64 hex digits."""
    return "0x" + format(value, "064x")


def format_withdrawal_hash(msg_hash: HashInput) -> str:
    """
    Hash as sent to the withdrawal validate endpoint.

    Minimal even-length hex with the leading ``0x`` (or ``0x0``) removed.
    """
    value = normalize_message_hash(msg_hash, decimal_strings=True)
    digits = format(value, "x")
    if len(digits) % 2:
        digits = "0" + digits
    return re.sub(r"^(0x0|0x)", "", "0x" + digits)


def _nonce_point_parity(msg_hash: int, private_key: int, r: int) -> int:
    # Walks the same deterministic nonce sequence as sign()
    seed = None
    for _ in range(MAX_NONCE_SEEDS):
        k = generate_k_rfc6979(msg_hash, private_key, seed)
        x, y = ec_mult(k, EC_GEN, ALPHA, FIELD_PRIME)
        if x == r:
            return y & 1
        seed = 1 if seed is None else seed + 1
    raise SigningError("Could not recover the nonce point of the signature")


def sign_message_hash(
    key_pair: StarkKeyPair,
    msg_hash: HashInput,
    *,
    decimal_strings: bool = False
) -> StarkSignature:
    """
    Sign a message hash with a STARK key pair.

    Args:
        key_pair: Signing key pair
        msg_hash: Hash from the server (see ``normalize_message_hash``)
        decimal_strings: Read a bare all-digit hash as decimal

    Returns:
        Signature with 0x-prefixed ``r`` and ``s``
    """
    value = normalize_message_hash(msg_hash, decimal_strings=decimal_strings)
    r, s = sign(value, key_pair.private_key)
    return StarkSignature(r=hex(r), s=hex(s))


def sign_order_nonce(key_pair: StarkKeyPair, nonce: OrderNonce) -> SignedOrder:
    """Sign an order nonce; the body echoes the server's hash as received."""
    signature = sign_message_hash(key_pair, nonce.msg_hash)
    return SignedOrder(msg_hash=nonce.msg_hash, signature=signature, nonce=nonce.nonce)


def sign_internal_transfer_hash(key_pair: StarkKeyPair, msg_hash: HashInput) -> StarkSignature:
    """Sign an internal transfer hash (no recovery parameter)."""
    return sign_message_hash(key_pair, msg_hash)


def sign_withdrawal_hash(key_pair: StarkKeyPair, msg_hash: HashInput) -> StarkSignature:
    """Sign a withdrawal hash, including the nonce point's y parity as ``recoveryParam``."""
    value = normalize_message_hash(msg_hash, decimal_strings=True)
    r, s = sign(value, key_pair.private_key)
    recovery_param = _nonce_point_parity(value, key_pair.private_key, r)
    return StarkSignature(r=hex(r), s=hex(s), recovery_param=recovery_param)


def verify_signature(
    public_key: Union[int, str],
    msg_hash: HashInput,
    signature: StarkSignature,
    *,
    decimal_strings: bool = False
) -> bool:
    """Check a signature against a STARK public key (x-coordinate)."""
    if isinstance(public_key, str):
        public_key = int(public_key, 16)

    value = normalize_message_hash(msg_hash, decimal_strings=decimal_strings)
    try:
        return verify(value, int(signature.r, 16), int(signature.s, 16), public_key)
    except AssertionError:
        # starkware asserts on out-of-range r/s/public key
        return False
