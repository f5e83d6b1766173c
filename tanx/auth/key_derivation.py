"""
STARK key derivation.

An Ethereum account signs a fixed, environment-specific message (EIP-191
personal_sign). The ``r`` half of that signature is ground into a STARK-curve
private scalar, so each Ethereum address maps to one stable layer-2 identity.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import to_hex
from starkware.crypto.signature.signature import EC_ORDER, private_to_stark_key

from ..exceptions import SigningError, ValidationError
from ..models import Environment
from ..utils.validators import validate_address, validate_private_key, strip_hex_prefix

logger = logging.getLogger(__name__)


USER_SIGNATURE_MESSAGES = {
    Environment.MAINNET: "Get started with TanX. Make sure the origin is https://trade.tanx.fi",
    Environment.TESTNET: "Click sign to verify you're a human - TanX Finance",
}

SHA256_EC_MAX_DIGEST = 2 ** 256


@dataclass(frozen=True)
class EthereumIdentity:
    """
    Ethereum account used to sign login nonces and the key-derivation message.

    Exactly one of ``private_key`` or ``signer`` is set. ``signer`` takes the
    message text and returns a 0x-hex EIP-191 signature (hardware wallets,
    remote signers).
    """
    address: str
    private_key: Optional[str] = field(default=None, repr=False)
    signer: Optional[Callable[[str], str]] = field(default=None, repr=False)

    def __post_init__(self):
        if (self.private_key is None) == (self.signer is None):
            raise ValidationError("Provide exactly one of private_key or signer")

        object.__setattr__(self, "address", validate_address(self.address))

        if self.private_key is not None:
            key = validate_private_key(self.private_key)
            derived = Account.from_key(key).address
            if derived != self.address:
                raise ValidationError(
                    f"Private key does not belong to {self.address}"
                )
            object.__setattr__(self, "private_key", key)

    @classmethod
    def from_private_key(cls, private_key: str) -> "EthereumIdentity":
        """Build an identity whose address is derived from the key."""
        key = validate_private_key(private_key)
        return cls(address=Account.from_key(key).address, private_key=key)

    def sign_text(self, text: str) -> str:
        """EIP-191 personal_sign over ``text``; returns 0x-hex."""
        if self.signer is not None:
            return self.signer(text)

        signed = Account.sign_message(encode_defunct(text=text), private_key=self.private_key)
        return to_hex(signed.signature)


@dataclass(frozen=True)
class UserSignature:
    """Ethereum signature over the environment's key-derivation message."""
    signature: str = field(repr=False)
    environment: Environment = Environment.MAINNET

    @property
    def r(self) -> int:
        """First 32 bytes of the 65-byte signature."""
        raw = strip_hex_prefix(self.signature)
        if len(raw) < 128:
            raise SigningError("Ethereum signature is too short to carry r and s")
        return int(raw[:64], 16)


@dataclass(frozen=True)
class StarkKeyPair:
    """STARK-curve key pair. ``public_key`` is the x-coordinate of the public point."""
    private_key: int = field(repr=False)
    public_key: int

    @property
    def private_key_hex(self) -> str:
        return hex(self.private_key)

    @property
    def public_key_hex(self) -> str:
        return hex(self.public_key)

    @classmethod
    def from_private_key(cls, private_key: Union[int, str]) -> "StarkKeyPair":
        """Rebuild a key pair from a stored STARK private scalar."""
        if isinstance(private_key, str):
            private_key = int(strip_hex_prefix(private_key), 16)
        if not 0 < private_key < EC_ORDER:
            raise ValidationError("STARK private key out of range")
        return cls(private_key=private_key, public_key=private_to_stark_key(private_key))


def _hash_key_with_index(key_seed: int, index: int) -> int:
    index_hex = format(index, "x")
    if len(index_hex) % 2:
        index_hex = "0" + index_hex
    data = key_seed.to_bytes(32, "big") + bytes.fromhex(index_hex)
    return int.from_bytes(hashlib.sha256(data).digest(), "big")


def grind_key(key_seed: int, key_value_limit: int = EC_ORDER) -> int:
    """
    Map a 256-bit seed to a uniform scalar below ``key_value_limit``.

    Hashes ``seed || index`` for index 0, 1, ... and keeps the first digest
    below the largest multiple of the limit, so the final modulo is unbiased.
    """
    max_allowed = SHA256_EC_MAX_DIGEST - (SHA256_EC_MAX_DIGEST % key_value_limit)
    index = 0
    key = _hash_key_with_index(key_seed, index)
    while key >= max_allowed:
        index += 1
        key = _hash_key_with_index(key_seed, index)
    return key % key_value_limit


def derive_user_signature(
    identity: EthereumIdentity,
    environment: Union[Environment, str] = Environment.MAINNET
) -> UserSignature:
    """
    Sign the environment's key-derivation message.

    Deterministic for a given (key, environment): eth-account signs with
    RFC 6979 nonces.
    """
    environment = Environment(environment)
    signature = identity.sign_text(USER_SIGNATURE_MESSAGES[environment])
    return UserSignature(signature=signature, environment=environment)


def derive_stark_key_pair(user_signature: Union[UserSignature, str]) -> StarkKeyPair:
    """Grind the signature's ``r`` into a STARK key pair."""
    if isinstance(user_signature, str):
        user_signature = UserSignature(signature=user_signature)

    private_key = grind_key(user_signature.r, EC_ORDER)
    key_pair = StarkKeyPair(private_key=private_key, public_key=private_to_stark_key(private_key))
    logger.debug(f"Derived STARK key {key_pair.public_key_hex}")
    return key_pair


def generate_key_pair_from_eth_private_key(
    private_key: str,
    environment: Union[Environment, str] = Environment.MAINNET
) -> StarkKeyPair:
    """Derive the STARK key pair of an Ethereum private key in one step."""
    identity = EthereumIdentity.from_private_key(private_key)
    return derive_stark_key_pair(derive_user_signature(identity, environment))


def sign_login_nonce(identity: EthereumIdentity, nonce: str) -> str:
    """Sign the server-issued login nonce text."""
    return identity.sign_text(nonce)
