"""Authentication and signing modules for the tanX client."""

from .key_derivation import (
    EthereumIdentity,
    UserSignature,
    StarkKeyPair,
    derive_user_signature,
    derive_stark_key_pair,
    generate_key_pair_from_eth_private_key,
    sign_login_nonce,
)
from .signer import (
    sign_message_hash,
    sign_order_nonce,
    sign_withdrawal_hash,
    sign_internal_transfer_hash,
    verify_signature,
)
from .session import SessionManager, SessionTokens

__all__ = [
    "EthereumIdentity",
    "UserSignature",
    "StarkKeyPair",
    "derive_user_signature",
    "derive_stark_key_pair",
    "generate_key_pair_from_eth_private_key",
    "sign_login_nonce",
    "sign_message_hash",
    "sign_order_nonce",
    "sign_withdrawal_hash",
    "sign_internal_transfer_hash",
    "verify_signature",
    "SessionManager",
    "SessionTokens",
]
