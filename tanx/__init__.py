"""
tanX Client Library

Async client for the tanX exchange: STARK key derivation from an Ethereum
account, signed orders, withdrawals, internal transfers and deposits.
"""

from .client import TanxClient
from .config import TanxSettings, get_settings
from .logging_config import setup_logging
from .models import (
    Environment,
    AllowListKind,
    Network,
    Side,
    OrderType,
    StarkSignature,
    CoinConfig,
    NetworkCoinConfig,
)
from .auth import (
    EthereumIdentity,
    StarkKeyPair,
    derive_user_signature,
    derive_stark_key_pair,
    generate_key_pair_from_eth_private_key,
    sign_message_hash,
    sign_withdrawal_hash,
    sign_internal_transfer_hash,
    verify_signature,
)
from .chain import ChainAdapter, Web3ChainAdapter
from .exceptions import (
    TanxError,
    APIError,
    AuthenticationError,
    ValidationError,
    InvalidAmountError,
    CoinNotFoundError,
    InstitutionalOnlyError,
    BalanceTooLowError,
    AllowanceTooLowError,
    TransactionFlowError,
    TimeoutError,
)

__version__ = "1.0.0"

__all__ = [
    "TanxClient",
    "TanxSettings",
    "get_settings",
    "setup_logging",
    "Environment",
    "AllowListKind",
    "Network",
    "Side",
    "OrderType",
    "StarkSignature",
    "CoinConfig",
    "NetworkCoinConfig",
    "EthereumIdentity",
    "StarkKeyPair",
    "derive_user_signature",
    "derive_stark_key_pair",
    "generate_key_pair_from_eth_private_key",
    "sign_message_hash",
    "sign_withdrawal_hash",
    "sign_internal_transfer_hash",
    "verify_signature",
    "ChainAdapter",
    "Web3ChainAdapter",
    "TanxError",
    "APIError",
    "AuthenticationError",
    "ValidationError",
    "InvalidAmountError",
    "CoinNotFoundError",
    "InstitutionalOnlyError",
    "BalanceTooLowError",
    "AllowanceTooLowError",
    "TransactionFlowError",
    "TimeoutError",
]
