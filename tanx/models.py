"""
Type definitions for the tanX client.

Uses Pydantic for runtime validation of server payloads and request bodies.
Amounts are Decimal internally and serialised as JSON numbers on the wire.
"""

from enum import Enum
from typing import Optional, Any, Union
from decimal import Decimal, InvalidOperation
from pydantic import BaseModel, Field, field_validator, ConfigDict, field_serializer


class Environment(str, Enum):
    """Exchange environment. Selects base URL, contracts and key-derivation message."""
    MAINNET = "mainnet"
    TESTNET = "testnet"


class AllowListKind(str, Enum):
    """Which cross-chain allow-list a coin is checked against."""
    TOKENS = "TOKENS"          # listed on the network at all
    DEPOSIT = "DEPOSIT"        # currently depositable
    WITHDRAWAL = "WITHDRAWAL"  # currently fast-withdrawable


class Network(str, Enum):
    """Settlement networks known to the exchange."""
    ETHEREUM = "ETHEREUM"
    POLYGON = "POLYGON"
    OPTIMISM = "OPTIMISM"
    ARBITRUM = "ARBITRUM"
    LINEA = "LINEA"
    SCROLL = "SCROLL"
    MODE = "MODE"
    STARKNET = "STARKNET"


class Side(str, Enum):
    """Order side."""
    BUY = "buy"
    SELL = "sell"


class OrderType(str, Enum):
    """Order type."""
    MARKET = "market"
    LIMIT = "limit"


def _to_decimal(v: Any) -> Decimal:
    if isinstance(v, Decimal):
        return v
    if isinstance(v, str):
        try:
            return Decimal(v)
        except InvalidOperation as e:
            raise ValueError(f"Invalid decimal: {v}") from e
    if isinstance(v, (int, float)):
        return Decimal(str(v))  # Convert via string to avoid float precision loss
    raise ValueError(f"Cannot convert {type(v)} to Decimal")


def _check_hash(v: Any) -> Union[int, str]:
    # Some endpoints return message hashes as JSON numbers; those keep their value
    if isinstance(v, bool):
        raise ValueError("Message hash must be str or int, got bool")
    if isinstance(v, (int, str)):
        return v
    raise ValueError(f"Message hash must be str or int, got {type(v)}")


# Signatures
class StarkSignature(BaseModel):
    """
    STARK-curve ECDSA signature.

    ``recovery_param`` is only populated for withdrawal signatures and is
    serialised as ``recoveryParam``.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    r: str
    s: str
    recovery_param: Optional[int] = Field(default=None, alias="recoveryParam")

    def to_payload(self) -> dict[str, Any]:
        """Wire representation; omits recoveryParam when absent."""
        return self.model_dump(by_alias=True, exclude_none=True)


# Request Models
class CreateOrderNonceRequest(BaseModel):
    """Body of ``POST /sapi/v1/orders/nonce/``."""
    model_config = ConfigDict(use_enum_values=True)

    market: str = Field(..., description="Market symbol, e.g. btcusdc")
    ord_type: OrderType = Field(default=OrderType.MARKET)
    side: Side
    volume: Decimal
    price: Optional[Decimal] = None

    @field_validator("market", mode="before")
    @classmethod
    def lower_market(cls, v: Any) -> str:
        return str(v).lower()

    @field_validator("volume", "price", mode="before")
    @classmethod
    def validate_numeric(cls, v: Any) -> Optional[Decimal]:
        if v is None:
            return None
        return _to_decimal(v)

    @field_serializer("volume", "price")
    def serialize_numeric(self, v: Optional[Decimal]) -> Optional[float]:
        return float(v) if v is not None else None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class InternalTransferRequest(BaseModel):
    """Body of ``POST /sapi/v1/internal_transfers/v2/initiate/``."""
    organization_key: str = Field(..., repr=False)
    api_key: str = Field(..., repr=False)
    currency: str
    amount: Decimal
    destination_address: str
    client_reference_id: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v: Any) -> Decimal:
        return _to_decimal(v)

    @field_serializer("amount")
    def serialize_amount(self, v: Decimal) -> float:
        return float(v)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


# Server payloads
class _HashPayload(BaseModel):
    """Server payload carrying a message hash to sign."""
    msg_hash: Union[int, str]

    @field_validator("msg_hash", mode="before")
    @classmethod
    def check_hash(cls, v: Any) -> Union[int, str]:
        return _check_hash(v)


class OrderNonce(_HashPayload):
    """Payload of the order nonce endpoint: the hash to sign and its nonce."""
    nonce: int


class SignedOrder(BaseModel):
    """Body of ``POST /sapi/v1/orders/create/``."""
    msg_hash: Union[int, str]
    signature: StarkSignature
    nonce: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "msg_hash": self.msg_hash,
            "signature": self.signature.to_payload(),
            "nonce": self.nonce,
        }


class WithdrawalInitiation(_HashPayload):
    """Payload of the normal withdrawal initiate endpoint."""
    model_config = ConfigDict(extra="allow")

    nonce: int


class FastWithdrawalInitiation(_HashPayload):
    """Payload of the fast withdrawal initiate endpoint."""
    model_config = ConfigDict(extra="allow")

    fastwithdrawal_withdrawal_id: int


class InternalTransferInitiation(_HashPayload):
    """Payload of the internal transfer initiate endpoint."""
    model_config = ConfigDict(extra="allow")

    nonce: int


# Configuration payloads
class CoinConfig(BaseModel):
    """
    Home-network (Ethereum) coin metadata from ``/main/stat/v2/coins/``.

    The server spells the quantization field ``quanitization``.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    symbol: str
    decimal: Optional[int] = None
    quantization: Optional[int] = Field(default=None, alias="quanitization")
    blockchain_decimal: Optional[int] = None
    token_contract: Optional[str] = None
    stark_asset_id: Optional[str] = None


class CrossChainToken(BaseModel):
    """Token entry of a cross-chain network configuration."""
    model_config = ConfigDict(extra="allow")

    blockchain_decimal: int
    token_contract: Optional[str] = None


class NetworkCoinConfig(BaseModel):
    """
    Per-network coin configuration from ``/main/stat/v2/app-and-markets/``.

    Three independent allow-lists: ``tokens`` (listed), deposit, fast withdrawal.
    """
    model_config = ConfigDict(extra="allow")

    deposit_contract: Optional[str] = None
    tokens: dict[str, CrossChainToken] = Field(default_factory=dict)
    allowed_tokens_for_deposit: list[str] = Field(default_factory=list)
    allowed_tokens_for_fast_wd: list[str] = Field(default_factory=list)

    @field_validator("tokens", "allowed_tokens_for_deposit", "allowed_tokens_for_fast_wd", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any, info) -> Union[dict, list]:
        if v is None:
            return {} if info.field_name == "tokens" else []
        return v
