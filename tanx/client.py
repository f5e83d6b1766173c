"""
Main tanX client.

Single entry point: session management, account queries and every
transaction flow, bound to one environment and one token pair.
"""

from decimal import Decimal
from typing import Any, Optional, Union
import logging

from .config import get_settings, TanxSettings
from .models import Environment, Network, OrderType, Side
from .auth.key_derivation import (
    EthereumIdentity,
    StarkKeyPair,
    derive_stark_key_pair,
    derive_user_signature,
)
from .api.private import TanxAPI
from .chain.adapter import ChainAdapter, ChainTransaction, Web3ChainAdapter
from .exceptions import ValidationError
from .metrics import Metrics, get_metrics
from .trading import (
    CrossChainDepositFlow,
    FastWithdrawalFlow,
    InternalTransferFlow,
    NormalWithdrawalFlow,
    OrderPlacementFlow,
    StarkExDepositFlow,
    complete_normal_withdrawal,
    get_pending_normal_withdrawal_amount,
    set_allowance,
)

logger = logging.getLogger(__name__)

Amount = Union[Decimal, float, str]


class TanxClient:
    """
    Main client for tanX operations.

    Usage:
        async with TanxClient() as client:
            identity = EthereumIdentity.from_private_key(key)
            await client.login(identity)
            key_pair = client.derive_key_pair(identity)
            await client.create_complete_order(key_pair, "btcusdc", "buy", "0.0001")
    """

    def __init__(
        self,
        settings: Optional[TanxSettings] = None,
        metrics: Optional[Metrics] = None
    ):
        """
        Initialize tanX client.

        Args:
            settings: Optional settings (loads from env if not provided)
            metrics: Optional metrics collector
        """
        self.settings = settings or get_settings()
        self.metrics = metrics or get_metrics(
            enabled=self.settings.enable_metrics,
            port=self.settings.metrics_port if self.settings.enable_metrics else None
        )
        self.api = TanxAPI(self.settings, metrics=self.metrics)

        logger.info(f"tanX client initialized ({self.settings.environment.value}, {self.settings.base_url})")

    async def __aenter__(self) -> "TanxClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Close HTTP connections."""
        self.api.close()

    @property
    def environment(self) -> Environment:
        return self.settings.environment

    # ========== Session ==========

    @property
    def is_authenticated(self) -> bool:
        return self.api.auth.is_authenticated

    async def login(self, identity: EthereumIdentity) -> Any:
        """Sign the login nonce with the Ethereum identity and open a session."""
        return await self.api.complete_login(identity)

    def logout(self) -> None:
        self.api.logout()

    async def refresh_tokens(self, refresh_token: Optional[str] = None) -> Optional[dict]:
        return await self.api.refresh_tokens(refresh_token)

    # ========== Keys ==========

    def derive_key_pair(self, identity: EthereumIdentity) -> StarkKeyPair:
        """
        STARK key pair of an identity in this client's environment.

        Deterministic; callers may cache the result, the client does not.
        """
        return derive_stark_key_pair(derive_user_signature(identity, self.environment))

    def chain_adapter(self, private_key: str, rpc_url: Optional[str] = None) -> Web3ChainAdapter:
        """
        Web3 adapter for on-chain steps.

        Raises:
            ValidationError: If neither ``rpc_url`` nor ``TANX_RPC_URL`` is set
        """
        url = rpc_url or self.settings.rpc_url
        if not url:
            raise ValidationError("No RPC URL: pass rpc_url or set TANX_RPC_URL")
        return Web3ChainAdapter(url, private_key)

    # ========== Account and configuration ==========

    async def test_connection(self) -> Any:
        return await self.api.test_connection()

    async def get_coin_status(self) -> Any:
        return await self.api.get_coin_status()

    async def get_network_config(self) -> dict:
        return await self.api.get_network_config()

    async def get_profile_info(self) -> Any:
        return await self.api.get_profile_info()

    async def get_balance(self, currency: Optional[str] = None) -> Any:
        return await self.api.get_balance(currency)

    async def get_profit_and_loss(self) -> Any:
        return await self.api.get_profit_and_loss()

    async def get_order(self, order_id: int) -> Any:
        return await self.api.get_order(order_id)

    async def list_orders(self, **params) -> Any:
        return await self.api.list_orders(**params)

    async def cancel_order(self, order_id: int) -> Any:
        return await self.api.cancel_order(order_id)

    async def bulk_cancel(self, **body) -> Any:
        return await self.api.bulk_cancel(**body)

    async def list_trades(self, **params) -> Any:
        return await self.api.list_trades(**params)

    async def list_deposits(self, **params) -> Any:
        return await self.api.list_deposits(**params)

    async def list_normal_withdrawals(self, **params) -> Any:
        return await self.api.list_normal_withdrawals(**params)

    async def list_fast_withdrawals(self, **params) -> Any:
        return await self.api.list_fast_withdrawals(**params)

    async def list_internal_transfers(self, **params) -> Any:
        return await self.api.list_internal_transfers(**params)

    async def get_internal_transfer_by_client_id(self, client_reference_id: str) -> Any:
        return await self.api.get_internal_transfer_by_client_id(client_reference_id)

    async def check_internal_transfer_user_exists(
        self,
        organization_key: str,
        api_key: str,
        destination_address: str
    ) -> Any:
        return await self.api.check_internal_transfer_user_exists(
            organization_key, api_key, destination_address
        )

    # ========== Orders ==========

    async def create_complete_order(
        self,
        key_pair: StarkKeyPair,
        market: str,
        side: Union[Side, str],
        volume: Amount,
        ord_type: Union[OrderType, str] = OrderType.MARKET,
        price: Optional[Amount] = None
    ) -> Any:
        """Request an order nonce, sign it and submit the order."""
        return await OrderPlacementFlow(self.api, key_pair).run(
            market, side, volume, ord_type=ord_type, price=price
        )

    # ========== Withdrawals ==========

    async def initiate_normal_withdrawal(self, key_pair: StarkKeyPair, amount: Amount, symbol: str) -> Any:
        """Initiate, sign and validate a normal withdrawal."""
        return await NormalWithdrawalFlow(self.api, key_pair).run(amount, symbol)

    async def complete_normal_withdrawal(
        self,
        chain: ChainAdapter,
        symbol: str,
        eth_address: str
    ) -> ChainTransaction:
        return await complete_normal_withdrawal(self.api, chain, symbol, eth_address)

    async def get_pending_normal_withdrawal_amount(
        self,
        chain: ChainAdapter,
        symbol: str,
        eth_address: str
    ) -> str:
        return await get_pending_normal_withdrawal_amount(self.api, chain, symbol, eth_address)

    async def fast_withdrawal(
        self,
        key_pair: StarkKeyPair,
        amount: Amount,
        symbol: str,
        network: Union[Network, str] = Network.ETHEREUM,
        cc_address: Optional[str] = None
    ) -> Any:
        """Initiate, sign and process a fast withdrawal to ``network``."""
        return await FastWithdrawalFlow(self.api, key_pair).run(amount, symbol, network, cc_address)

    # ========== Internal transfers ==========

    async def initiate_and_process_internal_transfer(
        self,
        key_pair: StarkKeyPair,
        organization_key: str,
        api_key: str,
        currency: str,
        amount: Amount,
        destination_address: str,
        client_reference_id: Optional[str] = None
    ) -> Any:
        """Initiate, sign and process an internal transfer."""
        return await InternalTransferFlow(self.api, key_pair).run(
            organization_key, api_key, currency, amount, destination_address, client_reference_id
        )

    # ========== Deposits (institutional) ==========

    async def deposit_from_ethereum(
        self,
        chain: ChainAdapter,
        key_pair: StarkKeyPair,
        amount: Amount,
        currency: str
    ) -> Any:
        """Deposit from Ethereum through the StarkEx contract."""
        return await StarkExDepositFlow(self.api, chain, key_pair).run(amount, currency)

    async def cross_chain_deposit(
        self,
        chain: ChainAdapter,
        amount: Amount,
        currency: str,
        network: Union[Network, str]
    ) -> Any:
        """Deposit through a cross-chain network's deposit contract."""
        return await CrossChainDepositFlow(self.api, chain).run(amount, currency, network)

    async def set_allowance(
        self,
        chain: ChainAdapter,
        coin: str,
        network: Union[Network, str] = Network.ETHEREUM
    ) -> ChainTransaction:
        """Approve unlimited deposits of ``coin`` on ``network``."""
        return await set_allowance(self.api, chain, coin, network)
