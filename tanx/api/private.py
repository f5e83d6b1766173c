"""
tanX REST API client.

Async request pipeline over the blocking transport: private calls are
auth-guarded before any I/O, carry ``Authorization: JWT <access>``, and on
HTTP 401 trigger one shared token refresh followed by exactly one resubmit.
"""

import asyncio
from decimal import Decimal
from typing import Optional, Any, Dict, Union
import logging

from .base import BaseAPIClient
from ..auth.key_derivation import EthereumIdentity, sign_login_nonce
from ..auth.session import SessionManager
from ..config import TanxSettings
from ..exceptions import APIError, AuthenticationError
from ..metrics import Metrics
from ..models import (
    CreateOrderNonceRequest,
    InternalTransferRequest,
    SignedOrder,
    StarkSignature,
)
from ..utils.numeric import to_json_number

logger = logging.getLogger(__name__)


class TanxAPI(BaseAPIClient):
    """
    tanX REST API client.

    Every method returns the decoded JSON envelope (``{status, message,
    payload}``) unless documented otherwise.
    """

    def __init__(self, settings: TanxSettings, metrics: Optional[Metrics] = None):
        """
        Initialize API client.

        Args:
            settings: Client settings (base URL chosen by environment)
            metrics: Optional metrics collector
        """
        super().__init__(base_url=settings.base_url, settings=settings, metrics=metrics)
        self.auth = SessionManager(self._post_token_refresh, metrics=self.metrics)

    # ========== Pipeline ==========

    async def _send(
        self,
        method: str,
        path: str,
        access_token: Optional[str],
        params: Optional[Dict[str, Any]],
        json_data: Optional[Dict[str, Any]]
    ) -> Any:
        headers = {"Authorization": f"JWT {access_token}"} if access_token else None
        return await asyncio.to_thread(
            self._make_request, method, path, headers, params, json_data
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        auth: bool = True,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Send a request through the pipeline.

        Args:
            method: HTTP method
            path: Request path
            auth: Private endpoint (guard, token, refresh-on-401)
            params: Query parameters
            json_data: JSON body

        Returns:
            Decoded response JSON

        Raises:
            AuthenticationError: No session, or the refresh after a 401 failed
            APIError: Any other non-2xx response (a 401 on the resubmit included)
        """
        if not auth:
            return await self._send(method, path, None, params, json_data)

        self.auth.require_auth()
        token = self.auth.access_token
        try:
            return await self._send(method, path, token, params, json_data)
        except APIError as e:
            if e.status_code != 401:
                raise
            logger.info(f"{method} {path} rejected with 401, refreshing session")

        new_token = await self.auth.refresh(token)
        return await self._send(method, path, new_token, params, json_data)

    async def _post_token_refresh(self, refresh_token: str) -> Dict[str, Any]:
        response = await self.request(
            "POST",
            "/sapi/v1/auth/token/refresh/",
            auth=False,
            json_data={"refresh": refresh_token}
        )
        if not isinstance(response, dict):
            raise AuthenticationError(
                f"Token refresh returned an unexpected body: {type(response).__name__}"
            )
        return response.get("payload") or {}

    # ========== Session ==========

    async def test_connection(self) -> Any:
        """Health check. Does not require authentication."""
        return await self.request("GET", "/sapi/v1/health/", auth=False)

    async def get_nonce(self, eth_address: str) -> Any:
        """Request the login nonce text for an address."""
        return await self.request(
            "POST", "/sapi/v2/auth/nonce/", auth=False,
            json_data={"eth_address": eth_address}
        )

    async def login(self, eth_address: str, user_signature: str) -> Any:
        """
        Exchange a signed login nonce for session tokens.

        Stores the token pair and echoes the signature into the payload.
        """
        response = await self.request(
            "POST", "/sapi/v2/auth/login/", auth=False,
            json_data={"eth_address": eth_address, "user_signature": user_signature}
        )

        token = response.get("token") or {}
        self.auth.set_tokens(token.get("access"), token.get("refresh"))

        if isinstance(response.get("payload"), dict):
            response["payload"]["signature"] = user_signature

        logger.info(f"Logged in as {eth_address}")
        return response

    async def complete_login(self, identity: EthereumIdentity) -> Any:
        """Fetch a nonce, sign it with the Ethereum identity and log in."""
        nonce = await self.get_nonce(identity.address)
        signature = sign_login_nonce(identity, nonce["payload"])
        return await self.login(identity.address, signature)

    def logout(self) -> None:
        """Clear both tokens. No network call."""
        self.auth.clear()

    async def refresh_tokens(self, refresh_token: Optional[str] = None) -> Optional[Dict[str, str]]:
        """
        Rotate the token pair manually.

        Args:
            refresh_token: Token to use instead of the stored one

        Returns:
            New ``{"access", "refresh"}`` pair, or None without any refresh token
        """
        if refresh_token:
            self.auth.tokens.refresh_token = refresh_token
        if not self.auth.refresh_token:
            return None

        await self.auth.refresh()
        return {"access": self.auth.access_token, "refresh": self.auth.refresh_token}

    # ========== Configuration (public) ==========

    async def get_coin_status(self) -> Any:
        """Home-network coin table (``payload`` keyed by coin)."""
        return await self.request("POST", "/main/stat/v2/coins/", auth=False)

    async def get_network_config(self) -> Dict[str, Any]:
        """Cross-chain configuration keyed by upper-case network name."""
        response = await self.request("POST", "/main/stat/v2/app-and-markets/", auth=False)
        return (response.get("payload") or {}).get("network_config") or {}

    # ========== Account ==========

    async def get_profile_info(self) -> Any:
        return await self.request("GET", "/sapi/v1/user/profile/")

    async def get_balance(self, currency: Optional[str] = None) -> Any:
        """Balances; a single entry when ``currency`` is given."""
        return await self.request("GET", "/sapi/v1/user/balance/", params={"currency": currency})

    async def get_profit_and_loss(self) -> Any:
        return await self.request("GET", "/sapi/v1/user/pnl/")

    async def get_vault_id(self, coin: str) -> Any:
        """Create (or fetch) the StarkEx vault of a coin. ``payload.id`` is the vault id."""
        return await self.request("POST", "/main/user/create_vault/", json_data={"coin": coin})

    # ========== Orders ==========

    async def create_order_nonce(self, body: CreateOrderNonceRequest) -> Any:
        """Ask the server for the hash of a new order."""
        return await self.request("POST", "/sapi/v1/orders/nonce/", json_data=body.to_payload())

    async def create_new_order(self, order: SignedOrder) -> Any:
        """Submit a signed order."""
        return await self.request("POST", "/sapi/v1/orders/create/", json_data=order.to_payload())

    async def get_order(self, order_id: int) -> Any:
        return await self.request("GET", f"/sapi/v1/orders/{order_id}")

    async def list_orders(self, **params) -> Any:
        """
        List orders.

        Args:
            **params: market, state, limit, page, order_by, ...
        """
        return await self.request("GET", "/sapi/v1/orders", params=params)

    async def cancel_order(self, order_id: int) -> Any:
        return await self.request("POST", "/sapi/v1/orders/cancel/", json_data={"order_id": order_id})

    async def bulk_cancel(self, **body) -> Any:
        """
        Cancel several orders at once.

        Args:
            **body: market, side, limit
        """
        return await self.request("POST", "/sapi/v1/user/bulkcancel/", json_data=body)

    async def list_trades(self, **params) -> Any:
        return await self.request("GET", "/sapi/v1/trades/", params=params)

    # ========== Withdrawals ==========

    async def start_normal_withdrawal(self, amount: Decimal, symbol: str) -> Any:
        """Initiate a normal withdrawal; payload carries ``msg_hash`` and ``nonce``."""
        return await self.request(
            "POST", "/sapi/v1/payment/withdrawals/v1/initiate/",
            json_data={"amount": to_json_number(amount), "token_id": symbol}
        )

    async def validate_normal_withdrawal(
        self,
        msg_hash: str,
        signature: StarkSignature,
        nonce: int
    ) -> Any:
        return await self.request(
            "POST", "/sapi/v1/payment/withdrawals/v1/validate/",
            json_data={"msg_hash": msg_hash, "signature": signature.to_payload(), "nonce": nonce}
        )

    async def start_fast_withdrawal(
        self,
        amount: Decimal,
        symbol: str,
        network: str,
        cc_address: Optional[str] = None
    ) -> Any:
        """Initiate a fast withdrawal; payload carries ``msg_hash`` and the withdrawal id."""
        body = {"amount": to_json_number(amount), "token_id": symbol, "network": network}
        if cc_address is not None:
            body["cc_address"] = cc_address
        return await self.request(
            "POST", "/sapi/v1/payment/fast-withdrawals/v2/initiate/", json_data=body
        )

    async def process_fast_withdrawal(
        self,
        msg_hash: Union[int, str],
        signature: StarkSignature,
        fastwithdrawal_withdrawal_id: int
    ) -> Any:
        return await self.request(
            "POST", "/sapi/v1/payment/fast-withdrawals/v2/process/",
            json_data={
                "msg_hash": msg_hash,
                "signature": signature.to_payload(),
                "fastwithdrawal_withdrawal_id": fastwithdrawal_withdrawal_id,
            }
        )

    async def list_normal_withdrawals(self, **params) -> Any:
        return await self.request("GET", "/sapi/v1/payment/withdrawals/", params=params)

    async def list_fast_withdrawals(self, **params) -> Any:
        return await self.request("GET", "/sapi/v1/payment/fast-withdrawals/", params=params)

    # ========== Internal transfers ==========

    async def initiate_internal_transfer(self, body: InternalTransferRequest) -> Any:
        """Initiate a transfer; payload carries ``msg_hash`` and ``nonce``."""
        return await self.request(
            "POST", "/sapi/v1/internal_transfers/v2/initiate/", json_data=body.to_payload()
        )

    async def execute_internal_transfer(
        self,
        organization_key: str,
        api_key: str,
        signature: StarkSignature,
        nonce: int,
        msg_hash: Union[int, str]
    ) -> Any:
        return await self.request(
            "POST", "/sapi/v1/internal_transfers/v2/process/",
            json_data={
                "organization_key": organization_key,
                "api_key": api_key,
                "signature": signature.to_payload(),
                "nonce": nonce,
                "msg_hash": msg_hash,
            }
        )

    async def list_internal_transfers(self, **params) -> Any:
        return await self.request("GET", "/sapi/v1/internal_transfers/v2/", params=params)

    async def get_internal_transfer_by_client_id(self, client_reference_id: str) -> Any:
        return await self.request("GET", f"/sapi/v1/internal_transfers/v2/{client_reference_id}")

    async def check_internal_transfer_user_exists(
        self,
        organization_key: str,
        api_key: str,
        destination_address: str
    ) -> Any:
        return await self.request(
            "POST", "/sapi/v1/internal_transfers/v2/check_user_exists/",
            json_data={
                "destination_address": destination_address,
                "organization_key": organization_key,
                "api_key": api_key,
            }
        )

    # ========== Deposits ==========

    async def list_deposits(self, **params) -> Any:
        return await self.request("GET", "/sapi/v1/deposits/all", params=params)

    async def crypto_deposit_start(
        self,
        amount: int,
        stark_asset_id: str,
        stark_public_key: str,
        deposit_blockchain_hash: str,
        deposit_blockchain_nonce: int,
        vault_id: int
    ) -> Any:
        """Report a StarkEx contract deposit (amount in quantized units)."""
        return await self.request(
            "POST", "/sapi/v1/payment/stark/start/",
            json_data={
                "amount": str(amount),
                "token_id": stark_asset_id,
                "stark_key": stark_public_key,
                "deposit_blockchain_hash": deposit_blockchain_hash,
                "deposit_blockchain_nonce": deposit_blockchain_nonce,
                "vault_id": vault_id,
            }
        )

    async def cross_chain_deposit_start(
        self,
        amount: Decimal,
        currency: str,
        deposit_blockchain_hash: str,
        deposit_blockchain_nonce: int,
        network: str = "POLYGON"
    ) -> Any:
        """Report a deposit made on a cross-chain network's deposit contract."""
        return await self.request(
            "POST", "/sapi/v1/deposits/crosschain/create/",
            json_data={
                "amount": format(amount, "f"),
                "currency": currency.lower(),
                "network": network,
                "deposit_blockchain_hash": deposit_blockchain_hash,
                "deposit_blockchain_nonce": deposit_blockchain_nonce,
            }
        )
