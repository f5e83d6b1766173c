"""
Shared fixtures: settings, a scripted transport, key material and
server payloads.
"""

import threading
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import pytest

from tanx.api.private import TanxAPI
from tanx.auth.key_derivation import EthereumIdentity, StarkKeyPair
from tanx.chain.abi import MAX_UINT256
from tanx.chain.adapter import ChainTransaction
from tanx.config import TanxSettings
from tanx.metrics import Metrics


ETH_PRIVATE_KEY = "7d6384d6877be027aa25bd458f2058e3f7ff68347dc583a9baf96f5f97b413a8"
ETH_ADDRESS = "0x713Cf80b7c71440E7a09Dede1ee23dCBf862fB66"

STARK_PRIVATE_KEY = 0x3C1E9550E66958296D11B60F8E8E7A7AD990D07FA65D5F7652C4A6C87D4E3CC

USDC_CONTRACT = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
POLYGON_USDC_CONTRACT = "0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359"
POLYGON_DEPOSIT_CONTRACT = "0x5a5B4D1D4D5d1E0b6A8d2F2C1A3c2aE9cE5A9C1d"

COIN_STATS = {
    "status": "success",
    "message": "Retrieved Successfully",
    "payload": {
        "eth": {
            "symbol": "eth",
            "decimal": 18,
            "quanitization": 8,
            "blockchain_decimal": 18,
            "token_contract": "0x0000000000000000000000000000000000000000",
            "stark_asset_id": "0x02705737cd248ac819034b5de474c8f0368224f72a0fda9e031499d519992d9e",
        },
        "usdc": {
            "symbol": "usdc",
            "decimal": 6,
            "quanitization": 6,
            "blockchain_decimal": 6,
            "token_contract": USDC_CONTRACT,
            "stark_asset_id": "0x02893294412a4c8f915f75892b395ebbf6859ec246ec365c3b1f56f47c3a0a5d",
        },
    },
}

NETWORK_CONFIG = {
    "POLYGON": {
        "deposit_contract": POLYGON_DEPOSIT_CONTRACT,
        "tokens": {
            "usdc": {"blockchain_decimal": 6, "token_contract": POLYGON_USDC_CONTRACT},
            "pol": {"blockchain_decimal": 18, "token_contract": None},
            "wbtc": {"blockchain_decimal": 8, "token_contract": "0x1BFD67037B42Cf73acF2047067bd4F2C47D9BfD6"},
        },
        "allowed_tokens_for_deposit": ["usdc", "pol"],
        "allowed_tokens_for_fast_wd": ["wbtc"],
    },
}

APP_AND_MARKETS = {
    "status": "success",
    "message": "Retrieved Successfully",
    "payload": {"network_config": NETWORK_CONFIG},
}

Reply = Union[Any, Exception, Callable[..., Any]]


class FakeTransport:
    """
    Stands in for ``BaseAPIClient._make_request``.

    Routes ``(method, path)`` to a canned reply: a JSON value, an exception
    to raise, or a callable receiving the request. Every call is recorded.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Reply] = {}
        self.calls: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def add(self, method: str, path: str, reply: Reply) -> None:
        self.routes[(method, path)] = reply

    def __call__(self, method, path, headers=None, params=None, json_data=None):
        call = {
            "method": method,
            "path": path,
            "headers": dict(headers or {}),
            "params": params,
            "json": json_data,
        }
        with self._lock:
            self.calls.append(call)

        try:
            reply = self.routes[(method, path)]
        except KeyError:
            raise AssertionError(f"Unexpected request: {method} {path}")

        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(call)
        return reply

    def paths(self) -> List[str]:
        return [c["path"] for c in self.calls]

    def calls_to(self, path: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["path"] == path]


@pytest.fixture
def settings():
    return TanxSettings(
        _env_file=None,
        environment="testnet",
        enable_metrics=False,
        institutional_access=True,
    )


@pytest.fixture
def metrics():
    # Own registry per instance, so enabled collectors never clash between tests
    return Metrics(enabled=True)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def api(settings, metrics, transport):
    client = TanxAPI(settings, metrics=metrics)
    client._make_request = transport
    yield client
    client.close()


@pytest.fixture
def logged_in_api(api):
    api.auth.set_tokens("access-1", "refresh-1")
    return api


@pytest.fixture
def identity():
    return EthereumIdentity.from_private_key(ETH_PRIVATE_KEY)


@pytest.fixture
def key_pair():
    return StarkKeyPair.from_private_key(STARK_PRIVATE_KEY)


def success(payload: Optional[Any] = None, **extra) -> Dict[str, Any]:
    """Standard ``{status, message, payload}`` envelope."""
    body = {"status": "success", "message": "ok", "payload": payload}
    body.update(extra)
    return body


class FakeChain:
    """
    In-memory ``ChainAdapter``: configurable balances, recorded transactions.
    """

    address = ETH_ADDRESS

    def __init__(self, native_balance=0, token_balance=0, allowance=0, withdrawal_balance=0):
        self.native_balance = native_balance
        self.token_balance = token_balance
        self.allowance = allowance
        self.withdrawal_balance = withdrawal_balance
        self.sent: List[Tuple[str, tuple]] = []
        self.reads: List[str] = []
        self._nonce = 7

    def _tx(self, name, *args):
        self.sent.append((name, args))
        self._nonce += 1
        return ChainTransaction(hash="0x" + format(self._nonce, "064x"), nonce=self._nonce)

    def get_native_balance(self):
        self.reads.append("native_balance")
        return self.native_balance

    def get_token_balance(self, token_contract):
        self.reads.append("token_balance")
        return self.token_balance

    def get_allowance(self, token_contract, spender):
        self.reads.append("allowance")
        return self.allowance

    def approve_allowance(self, token_contract, spender, amount=MAX_UINT256):
        return self._tx("approve_allowance", token_contract, spender, amount)

    def deposit_eth_to_stark(self, stark_contract, stark_key, asset_type, vault_id, value_wei):
        return self._tx("deposit_eth_to_stark", stark_contract, stark_key, asset_type, vault_id, value_wei)

    def deposit_erc20_to_stark(self, stark_contract, stark_key, asset_type, vault_id, quantized_amount):
        return self._tx("deposit_erc20_to_stark", stark_contract, stark_key, asset_type, vault_id,
                        quantized_amount)

    def deposit_native(self, deposit_contract, value_wei):
        return self._tx("deposit_native", deposit_contract, value_wei)

    def deposit_erc20(self, deposit_contract, token_contract, amount):
        return self._tx("deposit_erc20", deposit_contract, token_contract, amount)

    def withdraw(self, stark_contract, owner_key, asset_type):
        return self._tx("withdraw", stark_contract, owner_key, asset_type)

    def get_withdrawal_balance(self, stark_contract, owner_key, asset_id):
        self.reads.append("withdrawal_balance")
        return self.withdrawal_balance


@pytest.fixture
def chain():
    return FakeChain()
