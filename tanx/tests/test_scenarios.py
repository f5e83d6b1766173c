"""
End-to-end scenarios against a scripted exchange.

Login, order placement and normal withdrawal through the public client,
with every request checked on the wire.
"""

import pytest

from tanx import TanxClient
from tanx.auth.signer import format_withdrawal_hash, verify_signature
from tanx.exceptions import InvalidAmountError
from tanx.models import StarkSignature
from tanx.tests.conftest import COIN_STATS, ETH_ADDRESS, success


ORDER_HASH = "0xda073d81fcf11f1312f2a722e1ff190f7ddb4c26f33adcc688726bce28b30d"
WITHDRAWAL_HASH = "2101646415290393839838958434349094719409391219094009001050208002837481040592"


@pytest.fixture
def client(settings, metrics, transport):
    tanx = TanxClient(settings=settings, metrics=metrics)
    tanx.api._make_request = transport
    yield tanx
    tanx.close()


@pytest.fixture
def logged_in_client(client):
    client.api.auth.set_tokens("access-1", "refresh-1")
    return client


class TestScenarioLogin:
    """A: login, then a private call with the issued token."""

    @pytest.mark.asyncio
    async def test_login_then_balance(self, client, transport, identity):
        transport.add("POST", "/sapi/v2/auth/nonce/", success("You're signing in: 8816"))
        transport.add("POST", "/sapi/v2/auth/login/", {
            "status": "success",
            "message": "Login successful",
            "payload": {"uid": "u1"},
            "token": {"access": "issued-access", "refresh": "issued-refresh"},
        })
        transport.add("GET", "/sapi/v1/user/balance/", success([
            {"currency": "usdc", "balance": "100", "locked": "0"}
        ]))

        await client.login(identity)
        balance = await client.get_balance()

        assert client.is_authenticated
        assert balance["payload"][0]["currency"] == "usdc"
        assert transport.calls[0]["json"] == {"eth_address": ETH_ADDRESS}
        assert transport.calls[2]["headers"]["Authorization"] == "JWT issued-access"


class TestScenarioOrder:
    """B: order nonce, sign, submit."""

    @pytest.mark.asyncio
    async def test_market_order(self, logged_in_client, transport, key_pair):
        transport.add("POST", "/sapi/v1/orders/nonce/", success({"msg_hash": ORDER_HASH, "nonce": 1148}))
        transport.add("POST", "/sapi/v1/orders/create/", success({
            "id": 4017, "market": "btcusdc", "side": "buy", "state": "wait"
        }))

        result = await logged_in_client.create_complete_order(key_pair, "btcusdc", "buy", 0.0001)

        nonce_call, create_call = transport.calls
        assert nonce_call["json"] == {"market": "btcusdc", "ord_type": "market", "side": "buy", "volume": 0.0001}
        assert create_call["json"]["msg_hash"] == ORDER_HASH
        assert create_call["json"]["nonce"] == 1148
        signature = StarkSignature.model_validate(create_call["json"]["signature"])
        assert signature.recovery_param is None
        assert verify_signature(key_pair.public_key, ORDER_HASH, signature)
        assert result["payload"]["id"] == 4017

    @pytest.mark.asyncio
    async def test_limit_order_sends_price(self, logged_in_client, transport, key_pair):
        transport.add("POST", "/sapi/v1/orders/nonce/", success({"msg_hash": ORDER_HASH, "nonce": 2}))
        transport.add("POST", "/sapi/v1/orders/create/", success({"id": 1}))

        await logged_in_client.create_complete_order(
            key_pair, "ETHUSDC", "sell", "0.5", ord_type="limit", price="3100.25"
        )

        assert transport.calls[0]["json"] == {
            "market": "ethusdc", "ord_type": "limit", "side": "sell", "volume": 0.5, "price": 3100.25
        }


class TestScenarioNormalWithdrawal:
    """C: initiate, sign, validate; zero amount never reaches the network."""

    @pytest.mark.asyncio
    async def test_withdrawal(self, logged_in_client, transport, key_pair):
        transport.add("POST", "/main/stat/v2/coins/", COIN_STATS)
        transport.add("POST", "/sapi/v1/payment/withdrawals/v1/initiate/",
                      success({"msg_hash": WITHDRAWAL_HASH, "nonce": 553}))
        transport.add("POST", "/sapi/v1/payment/withdrawals/v1/validate/",
                      success({"status": "validated"}))

        result = await logged_in_client.initiate_normal_withdrawal(key_pair, 0.0001, "usdc")

        initiate = transport.calls_to("/sapi/v1/payment/withdrawals/v1/initiate/")[0]
        validate = transport.calls_to("/sapi/v1/payment/withdrawals/v1/validate/")[0]
        assert initiate["json"] == {"amount": 0.0001, "token_id": "usdc"}
        assert validate["json"]["msg_hash"] == format_withdrawal_hash(WITHDRAWAL_HASH)
        assert validate["json"]["nonce"] == 553
        signature = StarkSignature.model_validate(validate["json"]["signature"])
        assert signature.recovery_param in (0, 1)
        assert verify_signature(key_pair.public_key, int(WITHDRAWAL_HASH), signature)
        assert result["payload"]["status"] == "validated"

    @pytest.mark.asyncio
    async def test_zero_amount(self, logged_in_client, transport, key_pair):
        with pytest.raises(InvalidAmountError):
            await logged_in_client.initiate_normal_withdrawal(key_pair, 0, "usdc")
        assert transport.calls == []
