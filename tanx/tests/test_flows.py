"""
Tests for transaction flow guards and state handling.

Every flow validates the amount and the session before the first request;
a failing step leaves the flow in FAILED and nothing after it runs.
"""

import pytest

from tanx.auth.signer import verify_signature
from tanx.exceptions import (
    APIError,
    AuthenticationError,
    CoinNotFoundError,
    InvalidAmountError,
    TransactionFlowError,
    ValidationError,
)
from tanx.models import StarkSignature
from tanx.trading import (
    CrossChainDepositFlow,
    FastWithdrawalFlow,
    FlowState,
    InternalTransferFlow,
    NormalWithdrawalFlow,
    OrderPlacementFlow,
    StarkExDepositFlow,
)
from tanx.tests.conftest import APP_AND_MARKETS, COIN_STATS, success


DESTINATION = "0xF5F467c3D86760A4Ff6262880727E854428a4996"
TRANSFER_HASH = "0xda073d81fcf11f1312f2a722e1ff190f7ddb4c26f33adcc688726bce28b30d"


def build_runs(api, key_pair, chain, amount):
    """(flow, coroutine) pairs for every flow with the given amount."""
    flows = [
        (OrderPlacementFlow(api, key_pair), ("btcusdc", "buy", amount)),
        (NormalWithdrawalFlow(api, key_pair), (amount, "usdc")),
        (FastWithdrawalFlow(api, key_pair), (amount, "usdc")),
        (InternalTransferFlow(api, key_pair), ("org", "key", "usdc", amount, DESTINATION)),
        (StarkExDepositFlow(api, chain, key_pair), (amount, "usdc")),
        (CrossChainDepositFlow(api, chain), (amount, "usdc", "POLYGON")),
    ]
    return [(flow, flow.run(*args)) for flow, args in flows]


class TestGuards:
    """Test guard checks before any request."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -1, "0", "abc", None])
    async def test_invalid_amount_sends_nothing(self, logged_in_api, transport, key_pair, chain, amount):
        for flow, run in build_runs(logged_in_api, key_pair, chain, amount):
            with pytest.raises(InvalidAmountError):
                await run
            assert flow.state == FlowState.FAILED

        assert transport.calls == []
        assert chain.sent == [] and chain.reads == []

    @pytest.mark.asyncio
    async def test_no_session_sends_nothing(self, api, transport, key_pair, chain):
        for flow, run in build_runs(api, key_pair, chain, "1"):
            with pytest.raises(AuthenticationError):
                await run
            assert flow.state == FlowState.FAILED

        assert transport.calls == []
        assert chain.sent == []

    @pytest.mark.asyncio
    async def test_amount_checked_before_session(self, api, key_pair):
        with pytest.raises(InvalidAmountError):
            await OrderPlacementFlow(api, key_pair).run("btcusdc", "buy", 0)

    @pytest.mark.asyncio
    async def test_limit_order_needs_price(self, logged_in_api, transport, key_pair):
        with pytest.raises(ValidationError):
            await OrderPlacementFlow(logged_in_api, key_pair).run("btcusdc", "buy", 1, ord_type="limit")
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_invalid_side(self, logged_in_api, transport, key_pair):
        with pytest.raises(ValidationError):
            await OrderPlacementFlow(logged_in_api, key_pair).run("btcusdc", "hold", 1)
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_unknown_withdrawal_coin_is_not_initiated(self, logged_in_api, transport, key_pair):
        transport.add("POST", "/main/stat/v2/coins/", COIN_STATS)

        with pytest.raises(CoinNotFoundError):
            await NormalWithdrawalFlow(logged_in_api, key_pair).run("1", "doge")

        assert transport.paths() == ["/main/stat/v2/coins/"]

    @pytest.mark.asyncio
    async def test_fast_withdrawal_checks_withdrawal_list(self, logged_in_api, transport, key_pair):
        transport.add("POST", "/main/stat/v2/app-and-markets/", APP_AND_MARKETS)

        # usdc is depositable on POLYGON but not fast-withdrawable
        with pytest.raises(CoinNotFoundError):
            await FastWithdrawalFlow(logged_in_api, key_pair).run("1", "usdc", "POLYGON")

        assert transport.paths() == ["/main/stat/v2/app-and-markets/"]


class TestFlowState:
    """Test the state machine itself."""

    @pytest.mark.asyncio
    async def test_flow_runs_once(self, logged_in_api, key_pair):
        flow = OrderPlacementFlow(logged_in_api, key_pair)
        with pytest.raises(InvalidAmountError):
            await flow.run("btcusdc", "buy", 0)

        with pytest.raises(TransactionFlowError):
            await flow.run("btcusdc", "buy", 1)

    def test_illegal_transition(self, logged_in_api, key_pair):
        flow = OrderPlacementFlow(logged_in_api, key_pair)
        with pytest.raises(TransactionFlowError) as exc_info:
            flow._advance(FlowState.SUBMITTED)
        assert exc_info.value.state == "CREATED"

    @pytest.mark.asyncio
    async def test_failure_after_nonce_stops_flow(self, logged_in_api, transport, key_pair, metrics):
        transport.add("POST", "/sapi/v1/orders/nonce/", APIError("Invalid market", status_code=400))

        flow = OrderPlacementFlow(logged_in_api, key_pair)
        with pytest.raises(APIError):
            await flow.run("nomarket", "buy", "1")

        assert flow.state == FlowState.FAILED
        assert transport.paths() == ["/sapi/v1/orders/nonce/"]
        assert metrics.registry.get_sample_value(
            "tanx_transaction_flows_total", {"flow": "order_placement", "state": "FAILED"}
        ) == 1


class TestFastWithdrawal:

    @pytest.mark.asyncio
    async def test_cross_chain_fast_withdrawal(self, logged_in_api, transport, key_pair):
        transport.add("POST", "/main/stat/v2/app-and-markets/", APP_AND_MARKETS)
        transport.add("POST", "/sapi/v1/payment/fast-withdrawals/v2/initiate/",
                      success({"msg_hash": TRANSFER_HASH, "fastwithdrawal_withdrawal_id": 91}))
        transport.add("POST", "/sapi/v1/payment/fast-withdrawals/v2/process/",
                      success({"status": "processing"}))

        flow = FastWithdrawalFlow(logged_in_api, key_pair)
        await flow.run("0.5", "WBTC", "polygon")

        initiate, process = transport.calls[1:]
        assert initiate["json"] == {"amount": 0.5, "token_id": "wbtc", "network": "POLYGON"}
        assert process["json"]["fastwithdrawal_withdrawal_id"] == 91
        assert process["json"]["msg_hash"] == TRANSFER_HASH
        assert "recoveryParam" in process["json"]["signature"]
        assert flow.state == FlowState.PROCESSED

    @pytest.mark.asyncio
    async def test_ethereum_fast_withdrawal_uses_home_coins(self, logged_in_api, transport, key_pair):
        transport.add("POST", "/main/stat/v2/coins/", COIN_STATS)
        transport.add("POST", "/sapi/v1/payment/fast-withdrawals/v2/initiate/",
                      success({"msg_hash": TRANSFER_HASH, "fastwithdrawal_withdrawal_id": 3}))
        transport.add("POST", "/sapi/v1/payment/fast-withdrawals/v2/process/", success({}))

        await FastWithdrawalFlow(logged_in_api, key_pair).run(1, "usdc")

        assert transport.calls[1]["json"]["network"] == "ETHEREUM"

    @pytest.mark.asyncio
    async def test_cc_address_sent_when_given(self, logged_in_api, transport, key_pair):
        transport.add("POST", "/main/stat/v2/app-and-markets/", APP_AND_MARKETS)
        transport.add("POST", "/sapi/v1/payment/fast-withdrawals/v2/initiate/",
                      success({"msg_hash": TRANSFER_HASH, "fastwithdrawal_withdrawal_id": 4}))
        transport.add("POST", "/sapi/v1/payment/fast-withdrawals/v2/process/", success({}))

        await FastWithdrawalFlow(logged_in_api, key_pair).run("0.5", "wbtc", "polygon", DESTINATION)

        assert transport.calls[1]["json"]["cc_address"] == DESTINATION


class TestInternalTransfer:

    @pytest.mark.asyncio
    async def test_initiate_sign_process(self, logged_in_api, transport, key_pair):
        transport.add("POST", "/sapi/v1/internal_transfers/v2/initiate/",
                      success({"msg_hash": TRANSFER_HASH, "nonce": 14214931}))
        transport.add("POST", "/sapi/v1/internal_transfers/v2/process/",
                      success({"client_reference_id": "ref-1", "amount": "1"}))

        flow = InternalTransferFlow(logged_in_api, key_pair)
        result = await flow.run("org-key", "api-key", "USDC", 1, DESTINATION, "ref-1")

        initiate, process = transport.calls
        assert initiate["json"] == {
            "organization_key": "org-key",
            "api_key": "api-key",
            "currency": "usdc",
            "amount": 1.0,
            "destination_address": DESTINATION,
            "client_reference_id": "ref-1",
        }
        assert process["json"]["nonce"] == 14214931
        assert process["json"]["msg_hash"] == TRANSFER_HASH
        signature = process["json"]["signature"]
        assert set(signature) == {"r", "s"}
        assert result["payload"]["client_reference_id"] == "ref-1"
        assert flow.state == FlowState.PROCESSED

    @pytest.mark.asyncio
    async def test_signature_verifies(self, logged_in_api, transport, key_pair):
        transport.add("POST", "/sapi/v1/internal_transfers/v2/initiate/",
                      success({"msg_hash": TRANSFER_HASH, "nonce": 1}))
        transport.add("POST", "/sapi/v1/internal_transfers/v2/process/", success({}))

        await InternalTransferFlow(logged_in_api, key_pair).run("o", "k", "usdc", "2", DESTINATION)

        signature = StarkSignature.model_validate(transport.calls[1]["json"]["signature"])
        assert verify_signature(key_pair.public_key, TRANSFER_HASH, signature)

    @pytest.mark.asyncio
    async def test_integer_hash_signed_by_value(self, logged_in_api, transport, key_pair):
        numeric_hash = int(TRANSFER_HASH, 16)
        transport.add("POST", "/sapi/v1/internal_transfers/v2/initiate/",
                      success({"msg_hash": numeric_hash, "nonce": 1}))
        transport.add("POST", "/sapi/v1/internal_transfers/v2/process/", success({}))

        await InternalTransferFlow(logged_in_api, key_pair).run("o", "k", "usdc", "2", DESTINATION)

        process = transport.calls[1]["json"]
        assert process["msg_hash"] == numeric_hash
        signature = StarkSignature.model_validate(process["signature"])
        assert verify_signature(key_pair.public_key, numeric_hash, signature)
