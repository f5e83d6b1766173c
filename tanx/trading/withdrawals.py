"""
Withdrawals.

Normal withdrawal is two-phase: the off-chain flow (initiate, sign,
validate) asks the exchange to release funds to the StarkEx contract;
``complete_normal_withdrawal`` later pulls them on-chain. Fast withdrawal
pays out directly on the destination network.
"""

import asyncio
from decimal import Decimal
from typing import Any, Optional, Union

from .flow import FlowState, TransactionFlow
from ..api.private import TanxAPI
from ..auth.key_derivation import StarkKeyPair
from ..auth.signer import format_withdrawal_hash, sign_withdrawal_hash
from ..chain.adapter import ChainAdapter, ChainTransaction
from ..chain.addresses import stark_contract
from ..models import (
    AllowListKind,
    FastWithdrawalInitiation,
    Network,
    WithdrawalInitiation,
)
from ..utils.coins import (
    normalize_network,
    resolve_cross_chain_coin,
    resolve_home_coin,
    select_network_config,
    stark_asset_type,
)
from ..utils.numeric import format_withdrawal_amount
from ..utils.validators import validate_address, validate_symbol

Amount = Union[Decimal, float, str]


class NormalWithdrawalFlow(TransactionFlow):
    """``GUARDED -> INITIATED -> SIGNED -> VALIDATED``."""

    name = "normal_withdrawal"
    TRANSITIONS = {
        FlowState.CREATED: (FlowState.GUARDED,),
        FlowState.GUARDED: (FlowState.INITIATED,),
        FlowState.INITIATED: (FlowState.SIGNED,),
        FlowState.SIGNED: (FlowState.VALIDATED,),
    }
    FINAL_STATE = FlowState.VALIDATED

    def __init__(self, api: TanxAPI, key_pair: StarkKeyPair):
        super().__init__(api)
        self.key_pair = key_pair

    async def _execute(self, amount: Amount, symbol: str) -> Any:
        amount = self._guard_amount_and_session(amount)
        symbol = validate_symbol(symbol)
        coin_stats = await self.api.get_coin_status()
        resolve_home_coin(coin_stats["payload"], symbol)
        self._advance(FlowState.GUARDED)

        response = await self.api.start_normal_withdrawal(amount, symbol)
        initiation = WithdrawalInitiation.model_validate(response["payload"])
        self._advance(FlowState.INITIATED)

        signature = sign_withdrawal_hash(self.key_pair, initiation.msg_hash)
        self._advance(FlowState.SIGNED)

        result = await self.api.validate_normal_withdrawal(
            msg_hash=format_withdrawal_hash(initiation.msg_hash),
            signature=signature,
            nonce=initiation.nonce,
        )
        self._advance(FlowState.VALIDATED)
        self.log.info("normal_withdrawal_validated", symbol=symbol, nonce=initiation.nonce)
        return result


class FastWithdrawalFlow(TransactionFlow):
    """
    ``GUARDED -> INITIATED -> SIGNED -> PROCESSED``.

    ETHEREUM destinations are checked against the home coin table, every
    other network against its fast-withdrawal allow-list.
    """

    name = "fast_withdrawal"
    TRANSITIONS = {
        FlowState.CREATED: (FlowState.GUARDED,),
        FlowState.GUARDED: (FlowState.INITIATED,),
        FlowState.INITIATED: (FlowState.SIGNED,),
        FlowState.SIGNED: (FlowState.PROCESSED,),
    }
    FINAL_STATE = FlowState.PROCESSED

    def __init__(self, api: TanxAPI, key_pair: StarkKeyPair):
        super().__init__(api)
        self.key_pair = key_pair

    async def _execute(
        self,
        amount: Amount,
        symbol: str,
        network: Union[Network, str] = Network.ETHEREUM,
        cc_address: Optional[str] = None
    ) -> Any:
        amount = self._guard_amount_and_session(amount)
        symbol = validate_symbol(symbol)
        network = normalize_network(network)

        if network == Network.ETHEREUM.value:
            coin_stats = await self.api.get_coin_status()
            resolve_home_coin(coin_stats["payload"], symbol)
        else:
            all_networks = await self.api.get_network_config()
            resolve_cross_chain_coin(
                select_network_config(all_networks, network),
                symbol,
                AllowListKind.WITHDRAWAL,
                network,
            )
        self._advance(FlowState.GUARDED)

        response = await self.api.start_fast_withdrawal(amount, symbol, network, cc_address)
        initiation = FastWithdrawalInitiation.model_validate(response["payload"])
        self._advance(FlowState.INITIATED)

        signature = sign_withdrawal_hash(self.key_pair, initiation.msg_hash)
        self._advance(FlowState.SIGNED)

        result = await self.api.process_fast_withdrawal(
            msg_hash=initiation.msg_hash,
            signature=signature,
            fastwithdrawal_withdrawal_id=initiation.fastwithdrawal_withdrawal_id,
        )
        self._advance(FlowState.PROCESSED)
        self.log.info("fast_withdrawal_processed", symbol=symbol, network=network,
                      withdrawal_id=initiation.fastwithdrawal_withdrawal_id)
        return result


async def complete_normal_withdrawal(
    api: TanxAPI,
    chain: ChainAdapter,
    symbol: str,
    eth_address: str
) -> ChainTransaction:
    """
    Pull a validated normal withdrawal out of the StarkEx contract.

    No signing; safe to call repeatedly (the contract decides the payout).
    """
    api.auth.require_auth()
    symbol = validate_symbol(symbol)
    owner = validate_address(eth_address)
    coin_stats = await api.get_coin_status()
    coin = resolve_home_coin(coin_stats["payload"], symbol)

    return await asyncio.to_thread(
        chain.withdraw,
        stark_contract(api.settings.environment),
        int(owner, 16),
        stark_asset_type(coin),
    )


async def get_pending_normal_withdrawal_amount(
    api: TanxAPI,
    chain: ChainAdapter,
    symbol: str,
    eth_address: str
) -> str:
    """Amount ready for ``complete_normal_withdrawal``, in coin units."""
    api.auth.require_auth()
    symbol = validate_symbol(symbol)
    owner = validate_address(eth_address)
    coin_stats = await api.get_coin_status()
    coin = resolve_home_coin(coin_stats["payload"], symbol)

    balance = await asyncio.to_thread(
        chain.get_withdrawal_balance,
        stark_contract(api.settings.environment),
        int(owner, 16),
        stark_asset_type(coin),
    )
    return format_withdrawal_amount(balance, coin.blockchain_decimal or 0, symbol)
