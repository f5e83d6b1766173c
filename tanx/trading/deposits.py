"""
Deposits.

Funds move on-chain first (StarkEx contract on Ethereum, or the deposit
contract of a cross-chain network), then the transaction is reported to
the exchange. Balance and allowance are checked before anything is sent.

Deposits are served to institutional accounts only; both flows refuse to
run unless ``TanxSettings.institutional_access`` is set.
"""

import asyncio
from decimal import Decimal
from typing import Any, Union

from .flow import FlowState, TransactionFlow
from ..api.private import TanxAPI
from ..auth.key_derivation import StarkKeyPair
from ..chain.abi import MAX_UINT256
from ..chain.adapter import ChainAdapter, ChainTransaction
from ..chain.addresses import stark_contract
from ..exceptions import (
    AllowanceTooLowError,
    BalanceTooLowError,
    CoinNotFoundError,
    InstitutionalOnlyError,
)
from ..models import AllowListKind, Network
from ..utils.coins import (
    native_currency,
    normalize_network,
    resolve_cross_chain_coin,
    resolve_home_coin,
    select_network_config,
    stark_asset_type,
)
from ..utils.numeric import ETH_DECIMALS, from_base_units, to_base_units
from ..utils.validators import drop_leading_zero_prefix, validate_symbol

Amount = Union[Decimal, float, str]

DEPOSIT_TRANSITIONS = {
    FlowState.CREATED: (FlowState.GUARDED,),
    FlowState.GUARDED: (FlowState.CHAIN_SUBMITTED,),
    FlowState.CHAIN_SUBMITTED: (FlowState.REPORTED,),
}


def _check_balance(currency: str, balance_units: int, required_units: int, decimals: int) -> None:
    if balance_units < required_units:
        balance = from_base_units(balance_units, decimals)
        raise BalanceTooLowError(
            f"Current Balance ({balance:f}) for '{currency}' is too low, please add balance before deposit",
            currency=currency,
            balance=balance,
            required=from_base_units(required_units, decimals),
        )


def _check_allowance(token: str, allowance_units: int, required_units: int, decimals: int) -> None:
    if allowance_units < required_units:
        allowance = from_base_units(allowance_units, decimals)
        raise AllowanceTooLowError(
            f"Current Allowance ({allowance:f}) is too low, please use client.set_allowance()",
            token=token,
            allowance=allowance,
            required=from_base_units(required_units, decimals),
        )


class _DepositFlow(TransactionFlow):
    TRANSITIONS = DEPOSIT_TRANSITIONS
    FINAL_STATE = FlowState.REPORTED

    def __init__(self, api: TanxAPI, chain: ChainAdapter):
        super().__init__(api)
        self.chain = chain

    def _require_institutional(self) -> None:
        if not self.api.settings.institutional_access:
            raise InstitutionalOnlyError()


class StarkExDepositFlow(_DepositFlow):
    """
    Deposit from Ethereum into the StarkEx contract.

    ``GUARDED -> CHAIN_SUBMITTED -> REPORTED``.
    """

    name = "starkex_deposit"

    def __init__(self, api: TanxAPI, chain: ChainAdapter, key_pair: StarkKeyPair):
        super().__init__(api, chain)
        self.key_pair = key_pair

    async def _execute(self, amount: Amount, currency: str) -> Any:
        self._require_institutional()
        amount = self._guard_amount_and_session(amount)
        currency = validate_symbol(currency)
        coin_stats = await self.api.get_coin_status()
        coin = resolve_home_coin(coin_stats["payload"], currency)
        asset_type = stark_asset_type(coin)
        contract = stark_contract(self.api.settings.environment)
        quantized_amount = to_base_units(amount, coin.quantization or 0)

        vault = await self.api.get_vault_id(currency)
        vault_id = vault["payload"]["id"]

        if currency == "eth":
            value_wei = to_base_units(amount, ETH_DECIMALS)
            balance = await asyncio.to_thread(self.chain.get_native_balance)
            _check_balance(currency, balance, value_wei, ETH_DECIMALS)
            self._advance(FlowState.GUARDED)

            tx = await asyncio.to_thread(
                self.chain.deposit_eth_to_stark,
                contract, self.key_pair.public_key, asset_type, vault_id, value_wei
            )
            # Reported in units of 10**-10 ETH (gwei x 10)
            reported_amount = to_base_units(amount, 9) * 10
        else:
            decimals = coin.decimal if coin.decimal is not None else (coin.blockchain_decimal or 0)
            required = to_base_units(amount, decimals)
            balance = await asyncio.to_thread(self.chain.get_token_balance, coin.token_contract)
            _check_balance(currency, balance, required, decimals)
            allowance = await asyncio.to_thread(self.chain.get_allowance, coin.token_contract, contract)
            _check_allowance(currency, allowance, required, decimals)
            self._advance(FlowState.GUARDED)

            tx = await asyncio.to_thread(
                self.chain.deposit_erc20_to_stark,
                contract, self.key_pair.public_key, asset_type, vault_id, quantized_amount
            )
            reported_amount = quantized_amount
        self._advance(FlowState.CHAIN_SUBMITTED)
        self.log.info("deposit_submitted", currency=currency, tx_hash=tx.hash)

        result = await self.api.crypto_deposit_start(
            amount=reported_amount,
            stark_asset_id=drop_leading_zero_prefix(coin.stark_asset_id),
            stark_public_key=drop_leading_zero_prefix(self.key_pair.public_key_hex),
            deposit_blockchain_hash=tx.hash,
            deposit_blockchain_nonce=tx.nonce,
            vault_id=vault_id,
        )
        result["payload"] = {"transaction_hash": tx.hash}
        self._advance(FlowState.REPORTED)
        return result


class CrossChainDepositFlow(_DepositFlow):
    """
    Deposit on a cross-chain network's deposit contract.

    The chain adapter must be connected to that network.
    ``GUARDED -> CHAIN_SUBMITTED -> REPORTED``.
    """

    name = "cross_chain_deposit"

    async def _execute(self, amount: Amount, currency: str, network: Union[Network, str]) -> Any:
        self._require_institutional()
        amount = self._guard_amount_and_session(amount)
        currency = validate_symbol(currency)
        network = normalize_network(network)

        all_networks = await self.api.get_network_config()
        network_config = select_network_config(all_networks, network)
        token = resolve_cross_chain_coin(network_config, currency, AllowListKind.DEPOSIT, network)
        deposit_contract = network_config.deposit_contract
        if not deposit_contract:
            raise CoinNotFoundError(f"Network '{network}' has no deposit contract", network=network)

        if currency == native_currency(network):
            value_wei = to_base_units(amount, ETH_DECIMALS)
            balance = await asyncio.to_thread(self.chain.get_native_balance)
            _check_balance(currency, balance, value_wei, ETH_DECIMALS)
            self._advance(FlowState.GUARDED)

            tx = await asyncio.to_thread(self.chain.deposit_native, deposit_contract, value_wei)
        else:
            required = to_base_units(amount, token.blockchain_decimal)
            balance = await asyncio.to_thread(self.chain.get_token_balance, token.token_contract)
            _check_balance(currency, balance, required, token.blockchain_decimal)
            allowance = await asyncio.to_thread(
                self.chain.get_allowance, token.token_contract, deposit_contract
            )
            _check_allowance(currency, allowance, required, token.blockchain_decimal)
            self._advance(FlowState.GUARDED)

            tx = await asyncio.to_thread(
                self.chain.deposit_erc20, deposit_contract, token.token_contract, required
            )
        self._advance(FlowState.CHAIN_SUBMITTED)
        self.log.info("deposit_submitted", currency=currency, network=network, tx_hash=tx.hash)

        result = await self.api.cross_chain_deposit_start(
            amount=amount,
            currency=currency,
            deposit_blockchain_hash=tx.hash,
            deposit_blockchain_nonce=tx.nonce,
            network=network,
        )
        result["payload"] = {"transaction_hash": tx.hash}
        self._advance(FlowState.REPORTED)
        return result


async def set_allowance(
    api: TanxAPI,
    chain: ChainAdapter,
    coin: str,
    network: Union[Network, str] = Network.ETHEREUM
) -> ChainTransaction:
    """
    Approve unlimited spending of a token by the exchange's deposit contract.

    ETHEREUM approves the StarkEx contract for a home coin; other networks
    approve the network's deposit contract for a coin on its deposit list.
    """
    coin = validate_symbol(coin)
    network = normalize_network(network)

    if network == Network.ETHEREUM.value:
        coin_stats = await api.get_coin_status()
        token_contract = resolve_home_coin(coin_stats["payload"], coin).token_contract
        spender = stark_contract(api.settings.environment)
    else:
        all_networks = await api.get_network_config()
        network_config = select_network_config(all_networks, network)
        token_contract = resolve_cross_chain_coin(
            network_config, coin, AllowListKind.DEPOSIT, network
        ).token_contract
        spender = network_config.deposit_contract

    if not token_contract or not spender:
        raise CoinNotFoundError(f"Coin '{coin}' has no token contract on {network}",
                                symbol=coin, network=network)

    return await asyncio.to_thread(chain.approve_allowance, token_contract, spender, MAX_UINT256)
