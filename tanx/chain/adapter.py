"""
On-chain operations used by deposits and normal-withdrawal completion.

``ChainAdapter`` is the interface the transaction flows call; its methods
block, so flows run them in worker threads. ``Web3ChainAdapter`` implements
it with web3.py and a local eth-account signer.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol, runtime_checkable

from eth_account import Account
from eth_utils import to_hex
from web3 import Web3

from .abi import CROSS_CHAIN_DEPOSIT_ABI, ERC20_ABI, MAX_UINT256, STARK_EXCHANGE_ABI
from ..exceptions import ChainError
from ..utils.validators import validate_private_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChainTransaction:
    """A submitted transaction: hash (0x-hex) and the account nonce it used."""
    hash: str
    nonce: int


@runtime_checkable
class ChainAdapter(Protocol):
    """Blockchain capabilities required by the transaction flows."""

    @property
    def address(self) -> str: ...

    def get_native_balance(self) -> int: ...

    def get_token_balance(self, token_contract: str) -> int: ...

    def get_allowance(self, token_contract: str, spender: str) -> int: ...

    def approve_allowance(self, token_contract: str, spender: str,
                          amount: int = MAX_UINT256) -> ChainTransaction: ...

    def deposit_eth_to_stark(self, stark_contract: str, stark_key: int, asset_type: int,
                             vault_id: int, value_wei: int) -> ChainTransaction: ...

    def deposit_erc20_to_stark(self, stark_contract: str, stark_key: int, asset_type: int,
                               vault_id: int, quantized_amount: int) -> ChainTransaction: ...

    def deposit_native(self, deposit_contract: str, value_wei: int) -> ChainTransaction: ...

    def deposit_erc20(self, deposit_contract: str, token_contract: str,
                      amount: int) -> ChainTransaction: ...

    def withdraw(self, stark_contract: str, owner_key: int, asset_type: int) -> ChainTransaction: ...

    def get_withdrawal_balance(self, stark_contract: str, owner_key: int, asset_id: int) -> int: ...


class Web3ChainAdapter:
    """
    ChainAdapter over a JSON-RPC endpoint.

    One instance per network; the account signs locally.
    """

    def __init__(
        self,
        rpc_url: str,
        private_key: str,
        gas_price_gwei: Optional[int] = None,
        web3: Optional[Web3] = None
    ):
        """
        Initialize chain adapter.

        Args:
            rpc_url: JSON-RPC endpoint of the network
            private_key: Account private key (with or without 0x)
            gas_price_gwei: Fixed legacy gas price; network fee estimation when None
            web3: Pre-built Web3 instance (tests, custom providers)
        """
        self.web3 = web3 or Web3(Web3.HTTPProvider(rpc_url))
        self._private_key = validate_private_key(private_key)
        self._account = Account.from_key(self._private_key)
        self.gas_price_gwei = gas_price_gwei

    def __repr__(self) -> str:
        return f"Web3ChainAdapter(address={self.address})"

    @property
    def address(self) -> str:
        return self._account.address

    def _contract(self, address: str, abi: list) -> Any:
        return self.web3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    def _send(self, function_call: Any, value: int = 0) -> ChainTransaction:
        """Build, sign and broadcast a contract call."""
        nonce = self.web3.eth.get_transaction_count(self.address, "pending")
        params = {"from": self.address, "nonce": nonce, "value": value}
        if self.gas_price_gwei is not None:
            params["gasPrice"] = self.web3.to_wei(self.gas_price_gwei, "gwei")

        try:
            tx = function_call.build_transaction(params)
            signed_tx = self.web3.eth.account.sign_transaction(tx, private_key=self._private_key)
            tx_hash = self.web3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except (ValueError, TypeError) as e:
            # web3 raises ValueError subclasses for RPC and contract errors
            raise ChainError(f"Transaction failed: {e}") from e

        result = ChainTransaction(hash=to_hex(tx_hash), nonce=nonce)
        logger.info(f"Submitted tx_hash={result.hash} nonce={nonce}")
        return result

    def get_native_balance(self) -> int:
        return self.web3.eth.get_balance(self.address)

    def get_token_balance(self, token_contract: str) -> int:
        return self._contract(token_contract, ERC20_ABI).functions.balanceOf(self.address).call()

    def get_allowance(self, token_contract: str, spender: str) -> int:
        return self._contract(token_contract, ERC20_ABI).functions.allowance(
            self.address, Web3.to_checksum_address(spender)
        ).call()

    def approve_allowance(self, token_contract: str, spender: str,
                          amount: int = MAX_UINT256) -> ChainTransaction:
        logger.info(f"Approving {spender} on token {token_contract}")
        token = self._contract(token_contract, ERC20_ABI)
        return self._send(token.functions.approve(Web3.to_checksum_address(spender), amount))

    def deposit_eth_to_stark(self, stark_contract: str, stark_key: int, asset_type: int,
                             vault_id: int, value_wei: int) -> ChainTransaction:
        contract = self._contract(stark_contract, STARK_EXCHANGE_ABI)
        return self._send(contract.functions.depositEth(stark_key, asset_type, vault_id), value=value_wei)

    def deposit_erc20_to_stark(self, stark_contract: str, stark_key: int, asset_type: int,
                               vault_id: int, quantized_amount: int) -> ChainTransaction:
        contract = self._contract(stark_contract, STARK_EXCHANGE_ABI)
        return self._send(contract.functions.depositERC20(stark_key, asset_type, vault_id, quantized_amount))

    def deposit_native(self, deposit_contract: str, value_wei: int) -> ChainTransaction:
        contract = self._contract(deposit_contract, CROSS_CHAIN_DEPOSIT_ABI)
        return self._send(contract.functions.depositNative(), value=value_wei)

    def deposit_erc20(self, deposit_contract: str, token_contract: str,
                      amount: int) -> ChainTransaction:
        contract = self._contract(deposit_contract, CROSS_CHAIN_DEPOSIT_ABI)
        return self._send(contract.functions.deposit(Web3.to_checksum_address(token_contract), amount))

    def withdraw(self, stark_contract: str, owner_key: int, asset_type: int) -> ChainTransaction:
        contract = self._contract(stark_contract, STARK_EXCHANGE_ABI)
        return self._send(contract.functions.withdraw(owner_key, asset_type))

    def get_withdrawal_balance(self, stark_contract: str, owner_key: int, asset_id: int) -> int:
        contract = self._contract(stark_contract, STARK_EXCHANGE_ABI)
        return contract.functions.getWithdrawalBalance(owner_key, asset_id).call()
