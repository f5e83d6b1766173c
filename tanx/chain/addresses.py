"""
StarkEx contract addresses for the tanX exchange.

Network: Ethereum (mainnet) / Sepolia (testnet).
Cross-chain deposit contracts are served by the exchange's network
configuration, not hard-coded.
"""

from typing import Dict, Union

from ..models import Environment

STARK_CONTRACT_MAINNET = "0x1390f521A79BaBE99b69B37154D63D431da27A07"
STARK_CONTRACT_TESTNET = "0xA2eC709125Ea693f5522aEfBBC3cb22fb9146B52"

STARK_CONTRACTS: Dict[Environment, str] = {
    Environment.MAINNET: STARK_CONTRACT_MAINNET,
    Environment.TESTNET: STARK_CONTRACT_TESTNET,
}


def stark_contract(environment: Union[Environment, str]) -> str:
    """StarkEx contract of an environment."""
    return STARK_CONTRACTS[Environment(environment)]
