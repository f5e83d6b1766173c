"""On-chain adapters and contract metadata."""

from .adapter import ChainAdapter, ChainTransaction, Web3ChainAdapter
from .addresses import STARK_CONTRACTS, stark_contract
from .abi import MAX_UINT256

__all__ = [
    "ChainAdapter",
    "ChainTransaction",
    "Web3ChainAdapter",
    "STARK_CONTRACTS",
    "stark_contract",
    "MAX_UINT256",
]
