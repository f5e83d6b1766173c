"""
Minimal contract ABIs.

Only the functions the client calls: ERC-20 balance/allowance/approve, the
StarkEx deposit and withdrawal entry points, and the cross-chain deposit
contract.
"""

ERC20_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function"
    },
    {
        "constant": True,
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"}
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function"
    },
    {
        "constant": False,
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "value", "type": "uint256"}
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function"
    }
]

STARK_EXCHANGE_ABI = [
    {
        "inputs": [
            {"name": "starkKey", "type": "uint256"},
            {"name": "assetType", "type": "uint256"},
            {"name": "vaultId", "type": "uint256"}
        ],
        "name": "depositEth",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "starkKey", "type": "uint256"},
            {"name": "assetType", "type": "uint256"},
            {"name": "vaultId", "type": "uint256"},
            {"name": "quantizedAmount", "type": "uint256"}
        ],
        "name": "depositERC20",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "ownerKey", "type": "uint256"},
            {"name": "assetType", "type": "uint256"}
        ],
        "name": "withdraw",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "ownerKey", "type": "uint256"},
            {"name": "assetId", "type": "uint256"}
        ],
        "name": "getWithdrawalBalance",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    }
]

CROSS_CHAIN_DEPOSIT_ABI = [
    {
        "inputs": [],
        "name": "depositNative",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "token", "type": "address"},
            {"name": "amount", "type": "uint256"}
        ],
        "name": "deposit",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    }
]

# Unlimited approval amount
MAX_UINT256 = 2**256 - 1
