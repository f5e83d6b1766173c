"""Transaction flows: orders, withdrawals, internal transfers, deposits."""

from .flow import FlowState, TransactionFlow
from .orders import OrderPlacementFlow
from .withdrawals import (
    NormalWithdrawalFlow,
    FastWithdrawalFlow,
    complete_normal_withdrawal,
    get_pending_normal_withdrawal_amount,
)
from .transfers import InternalTransferFlow
from .deposits import StarkExDepositFlow, CrossChainDepositFlow, set_allowance

__all__ = [
    "FlowState",
    "TransactionFlow",
    "OrderPlacementFlow",
    "NormalWithdrawalFlow",
    "FastWithdrawalFlow",
    "complete_normal_withdrawal",
    "get_pending_normal_withdrawal_amount",
    "InternalTransferFlow",
    "StarkExDepositFlow",
    "CrossChainDepositFlow",
    "set_allowance",
]
