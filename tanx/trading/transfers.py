"""
Internal transfer between exchange accounts: initiate, sign, process.

Initiate and process both carry the caller's organization and API keys;
those are institutional credentials, separate from the STARK identity.
"""

from decimal import Decimal
from typing import Any, Optional, Union

from .flow import FlowState, TransactionFlow
from ..api.private import TanxAPI
from ..auth.key_derivation import StarkKeyPair
from ..auth.signer import sign_internal_transfer_hash
from ..models import InternalTransferInitiation, InternalTransferRequest
from ..utils.validators import validate_symbol


class InternalTransferFlow(TransactionFlow):
    """``GUARDED -> INITIATED -> SIGNED -> PROCESSED``."""

    name = "internal_transfer"
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
        organization_key: str,
        api_key: str,
        currency: str,
        amount: Union[Decimal, float, str],
        destination_address: str,
        client_reference_id: Optional[str] = None
    ) -> Any:
        amount = self._guard_amount_and_session(amount)
        request = InternalTransferRequest(
            organization_key=organization_key,
            api_key=api_key,
            currency=validate_symbol(currency),
            amount=amount,
            destination_address=destination_address,
            client_reference_id=client_reference_id,
        )
        self._advance(FlowState.GUARDED)

        response = await self.api.initiate_internal_transfer(request)
        initiation = InternalTransferInitiation.model_validate(response["payload"])
        self._advance(FlowState.INITIATED)

        signature = sign_internal_transfer_hash(self.key_pair, initiation.msg_hash)
        self._advance(FlowState.SIGNED)

        result = await self.api.execute_internal_transfer(
            organization_key=organization_key,
            api_key=api_key,
            signature=signature,
            nonce=initiation.nonce,
            msg_hash=initiation.msg_hash,
        )
        self._advance(FlowState.PROCESSED)
        self.log.info("internal_transfer_processed", currency=request.currency,
                      client_reference_id=client_reference_id)
        return result
