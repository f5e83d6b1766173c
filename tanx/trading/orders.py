"""
Order placement: request nonce, sign its hash, submit.
"""

from decimal import Decimal
from typing import Any, Optional, Union

from .flow import FlowState, TransactionFlow
from ..api.private import TanxAPI
from ..auth.key_derivation import StarkKeyPair
from ..auth.signer import sign_order_nonce
from ..exceptions import ValidationError
from ..models import CreateOrderNonceRequest, OrderNonce, OrderType, Side
from ..utils.validators import validate_amount


class OrderPlacementFlow(TransactionFlow):
    """``GUARDED -> NONCE_REQUESTED -> SIGNED -> SUBMITTED``."""

    name = "order_placement"
    TRANSITIONS = {
        FlowState.CREATED: (FlowState.GUARDED,),
        FlowState.GUARDED: (FlowState.NONCE_REQUESTED,),
        FlowState.NONCE_REQUESTED: (FlowState.SIGNED,),
        FlowState.SIGNED: (FlowState.SUBMITTED,),
    }
    FINAL_STATE = FlowState.SUBMITTED

    def __init__(self, api: TanxAPI, key_pair: StarkKeyPair):
        super().__init__(api)
        self.key_pair = key_pair

    async def _execute(
        self,
        market: str,
        side: Union[Side, str],
        volume: Union[Decimal, float, str],
        ord_type: Union[OrderType, str] = OrderType.MARKET,
        price: Optional[Union[Decimal, float, str]] = None
    ) -> Any:
        volume = self._guard_amount_and_session(volume)
        try:
            side = Side(side.lower() if isinstance(side, str) else side)
            ord_type = OrderType(ord_type.lower() if isinstance(ord_type, str) else ord_type)
        except ValueError as e:
            raise ValidationError(f"Invalid order side or type: {e}") from e

        if ord_type == OrderType.LIMIT:
            if price is None:
                raise ValidationError("Limit orders need a price")
            price = validate_amount(price)

        body = CreateOrderNonceRequest(
            market=market, ord_type=ord_type, side=side, volume=volume, price=price
        )
        self._advance(FlowState.GUARDED)

        response = await self.api.create_order_nonce(body)
        nonce = OrderNonce.model_validate(response["payload"])
        self._advance(FlowState.NONCE_REQUESTED)

        signed_order = sign_order_nonce(self.key_pair, nonce)
        self._advance(FlowState.SIGNED)

        result = await self.api.create_new_order(signed_order)
        self._advance(FlowState.SUBMITTED)
        self.log.info("order_submitted", market=body.market, side=side.value, nonce=nonce.nonce)
        return result
