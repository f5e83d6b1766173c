"""
Transaction flow base.

Each flow is a one-shot, strictly ordered state machine. A failing step
moves the flow to FAILED and the exception propagates; no step is retried
and no later step runs.
"""

import time
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..api.private import TanxAPI
from ..exceptions import TransactionFlowError
from ..utils.structured_logging import (
    clear_correlation_id,
    get_structured_logger,
    set_correlation_id,
)
from ..utils.validators import validate_amount


class FlowState(str, Enum):
    """States shared by all transaction flows."""
    CREATED = "CREATED"
    GUARDED = "GUARDED"                  # amount, session and coin checks passed
    NONCE_REQUESTED = "NONCE_REQUESTED"
    INITIATED = "INITIATED"
    SIGNED = "SIGNED"
    SUBMITTED = "SUBMITTED"
    VALIDATED = "VALIDATED"
    PROCESSED = "PROCESSED"
    CHAIN_SUBMITTED = "CHAIN_SUBMITTED"
    REPORTED = "REPORTED"
    FAILED = "FAILED"


class TransactionFlow:
    """
    Base class for transaction flows.

    Subclasses declare ``name``, the ``TRANSITIONS`` table and the
    terminal ``FINAL_STATE``, and implement ``_execute``.
    """

    name = "flow"
    TRANSITIONS: Dict[FlowState, Tuple[FlowState, ...]] = {}
    FINAL_STATE = FlowState.SUBMITTED

    def __init__(self, api: TanxAPI):
        self.api = api
        self.metrics = api.metrics
        self.state = FlowState.CREATED
        self.correlation_id: Optional[str] = None
        self.log = get_structured_logger(f"tanx.trading.{self.name}")

    def _advance(self, new_state: FlowState) -> None:
        """Move to ``new_state``; anything off the transition table is an error."""
        if new_state not in self.TRANSITIONS.get(self.state, ()):
            raise TransactionFlowError(
                f"{self.name}: illegal transition {self.state.value} -> {new_state.value}",
                flow=self.name,
                state=self.state.value
            )
        self.log.debug("flow_transition", from_state=self.state.value, to_state=new_state.value)
        self.state = new_state

    def _guard_amount_and_session(self, amount: Any) -> Decimal:
        """Amount then session, both before any request."""
        value = validate_amount(amount)
        self.api.auth.require_auth()
        return value

    async def run(self, *args, **kwargs) -> Any:
        """
        Execute the flow once.

        Raises:
            TransactionFlowError: If this instance already ran
        """
        if self.state != FlowState.CREATED:
            raise TransactionFlowError(
                f"{self.name} already ran (state {self.state.value})",
                flow=self.name,
                state=self.state.value
            )

        self.correlation_id = set_correlation_id()
        start = time.time()
        self.log.info("flow_started", flow=self.name)
        try:
            result = await self._execute(*args, **kwargs)
        except Exception as e:
            failed_at = self.state.value
            self.state = FlowState.FAILED
            self.metrics.track_flow(self.name, FlowState.FAILED.value)
            self.log.error("flow_failed", str(e), flow=self.name, failed_at=failed_at,
                           error_type=type(e).__name__)
            raise
        else:
            if self.state != self.FINAL_STATE:
                raise TransactionFlowError(
                    f"{self.name} ended in {self.state.value}",
                    flow=self.name,
                    state=self.state.value
                )
            self.metrics.track_flow(self.name, self.state.value)
            self.log.info("flow_completed", flow=self.name)
            return result
        finally:
            self.metrics.track_flow_latency(self.name, time.time() - start)
            clear_correlation_id()

    async def _execute(self, *args, **kwargs) -> Any:
        raise NotImplementedError
