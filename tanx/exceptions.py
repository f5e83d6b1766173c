"""
Custom exceptions for the tanX client.

Guard failures (amount, coin, session) are raised locally before any
network or signing work. Transport failures carry the server response body.
"""

from typing import Optional, Any


class TanxError(Exception):
    """Base exception for all tanX client errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class APIError(TanxError):
    """API request failed (non-2xx response or unreadable body)."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 response: Optional[Any] = None):
        super().__init__(message, {"status_code": status_code, "response": response})
        self.status_code = status_code
        self.response = response

    @property
    def server_message(self) -> Optional[str]:
        """The ``message`` field of a ``{status, message}`` error body, if any."""
        if isinstance(self.response, dict):
            return self.response.get("message")
        return None


class AuthenticationError(TanxError):
    """No session, invalid session, or token refresh failed."""
    pass


class TimeoutError(TanxError):
    """Request timed out."""
    pass


class ValidationError(TanxError):
    """Input validation failed."""
    pass


class InvalidAmountError(ValidationError):
    """Amount is not a number greater than zero."""

    def __init__(self, message: str, amount: Optional[Any] = None):
        super().__init__(message, {"amount": amount})
        self.amount = amount


class CoinNotFoundError(TanxError):
    """Coin is absent from the coin table or from the requested allow-list."""

    def __init__(self, message: str, symbol: Optional[str] = None,
                 network: Optional[str] = None):
        super().__init__(message, {"symbol": symbol, "network": network})
        self.symbol = symbol
        self.network = network


class InstitutionalOnlyError(TanxError):
    """Operation is only available to institutional accounts."""

    def __init__(self, message: str = "This operation is available to institutional clients only"):
        super().__init__(message)


# On-chain precondition failures
class ChainError(TanxError):
    """Base exception for on-chain preconditions."""
    pass


class BalanceTooLowError(ChainError):
    """Wallet balance is lower than the requested amount."""

    def __init__(self, message: str, currency: Optional[str] = None,
                 balance: Optional[Any] = None, required: Optional[Any] = None):
        super().__init__(message, {"currency": currency, "balance": balance, "required": required})
        self.currency = currency
        self.balance = balance
        self.required = required


class AllowanceTooLowError(ChainError):
    """Token allowance granted to the deposit contract is too low."""

    def __init__(self, message: str, token: Optional[str] = None,
                 allowance: Optional[Any] = None, required: Optional[Any] = None):
        super().__init__(message, {"token": token, "allowance": allowance, "required": required})
        self.token = token
        self.allowance = allowance
        self.required = required


# Transaction flow exceptions
class TransactionFlowError(TanxError):
    """A transaction flow step was attempted out of order."""

    def __init__(self, message: str, flow: Optional[str] = None,
                 state: Optional[str] = None):
        super().__init__(message, {"flow": flow, "state": state})
        self.flow = flow
        self.state = state


class SigningError(TanxError):
    """A message hash could not be signed."""
    pass
