"""
Centralized Exceptions - order registry error taxonomy.
One class per failure kind so callers can tell "try another order" from
"insufficient funds" from "not your order".
"""

from typing import Dict, Any, Optional


class OrderSwapError(Exception):
    """Base exception for the order swap registry."""
    
    def __init__(self, message: str, error_code: str = "UNKNOWN", details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidCallerError(OrderSwapError):
    """Caller is missing, malformed or the zero address."""
    
    def __init__(self, message: str = "Invalid caller", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "INVALID_CALLER", details)


class SameAssetNotAllowedError(OrderSwapError):
    """Deposit and swap asset are the same."""
    
    def __init__(self, message: str = "Deposit and swap asset must differ", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "SAME_ASSET_NOT_ALLOWED", details)


class ZeroValueNotAllowedError(OrderSwapError):
    """An amount is zero, negative or not an integer."""
    
    def __init__(self, message: str = "Amounts must be positive", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "ZERO_VALUE_NOT_ALLOWED", details)


class InsufficientFundsError(OrderSwapError):
    """Caller does not hold enough of the asset."""
    
    def __init__(self, message: str = "Insufficient funds", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "INSUFFICIENT_FUNDS", details)


class InsufficientContractBalanceError(OrderSwapError):
    """Registry custody is short of the escrowed amount."""
    
    def __init__(self, message: str = "Insufficient registry balance", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "INSUFFICIENT_CONTRACT_BALANCE", details)


class InvalidOrderIdError(OrderSwapError):
    """Order id was never issued."""
    
    def __init__(self, message: str = "Invalid order id", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "INVALID_ORDER_ID", details)


class OrderAlreadyCompletedError(OrderSwapError):
    """Order has already been fulfilled."""
    
    def __init__(self, message: str = "Order already completed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "ORDER_ALREADY_COMPLETED", details)


class OrderNotActiveError(OrderSwapError):
    """Order has been cancelled."""
    
    def __init__(self, message: str = "Order not active", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "ORDER_NOT_ACTIVE", details)


class UnauthorizedCallerError(OrderSwapError):
    """Caller is not the depositor of the order."""
    
    def __init__(self, message: str = "Caller is not the depositor", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "UNAUTHORIZED_CALLER", details)


class UnknownAssetError(OrderSwapError):
    """Asset has no ledger registered with the registry."""
    
    def __init__(self, message: str = "Unknown asset", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "UNKNOWN_ASSET", details)


class TransferFailedError(OrderSwapError):
    """Ledger refused to move funds."""
    
    def __init__(self, message: str = "Transfer failed", details: Optional[Dict[str, Any]] = None,
                 error_code: str = "TRANSFER_FAILED"):
        super().__init__(message, error_code, details)


class InsufficientBalanceError(TransferFailedError):
    """Ledger-level balance too low for the transfer."""
    
    def __init__(self, message: str = "Transfer amount exceeds balance", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, "INSUFFICIENT_BALANCE")


class InsufficientAllowanceError(TransferFailedError):
    """Spender was not approved for the amount."""
    
    def __init__(self, message: str = "Transfer amount exceeds allowance", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, "INSUFFICIENT_ALLOWANCE")


class ConfigurationError(OrderSwapError):
    """Configuration error."""
    
    def __init__(self, message: str = "Configuration error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONFIG_ERROR", details)


def sanitize_error_message(message: str) -> str:
    """Sanitize error messages to prevent information leakage."""
    sensitive_patterns = [
        "password", "secret", "private", "api_key", "access_token", "refresh_token"
    ]
    
    sanitized = message
    for pattern in sensitive_patterns:
        if pattern.lower() in sanitized.lower():
            sanitized = sanitized.replace(pattern, "***")
    
    return sanitized


def create_structured_error_response(error: Exception) -> Dict[str, Any]:
    """Create structured error payload for logging and audit lines."""
    if isinstance(error, OrderSwapError):
        return {
            "error_type": error.error_code,
            "message": sanitize_error_message(error.message),
            "details": error.details,
        }
    else:
        return {
            "error_type": "UNKNOWN_ERROR",
            "message": sanitize_error_message(str(error)),
            "details": {},
        }
