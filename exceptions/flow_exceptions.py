# exceptions/flow_exceptions.py - Conversation flow exceptions
from typing import Optional, Dict, Any
from .base_exceptions import VPNBotException


class UserInputError(VPNBotException):
    """Exception raised when a form field cannot be accepted"""

    def __init__(self, field: str, value: str, error: str, details: Optional[Dict[str, Any]] = None):
        message = f"Invalid value for '{field}': {error}"
        super().__init__(message, details)
        self.field = field
        self.value = value
        self.error = error


class DuplicateRedemptionError(VPNBotException):
    """Exception raised when a user tries to redeem the trial a second time"""

    def __init__(self, user_id: int, details: Optional[Dict[str, Any]] = None):
        message = f"User {user_id} has already redeemed the trial"
        super().__init__(message, details)
        self.user_id = user_id


class PersistenceWarning(VPNBotException):
    """Raised when state could not be written to disk; callers log it and carry on"""

    def __init__(self, path: str, error: str, details: Optional[Dict[str, Any]] = None):
        message = f"Failed to persist '{path}': {error}"
        super().__init__(message, details)
        self.path = path
        self.error = error
