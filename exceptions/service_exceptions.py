# exceptions/service_exceptions.py - External service and configuration exceptions
from typing import Optional, Dict, Any
from .base_exceptions import VPNBotException


class ConfigurationException(VPNBotException):
    """Exception raised when configuration is invalid"""

    def __init__(self, config_key: str, error: str, details: Optional[Dict[str, Any]] = None):
        message = f"Configuration error for '{config_key}': {error}"
        super().__init__(message, details)
        self.config_key = config_key
        self.error = error


class TransientNetworkError(VPNBotException):
    """Exception raised when a remote service cannot be reached"""

    def __init__(self, service_name: str, error: str, details: Optional[Dict[str, Any]] = None):
        message = f"Service '{service_name}' is unreachable: {error}"
        super().__init__(message, details)
        self.service_name = service_name
        self.error = error


class ExternalAPIError(VPNBotException):
    """Exception raised when a remote service answers with a failure payload.

    ``api_message`` holds the backend text untouched so it can be shown to the user.
    """

    def __init__(self, service_name: str, api_message: str, details: Optional[Dict[str, Any]] = None):
        message = f"Service '{service_name}' returned an error: {api_message}"
        super().__init__(message, details)
        self.service_name = service_name
        self.api_message = api_message


class MalformedResponseError(ExternalAPIError):
    """Exception raised when a response body does not match the expected shape"""

    def __init__(self, service_name: str, error: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(service_name, f"malformed response: {error}", details)
        self.error = error
