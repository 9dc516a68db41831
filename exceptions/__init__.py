from .base_exceptions import VPNBotException
from .service_exceptions import (
    ConfigurationException,
    TransientNetworkError,
    ExternalAPIError,
    MalformedResponseError,
)
from .flow_exceptions import UserInputError, DuplicateRedemptionError, PersistenceWarning

__all__ = [
    "VPNBotException",
    "ConfigurationException",
    "TransientNetworkError",
    "ExternalAPIError",
    "MalformedResponseError",
    "UserInputError",
    "DuplicateRedemptionError",
    "PersistenceWarning",
]
