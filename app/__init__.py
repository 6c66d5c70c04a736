"""
Nano Banana Proxy - App Package
"""

__version__ = "1.0.0"

from .config import Settings, load_settings
from .errors import BadRequestError, ConfigurationError, GatewayError, UpstreamError
from .gateway import FalGateway, UpstreamResult
from .schemas import HealthResponse, RequestVariant

__all__ = [
    "__version__",
    "Settings",
    "load_settings",
    "FalGateway",
    "UpstreamResult",
    "GatewayError",
    "ConfigurationError",
    "BadRequestError",
    "UpstreamError",
    "HealthResponse",
    "RequestVariant",
]
