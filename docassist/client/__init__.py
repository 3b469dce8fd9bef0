"""Access to the remote document assistant API.

Responsibilities:
    - Bounded-time requests with normalized errors
    - Connectivity tracking with interval retries
    - Cancellable interval tasks
    - Environment-driven configuration
"""

from docassist.client.config import ClientConfig, get_client_config
from docassist.client.errors import GatewayError, HttpError, NetworkError, RequestTimeout
from docassist.client.gateway import RequestGateway
from docassist.client.health import Connectivity, ConnectivityState, HealthMonitor
from docassist.client.scheduling import ScheduledTask

__all__ = [
    "ClientConfig",
    "Connectivity",
    "ConnectivityState",
    "GatewayError",
    "HealthMonitor",
    "HttpError",
    "NetworkError",
    "RequestGateway",
    "RequestTimeout",
    "ScheduledTask",
    "get_client_config",
]
