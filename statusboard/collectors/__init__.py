from .service_probe import ServiceProbe
from .system_collector import SystemCollector

__all__ = [
    "ServiceProbe",
    "SystemCollector",
]
