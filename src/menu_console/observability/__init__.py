"""OpenTelemetry instrumentation and logging utilities."""

from menu_console.observability.config import configure_logging, setup_observability
from menu_console.observability.decorators import traced

__all__ = ["setup_observability", "configure_logging", "traced"]
