"""Custom metrics for the menu console."""

from opentelemetry import metrics

meter = metrics.get_meter("menu-console")

menu_api_request_counter = meter.create_counter(
    name="menu_api_requests_total",
    description="Total number of Menu API requests by method and status",
    unit="1",
)

menu_api_duration_histogram = meter.create_histogram(
    name="menu_api_request_duration_seconds",
    description="Duration of Menu API requests",
    unit="s",
)

console_mutation_counter = meter.create_counter(
    name="console_mutations_total",
    description="Admin console mutations by operation and outcome",
    unit="1",
)

table_menu_views_counter = meter.create_counter(
    name="table_menu_views_total",
    description="Table menu page views by outcome",
    unit="1",
)

login_attempts_counter = meter.create_counter(
    name="admin_login_attempts_total",
    description="Admin login attempts by outcome",
    unit="1",
)


def record_menu_api_call(method: str, status: str, duration_seconds: float) -> None:
    """Record one Menu API round trip.

    Args:
        method: HTTP method
        status: HTTP status code, or "error" for transport failures
        duration_seconds: Duration in seconds
    """
    attributes = {"method": method, "status": status}
    menu_api_request_counter.add(1, attributes)
    menu_api_duration_histogram.record(duration_seconds, attributes)


def record_mutation(operation: str, outcome: str) -> None:
    """Record an admin console mutation.

    Args:
        operation: e.g. "add_category", "toggle_availability"
        outcome: "success", "validation_error" or "api_error"
    """
    console_mutation_counter.add(1, {"operation": operation, "outcome": outcome})


def record_table_menu_view(outcome: str) -> None:
    table_menu_views_counter.add(1, {"outcome": outcome})


def record_login_attempt(success: bool) -> None:
    login_attempts_counter.add(1, {"outcome": "success" if success else "failure"})
