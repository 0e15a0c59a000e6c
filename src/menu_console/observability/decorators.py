"""OpenTelemetry tracing decorators."""

import functools
import inspect
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode

F = TypeVar("F", bound=Callable[..., Any])


def _span_attributes(func: Callable[..., Any], arg_names: tuple[str, ...], args: Any, kwargs: Any) -> dict[str, str]:
    """Pick the named call arguments to attach to the span."""
    if not arg_names:
        return {}
    bound = inspect.signature(func).bind_partial(*args, **kwargs)
    return {
        f"arg.{name}": str(bound.arguments[name])
        for name in arg_names
        if name in bound.arguments and bound.arguments[name] is not None
    }


@contextmanager
def _recording(span: Span) -> Iterator[None]:
    try:
        yield
        span.set_attribute("success", True)
    except Exception as e:
        span.set_attribute("success", False)
        span.set_attribute("error.type", type(e).__name__)
        span.set_status(Status(StatusCode.ERROR, str(e)))
        span.record_exception(e)
        raise


def traced(
    span_name: str | None = None,
    service_name: str = "menu-console",
    record_args: tuple[str, ...] = ("restaurant_id", "table_id"),
) -> Callable[[F], F]:
    """Decorator to wrap a function call in an OpenTelemetry span.

    Exceptions are recorded on the span and re-raised unchanged.

    Args:
        span_name: Name for the span (defaults to the function name)
        service_name: Service name used for the tracer and span attributes
        record_args: Argument names copied onto the span when present

    Returns:
        Decorated function with tracing

    Example:
        @traced("menu_api.list_restaurants", service_name="menu-console")
        async def list_restaurants(self) -> list[Restaurant]:
            ...
    """

    def decorator(func: F) -> F:
        name = span_name or func.__name__
        tracer = trace.get_tracer(service_name)

        def start(args: Any, kwargs: Any) -> Any:
            attributes = {"service.name": service_name, "function.name": func.__name__}
            attributes.update(_span_attributes(func, record_args, args, kwargs))
            return tracer.start_as_current_span(
                name,
                attributes=attributes,
                record_exception=False,
                set_status_on_exception=False,
            )

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with start(args, kwargs) as span, _recording(span):
                    return await func(*args, **kwargs)

            return async_wrapper  # type: ignore

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with start(args, kwargs) as span, _recording(span):
                return func(*args, **kwargs)

        return sync_wrapper  # type: ignore

    return decorator
