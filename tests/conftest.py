"""Shared pytest fixtures and configuration for all tests."""

import os

# main.py and lambda_handler.py build the real app at import unless in test mode.
os.environ.setdefault("ENVIRONMENT", "test")

from collections.abc import Callable  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402


def _make_response(status_code: int = 200, payload: object = None) -> MagicMock:
    """Build a mocked httpx response the way the clients consume it."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            f"HTTP {status_code}", request=MagicMock(), response=response
        )
    return response


@pytest.fixture
def make_response() -> Callable[..., MagicMock]:
    """Fixture providing a factory for mocked httpx responses."""
    return _make_response


@pytest.fixture
def mock_restaurant_id() -> str:
    """Fixture providing a standard test restaurant ID."""
    return "rest_1"


@pytest.fixture
def mock_restaurants() -> list[dict]:
    """Fixture providing sample restaurants as returned by the API."""
    return [
        {"id": "rest_1", "name": "Cafe Uno"},
        {"id": "rest_2", "name": "Cafe Dos"},
    ]


@pytest.fixture
def mock_categories() -> list[dict]:
    """Fixture providing sample categories for testing."""
    return [
        {"id": "cat_1", "name": "Starters"},
        {"id": "cat_2", "name": "Mains"},
    ]


@pytest.fixture
def mock_menu_items() -> list[dict]:
    """Fixture providing sample menu items for testing."""
    return [
        {
            "id": "item_1",
            "name": "Soup",
            "description": "Tomato soup",
            "price": 4.5,
            "category_id": "cat_1",
            "is_available": True,
        },
        {
            "id": "item_2",
            "name": "Curry",
            "description": None,
            "price": 12.0,
            "category_id": "cat_2",
            "is_available": False,
        },
    ]
