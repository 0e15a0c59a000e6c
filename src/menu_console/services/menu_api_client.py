"""Client for interacting with the Menu API."""

import logging
import time
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from menu_console.models.console_models import MenuItemDraft
from menu_console.models.menu_models import Category, MenuItem, Restaurant, TableMenu
from menu_console.observability.decorators import traced
from menu_console.observability.metrics import record_menu_api_call

logger = logging.getLogger(__name__)


def _segment(value: str) -> str:
    """Escape an identifier for use as a single path segment."""
    return quote(str(value), safe="")


class MenuApiError(Exception):
    """Raised when a Menu API call does not complete successfully.

    Attributes:
        status_code: HTTP status of a non-2xx response, None for network or parse errors
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MenuApiClient:
    """HTTP client for the restaurant, category and menu item resources.

    Every method is a single request/response round trip. Failures are raised
    as MenuApiError so the caller can report them; nothing is retried here.
    """

    def __init__(self, base_url: str, timeout: float = 5.0) -> None:
        """Initialize the Menu API client.

        Args:
            base_url: Base URL of the Menu API (e.g., "https://api.example.com")
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Issue one request and translate failures into MenuApiError.

        Args:
            method: HTTP method name
            path: Path below the base URL, starting with "/"
            **kwargs: Passed through to httpx (json, data, files)

        Returns:
            The successful response

        Raises:
            MenuApiError: On a non-2xx status or a transport error
        """
        url = f"{self.base_url}{path}"
        started = time.perf_counter()
        status = "error"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                call = getattr(client, method.lower())
                response = await call(url, **kwargs)
                status = str(response.status_code)
                response.raise_for_status()
                return response

        except httpx.HTTPStatusError as e:
            logger.error(f"{method} {url} returned HTTP {e.response.status_code}")
            raise MenuApiError(
                f"HTTP {e.response.status_code}", status_code=e.response.status_code
            ) from e
        except httpx.RequestError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise MenuApiError(str(e) or type(e).__name__) from e
        finally:
            record_menu_api_call(method, status, time.perf_counter() - started)

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise MenuApiError(f"Invalid JSON response: {e}") from e

    @staticmethod
    def _parse(model: Any, data: Any) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise MenuApiError(f"Unexpected response payload: {e.error_count()} validation errors") from e

    def _parse_list(self, model: Any, data: Any) -> list[Any]:
        if not isinstance(data, list):
            raise MenuApiError("Unexpected response payload: expected a list")
        return [self._parse(model, entry) for entry in data]

    @traced("menu_api.list_restaurants", service_name="menu-console")
    async def list_restaurants(self) -> list[Restaurant]:
        """Fetch all restaurants.

        Returns:
            List of Restaurant objects, empty list if none exist
        """
        response = await self._request("GET", "/api/restaurants")
        return self._parse_list(Restaurant, self._json(response))

    @traced("menu_api.create_restaurant", service_name="menu-console")
    async def create_restaurant(self, name: str) -> Restaurant:
        """Create a restaurant.

        Args:
            name: Restaurant name

        Returns:
            The restaurant as confirmed by the API
        """
        response = await self._request("POST", "/api/restaurants", json={"name": name})
        restaurant: Restaurant = self._parse(Restaurant, self._json(response))
        return restaurant

    @traced("menu_api.list_categories", service_name="menu-console")
    async def list_categories(self, restaurant_id: str) -> list[Category]:
        """Fetch categories for a restaurant.

        Args:
            restaurant_id: The restaurant to fetch categories for

        Returns:
            List of Category objects, empty list if none exist
        """
        response = await self._request("GET", f"/api/restaurants/{_segment(restaurant_id)}/categories")
        return self._parse_list(Category, self._json(response))

    @traced("menu_api.create_category", service_name="menu-console")
    async def create_category(self, restaurant_id: str, name: str) -> Category:
        """Create a category within a restaurant.

        Args:
            restaurant_id: Owning restaurant
            name: Category name

        Returns:
            The category as confirmed by the API
        """
        response = await self._request(
            "POST", f"/api/restaurants/{_segment(restaurant_id)}/categories", json={"name": name}
        )
        category: Category = self._parse(Category, self._json(response))
        return category

    @traced("menu_api.delete_category", service_name="menu-console")
    async def delete_category(self, restaurant_id: str, category_id: str) -> None:
        """Delete a category. Items referencing it are the API's concern."""
        await self._request(
            "DELETE", f"/api/restaurants/{_segment(restaurant_id)}/categories/{_segment(category_id)}"
        )

    @traced("menu_api.list_menu_items", service_name="menu-console")
    async def list_menu_items(self, restaurant_id: str) -> list[MenuItem]:
        """Fetch menu items for a restaurant.

        Args:
            restaurant_id: The restaurant to fetch items for

        Returns:
            List of MenuItem objects, empty list if none exist
        """
        response = await self._request("GET", f"/api/restaurants/{_segment(restaurant_id)}/menu")
        return self._parse_list(MenuItem, self._json(response))

    @traced("menu_api.create_menu_item", service_name="menu-console")
    async def create_menu_item(self, restaurant_id: str, draft: MenuItemDraft) -> MenuItem:
        """Create a menu item from a validated draft as a multipart request.

        Args:
            restaurant_id: Owning restaurant
            draft: Item form state, including an optional image

        Returns:
            The item as confirmed by the API
        """
        data, files = self._multipart(draft)
        response = await self._request(
            "POST", f"/api/restaurants/{_segment(restaurant_id)}/menu", data=data, files=files
        )
        item: MenuItem = self._parse(MenuItem, self._json(response))
        return item

    @traced("menu_api.update_menu_item", service_name="menu-console")
    async def update_menu_item(
        self, restaurant_id: str, item_id: str, draft: MenuItemDraft
    ) -> MenuItem:
        """Update a menu item from a validated draft as a multipart request.

        Args:
            restaurant_id: Owning restaurant
            item_id: Item to update
            draft: Item form state, including an optional replacement image

        Returns:
            The item as returned by the API after the update
        """
        data, files = self._multipart(draft)
        response = await self._request(
            "PATCH",
            f"/api/restaurants/{_segment(restaurant_id)}/menu/{_segment(item_id)}",
            data=data,
            files=files,
        )
        item: MenuItem = self._parse(MenuItem, self._json(response))
        return item

    @traced("menu_api.set_availability", service_name="menu-console")
    async def set_availability(self, restaurant_id: str, item_id: str, is_available: bool) -> MenuItem:
        """Set only the availability flag of a menu item (JSON PATCH).

        Args:
            restaurant_id: Owning restaurant
            item_id: Item to update
            is_available: New availability value

        Returns:
            The item as returned by the API after the update
        """
        response = await self._request(
            "PATCH",
            f"/api/restaurants/{_segment(restaurant_id)}/menu/{_segment(item_id)}",
            json={"is_available": is_available},
        )
        item: MenuItem = self._parse(MenuItem, self._json(response))
        return item

    @traced("menu_api.delete_menu_item", service_name="menu-console")
    async def delete_menu_item(self, restaurant_id: str, item_id: str) -> None:
        """Delete a menu item."""
        await self._request(
            "DELETE", f"/api/restaurants/{_segment(restaurant_id)}/menu/{_segment(item_id)}"
        )

    @traced("menu_api.get_table_menu", service_name="menu-console")
    async def get_table_menu(self, table_id: str) -> TableMenu | None:
        """Fetch the public, category-grouped menu for a table.

        Args:
            table_id: Table identifier from the QR code URL

        Returns:
            TableMenu as grouped by the API, or None if the API returned null
        """
        response = await self._request("GET", f"/api/menu/{_segment(table_id)}")
        data = self._json(response)
        if data is None:
            return None
        if not isinstance(data, dict):
            raise MenuApiError("Unexpected response payload: expected an object")
        menu: TableMenu = self._parse(TableMenu, data)
        return menu

    @staticmethod
    def _multipart(
        draft: MenuItemDraft,
    ) -> tuple[dict[str, str], dict[str, tuple[str, bytes, str]] | None]:
        """Build multipart form fields and the optional image part."""
        data = {
            "name": draft.name.strip(),
            "description": draft.description,
            "price": draft.price.strip(),
            "category_id": draft.category_id,
            "is_available": "true" if draft.is_available else "false",
        }
        files = None
        if draft.image is not None:
            files = {
                "image": (draft.image.filename, draft.image.content, draft.image.content_type)
            }
        return data, files
