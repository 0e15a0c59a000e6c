"""Loader for a restaurant's categories and menu items."""

import asyncio
import logging
from dataclasses import dataclass

from menu_console.models.console_models import LoadState
from menu_console.models.menu_models import Category, MenuItem
from menu_console.services.menu_api_client import MenuApiClient

logger = logging.getLogger(__name__)


@dataclass
class MenuData:
    """Categories and items fetched together for one restaurant.

    Attributes:
        restaurant_id: The restaurant the data belongs to
        categories: Categories as returned by the API
        menu_items: Menu items as returned by the API
    """

    restaurant_id: str
    categories: list[Category]
    menu_items: list[MenuItem]


class MenuDataLoader:
    """Fetches categories and menu items concurrently, all or nothing.

    Only one load is in flight per loader: starting a new load cancels the
    previous one, so a slow response for a restaurant the admin has already
    left can never be committed.
    """

    def __init__(self, menu_api_client: MenuApiClient) -> None:
        """Initialize the MenuDataLoader.

        Args:
            menu_api_client: Client for the Menu API
        """
        self.menu_api_client = menu_api_client
        self.state = LoadState.IDLE
        self._task: asyncio.Task[MenuData] | None = None

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def cancel(self) -> None:
        """Cancel the in-flight load, if any."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            logger.debug("Cancelled in-flight menu data load")

    async def _fetch(self, restaurant_id: str) -> MenuData:
        categories, menu_items = await asyncio.gather(
            self.menu_api_client.list_categories(restaurant_id),
            self.menu_api_client.list_menu_items(restaurant_id),
        )
        return MenuData(restaurant_id=restaurant_id, categories=categories, menu_items=menu_items)

    async def load(self, restaurant_id: str) -> MenuData | None:
        """Fetch categories and menu items for a restaurant.

        Args:
            restaurant_id: The restaurant to load

        Returns:
            MenuData when both requests succeed, None if a newer load superseded this one

        Raises:
            MenuApiError: If either request fails; nothing from the other is returned
        """
        self.cancel()
        task = asyncio.create_task(self._fetch(restaurant_id))
        self._task = task
        self.state = LoadState.LOADING

        try:
            data = await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            logger.info(f"Menu data load for restaurant {restaurant_id} superseded")
            return None
        except Exception:
            if self._task is task:
                self.state = LoadState.ERROR
            raise

        if self._task is task:
            self.state = LoadState.SUCCESS
        return data
