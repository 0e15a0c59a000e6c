"""Admin console service: client state and mutation workflow.

One AdminConsole exists per admin browser session. It holds the snapshot of
restaurants, categories and menu items that browser is looking at, and it
applies changes to that snapshot only from payloads the Menu API returned.
"""

import asyncio
import logging

from menu_console.models.console_models import (
    ConsoleState,
    Creating,
    Editing,
    LoadState,
    MenuItemDraft,
)
from menu_console.models.menu_models import (
    CATEGORY_PLACEHOLDER,
    MenuItem,
    resolve_category_label,
)
from menu_console.models.session_models import Session
from menu_console.observability.metrics import record_mutation
from menu_console.services.menu_api_client import MenuApiClient, MenuApiError
from menu_console.services.menu_loader import MenuDataLoader

logger = logging.getLogger(__name__)


class AdminConsole:
    """Per-session admin console.

    Every operation catches its own failures and writes one message into the
    console's error slot. Operations return True on success and False on a
    validation or API failure; no exception escapes to the web layer and
    nothing is retried.
    """

    def __init__(self, menu_api_client: MenuApiClient, loader: MenuDataLoader | None = None) -> None:
        """Initialize the AdminConsole.

        Args:
            menu_api_client: Client for the Menu API
            loader: Loader for categories and items (created from the client if omitted)
        """
        self.menu_api_client = menu_api_client
        self.loader = loader or MenuDataLoader(menu_api_client)
        self.state = ConsoleState()
        self._mutation_lock = asyncio.Lock()

    def _fail(self, message: str) -> bool:
        logger.warning(message)
        self.state.error = message
        return False

    def _reject(self, operation: str, message: str) -> bool:
        record_mutation(operation, "validation_error")
        return self._fail(message)

    def _api_failure(self, operation: str, prefix: str, error: MenuApiError) -> bool:
        record_mutation(operation, "api_error")
        return self._fail(f"{prefix}: {error}")

    def clear_error(self) -> None:
        self.state.error = None

    async def on_authenticated(self, session: Session) -> None:
        """Unlock the console for a session and load restaurants once."""
        self.state.session = session
        if self.state.restaurants_state == LoadState.IDLE:
            await self.load_restaurants()

    def reset(self) -> None:
        """Drop every piece of client state, as after logout."""
        self.loader.cancel()
        self.state = ConsoleState()

    async def load_restaurants(self) -> bool:
        """Fetch the restaurant list and select the first one if none is selected.

        Returns:
            True if the list was loaded
        """
        self.state.restaurants_state = LoadState.LOADING
        try:
            restaurants = await self.menu_api_client.list_restaurants()
        except MenuApiError as e:
            self.state.restaurants_state = LoadState.ERROR
            return self._fail(f"Failed to fetch restaurants: {e}")

        self.state.restaurants = restaurants
        self.state.restaurants_state = LoadState.SUCCESS
        logger.info(f"Loaded {len(restaurants)} restaurants")

        if self.state.selected_restaurant_id is None and restaurants:
            return await self.select_restaurant(restaurants[0].id)
        return True

    async def select_restaurant(self, restaurant_id: str) -> bool:
        """Select a restaurant and load its categories and menu items.

        Args:
            restaurant_id: Restaurant to select

        Returns:
            True if the selection's data was loaded
        """
        if not any(r.id == restaurant_id for r in self.state.restaurants):
            return self._fail(f"Unknown restaurant: {restaurant_id}")

        if restaurant_id != self.state.selected_restaurant_id:
            self.state.editor = Creating()
        self.state.selected_restaurant_id = restaurant_id
        return await self.load_menu_data()

    async def load_menu_data(self) -> bool:
        """Re-fetch categories and items for the selected restaurant.

        Both collections are replaced together or not at all.

        Returns:
            True if both collections were committed
        """
        restaurant_id = self.state.selected_restaurant_id
        if restaurant_id is None:
            return False

        self.state.menu_state = LoadState.LOADING
        try:
            data = await self.loader.load(restaurant_id)
        except MenuApiError as e:
            self.state.menu_state = LoadState.ERROR
            return self._fail(f"Failed to fetch data: {e}")

        if data is None or data.restaurant_id != self.state.selected_restaurant_id:
            return False

        self.state.categories = data.categories
        self.state.menu_items = data.menu_items
        self.state.menu_state = LoadState.SUCCESS
        return True

    def category_label(self, item: MenuItem) -> str:
        """Category name for display, or the placeholder for stale references."""
        label = resolve_category_label(item.category_id, self.state.categories)
        return label if label is not None else CATEGORY_PLACEHOLDER

    def find_item(self, item_id: str) -> MenuItem | None:
        for item in self.state.menu_items:
            if item.id == item_id:
                return item
        return None

    def _still_selected(self, restaurant_id: str) -> bool:
        """True if a confirmed mutation can be reflected in the visible snapshot."""
        if self.state.selected_restaurant_id == restaurant_id:
            return True
        logger.info(f"Restaurant {restaurant_id} no longer selected, not applying response")
        return False

    async def add_restaurant(self, name: str) -> bool:
        """Create a restaurant and append the confirmed object.

        Args:
            name: Restaurant name; must not be blank

        Returns:
            True if the restaurant was created
        """
        if not name.strip():
            return self._reject("add_restaurant", "Restaurant name is required")

        async with self._mutation_lock:
            try:
                restaurant = await self.menu_api_client.create_restaurant(name.strip())
            except MenuApiError as e:
                return self._api_failure("add_restaurant", "Failed to add restaurant", e)

            self.state.restaurants = [*self.state.restaurants, restaurant]

        record_mutation("add_restaurant", "success")
        return True

    def _require_selection(self, operation: str) -> str | None:
        restaurant_id = self.state.selected_restaurant_id
        if restaurant_id is None:
            self._reject(operation, "Select a restaurant first")
        return restaurant_id

    async def add_category(self, name: str) -> bool:
        """Create a category in the selected restaurant.

        Args:
            name: Category name; must not be blank

        Returns:
            True if the category was created
        """
        if not name.strip():
            return self._reject("add_category", "Category name is required")
        restaurant_id = self._require_selection("add_category")
        if restaurant_id is None:
            return False

        async with self._mutation_lock:
            try:
                category = await self.menu_api_client.create_category(restaurant_id, name.strip())
            except MenuApiError as e:
                return self._api_failure("add_category", "Failed to add category", e)

            if self._still_selected(restaurant_id):
                self.state.categories = [*self.state.categories, category]

        record_mutation("add_category", "success")
        return True

    async def delete_category(self, category_id: str) -> bool:
        """Delete a category; items referencing it stay in the local list.

        Args:
            category_id: Category to delete

        Returns:
            True if the category was deleted
        """
        restaurant_id = self._require_selection("delete_category")
        if restaurant_id is None:
            return False

        async with self._mutation_lock:
            try:
                await self.menu_api_client.delete_category(restaurant_id, category_id)
            except MenuApiError as e:
                return self._api_failure("delete_category", "Failed to delete category", e)

            if self._still_selected(restaurant_id):
                self.state.categories = [c for c in self.state.categories if c.id != category_id]

        record_mutation("delete_category", "success")
        return True

    def start_editing(self, item_id: str) -> bool:
        """Switch the editor to the given item, prefilled from the local copy."""
        item = self.find_item(item_id)
        if item is None:
            return False
        self.state.editor = Editing(item_id=item.id, draft=MenuItemDraft.from_item(item))
        return True

    def cancel_editing(self) -> None:
        self.state.editor = Creating()

    async def submit_item(self, draft: MenuItemDraft) -> bool:
        """Submit the item form according to the current editor mode.

        On failure the draft stays in the editor so the form keeps what the
        admin typed.

        Args:
            draft: Form state as submitted

        Returns:
            True if the item was created or updated
        """
        editor = self.state.editor
        if isinstance(editor, Editing):
            self.state.editor = Editing(item_id=editor.item_id, draft=draft)
            succeeded = await self.update_menu_item(editor.item_id, draft)
        else:
            self.state.editor = Creating(draft=draft)
            succeeded = await self.add_menu_item(draft)

        if succeeded:
            self.state.editor = Creating()
        return succeeded

    async def add_menu_item(self, draft: MenuItemDraft) -> bool:
        """Create a menu item and append the confirmed object.

        Args:
            draft: Item form state

        Returns:
            True if the item was created
        """
        problem = draft.validation_error()
        if problem is not None:
            return self._reject("add_menu_item", problem)
        restaurant_id = self._require_selection("add_menu_item")
        if restaurant_id is None:
            return False

        async with self._mutation_lock:
            try:
                item = await self.menu_api_client.create_menu_item(restaurant_id, draft)
            except MenuApiError as e:
                return self._api_failure("add_menu_item", "Failed to add item", e)

            if self._still_selected(restaurant_id):
                self.state.menu_items = [*self.state.menu_items, item]

        record_mutation("add_menu_item", "success")
        return True

    async def update_menu_item(self, item_id: str, draft: MenuItemDraft) -> bool:
        """Update a menu item and replace it by identifier.

        Args:
            item_id: Item to update
            draft: Item form state

        Returns:
            True if the item was updated
        """
        problem = draft.validation_error()
        if problem is not None:
            return self._reject("update_menu_item", problem)
        restaurant_id = self._require_selection("update_menu_item")
        if restaurant_id is None:
            return False

        async with self._mutation_lock:
            try:
                item = await self.menu_api_client.update_menu_item(restaurant_id, item_id, draft)
            except MenuApiError as e:
                return self._api_failure("update_menu_item", "Failed to update item", e)

            if self._still_selected(restaurant_id):
                self.state.menu_items = [
                    item if existing.id == item_id else existing
                    for existing in self.state.menu_items
                ]

        record_mutation("update_menu_item", "success")
        return True

    async def delete_menu_item(self, item_id: str) -> bool:
        """Delete a menu item and remove it by identifier.

        Args:
            item_id: Item to delete

        Returns:
            True if the item was deleted
        """
        restaurant_id = self._require_selection("delete_menu_item")
        if restaurant_id is None:
            return False

        async with self._mutation_lock:
            try:
                await self.menu_api_client.delete_menu_item(restaurant_id, item_id)
            except MenuApiError as e:
                return self._api_failure("delete_menu_item", "Failed to delete item", e)

            if self._still_selected(restaurant_id):
                self.state.menu_items = [i for i in self.state.menu_items if i.id != item_id]
                editor = self.state.editor
                if isinstance(editor, Editing) and editor.item_id == item_id:
                    self.state.editor = Creating()

        record_mutation("delete_menu_item", "success")
        return True

    async def toggle_availability(self, item_id: str) -> bool:
        """Invert an item's availability and replace it with the API's copy.

        Args:
            item_id: Item to toggle

        Returns:
            True if the availability was changed
        """
        restaurant_id = self._require_selection("toggle_availability")
        if restaurant_id is None:
            return False
        async with self._mutation_lock:
            item = self.find_item(item_id)
            if item is None:
                return self._reject("toggle_availability", f"Unknown menu item: {item_id}")

            try:
                updated = await self.menu_api_client.set_availability(
                    restaurant_id, item_id, not item.is_available
                )
            except MenuApiError as e:
                return self._api_failure(
                    "toggle_availability", "Failed to update availability", e
                )

            if self._still_selected(restaurant_id):
                self.state.menu_items = [
                    updated if existing.id == item_id else existing
                    for existing in self.state.menu_items
                ]

        record_mutation("toggle_availability", "success")
        return True
