"""Client-side state models for the admin console.

These hold the transient, per-browser view of the menu data plus the form
state of the item editor. None of it is persisted.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum

from menu_console.models.menu_models import Category, MenuItem, Restaurant
from menu_console.models.session_models import Session


class LoadState(str, Enum):
    """Enumeration of resource loading states."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class ImageUpload:
    """Binary image attached to an item form."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class MenuItemDraft:
    """Form state for creating or editing a menu item.

    Attributes:
        name: Item name as typed
        description: Item description as typed
        price: Raw price text, parsed only on submit
        category_id: Selected category reference, empty for uncategorized
        is_available: Availability checkbox state
        image: Optional new image to upload
    """

    name: str = ""
    description: str = ""
    price: str = ""
    category_id: str = ""
    is_available: bool = True
    image: ImageUpload | None = None

    @classmethod
    def from_item(cls, item: MenuItem) -> "MenuItemDraft":
        """Prefill a draft from an existing item; the image is never carried over."""
        return cls(
            name=item.name,
            description=item.description or "",
            price=str(item.price),
            category_id=item.category_id or "",
            is_available=item.is_available,
        )

    def validation_error(self) -> str | None:
        """Return a user-facing message if the draft cannot be submitted."""
        if not self.name.strip() or not self.price.strip():
            return "Name and price are required"
        try:
            price = Decimal(self.price.strip())
        except InvalidOperation:
            return "Price must be a non-negative number"
        if not price.is_finite() or price < 0:
            return "Price must be a non-negative number"
        return None


@dataclass
class Creating:
    """Editor mode: the form adds a new item."""

    draft: MenuItemDraft = field(default_factory=MenuItemDraft)


@dataclass
class Editing:
    """Editor mode: the form updates the item with the given id."""

    item_id: str
    draft: MenuItemDraft


EditorMode = Creating | Editing


@dataclass
class ConsoleState:
    """Snapshot of everything one admin browser session is looking at.

    Collections are replaced, never mutated in place, and only with
    payloads the API has confirmed.
    """

    session: Session | None = None
    restaurants: list[Restaurant] = field(default_factory=list)
    selected_restaurant_id: str | None = None
    categories: list[Category] = field(default_factory=list)
    menu_items: list[MenuItem] = field(default_factory=list)
    error: str | None = None
    editor: EditorMode = field(default_factory=Creating)
    restaurants_state: LoadState = LoadState.IDLE
    menu_state: LoadState = LoadState.IDLE

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None
