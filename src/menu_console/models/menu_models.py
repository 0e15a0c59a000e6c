"""Menu data models.

These models mirror the resources exposed by the external menu API. The
console only ever holds transient copies of them; the API owns the data.
"""

from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field, RootModel, field_validator

CATEGORY_PLACEHOLDER = "-"


def _coerce_id(v: Any) -> Any:
    """Identifiers may arrive as JSON numbers; forms always submit strings."""
    if isinstance(v, int) and not isinstance(v, bool):
        return str(v)
    return v


EntityId = Annotated[str, BeforeValidator(_coerce_id)]


class Restaurant(BaseModel):
    """Restaurant model."""

    id: EntityId = Field(..., description="Unique identifier for the restaurant")
    name: str = Field(..., description="Restaurant name")


class Category(BaseModel):
    """Menu category model."""

    id: EntityId = Field(..., description="Unique identifier for the category")
    name: str = Field(..., description="Category name")
    restaurant_id: EntityId | None = Field(None, description="Restaurant this category belongs to")


class MenuItem(BaseModel):
    """Menu item model."""

    id: EntityId = Field(..., description="Unique identifier for the menu item")
    name: str = Field(..., description="Item name")
    description: str | None = Field(None, description="Item description")
    price: Decimal = Field(..., description="Item price", ge=0)
    category_id: EntityId | None = Field(None, description="Category this item belongs to")
    is_available: bool = Field(default=True, description="Whether item is currently available")
    image_url: str | None = Field(None, description="URL to item image")

    @field_validator("category_id", mode="before")
    @classmethod
    def validate_category_id(cls, v: Any) -> Any:
        """Treat an empty category reference as uncategorized."""
        if v == "":
            return None
        return v

    @property
    def display_price(self) -> str:
        """Price formatted with two decimals."""
        return f"{self.price:.2f}"


class TableMenu(RootModel[dict[str, list[MenuItem]]]):
    """Category name to ordered items, exactly as grouped by the API."""

    def is_empty(self) -> bool:
        return not self.root

    def sections(self) -> list[tuple[str, list[MenuItem]]]:
        return list(self.root.items())


def resolve_category_label(category_id: str | None, categories: list[Category]) -> str | None:
    """Look up a category name by reference.

    Args:
        category_id: The item's category reference, possibly stale or empty
        categories: The currently loaded categories

    Returns:
        The category name, or None if the reference does not resolve
    """
    if not category_id:
        return None
    for category in categories:
        if category.id == category_id:
            return category.name
    return None
