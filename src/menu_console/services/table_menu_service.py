"""Service backing the read-only table menu viewer."""

import logging
from dataclasses import dataclass

from menu_console.models.console_models import LoadState
from menu_console.models.menu_models import TableMenu
from menu_console.observability.metrics import record_table_menu_view
from menu_console.services.menu_api_client import MenuApiClient, MenuApiError

logger = logging.getLogger(__name__)


@dataclass
class TableMenuResult:
    """Outcome of fetching one table's menu.

    Attributes:
        table_id: The table identifier that was requested
        state: SUCCESS or ERROR
        menu: The grouped menu; None on error or when the API returned null
        error_message: Error message if the fetch failed, None otherwise
    """

    table_id: str
    state: LoadState
    menu: TableMenu | None = None
    error_message: str | None = None

    @property
    def failed(self) -> bool:
        return self.state == LoadState.ERROR


class TableMenuService:
    """Fetches the category-grouped menu for a table.

    Each view issues exactly one request; there is no retry, polling or
    cross-table cache.
    """

    def __init__(self, menu_api_client: MenuApiClient) -> None:
        """Initialize the TableMenuService.

        Args:
            menu_api_client: Client for the Menu API
        """
        self.menu_api_client = menu_api_client

    async def fetch(self, table_id: str) -> TableMenuResult:
        """Fetch the menu for a table.

        Args:
            table_id: Table identifier taken from the QR code URL

        Returns:
            TableMenuResult describing success or failure
        """
        if not table_id.strip():
            record_table_menu_view("invalid_table")
            return TableMenuResult(
                table_id=table_id, state=LoadState.ERROR, error_message="Invalid table identifier"
            )

        try:
            menu = await self.menu_api_client.get_table_menu(table_id)
        except MenuApiError as e:
            logger.error(f"Failed to load menu for table {table_id}: {e}")
            record_table_menu_view("error")
            return TableMenuResult(table_id=table_id, state=LoadState.ERROR, error_message=str(e))

        record_table_menu_view("success" if menu is not None else "not_found")
        return TableMenuResult(table_id=table_id, state=LoadState.SUCCESS, menu=menu)
