"""Unit tests for the FastAPI web endpoints."""

from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from menu_console.auth.identity_client import IdentityProviderError
from menu_console.auth.session_cookie import SessionCookie, SessionCookieSigner
from menu_console.auth.session_gate import LoginValidationError, SessionGate
from menu_console.handlers.web_handler import SESSION_COOKIE, create_app
from menu_console.models.console_models import LoadState
from menu_console.models.menu_models import Category, MenuItem, Restaurant, TableMenu
from menu_console.models.session_models import Session
from menu_console.services.admin_console import AdminConsole
from menu_console.services.console_sessions import ConsoleSessionStore
from menu_console.services.menu_api_client import MenuApiClient, MenuApiError
from menu_console.services.table_menu_service import TableMenuResult, TableMenuService


@pytest.fixture
def api_client(mock_restaurants: list[dict], mock_categories: list[dict], mock_menu_items: list[dict]) -> MagicMock:
    client = MagicMock(spec=MenuApiClient)
    client.list_restaurants = AsyncMock(return_value=[Restaurant(**r) for r in mock_restaurants])
    client.list_categories = AsyncMock(return_value=[Category(**c) for c in mock_categories])
    client.list_menu_items = AsyncMock(return_value=[MenuItem(**i) for i in mock_menu_items])
    client.create_restaurant = AsyncMock()
    client.create_category = AsyncMock()
    client.create_menu_item = AsyncMock()
    client.update_menu_item = AsyncMock()
    client.set_availability = AsyncMock()
    client.delete_menu_item = AsyncMock()
    client.delete_category = AsyncMock()
    return client


@pytest.fixture
def session() -> Session:
    return Session(access_token="tok", user_email="admin@example.com")


@pytest.fixture
def session_gate(session: Session) -> MagicMock:
    gate = MagicMock(spec=SessionGate)
    gate.check_session = AsyncMock(side_effect=lambda stored: stored)
    gate.login = AsyncMock(return_value=session)
    gate.logout = AsyncMock()
    return gate


@pytest.fixture
def table_menu_service() -> MagicMock:
    return MagicMock(spec=TableMenuService)


@pytest.fixture
def client(api_client: MagicMock, session_gate: MagicMock, table_menu_service: MagicMock) -> Iterator[TestClient]:
    """Create a test client with mocked collaborators."""
    app = create_app(
        menu_api_client=api_client,
        session_gate=session_gate,
        table_menu_service=table_menu_service,
        session_signer=SessionCookieSigner(secret_key="test-secret"),
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def signed_in(client: TestClient) -> TestClient:
    """Client that has completed a successful login."""
    response = client.post("/admin/login", data={"email": "admin@example.com", "password": "secret"})
    assert response.status_code == 200
    return client


def _console(client: TestClient) -> AdminConsole:
    cookie = client.app.state.session_signer.loads(client.cookies.get(SESSION_COOKIE))
    return client.app.state.session_store.get(cookie.session_id)


@pytest.mark.unit
class TestHealthEndpoint:
    """Test suite for health check endpoint."""

    def test_health_check(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


@pytest.mark.unit
class TestSessionGateEndpoints:
    """Test suite for login, logout and the session-gated admin page."""

    def test_admin_without_session_renders_login(self, client: TestClient, api_client: MagicMock) -> None:
        """Test that an anonymous visit stores nothing and issues no cookie."""
        response = client.get("/admin")

        assert response.status_code == 200
        assert "Admin Login" in response.text
        assert SESSION_COOKIE not in response.cookies
        assert len(client.app.state.session_store) == 0
        api_client.list_restaurants.assert_not_called()

    def test_login_renders_dashboard(self, signed_in: TestClient, api_client: MagicMock) -> None:
        """Test that a successful login lands on the dashboard with data loaded."""
        response = signed_in.get("/admin")

        assert "CafeSaaS Admin" in response.text
        assert "Cafe Uno" in response.text
        assert "Starters" in response.text
        assert "Soup" in response.text
        assert "₹4.50" in response.text
        assert api_client.list_restaurants.await_count == 1

    def test_login_redirects_with_303(self, client: TestClient) -> None:
        response = client.post(
            "/admin/login",
            data={"email": "admin@example.com", "password": "secret"},
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/admin"

    def test_login_validation_error(self, client: TestClient, session_gate: MagicMock) -> None:
        session_gate.login = AsyncMock(side_effect=LoginValidationError("Email and password are required"))

        response = client.post("/admin/login", data={"email": "", "password": ""})

        assert "Admin Login" in response.text
        assert "Email and password are required" in response.text

    def test_login_rejected_by_provider(self, client: TestClient, session_gate: MagicMock) -> None:
        session_gate.login = AsyncMock(side_effect=IdentityProviderError("Invalid login credentials"))

        response = client.post("/admin/login", data={"email": "a@example.com", "password": "nope"})

        assert "Login failed: Invalid login credentials" in response.text

    def test_expired_session_returns_to_login(self, signed_in: TestClient, session_gate: MagicMock) -> None:
        session_gate.check_session = AsyncMock(return_value=None)

        response = signed_in.get("/admin")

        assert "Admin Login" in response.text
        assert "Your session has expired. Please log in again." in response.text
        assert not _console(signed_in).state.is_authenticated

    def test_session_check_failure(self, signed_in: TestClient, session_gate: MagicMock) -> None:
        session_gate.check_session = AsyncMock(side_effect=IdentityProviderError("HTTP 503"))

        response = signed_in.get("/admin")

        assert "Admin Login" in response.text
        assert "Failed to verify session: HTTP 503" in response.text

    def test_logout_drops_console_state(
        self, signed_in: TestClient, session_gate: MagicMock, session: Session
    ) -> None:
        session_id = signed_in.app.state.session_signer.loads(signed_in.cookies.get(SESSION_COOKIE)).session_id

        response = signed_in.post("/admin/logout")

        assert "Admin Login" in response.text
        session_gate.logout.assert_awaited_once_with(session)
        assert signed_in.app.state.session_store.get(session_id) is None


@pytest.mark.unit
class TestBrowserSessions:
    """Test suite for per-browser console state behind the signed cookie."""

    @pytest.fixture
    def signer(self) -> SessionCookieSigner:
        return SessionCookieSigner(secret_key="test-secret")

    def _app(
        self,
        api_client: MagicMock,
        session_gate: MagicMock,
        table_menu_service: MagicMock,
        signer: SessionCookieSigner,
        store: ConsoleSessionStore | None = None,
    ):
        return create_app(
            menu_api_client=api_client,
            session_gate=session_gate,
            table_menu_service=table_menu_service,
            session_signer=signer,
            session_store=store,
        )

    def test_injected_store_is_used(
        self,
        api_client: MagicMock,
        session_gate: MagicMock,
        table_menu_service: MagicMock,
        signer: SessionCookieSigner,
    ) -> None:
        """Test that an empty store passed in is not replaced."""
        store = ConsoleSessionStore(console_factory=lambda: AdminConsole(menu_api_client=api_client))
        app = self._app(api_client, session_gate, table_menu_service, signer, store)

        assert app.state.session_store is store

        with TestClient(app) as client:
            client.post("/admin/login", data={"email": "admin@example.com", "password": "secret"})

        assert len(store) == 1

    def test_anonymous_traffic_does_not_evict_admin(
        self,
        api_client: MagicMock,
        session_gate: MagicMock,
        table_menu_service: MagicMock,
        signer: SessionCookieSigner,
    ) -> None:
        """Test that visitors who never sign in cannot push a signed-in admin out."""
        store = ConsoleSessionStore(
            console_factory=lambda: AdminConsole(menu_api_client=api_client), max_sessions=2
        )
        app = self._app(api_client, session_gate, table_menu_service, signer, store)

        with TestClient(app) as admin, TestClient(app) as visitor:
            admin.post("/admin/login", data={"email": "admin@example.com", "password": "secret"})

            for _ in range(5):
                visitor.get("/admin")
            session_gate.login = AsyncMock(side_effect=IdentityProviderError("Invalid login credentials"))
            for _ in range(5):
                visitor.cookies.clear()
                visitor.post("/admin/login", data={"email": "x@example.com", "password": "nope"})

            response = admin.get("/admin")

        assert "CafeSaaS Admin" in response.text
        assert "Cafe Uno" in response.text
        assert api_client.list_restaurants.await_count == 1
        assert len(store) == 2

    def test_signed_in_browser_served_by_another_instance(
        self,
        api_client: MagicMock,
        session_gate: MagicMock,
        table_menu_service: MagicMock,
        signer: SessionCookieSigner,
        session: Session,
    ) -> None:
        """Test that an instance that never saw the login still recognizes the admin."""
        first_app = self._app(api_client, session_gate, table_menu_service, signer)
        second_app = self._app(api_client, session_gate, table_menu_service, signer)
        api_client.create_category = AsyncMock(return_value=Category(id="cat_3", name="Desserts"))

        with TestClient(first_app) as first, TestClient(second_app) as second:
            first.post("/admin/login", data={"email": "admin@example.com", "password": "secret"})
            second.cookies.set(SESSION_COOKIE, first.cookies.get(SESSION_COOKIE), domain="testserver.local")

            dashboard = second.get("/admin")
            added = second.post("/admin/categories", data={"name": "Desserts"})

        assert "CafeSaaS Admin" in dashboard.text
        assert "Cafe Uno" in dashboard.text
        assert "Desserts" in added.text
        session_gate.check_session.assert_awaited_with(session)
        api_client.create_category.assert_awaited_once_with("rest_1", "Desserts")

    def test_forged_cookie_renders_login(self, client: TestClient, api_client: MagicMock) -> None:
        forged = SessionCookieSigner(secret_key="guessed").dumps(
            SessionCookie(session_id="sid_1", session=Session(access_token="tok"))
        )
        client.cookies.set(SESSION_COOKIE, forged, domain="testserver.local")

        response = client.get("/admin")

        assert "Admin Login" in response.text
        assert len(client.app.state.session_store) == 0
        api_client.list_restaurants.assert_not_called()


@pytest.mark.unit
class TestAdminMutationEndpoints:
    """Test suite for the dashboard's form posts."""

    @pytest.mark.parametrize(
        "path,data",
        [
            ("/admin/restaurants", {"name": "Cafe Tres"}),
            ("/admin/categories", {"name": "Desserts"}),
            ("/admin/categories/cat_1/delete", {}),
            ("/admin/items", {"name": "Salad", "price": "6"}),
            ("/admin/items/item_1/toggle", {}),
            ("/admin/items/item_1/delete", {}),
        ],
    )
    def test_mutations_require_login(
        self, client: TestClient, api_client: MagicMock, path: str, data: dict
    ) -> None:
        """Test that no admin mutation reaches the API without a session."""
        response = client.post(path, data=data, follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/admin"
        api_client.create_restaurant.assert_not_called()
        api_client.create_category.assert_not_called()
        api_client.delete_category.assert_not_called()
        api_client.create_menu_item.assert_not_called()
        api_client.set_availability.assert_not_called()
        api_client.delete_menu_item.assert_not_called()

    def test_add_category(self, signed_in: TestClient, api_client: MagicMock) -> None:
        api_client.create_category = AsyncMock(return_value=Category(id="cat_3", name="Desserts"))

        response = signed_in.post("/admin/categories", data={"name": "Desserts"})

        assert "Desserts" in response.text
        api_client.create_category.assert_awaited_once_with("rest_1", "Desserts")

    def test_blank_category_name_shows_error(self, signed_in: TestClient, api_client: MagicMock) -> None:
        response = signed_in.post("/admin/categories", data={"name": "  "})

        assert "Category name is required" in response.text
        api_client.create_category.assert_not_called()

    def test_error_cleared_by_next_action(self, signed_in: TestClient) -> None:
        signed_in.post("/admin/categories", data={"name": ""})

        response = signed_in.post("/admin/items/cancel")

        assert "Category name is required" not in response.text

    def test_api_failure_shows_error(self, signed_in: TestClient, api_client: MagicMock) -> None:
        api_client.create_restaurant = AsyncMock(side_effect=MenuApiError("HTTP 500", status_code=500))

        response = signed_in.post("/admin/restaurants", data={"name": "Cafe Tres"})

        assert "Failed to add restaurant: HTTP 500" in response.text

    def test_select_restaurant(self, signed_in: TestClient, api_client: MagicMock) -> None:
        signed_in.post("/admin/restaurants/select", data={"restaurant_id": "rest_2"})

        assert _console(signed_in).state.selected_restaurant_id == "rest_2"
        api_client.list_categories.assert_awaited_with("rest_2")

    def test_add_item_with_image(self, signed_in: TestClient, api_client: MagicMock) -> None:
        api_client.create_menu_item = AsyncMock(
            return_value=MenuItem(id="item_3", name="Salad", price=6, category_id="cat_2")
        )

        response = signed_in.post(
            "/admin/items",
            data={"name": "Salad", "description": "Greens", "price": "6", "category_id": "cat_2", "is_available": "true"},
            files={"image": ("salad.png", b"\x89PNG", "image/png")},
        )

        assert "Salad" in response.text
        restaurant_id, draft = api_client.create_menu_item.await_args.args
        assert restaurant_id == "rest_1"
        assert draft.name == "Salad"
        assert draft.is_available is True
        assert draft.image is not None
        assert draft.image.filename == "salad.png"
        assert draft.image.content == b"\x89PNG"

    def test_add_item_unchecked_availability(self, signed_in: TestClient, api_client: MagicMock) -> None:
        api_client.create_menu_item = AsyncMock(return_value=MenuItem(id="item_3", name="Salad", price=6))

        signed_in.post("/admin/items", data={"name": "Salad", "price": "6"})

        _, draft = api_client.create_menu_item.await_args.args
        assert draft.is_available is False
        assert draft.image is None

    def test_edit_then_update_item(self, signed_in: TestClient, api_client: MagicMock) -> None:
        api_client.update_menu_item = AsyncMock(return_value=MenuItem(id="item_1", name="Chowder", price=5))

        editing = signed_in.post("/admin/items/item_1/edit")
        assert "Edit Item" in editing.text
        assert "Update Item" in editing.text

        response = signed_in.post("/admin/items", data={"name": "Chowder", "price": "5", "is_available": "true"})

        assert "Chowder" in response.text
        assert "Add Menu Item" in response.text
        api_client.update_menu_item.assert_awaited_once()
        api_client.create_menu_item.assert_not_called()

    def test_toggle_item(self, signed_in: TestClient, api_client: MagicMock) -> None:
        api_client.set_availability = AsyncMock(
            return_value=MenuItem(id="item_1", name="Soup", price=4.5, category_id="cat_1", is_available=False)
        )

        signed_in.post("/admin/items/item_1/toggle")

        api_client.set_availability.assert_awaited_once_with("rest_1", "item_1", False)
        assert _console(signed_in).find_item("item_1").is_available is False

    def test_delete_item(self, signed_in: TestClient, api_client: MagicMock) -> None:
        response = signed_in.post("/admin/items/item_2/delete")

        assert "Curry" not in response.text
        api_client.delete_menu_item.assert_awaited_once_with("rest_1", "item_2")

    def test_dashboard_state_after_login(self, signed_in: TestClient) -> None:
        state = _console(signed_in).state

        assert state.restaurants_state == LoadState.SUCCESS
        assert state.menu_state == LoadState.SUCCESS


@pytest.mark.unit
class TestTableMenuEndpoints:
    """Test suite for the public table menu viewer."""

    def test_table_menu_renders_sections(self, client: TestClient, table_menu_service: MagicMock) -> None:
        menu = TableMenu.model_validate(
            {
                "Starters": [{"id": "1", "name": "Soup", "price": 4.5, "description": "Tomato"}],
                "Mains": [{"id": "2", "name": "Curry", "price": 12}],
            }
        )
        table_menu_service.fetch = AsyncMock(
            return_value=TableMenuResult(table_id="5", state=LoadState.SUCCESS, menu=menu)
        )

        response = client.get("/table/5")

        assert response.status_code == 200
        assert "<h2" in response.text
        assert "Starters" in response.text
        assert "₹4.50" in response.text
        assert "₹12.00" in response.text
        assert "No description" in response.text
        assert response.text.index("Starters") < response.text.index("Mains")
        table_menu_service.fetch.assert_awaited_once_with("5")

    def test_table_menu_empty(self, client: TestClient, table_menu_service: MagicMock) -> None:
        table_menu_service.fetch = AsyncMock(
            return_value=TableMenuResult(table_id="5", state=LoadState.SUCCESS, menu=TableMenu.model_validate({}))
        )

        response = client.get("/table/5")

        assert "No menu items available." in response.text

    def test_table_menu_not_found(self, client: TestClient, table_menu_service: MagicMock) -> None:
        table_menu_service.fetch = AsyncMock(return_value=TableMenuResult(table_id="5", state=LoadState.SUCCESS))

        response = client.get("/table/5")

        assert "Menu not found" in response.text

    def test_table_menu_failure_redirects_to_gate(
        self, client: TestClient, table_menu_service: MagicMock
    ) -> None:
        table_menu_service.fetch = AsyncMock(
            return_value=TableMenuResult(table_id="99", state=LoadState.ERROR, error_message="HTTP 404")
        )

        response = client.get("/table/99", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/blocked"

    def test_blocked_page(self, client: TestClient) -> None:
        response = client.get("/blocked")

        assert response.status_code == 200
        assert "Access Restricted" in response.text
        assert "Please scan a valid table QR code to view the menu." in response.text
