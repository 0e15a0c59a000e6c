"""FastAPI application serving the admin console and the table menu viewer."""

import logging
from pathlib import Path
from typing import Annotated

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel

from menu_console.auth.identity_client import IdentityProviderError
from menu_console.auth.session_cookie import SessionCookie, SessionCookieSigner
from menu_console.auth.session_gate import LoginValidationError, SessionGate
from menu_console.models.console_models import Editing, ImageUpload, MenuItemDraft
from menu_console.models.session_models import Session
from menu_console.services.admin_console import AdminConsole
from menu_console.services.console_sessions import ConsoleSessionStore
from menu_console.services.menu_api_client import MenuApiClient
from menu_console.services.table_menu_service import TableMenuService

logger = logging.getLogger(__name__)

SESSION_COOKIE = "menu_console_session"
FALLBACK_IMAGE_URL = "https://images.unsplash.com/photo-1550547660-d9450f859349"
TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


def _checkbox(value: str | None) -> bool:
    return value is not None and value.lower() in ("on", "true", "1", "yes")


async def _image_upload(image: UploadFile | None) -> ImageUpload | None:
    """Browsers submit an empty part when no file was chosen."""
    if image is None or not image.filename:
        return None
    content = await image.read()
    if not content:
        return None
    return ImageUpload(
        filename=image.filename,
        content=content,
        content_type=image.content_type or "application/octet-stream",
    )


def create_app(
    menu_api_client: MenuApiClient,
    session_gate: SessionGate,
    table_menu_service: TableMenuService,
    session_signer: SessionCookieSigner,
    session_store: ConsoleSessionStore | None = None,
    currency_symbol: str = "₹",
    secure_cookies: bool = False,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        menu_api_client: Client for the Menu API
        session_gate: Gate deciding whether an admin browser is signed in
        table_menu_service: Service backing the table menu viewer
        session_signer: Signs and verifies the browser session cookie
        session_store: Per-browser console state (a new in-memory store if omitted)
        currency_symbol: Symbol shown in front of prices
        secure_cookies: Whether the session cookie requires HTTPS

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Restaurant Menu Console",
        description="Admin console and table menu viewer for the restaurant menu API",
        version="1.0.0",
    )

    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    templates.env.globals["currency"] = currency_symbol
    templates.env.globals["fallback_image_url"] = FALLBACK_IMAGE_URL

    app.state.menu_api_client = menu_api_client
    app.state.session_gate = session_gate
    app.state.table_menu_service = table_menu_service
    app.state.session_signer = session_signer
    if session_store is None:
        session_store = ConsoleSessionStore(
            console_factory=lambda: AdminConsole(menu_api_client=menu_api_client)
        )
    app.state.session_store = session_store

    def with_cookie(response: Response, session_id: str, session: Session | None) -> Response:
        response.set_cookie(
            SESSION_COOKIE,
            session_signer.dumps(SessionCookie(session_id=session_id, session=session)),
            httponly=True,
            samesite="lax",
            secure=secure_cookies,
        )
        return response

    def back_to_admin() -> Response:
        return RedirectResponse("/admin", status_code=303)

    def browser_console(request: Request) -> tuple[str, AdminConsole] | None:
        """Console of the browser named by the cookie.

        A signed-in browser whose console this process does not hold (another
        instance served it, or it was evicted) gets a fresh one carrying the
        session from the cookie.
        """
        cookie = session_signer.loads(request.cookies.get(SESSION_COOKIE))
        if cookie is None:
            return None
        console: AdminConsole | None = app.state.session_store.get(cookie.session_id)
        if console is None:
            if cookie.session is None:
                return None
            console = app.state.session_store.get_or_create(cookie.session_id)
        if console.state.session is None and cookie.session is not None:
            console.state.session = cookie.session
        return cookie.session_id, console

    def signed_in_console(request: Request) -> AdminConsole | None:
        """Console of this browser, error slot cleared for the new action, if signed in."""
        resolved = browser_console(request)
        if resolved is None or not resolved[1].state.is_authenticated:
            return None
        console = resolved[1]
        console.clear_error()
        return console

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy")

    @app.get("/admin", response_class=HTMLResponse, tags=["Admin"])
    async def admin_page(request: Request) -> Response:
        """Render the login view or the dashboard depending on the session."""
        resolved = browser_console(request)
        if resolved is None:
            return templates.TemplateResponse(request, "login.html", {"error": None})

        session_id, console = resolved
        stored = console.state.session

        try:
            session = await app.state.session_gate.check_session(stored)
        except IdentityProviderError as e:
            logger.error(f"Session check failed: {e}")
            session = None
            console.state.error = f"Failed to verify session: {e}"

        if session is None:
            if stored is not None:
                error = console.state.error or "Your session has expired. Please log in again."
                console.reset()
                console.state.error = error
            response = templates.TemplateResponse(
                request, "login.html", {"error": console.state.error}
            )
            return with_cookie(response, session_id, None)

        await console.on_authenticated(session)
        state = console.state
        editor = state.editor
        response = templates.TemplateResponse(
            request,
            "dashboard.html",
            {
                "state": state,
                "editing": isinstance(editor, Editing),
                "draft": editor.draft,
                "category_label": console.category_label,
            },
        )
        return with_cookie(response, session_id, session)

    @app.post("/admin/login", tags=["Admin"])
    async def login(
        request: Request,
        email: Annotated[str, Form()] = "",
        password: Annotated[str, Form()] = "",
    ) -> Response:
        """Sign in with the identity provider."""
        cookie = session_signer.loads(request.cookies.get(SESSION_COOKIE)) or SessionCookie.new()
        console = app.state.session_store.get_or_create(cookie.session_id)
        console.clear_error()

        try:
            session = await app.state.session_gate.login(email, password)
        except LoginValidationError as e:
            console.state.error = str(e)
        except IdentityProviderError as e:
            console.state.error = f"Login failed: {e}"
        else:
            console.state.session = session

        return with_cookie(back_to_admin(), cookie.session_id, console.state.session)

    @app.post("/admin/logout", tags=["Admin"])
    async def logout(request: Request) -> Response:
        """Sign out and drop this browser's console state."""
        cookie = session_signer.loads(request.cookies.get(SESSION_COOKIE))
        if cookie is not None:
            console = app.state.session_store.get(cookie.session_id)
            session = cookie.session
            if console is not None and console.state.session is not None:
                session = console.state.session
            await app.state.session_gate.logout(session)
            app.state.session_store.discard(cookie.session_id)

        response = RedirectResponse("/admin", status_code=303)
        response.delete_cookie(SESSION_COOKIE)
        return response

    @app.post("/admin/restaurants", tags=["Admin"])
    async def add_restaurant(request: Request, name: Annotated[str, Form()] = "") -> Response:
        console = signed_in_console(request)
        if console is not None:
            await console.add_restaurant(name)
        return back_to_admin()

    @app.post("/admin/restaurants/select", tags=["Admin"])
    async def select_restaurant(
        request: Request, restaurant_id: Annotated[str, Form()] = ""
    ) -> Response:
        console = signed_in_console(request)
        if console is not None:
            await console.select_restaurant(restaurant_id)
        return back_to_admin()

    @app.post("/admin/categories", tags=["Admin"])
    async def add_category(request: Request, name: Annotated[str, Form()] = "") -> Response:
        console = signed_in_console(request)
        if console is not None:
            await console.add_category(name)
        return back_to_admin()

    @app.post("/admin/categories/{category_id}/delete", tags=["Admin"])
    async def delete_category(request: Request, category_id: str) -> Response:
        console = signed_in_console(request)
        if console is not None:
            await console.delete_category(category_id)
        return back_to_admin()

    @app.post("/admin/items", tags=["Admin"])
    async def submit_item(
        request: Request,
        name: Annotated[str, Form()] = "",
        description: Annotated[str, Form()] = "",
        price: Annotated[str, Form()] = "",
        category_id: Annotated[str, Form()] = "",
        is_available: Annotated[str | None, Form()] = None,
        image: Annotated[UploadFile | None, File()] = None,
    ) -> Response:
        """Add or update an item, depending on the editor mode."""
        console = signed_in_console(request)
        if console is not None:
            draft = MenuItemDraft(
                name=name,
                description=description,
                price=price,
                category_id=category_id,
                is_available=_checkbox(is_available),
                image=await _image_upload(image),
            )
            await console.submit_item(draft)
        return back_to_admin()

    @app.post("/admin/items/cancel", tags=["Admin"])
    async def cancel_editing(request: Request) -> Response:
        console = signed_in_console(request)
        if console is not None:
            console.cancel_editing()
        return back_to_admin()

    @app.post("/admin/items/{item_id}/edit", tags=["Admin"])
    async def start_editing(request: Request, item_id: str) -> Response:
        console = signed_in_console(request)
        if console is not None:
            console.start_editing(item_id)
        return back_to_admin()

    @app.post("/admin/items/{item_id}/delete", tags=["Admin"])
    async def delete_item(request: Request, item_id: str) -> Response:
        console = signed_in_console(request)
        if console is not None:
            await console.delete_menu_item(item_id)
        return back_to_admin()

    @app.post("/admin/items/{item_id}/toggle", tags=["Admin"])
    async def toggle_item(request: Request, item_id: str) -> Response:
        console = signed_in_console(request)
        if console is not None:
            await console.toggle_availability(item_id)
        return back_to_admin()

    @app.get("/table/{table_id}", response_class=HTMLResponse, tags=["Table Menu"])
    async def table_menu(request: Request, table_id: str) -> Response:
        """Render a table's menu, or send the guest to the access gate on failure."""
        result = await app.state.table_menu_service.fetch(table_id)
        if result.failed:
            return RedirectResponse("/blocked", status_code=303)

        return templates.TemplateResponse(request, "table_menu.html", {"result": result})

    @app.get("/blocked", response_class=HTMLResponse, tags=["Table Menu"])
    async def blocked(request: Request) -> Response:
        """Static access gate."""
        return templates.TemplateResponse(request, "blocked.html", {})

    return app
