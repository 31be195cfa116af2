"""JSON web surface for the admin page.

One :class:`~evshop.admin.ShopAdmin` backs the whole application: the shop
runs a single admin session. Every response carries the freshly rendered view
plus any alerts raised while handling the request. Confirmation answers
travel with the request (``{"confirm": true}`` or ``?confirm=true``).
"""

from __future__ import annotations

import functools
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from aiohttp import web

from evshop.admin import ShopAdmin
from evshop.exceptions import DocumentNotFoundError

_logger = logging.getLogger(__name__)

ADMIN_KEY = web.AppKey("admin", ShopAdmin)

_dumps = functools.partial(json.dumps, ensure_ascii=False)

routes = web.RouteTableDef()


class RequestDialogs:
    """Dialogs answered by the request itself; alerts are returned in the response."""

    def __init__(self, confirmed: bool = False) -> None:
        self.confirmed = confirmed
        self.prompts: list[str] = []
        self.alerts: list[str] = []

    def confirm(self, message: str) -> bool:
        self.prompts.append(message)
        return self.confirmed

    def alert(self, message: str) -> None:
        self.alerts.append(message)


class BadRequest(ValueError):
    """Malformed request payload."""


def _admin(request: web.Request) -> ShopAdmin:
    return request.app[ADMIN_KEY]


async def _body(request: web.Request) -> dict[str, Any]:
    if not request.can_read_body:
        return {}
    try:
        payload = await request.json()
    except json.JSONDecodeError as exc:
        raise BadRequest(f"Invalid JSON body: {exc}") from exc
    if not isinstance(payload, dict):
        raise BadRequest("JSON body must be an object")
    return payload


def _field(body: dict[str, Any], name: str, kind: type) -> Any:
    value = body.get(name)
    if not isinstance(value, kind) or (isinstance(value, bool) and kind is not bool):
        raise BadRequest(f"'{name}' must be a {kind.__name__}")
    return value


def _confirmed(request: web.Request, body: dict[str, Any]) -> bool:
    if "confirm" in body:
        return body["confirm"] is True
    return request.query.get("confirm", "").lower() in {"1", "true", "yes"}


def _respond(
    request: web.Request,
    dialogs: RequestDialogs | None = None,
    **extra: Any,
) -> web.Response:
    payload: dict[str, Any] = {
        "view": _admin(request).render().to_json(),
        "alerts": dialogs.alerts if dialogs is not None else [],
    }
    payload.update(extra)
    return web.json_response(payload, dumps=_dumps)


@web.middleware
async def error_middleware(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    try:
        return await handler(request)
    except DocumentNotFoundError as exc:
        return web.json_response({"error": str(exc)}, status=404, dumps=_dumps)
    except ValueError as exc:
        # Includes pydantic.ValidationError and BadRequest.
        _logger.debug("Rejected request %s %s", request.method, request.path, exc_info=True)
        return web.json_response({"error": str(exc)}, status=400, dumps=_dumps)


# ----------------------------------------------------------------------
# View state
# ----------------------------------------------------------------------


@routes.get("/api/view")
async def get_view(request: web.Request) -> web.Response:
    return _respond(request)


@routes.post("/api/search")
async def post_search(request: web.Request) -> web.Response:
    body = await _body(request)
    _admin(request).search(_field(body, "query", str))
    return _respond(request)


@routes.post("/api/page-size")
async def post_page_size(request: web.Request) -> web.Response:
    body = await _body(request)
    _admin(request).select_page_size(_field(body, "pageSize", int))
    return _respond(request)


@routes.post("/api/sort")
async def post_sort(request: web.Request) -> web.Response:
    body = await _body(request)
    _admin(request).click_sort(_field(body, "key", str))
    return _respond(request)


@routes.post("/api/page")
async def post_page(request: web.Request) -> web.Response:
    body = await _body(request)
    _admin(request).go_to_page(_field(body, "page", int))
    return _respond(request)


# ----------------------------------------------------------------------
# Customers
# ----------------------------------------------------------------------


@routes.post("/api/clients/form")
async def open_client_form(request: web.Request) -> web.Response:
    body = await _body(request)
    admin = _admin(request)
    if body.get("clientId") is None:
        admin.open_new_client()
    else:
        admin.open_edit_client(_field(body, "clientId", str))
    return _respond(request)


@routes.patch("/api/clients/form")
async def edit_client_form(request: web.Request) -> web.Response:
    body = await _body(request)
    _admin(request).edit_client(**body)
    return _respond(request)


@routes.delete("/api/clients/form")
async def cancel_client_form(request: web.Request) -> web.Response:
    _admin(request).cancel_client_form()
    return _respond(request)


@routes.post("/api/clients/form/submit")
async def submit_client_form(request: web.Request) -> web.Response:
    submitted = await _admin(request).submit_client_form()
    return _respond(request, submitted=submitted)


@routes.delete("/api/clients/{client_id}")
async def delete_client(request: web.Request) -> web.Response:
    body = await _body(request)
    dialogs = RequestDialogs(_confirmed(request, body))
    deleted = await _admin(request).delete_client(request.match_info["client_id"], dialogs)
    return _respond(request, dialogs, deleted=deleted, prompts=dialogs.prompts)


# ----------------------------------------------------------------------
# Maintenance records
# ----------------------------------------------------------------------


@routes.post("/api/records/form")
async def open_record_form(request: web.Request) -> web.Response:
    body = await _body(request)
    admin = _admin(request)
    if body.get("recordId") is not None:
        admin.open_edit_record(_field(body, "recordId", str))
    else:
        admin.open_new_record(_field(body, "vin", str))
    return _respond(request)


@routes.patch("/api/records/form")
async def edit_record_form(request: web.Request) -> web.Response:
    body = await _body(request)
    _admin(request).edit_record(**body)
    return _respond(request)


@routes.delete("/api/records/form")
async def cancel_record_form(request: web.Request) -> web.Response:
    _admin(request).cancel_record_form()
    return _respond(request)


@routes.post("/api/records/form/submit")
async def submit_record_form(request: web.Request) -> web.Response:
    submitted = await _admin(request).submit_record_form()
    return _respond(request, submitted=submitted)


@routes.delete("/api/records/{record_id}")
async def delete_record(request: web.Request) -> web.Response:
    body = await _body(request)
    dialogs = RequestDialogs(_confirmed(request, body))
    deleted = await _admin(request).delete_record(request.match_info["record_id"], dialogs)
    return _respond(request, dialogs, deleted=deleted, prompts=dialogs.prompts)


@routes.post("/api/history")
async def open_history(request: web.Request) -> web.Response:
    body = await _body(request)
    _admin(request).open_records(_field(body, "vin", str))
    return _respond(request)


@routes.delete("/api/history")
async def close_history(request: web.Request) -> web.Response:
    _admin(request).close_records()
    return _respond(request)


# ----------------------------------------------------------------------
# Application
# ----------------------------------------------------------------------


def create_app(admin: ShopAdmin) -> web.Application:
    """Build the web application; subscriptions open on startup."""
    app = web.Application(middlewares=[error_middleware])
    app[ADMIN_KEY] = admin
    app.add_routes(routes)

    async def _on_startup(app: web.Application) -> None:
        app[ADMIN_KEY].sync.start()

    async def _on_cleanup(app: web.Application) -> None:
        app[ADMIN_KEY].sync.stop()

    app.on_startup.append(_on_startup)
    app.on_cleanup.append(_on_cleanup)
    return app
