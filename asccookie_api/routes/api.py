"""REST API routes for the Flask application."""
from __future__ import annotations

from datetime import datetime
from http import HTTPStatus
from typing import Any, Dict, Union

from flask import Blueprint, current_app, jsonify, request

from ..services.cookie_service import CookieService
from ..services.errors import CookieStorageError
from ..services.models import Cookie

api_bp = Blueprint("api", __name__, url_prefix="/api")


def _service() -> CookieService:
    return current_app.config["COOKIE_SERVICE"]


@api_bp.errorhandler(CookieStorageError)
def _handle_storage_error(exc: CookieStorageError):
    payload: Dict[str, Any] = {"error": str(exc)}
    if exc.metadata is not None:
        payload["metadata"] = exc.metadata
    return jsonify(payload), HTTPStatus.BAD_REQUEST


@api_bp.get("/accounts/<identifier>/cookies")
def list_cookies(identifier: str):
    url = request.args.get("url")
    sort = [key for key in request.args.get("sort", "").split(",") if key]
    cookies = _service().list_cookies(identifier, url=url, sort=sort)
    return jsonify({"count": len(cookies), "cookies": [cookie.to_dict() for cookie in cookies]})


@api_bp.post("/accounts/<identifier>/cookies")
def store_cookie(identifier: str):
    data = _json_object()
    cookie_data = data.get("cookie")
    if not isinstance(cookie_data, dict) or not cookie_data.get("name"):
        return jsonify({"error": "cookie with a name is required"}), HTTPStatus.BAD_REQUEST

    try:
        cookie = Cookie.from_dict(cookie_data)
    except (TypeError, ValueError) as exc:
        raise CookieStorageError("invalid cookie", metadata={"error": str(exc)}) from exc

    _service().store_cookie(identifier, cookie, url=data.get("url"))
    return jsonify({"status": "stored"}), HTTPStatus.CREATED


@api_bp.delete("/accounts/<identifier>/cookies/<name>")
def delete_cookie(identifier: str, name: str):
    domain = request.args.get("domain", "")
    url = request.args.get("url")
    _service().delete_cookie(identifier, name, domain=domain, url=url)
    return jsonify({"status": "ok"})


@api_bp.post("/accounts/<identifier>/cookies/remove-since")
def remove_cookies_since(identifier: str):
    data = _json_object()
    if "since" not in data:
        return jsonify({"error": "since is required"}), HTTPStatus.BAD_REQUEST
    removed = _service().remove_cookies_since(identifier, _parse_since(data["since"]))
    return jsonify({"removed": removed})


@api_bp.post("/cookies/clear")
def clear_cookies():
    data = _json_object(required=False)
    removed = _service().clear_all(including_protected=bool(data.get("includingProtected", False)))
    return jsonify({"removed": removed})


def _json_object(required: bool = True) -> Dict[str, Any]:
    data = request.get_json(force=required, silent=not required)
    if data is None and not required:
        return {}
    if not isinstance(data, dict):
        raise CookieStorageError("request body must be a JSON object")
    return data


def _parse_since(value: Any) -> Union[datetime, int]:
    if isinstance(value, bool):
        raise CookieStorageError("since must be epoch milliseconds or an ISO 8601 date")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError as exc:
            raise CookieStorageError("since must be epoch milliseconds or an ISO 8601 date") from exc
    raise CookieStorageError("since must be epoch milliseconds or an ISO 8601 date")
