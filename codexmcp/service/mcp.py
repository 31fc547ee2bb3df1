"""MCP (JSON-RPC 2.0) tool handling for the streamable HTTP endpoint."""

from __future__ import annotations

import json
import math
from typing import Any, Callable, Dict, List, Optional

from ..logging import get_logger
from ..models import Match, SearchRequest
from ..orchestrator import SEARCH_ROLES
from ..search.languages import SUPPORTED_LANGUAGES
from ..search.strategies import SearchError
from ..stores.directories import VALID_ROLES

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "codex-mcp"
SERVER_VERSION = "0.1.0"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601

SEARCH_TOOL = "search_internal_codebase"
LANGUAGES_TOOL = "get_supported_languages"
ROLES_TOOL = "get_supported_roles"

_NOTIFICATIONS = {"initialized", "notifications/initialized"}

logger = get_logger("service.mcp")

SearchFn = Callable[[SearchRequest], List[Match]]


def _empty_schema() -> Dict[str, Any]:
    return {"type": "object", "properties": {}, "required": []}


TOOLS: List[Dict[str, Any]] = [
    {
        "name": SEARCH_TOOL,
        "description": (
            "Search the configured codebase for exact text matches. Use this before "
            "implementing or refactoring to find where logic already exists, how APIs "
            "are used, or which files contain a pattern. Returns file path, line range "
            "and snippet. Read-only and deterministic. Use get_supported_languages and "
            "get_supported_roles for valid language and role values."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Required. The exact string to search for in source files.",
                },
                "language": {
                    "type": "string",
                    "description": "Optional. Language filter, e.g. go, py, java, js, ts.",
                },
                "path_hint": {
                    "type": "string",
                    "description": "Optional. Substring that must appear in the directory path.",
                },
                "role": {
                    "type": "string",
                    "description": "Optional. Limit scope to frontend or backend directories.",
                },
                "limit": {
                    "type": "number",
                    "description": "Optional. Max number of matches. Default 10, max 20.",
                },
            },
            "required": ["query"],
        },
    },
    {
        "name": LANGUAGES_TOOL,
        "description": (
            "Returns the language values accepted by search_internal_codebase. "
            "Each item has a value to pass to search and a human-readable label."
        ),
        "inputSchema": _empty_schema(),
    },
    {
        "name": ROLES_TOOL,
        "description": (
            "Returns the role values accepted by search_internal_codebase (frontend or "
            "backend) and the directory role tags each one covers."
        ),
        "inputSchema": _empty_schema(),
    },
]


class McpHandler:
    """Dispatches JSON-RPC requests to the search tools."""

    def __init__(self, search: SearchFn) -> None:
        self._search = search

    def handle_raw(self, body: bytes) -> Optional[Dict[str, Any]]:
        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return error_response(None, PARSE_ERROR, "Parse error")
        return self.handle(payload)

    def handle(self, payload: Any) -> Optional[Dict[str, Any]]:
        """Return the JSON-RPC response, or None for notifications."""
        if not isinstance(payload, dict):
            return error_response(None, INVALID_REQUEST, "Invalid Request")
        request_id = payload.get("id")
        method = payload.get("method")
        if payload.get("jsonrpc") != "2.0" or not isinstance(method, str) or not method:
            return error_response(request_id, INVALID_REQUEST, "Invalid Request")

        if method in _NOTIFICATIONS:
            return None
        if method == "initialize":
            result: Dict[str, Any] = {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
            }
        elif method == "tools/list":
            result = {"tools": TOOLS}
        elif method == "tools/call":
            result = self._call_tool(payload.get("params"))
        else:
            return error_response(request_id, METHOD_NOT_FOUND, "Method not found")
        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    def _call_tool(self, params: Any) -> Dict[str, Any]:
        if not isinstance(params, dict) or not isinstance(params.get("name"), str):
            return _tool_error("invalid params")
        name = params["name"]
        if name == SEARCH_TOOL:
            return self._search_tool(params.get("arguments"))
        if name == LANGUAGES_TOOL:
            return _tool_text({"languages": SUPPORTED_LANGUAGES})
        if name == ROLES_TOOL:
            search_roles = [
                {"value": value, "label": value.title(), "directory_roles": list(tags)}
                for value, tags in SEARCH_ROLES.items()
            ]
            return _tool_text(
                {"search_roles": search_roles, "directory_roles": list(VALID_ROLES)}
            )
        return _tool_error(f"unknown tool: {name}")

    def _search_tool(self, arguments: Any) -> Dict[str, Any]:
        if arguments is None:
            arguments = {}
        try:
            request = search_request_from_dict(arguments)
        except (TypeError, ValueError):
            return _tool_error("invalid arguments")
        try:
            matches = self._search(request)
        except SearchError as exc:
            logger.error("Search failed: %s", exc)
            return _tool_error(f"search failed: {exc}")
        return _tool_text({"matches": [match.to_dict() for match in matches]})


def search_request_from_dict(arguments: Any) -> SearchRequest:
    """Build a :class:`SearchRequest` from loosely-typed JSON arguments."""
    if not isinstance(arguments, dict):
        raise TypeError("arguments must be an object")
    limit = arguments.get("limit") or 0
    if isinstance(limit, bool) or not isinstance(limit, (int, float)):
        raise ValueError("limit must be a number")
    if isinstance(limit, float) and not math.isfinite(limit):
        raise ValueError("limit must be finite")
    return SearchRequest(
        query=_optional_str(arguments.get("query")) or "",
        language=_optional_str(arguments.get("language")),
        path_hint=_optional_str(arguments.get("path_hint")),
        role=_optional_str(arguments.get("role")),
        limit=int(limit),
    )


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError("expected a string")
    return value or None


def error_response(request_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


def _tool_text(payload: Any) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": json.dumps(payload, ensure_ascii=False)}]}


def _tool_error(message: str) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": message}], "isError": True}


__all__ = ["McpHandler", "TOOLS", "search_request_from_dict"]
