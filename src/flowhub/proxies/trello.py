"""Trello proxy - https://api.trello.com/1, key and token as query params."""

from typing import Any, Dict

from .base import ActionSpec, RestProxy, compact


def _card_updates(p: Dict[str, Any]) -> Dict[str, Any]:
    body = compact({
        "name": p.get("name") or None,
        "desc": p.get("description") or None,
        "idList": p.get("idList") or None,
        "due": p.get("due") or None,
    })
    for flag in ("dueComplete", "closed"):
        if p.get(flag) is not None:
            body[flag] = bool(p[flag])
    return body


def _board_updates(p: Dict[str, Any]) -> Dict[str, Any]:
    body = compact({"name": p.get("name") or None, "desc": p.get("description") or None})
    if p.get("closed") is not None:
        body["closed"] = bool(p["closed"])
    return body


def _limit(p: Dict[str, Any]) -> Dict[str, Any]:
    return {"limit": p.get("limit") or 50}


ACTIONS = {
    # Boards
    "createBoard": ActionSpec("POST", "/boards", body=lambda p: compact({
        "name": p.get("name"),
        "desc": p.get("description") or None,
    })),
    "getBoard": ActionSpec("GET", "/boards/{boardId}"),
    "updateBoard": ActionSpec("PUT", "/boards/{boardId}", body=_board_updates),
    "deleteBoard": ActionSpec("DELETE", "/boards/{boardId}"),

    # Cards
    "createCard": ActionSpec("POST", "/cards", body=lambda p: compact({
        "idList": p.get("listId"),
        "name": p.get("name"),
        "desc": p.get("description") or None,
    })),
    "getCard": ActionSpec("GET", "/cards/{cardId}"),
    "updateCard": ActionSpec("PUT", "/cards/{cardId}", body=_card_updates),
    "deleteCard": ActionSpec("DELETE", "/cards/{cardId}"),

    # Lists
    "createList": ActionSpec("POST", "/lists", body=lambda p: {
        "idBoard": p.get("boardId"),
        "name": p.get("name"),
    }),
    "getList": ActionSpec("GET", "/lists/{listId}"),
    "getLists": ActionSpec("GET", "/boards/{boardId}/lists", query=_limit),
    "getListCards": ActionSpec("GET", "/lists/{listId}/cards", query=_limit),
    "archiveList": ActionSpec("PUT", "/lists/{listId}/closed", body=lambda p: {
        "value": str(p.get("archive", "true")).lower() != "false",
    }),
    "updateList": ActionSpec("PUT", "/lists/{listId}", body=lambda p: {"name": p.get("name")}),
}


class TrelloProxy(RestProxy):
    name = "trello-proxy"
    base_url = "https://api.trello.com/1"
    credential_fields = ("apiKey", "token")
    missing_credentials = "API Key and Token are required"
    actions = ACTIONS

    def auth_params(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return {"key": body["apiKey"], "token": body["token"]}
