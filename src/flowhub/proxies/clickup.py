"""ClickUp proxy - tasks on the v2 API, chat on the v3 API."""

from typing import Any, Dict, Optional

from .base import ActionSpec, ApiRequest, RestProxy, compact, custom_call, split_csv, to_int


BASE_URL_V2 = "https://api.clickup.com/api/v2"
BASE_URL_V3 = "https://api.clickup.com/api/v3"

# ClickUp reactions are named, not raw emoji
EMOJI_NAMES = {
    "\U0001F44D": "thumbsup",
    "\U0001F44E": "thumbsdown",
    "❤️": "heart",
    "❤": "heart",
    "\U0001F600": "grinning",
    "\U0001F389": "tada",
    "✅": "white_check_mark",
    "\U0001F680": "rocket",
    "\U0001F440": "eyes",
    "\U0001F525": "fire",
    "\U0001F602": "joy",
    "⭐": "star",
    "✨": "sparkles",
    "\U0001F4AF": "100",
    "\U0001F44F": "clap",
    "\U0001F64F": "pray",
}


def reaction_name(reaction: Any) -> Any:
    if not reaction:
        return reaction
    trimmed = str(reaction).strip()
    return EMOJI_NAMES.get(trimmed, trimmed)


def _chat(method: str, path: str, body=None, query=None) -> ActionSpec:
    return ActionSpec(method, "/workspaces/{workspaceId}/chat" + path, query=query, body=body,
                      base_url=BASE_URL_V3)


def _task_body(p: Dict[str, Any]) -> Dict[str, Any]:
    return compact({
        "name": p.get("name"),
        "description": p.get("description"),
        "status": p.get("status"),
        "priority": p.get("priority"),
        "due_date": p.get("dueDate"),
        "assignees": [to_int(a) for a in split_csv(p["assignees"])] if p.get("assignees") else None,
        "tags": split_csv(p["tags"]) if p.get("tags") else None,
    })


def _task_updates(p: Dict[str, Any]) -> Dict[str, Any]:
    fields = {"name": "name", "description": "description", "status": "status",
              "priority": "priority", "dueDate": "due_date"}
    return {field: p[param] for param, field in fields.items() if p.get(param)}


def _container_body(p: Dict[str, Any]) -> Dict[str, Any]:
    body = {"name": p.get("name")}
    key = {"space": "space_id", "folder": "folder_id", "list": "list_id"}.get(p.get("containerType"))
    if key:
        body[key] = p.get("containerId")
    return body


def _task_filters(p: Dict[str, Any]) -> Dict[str, Any]:
    return compact({
        "space_ids[]": p.get("spaceIds") or None,
        "list_ids[]": p.get("listIds") or None,
        "statuses[]": split_csv(p["statuses"]) if p.get("statuses") else None,
    })


def _time_entry_filters(p: Dict[str, Any]) -> Dict[str, Any]:
    return compact({
        "start_date": str(p["startDate"]) if p.get("startDate") else None,
        "end_date": str(p["endDate"]) if p.get("endDate") else None,
    })


ACTIONS = {
    # Tasks
    "createTask": ActionSpec("POST", "/list/{listId}/task", body=_task_body),
    "createTaskFromTemplate": ActionSpec("POST", "/list/{listId}/taskTemplate/{templateId}",
                                         body=lambda p: {"name": p.get("name")}),
    "createFolderlessList": ActionSpec("POST", "/space/{spaceId}/list", body=lambda p: compact({
        "name": p.get("name"),
        "content": p.get("content") or None,
    })),
    "createTaskComment": ActionSpec("POST", "/task/{taskId}/comment", body=lambda p: compact({
        "comment_text": p.get("commentText"),
        "assignee": to_int(p.get("assignee")),
    })),
    "createSubtask": ActionSpec("POST", lambda p: f"/list/{p.get('listId') or 'default'}/task",
                                body=lambda p: compact({
                                    "name": p.get("name"),
                                    "description": p.get("description"),
                                    "parent": p.get("parentTaskId"),
                                })),

    # Chat
    "createChannel": _chat("POST", "/channels", body=lambda p: compact({
        "name": p.get("name"),
        "description": p.get("description"),
    })),
    "createChannelInContainer": _chat("POST", "/channels/location", body=_container_body),
    "createMessage": _chat("POST", "/channels/{channelId}/messages", body=lambda p: {"content": p.get("content")}),
    "createMessageReaction": _chat("POST", "/messages/{messageId}/reactions",
                                   body=lambda p: {"reaction": reaction_name(p.get("reaction"))}),
    "createMessageReply": _chat("POST", "/messages/{messageId}/replies", body=lambda p: {"content": p.get("content")}),
    "getChannel": _chat("GET", "/channels/{channelId}"),
    "getChannels": _chat("GET", "/channels"),
    "getChannelMessages": _chat("GET", "/channels/{channelId}/messages",
                                query=lambda p: {"limit": p.get("limit") or 50}),
    "getMessageReactions": _chat("GET", "/messages/{messageId}/reactions"),
    "getMessageReplies": _chat("GET", "/messages/{messageId}/replies"),
    "updateMessage": _chat("PUT", "/messages/{messageId}", body=lambda p: {"content": p.get("content")}),
    "deleteMessage": _chat("DELETE", "/messages/{messageId}"),
    "deleteMessageReaction": _chat("DELETE", "/messages/{messageId}/reactions",
                                   body=lambda p: {"reaction": reaction_name(p.get("reaction"))}),

    # Reads
    "getList": ActionSpec("GET", "/list/{listId}"),
    "getTask": ActionSpec("GET", "/task/{taskId}"),
    "getTaskByName": ActionSpec("GET", "/list/{listId}/task"),
    "getSpace": ActionSpec("GET", "/space/{spaceId}"),
    "getSpaces": ActionSpec("GET", "/team/{workspaceId}/space"),
    "getTaskComments": ActionSpec("GET", "/task/{taskId}/comment"),
    "filterWorkspaceTasks": ActionSpec("GET", "/team/{workspaceId}/task", query=_task_filters),
    "filterWorkspaceTimeEntries": ActionSpec("GET", "/team/{workspaceId}/time_entries", query=_time_entry_filters),

    # Updates
    "updateTask": ActionSpec("PUT", "/task/{taskId}", body=_task_updates),
    "deleteTask": ActionSpec("DELETE", "/task/{taskId}"),

    # Custom fields
    "getAccessibleCustomFields": ActionSpec("GET", "/list/{listId}/field"),
    "setCustomFieldValue": ActionSpec("POST", "/task/{taskId}/field/{fieldId}",
                                      body=lambda p: {"value": p.get("value")}),

    "customApiCall": custom_call(),
}


class ClickUpProxy(RestProxy):
    """The raw API token goes in the Authorization header."""

    name = "clickup-proxy"
    base_url = BASE_URL_V2
    credential_fields = ("apiKey",)
    missing_credentials = "API token is required"
    actions = ACTIONS

    def headers(self, body: Dict[str, Any]) -> Dict[str, str]:
        return {"Authorization": body["apiKey"], "Content-Type": "application/json"}

    def build_request(self, action: str, params: Dict[str, Any], body: Dict[str, Any]) -> ApiRequest:
        if action == "createSubtask" and params.get("parentTaskId") and not params.get("listId"):
            list_id = self.parent_list_id(body, params["parentTaskId"])
            if list_id:
                params = {**params, "listId": list_id}
        return super().build_request(action, params, body)

    def parent_list_id(self, body: Dict[str, Any], task_id: str) -> Optional[str]:
        """List holding the parent task; subtasks must be created in it."""
        response = self.client(body).get(f"/task/{task_id}")
        data = self.decode(response)
        if isinstance(data, dict) and isinstance(data.get("list"), dict):
            return data["list"].get("id")
        return None

    def error_message(self, data: Any) -> Optional[str]:
        if isinstance(data, dict):
            return data.get("err") or data.get("error")
        return None

    def non_json_response(self, response):
        return self.failure(
            200,
            f"ClickUp API returned non-JSON response (status {response.status_code}). "
            "This usually indicates an invalid endpoint or authentication issue.",
        )

    def shape(self, action: str, params: Dict[str, Any], data: Any) -> Dict[str, Any]:
        task_name = params.get("taskName")
        if action == "getTaskByName" and task_name and isinstance(data, dict):
            needle = str(task_name).lower()
            tasks = [t for t in data.get("tasks") or [] if needle in str(t.get("name", "")).lower()]
            data = {**data, "tasks": tasks}
        return {"success": True, "data": data}
