"""ClickUp - tasks, lists, spaces, comments and chat."""

from node_sdk import InputField, select, text

from .base import ProxyNode, action_select


def _ws():
    return text("workspaceId", "Workspace ID", required=True,
                description="Found in ClickUp URL: app.clickup.com/{workspaceId}/...")


def _req(name, label):
    return text(name, label, required=True)


class ClickUpNode(ProxyNode):
    type = "clickup"
    name = "ClickUp"
    description = "Project management and productivity platform"
    proxy_name = "clickup-proxy"

    required_credentials = ["apiKey"]
    credentials_error = "API token is required"

    ACTIONS = [
        "createTask", "createTaskFromTemplate", "createFolderlessList", "createTaskComment",
        "createSubtask", "createChannel", "createChannelInContainer", "createMessage",
        "createMessageReaction", "createMessageReply",
        "getList", "getTask", "getTaskByName", "getSpace", "getSpaces", "getTaskComments",
        "getChannel", "getChannels", "getChannelMessages", "getMessageReactions", "getMessageReplies",
        "filterWorkspaceTasks", "filterWorkspaceTimeEntries",
        "updateTask", "updateMessage", "deleteMessage", "deleteMessageReaction", "deleteTask",
        "getAccessibleCustomFields", "setCustomFieldValue",
        "customApiCall",
    ]

    inputs = [
        text("apiKey", "API Token", required=True, isApiKey=True, description="Your ClickUp API token"),
        action_select(ACTIONS, default="getTask"),
    ]

    ACTION_FIELDS = {
        "createTask": [
            _ws(),
            _req("listId", "List ID"),
            _req("name", "Task Name"),
            InputField(name="description", label="Description", type="textarea"),
            text("assignees", "Assignee IDs", description="Comma-separated user IDs"),
            text("tags", "Tags", description="Comma-separated tag names"),
            text("status", "Status", description="Must match an existing status in the list"),
            InputField(name="priority", label="Priority", type="number",
                       description="1 = Urgent, 2 = High, 3 = Normal, 4 = Low"),
            text("dueDate", "Due Date (ms timestamp)"),
        ],
        "createTaskFromTemplate": [_ws(), _req("listId", "List ID"), _req("templateId", "Template ID"),
                                   _req("name", "Task Name")],
        "createFolderlessList": [_ws(), _req("spaceId", "Space ID"), _req("name", "List Name"),
                                 text("content", "Description")],
        "createTaskComment": [_req("taskId", "Task ID"), _req("commentText", "Comment"),
                              text("assignee", "Assignee ID")],
        "createSubtask": [_req("parentTaskId", "Parent Task ID"), _req("name", "Subtask Name"),
                          InputField(name="description", label="Description", type="textarea")],
        "createChannel": [_ws(), _req("name", "Channel Name"), text("description", "Description")],
        "createChannelInContainer": [
            _ws(),
            select("containerType", "Container Type", ["space", "folder", "list"], required=True),
            _req("containerId", "Container ID"),
            _req("name", "Channel Name"),
        ],
        "createMessage": [_ws(), _req("channelId", "Channel ID"), _req("content", "Message")],
        "createMessageReaction": [_ws(), _req("messageId", "Message ID"), _req("reaction", "Reaction")],
        "createMessageReply": [_ws(), _req("messageId", "Message ID"), _req("content", "Reply")],
        "getList": [_req("listId", "List ID")],
        "getTask": [_req("taskId", "Task ID")],
        "deleteTask": [_req("taskId", "Task ID")],
        "getTaskByName": [_req("listId", "List ID"), _req("taskName", "Task Name")],
        "getSpace": [_req("spaceId", "Space ID")],
        "getSpaces": [_ws()],
        "getTaskComments": [_req("taskId", "Task ID")],
        "getChannel": [_ws(), _req("channelId", "Channel ID")],
        "getChannels": [_ws()],
        "getChannelMessages": [_ws(), _req("channelId", "Channel ID"),
                               InputField(name="limit", label="Limit", type="number", default=50)],
        "getMessageReactions": [_ws(), _req("messageId", "Message ID")],
        "getMessageReplies": [_ws(), _req("messageId", "Message ID")],
        "filterWorkspaceTasks": [_ws(), text("spaceIds", "Space IDs"), text("listIds", "List IDs"),
                                 text("statuses", "Statuses", description="Comma-separated")],
        "filterWorkspaceTimeEntries": [_ws(), text("startDate", "Start (ms timestamp)"),
                                       text("endDate", "End (ms timestamp)")],
        "updateTask": [
            _req("taskId", "Task ID"),
            text("name", "Task Name"),
            InputField(name="description", label="Description", type="textarea"),
            text("status", "Status"),
            InputField(name="priority", label="Priority", type="number"),
            text("dueDate", "Due Date (ms timestamp)"),
        ],
        "updateMessage": [_ws(), _req("messageId", "Message ID"), _req("content", "Message")],
        "deleteMessage": [_ws(), _req("messageId", "Message ID")],
        "deleteMessageReaction": [_ws(), _req("messageId", "Message ID"), _req("reaction", "Reaction")],
        "getAccessibleCustomFields": [_req("listId", "List ID")],
        "setCustomFieldValue": [_req("taskId", "Task ID"), _req("fieldId", "Field ID"),
                                InputField(name="value", label="Value", type="text", required=True)],
        "customApiCall": [
            text("endpoint", "API Endpoint", required=True, description="Path relative to /api/v2"),
            select("method", "HTTP Method", ["GET", "POST", "PUT", "DELETE"], required=True, default="GET"),
            InputField(name="body", label="Request Body (JSON)", type="code", language="json"),
        ],
    }
