"""Trello - boards, cards and lists."""

from node_sdk import InputField, select, text

from .base import ProxyNode, action_select


def _board_id():
    return text("boardId", "Board ID", required=True)


def _card_id():
    return text("cardId", "Card ID", required=True)


def _list_id():
    return text("listId", "List ID", required=True)


class TrelloNode(ProxyNode):
    type = "trello"
    name = "Trello"
    description = "Manage Trello boards, cards and lists"
    proxy_name = "trello-proxy"

    required_credentials = ["apiKey", "token"]
    credentials_error = "API Key and Token are required"

    ACTIONS = [
        "createBoard", "getBoard", "updateBoard", "deleteBoard",
        "createCard", "getCard", "updateCard", "deleteCard",
        "createList", "getList", "getLists", "getListCards", "archiveList", "updateList",
    ]

    inputs = [
        text("apiKey", "API Key", required=True, isApiKey=True),
        text("token", "API Token", required=True, isApiKey=True),
        action_select(ACTIONS, default="getBoard"),
    ]

    ACTION_FIELDS = {
        "createBoard": [text("name", "Board Name", required=True),
                        InputField(name="description", label="Description", type="textarea")],
        "getBoard": [_board_id()],
        "deleteBoard": [_board_id()],
        "updateBoard": [
            _board_id(), text("name", "Board Name"),
            InputField(name="description", label="Description", type="textarea"),
            InputField(name="closed", label="Closed", type="boolean"),
        ],
        "createCard": [_list_id(), text("name", "Card Name", required=True),
                       InputField(name="description", label="Description", type="textarea")],
        "getCard": [_card_id()],
        "deleteCard": [_card_id()],
        "updateCard": [
            _card_id(), text("name", "Card Name"),
            InputField(name="description", label="Description", type="textarea"),
            text("idList", "Move to List ID"), text("due", "Due Date"),
            InputField(name="dueComplete", label="Due Complete", type="boolean"),
            InputField(name="closed", label="Closed", type="boolean"),
        ],
        "createList": [_board_id(), text("name", "List Name", required=True)],
        "getList": [_list_id()],
        "getLists": [_board_id(), InputField(name="limit", label="Limit", type="number", default=50)],
        "getListCards": [_list_id(), InputField(name="limit", label="Limit", type="number", default=50)],
        "archiveList": [_list_id(), select("archive", "Archive", ["true", "false"], default="true")],
        "updateList": [_list_id(), text("name", "List Name", required=True)],
    }
