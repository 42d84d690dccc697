"""Clockodo - time tracking, customers, projects and absences."""

from node_sdk import InputField, select, text

from .base import ProxyNode, action_select


def _id(name: str, label: str, required: bool = True) -> InputField:
    return text(name, label, required=required)


def _active(default=None) -> InputField:
    return InputField(name="active", label="Active", type="boolean", default=default)


ABSENCE_TYPES = ["vacation", "sick", "other"]


class ClockodoNode(ProxyNode):
    type = "clockodo"
    name = "Clockodo"
    description = "Time tracking and project management for businesses"
    proxy_name = "clockodo-proxy"

    required_credentials = ["email", "apiKey"]
    credentials_error = "Email and API token are required"

    ACTIONS = [
        "getTeams", "getTeam",
        "getUsers", "getUser", "createUser", "updateUser", "deleteUser",
        "getEntries", "getEntry", "createEntry", "updateEntry", "deleteEntry",
        "getCustomers", "getCustomer", "createCustomer", "updateCustomer", "deleteCustomer",
        "getProjects", "getProject", "createProject", "updateProject", "deleteProject",
        "getServices", "getService", "createService", "updateService", "deleteService",
        "getAbsences", "getAbsence", "createAbsence", "updateAbsence", "deleteAbsence",
        "customApiCall",
    ]

    inputs = [
        text("email", "Email", required=True, isApiKey=True, description="Your Clockodo account email"),
        text("apiKey", "API Key", required=True, isApiKey=True, description="Your Clockodo API key"),
        action_select(ACTIONS, default="getUsers"),
    ]

    ACTION_FIELDS = {
        "createUser": [
            text("name", "Name", required=True),
            text("userEmail", "User Email", required=True),
            select("role", "Role", ["admin", "user"]),
            _id("teamsId", "Team ID", required=False),
        ],
        "updateUser": [
            _id("usersId", "User ID"),
            text("name", "Name"),
            select("role", "Role", ["admin", "user"]),
            _id("teamsId", "Team ID", required=False),
        ],
        "getUser": [_id("usersId", "User ID")],
        "deleteUser": [_id("usersId", "User ID")],
        "createEntry": [
            _id("customersId", "Customer ID"),
            _id("projectsId", "Project ID", required=False),
            _id("servicesId", "Service ID"),
            _id("usersId", "User ID"),
            text("timeSince", "Start Time (ISO 8601)", required=True),
            text("timeUntil", "End Time (ISO 8601)", required=True),
            InputField(name="text", label="Description", type="textarea"),
            InputField(name="billable", label="Billable", type="boolean", default=True),
        ],
        "updateEntry": [
            _id("entriesId", "Entry ID"),
            _id("customersId", "Customer ID", required=False),
            _id("projectsId", "Project ID", required=False),
            _id("servicesId", "Service ID", required=False),
            text("timeSince", "Start Time (ISO 8601)"),
            text("timeUntil", "End Time (ISO 8601)"),
            InputField(name="text", label="Description", type="textarea"),
            InputField(name="billable", label="Billable", type="boolean"),
        ],
        "getEntry": [_id("entriesId", "Entry ID")],
        "deleteEntry": [_id("entriesId", "Entry ID")],
        "getEntries": [
            text("timeSince", "Start Date (ISO 8601)", required=True),
            text("timeUntil", "End Date (ISO 8601)", required=True),
            _id("filterUsersId", "Filter by User ID", required=False),
            _id("filterProjectsId", "Filter by Project ID", required=False),
            _id("filterCustomersId", "Filter by Customer ID", required=False),
        ],
        "createCustomer": [
            text("name", "Customer Name", required=True),
            text("number", "Customer Number"),
            _active(True),
            InputField(name="billableDefault", label="Billable by Default", type="boolean", default=True),
        ],
        "updateCustomer": [
            _id("customersId", "Customer ID"),
            text("name", "Customer Name"),
            text("number", "Customer Number"),
            _active(),
        ],
        "getCustomer": [_id("customersId", "Customer ID")],
        "deleteCustomer": [_id("customersId", "Customer ID")],
        "createProject": [
            text("name", "Project Name", required=True),
            _id("customersId", "Customer ID"),
            text("number", "Project Number"),
            _active(True),
            InputField(name="billableDefault", label="Billable by Default", type="boolean", default=True),
        ],
        "updateProject": [
            _id("projectsId", "Project ID"),
            text("name", "Project Name"),
            _id("customersId", "Customer ID", required=False),
            text("number", "Project Number"),
            _active(),
        ],
        "getProject": [_id("projectsId", "Project ID")],
        "deleteProject": [_id("projectsId", "Project ID")],
        "createService": [
            text("name", "Service Name", required=True),
            text("number", "Service Number"),
            _active(True),
        ],
        "updateService": [
            _id("servicesId", "Service ID"),
            text("name", "Service Name"),
            text("number", "Service Number"),
            _active(),
        ],
        "getService": [_id("servicesId", "Service ID")],
        "deleteService": [_id("servicesId", "Service ID")],
        "getTeam": [_id("teamsId", "Team ID")],
        "createAbsence": [
            _id("usersId", "User ID"),
            text("dateSince", "Start Date (YYYY-MM-DD)", required=True),
            text("dateUntil", "End Date (YYYY-MM-DD)", required=True),
            select("type", "Absence Type", ABSENCE_TYPES, required=True),
            InputField(name="note", label="Note", type="textarea"),
        ],
        "updateAbsence": [
            _id("absencesId", "Absence ID"),
            text("dateSince", "Start Date (YYYY-MM-DD)"),
            text("dateUntil", "End Date (YYYY-MM-DD)"),
            select("type", "Absence Type", ABSENCE_TYPES),
            InputField(name="note", label="Note", type="textarea"),
        ],
        "getAbsence": [_id("absencesId", "Absence ID")],
        "deleteAbsence": [_id("absencesId", "Absence ID")],
        "getAbsences": [
            InputField(name="year", label="Year", type="number"),
            _id("filterUsersId", "Filter by User ID", required=False),
        ],
        "customApiCall": [
            text("endpoint", "API Endpoint", required=True, description="Relative endpoint path (e.g., /v2/entries)"),
            select("method", "HTTP Method", ["GET", "POST", "PUT", "DELETE"], required=True, default="GET"),
            InputField(name="body", label="Request Body (JSON)", type="code", language="json"),
        ],
    }
