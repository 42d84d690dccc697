"""Clockodo proxy - https://my.clockodo.com/api (v2 endpoints)."""

from typing import Any, Dict, Optional

from .base import ActionSpec, RestProxy, compact, custom_call, to_int


def _billable(value: Any) -> int:
    return 0 if value is False else 1


def _entries_query(p: Dict[str, Any]) -> Dict[str, Any]:
    return compact({
        "time_since": p.get("timeSince"),
        "time_until": p.get("timeUntil"),
        "filter[users_id]": p.get("filterUsersId") or None,
        "filter[projects_id]": p.get("filterProjectsId") or None,
        "filter[customers_id]": p.get("filterCustomersId") or None,
    })


def _absences_query(p: Dict[str, Any]) -> Dict[str, Any]:
    return compact({
        "year": str(p["year"]) if p.get("year") else None,
        "filter[users_id]": p.get("filterUsersId") or None,
    })


def _updates(p: Dict[str, Any], mapping: Dict[str, str], ids=()) -> Dict[str, Any]:
    """PUT body from the truthy params in ``mapping`` (param -> api field)."""
    body: Dict[str, Any] = {}
    for param, field in mapping.items():
        if p.get(param):
            body[field] = to_int(p[param]) if param in ids else p[param]
    return body


def _with_active(p: Dict[str, Any], body: Dict[str, Any]) -> Dict[str, Any]:
    if p.get("active") is not None:
        body["active"] = p["active"]
    return body


ACTIONS = {
    # Users
    "getUsers": ActionSpec("GET", "/v2/users"),
    "getUser": ActionSpec("GET", "/v2/users/{usersId}"),
    "createUser": ActionSpec("POST", "/v2/users", body=lambda p: compact({
        "name": p.get("name"),
        "email": p.get("userEmail"),
        "role": p.get("role") or "user",
        "teams_id": to_int(p.get("teamsId")),
    })),
    "updateUser": ActionSpec("PUT", "/v2/users/{usersId}", body=lambda p: _updates(
        p, {"name": "name", "role": "role", "teamsId": "teams_id"}, ids=("teamsId",))),
    "deleteUser": ActionSpec("DELETE", "/v2/users/{usersId}"),

    # Entries
    "getEntries": ActionSpec("GET", "/v2/entries", query=_entries_query),
    "getEntry": ActionSpec("GET", "/v2/entries/{entriesId}"),
    "createEntry": ActionSpec("POST", "/v2/entries", body=lambda p: compact({
        "customers_id": to_int(p.get("customersId")),
        "projects_id": to_int(p.get("projectsId")),
        "services_id": to_int(p.get("servicesId")),
        "users_id": to_int(p.get("usersId")),
        "time_since": p.get("timeSince"),
        "time_until": p.get("timeUntil"),
        "text": p.get("text"),
        "billable": _billable(p.get("billable")),
    })),
    "updateEntry": ActionSpec("PUT", "/v2/entries/{entriesId}", body=lambda p: {
        **_updates(p, {
            "customersId": "customers_id",
            "projectsId": "projects_id",
            "servicesId": "services_id",
            "timeSince": "time_since",
            "timeUntil": "time_until",
            "text": "text",
        }, ids=("customersId", "projectsId", "servicesId")),
        **({"billable": 1 if p["billable"] else 0} if p.get("billable") is not None else {}),
    }),
    "deleteEntry": ActionSpec("DELETE", "/v2/entries/{entriesId}"),

    # Customers
    "getCustomers": ActionSpec("GET", "/v2/customers"),
    "getCustomer": ActionSpec("GET", "/v2/customers/{customersId}"),
    "createCustomer": ActionSpec("POST", "/v2/customers", body=lambda p: compact({
        "name": p.get("name"),
        "number": p.get("number") or None,
        "active": p.get("active") is not False,
        "billable_default": p.get("billableDefault") is not False,
    })),
    "updateCustomer": ActionSpec("PUT", "/v2/customers/{customersId}", body=lambda p: _with_active(
        p, _updates(p, {"name": "name", "number": "number"}))),
    "deleteCustomer": ActionSpec("DELETE", "/v2/customers/{customersId}"),

    # Projects
    "getProjects": ActionSpec("GET", "/v2/projects"),
    "getProject": ActionSpec("GET", "/v2/projects/{projectsId}"),
    "createProject": ActionSpec("POST", "/v2/projects", body=lambda p: compact({
        "name": p.get("name"),
        "customers_id": to_int(p.get("customersId")),
        "number": p.get("number") or None,
        "active": p.get("active") is not False,
        "billable_default": p.get("billableDefault") is not False,
    })),
    "updateProject": ActionSpec("PUT", "/v2/projects/{projectsId}", body=lambda p: _with_active(
        p, _updates(p, {"name": "name", "customersId": "customers_id", "number": "number"},
                    ids=("customersId",)))),
    "deleteProject": ActionSpec("DELETE", "/v2/projects/{projectsId}"),

    # Services
    "getServices": ActionSpec("GET", "/v2/services"),
    "getService": ActionSpec("GET", "/v2/services/{servicesId}"),
    "createService": ActionSpec("POST", "/v2/services", body=lambda p: compact({
        "name": p.get("name"),
        "number": p.get("number") or None,
        "active": p.get("active") is not False,
    })),
    "updateService": ActionSpec("PUT", "/v2/services/{servicesId}", body=lambda p: _with_active(
        p, _updates(p, {"name": "name", "number": "number"}))),
    "deleteService": ActionSpec("DELETE", "/v2/services/{servicesId}"),

    # Teams
    "getTeams": ActionSpec("GET", "/v2/teams"),
    "getTeam": ActionSpec("GET", "/v2/teams/{teamsId}"),

    # Absences
    "getAbsences": ActionSpec("GET", "/v2/absences", query=_absences_query),
    "getAbsence": ActionSpec("GET", "/v2/absences/{absencesId}"),
    "createAbsence": ActionSpec("POST", "/v2/absences", body=lambda p: compact({
        "users_id": to_int(p.get("usersId")),
        "date_since": p.get("dateSince"),
        "date_until": p.get("dateUntil"),
        "type": p.get("type"),
        "note": p.get("note") or None,
    })),
    "updateAbsence": ActionSpec("PUT", "/v2/absences/{absencesId}", body=lambda p: _updates(
        p, {"dateSince": "date_since", "dateUntil": "date_until", "type": "type", "note": "note"})),
    "deleteAbsence": ActionSpec("DELETE", "/v2/absences/{absencesId}"),

    "customApiCall": custom_call(),
}


class ClockodoProxy(RestProxy):
    """Basic auth with the account email and API key."""

    name = "clockodo-proxy"
    base_url = "https://my.clockodo.com/api"
    credential_fields = ("email", "apiKey")
    missing_credentials = "Email and API token are required"
    actions = ACTIONS

    def __init__(self, application: str = "flowhub", timeout: Optional[float] = None):
        super().__init__(timeout)
        self.application = application

    def client(self, body, base_url=None):
        client = super().client(body, base_url)
        client.auth = (body["email"], body["apiKey"])
        return client

    def headers(self, body: Dict[str, Any]) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-Clockodo-External-Application": f"{self.application};{body['email']}",
        }

    def error_message(self, data: Any) -> Optional[str]:
        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            return data["error"].get("message")
        return None
