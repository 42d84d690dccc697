"""Copper CRM proxy - https://api.copper.com/developer_api/v1."""

from typing import Any, Dict

from .base import ActionSpec, ProxyRequestError, RestProxy, compact, custom_call, parse_json_field, to_int


def _work_phone(p: Dict[str, Any]):
    return [{"number": p["phone"], "category": "work"}] if p.get("phone") else None


def _search(p: Dict[str, Any], **fields) -> Dict[str, Any]:
    """Search body: page size plus the truthy filters in ``fields`` (api field -> value)."""
    body: Dict[str, Any] = {"page_size": p.get("pageSize") or 20}
    body.update({k: v for k, v in fields.items() if v})
    return body


def _truthy(p: Dict[str, Any], mapping: Dict[str, str]) -> Dict[str, Any]:
    return {field: p[param] for param, field in mapping.items() if p.get(param)}


def _person_updates(p: Dict[str, Any]) -> Dict[str, Any]:
    body = _truthy(p, {"name": "name", "title": "title"})
    if p.get("personEmail"):
        body["emails"] = [{"email": p["personEmail"], "category": "work"}]
    if p.get("phone"):
        body["phone_numbers"] = _work_phone(p)
    return body


def _lead_updates(p: Dict[str, Any]) -> Dict[str, Any]:
    body = _truthy(p, {"name": "name", "status": "status"})
    if p.get("leadEmail"):
        body["email"] = {"email": p["leadEmail"], "category": "work"}
    return body


def _company_updates(p: Dict[str, Any]) -> Dict[str, Any]:
    body = _truthy(p, {"name": "name", "website": "website"})
    if p.get("phone"):
        body["phone_numbers"] = _work_phone(p)
    return body


def _opportunity_updates(p: Dict[str, Any]) -> Dict[str, Any]:
    body = _truthy(p, {"name": "name", "monetaryValue": "monetary_value", "status": "status"})
    if p.get("stageId"):
        body["pipeline_stage_id"] = to_int(p["stageId"])
    return body


def _resource(type_: Any, id_: Any):
    return {"type": type_, "id": to_int(id_)} if type_ and id_ else None


ACTIONS = {
    # People
    "createPerson": ActionSpec("POST", "/people", body=lambda p: compact({
        "name": p.get("name"),
        "emails": [{"email": p["personEmail"], "category": "work"}] if p.get("personEmail") else None,
        "phone_numbers": _work_phone(p),
        "title": p.get("title") or None,
        "company_id": to_int(p.get("companyId")),
        "details": p.get("details") or None,
    })),
    "updatePerson": ActionSpec("PUT", "/people/{personId}", body=_person_updates),
    "searchForAPerson": ActionSpec("POST", "/people/search", body=lambda p: _search(
        p,
        name=p.get("name"),
        emails=[p["personEmail"]] if p.get("personEmail") else None,
        phone_numbers=[p["phone"]] if p.get("phone") else None,
    )),

    # Leads
    "createLead": ActionSpec("POST", "/leads", body=lambda p: compact({
        "name": p.get("name"),
        "email": {"email": p["leadEmail"], "category": "work"} if p.get("leadEmail") else None,
        "phone_numbers": _work_phone(p),
        "company_name": p.get("companyName") or None,
        "title": p.get("title") or None,
        "details": p.get("details") or None,
        "monetary_value": p.get("monetaryValue") or None,
    })),
    "updateLead": ActionSpec("PUT", "/leads/{leadId}", body=_lead_updates),
    "convertLead": ActionSpec("POST", "/leads/{leadId}/convert", body=lambda p: {
        "details": compact({
            "person": parse_json_field(p.get("personDetails"), "personDetails"),
            "company": parse_json_field(p.get("companyDetails"), "companyDetails"),
            "opportunity": parse_json_field(p.get("opportunityDetails"), "opportunityDetails"),
        }),
    }),
    "searchForALead": ActionSpec("POST", "/leads/search", body=lambda p: _search(
        p,
        name=p.get("name"),
        emails=[p["leadEmail"]] if p.get("leadEmail") else None,
        phone_numbers=[p["phone"]] if p.get("phone") else None,
    )),

    # Companies
    "createCompany": ActionSpec("POST", "/companies", body=lambda p: compact({
        "name": p.get("name"),
        "website": p.get("website") or None,
        "phone_numbers": _work_phone(p),
        "address": parse_json_field(p.get("address"), "address"),
        "details": p.get("details") or None,
    })),
    "updateCompany": ActionSpec("PUT", "/companies/{companyId}", body=_company_updates),
    "searchForACompany": ActionSpec("POST", "/companies/search", body=lambda p: _search(
        p, name=p.get("name"), website=p.get("website"))),

    # Opportunities
    "createOpportunity": ActionSpec("POST", "/opportunities", body=lambda p: compact({
        "name": p.get("name"),
        "monetary_value": p.get("monetaryValue") or None,
        "pipeline_id": to_int(p.get("pipelineId")),
        "pipeline_stage_id": to_int(p.get("stageId")),
        "close_date": p.get("closeDate") or None,
        "primary_contact_id": to_int(p.get("primaryContactId")),
        "company_id": to_int(p.get("companyId")),
    })),
    "updateOpportunity": ActionSpec("PUT", "/opportunities/{opportunityId}", body=_opportunity_updates),
    "searchForAnOpportunity": ActionSpec("POST", "/opportunities/search", body=lambda p: _search(
        p,
        name=p.get("name"),
        pipeline_ids=[to_int(p["pipelineId"])] if p.get("pipelineId") else None,
        status_ids=[p["status"]] if p.get("status") else None,
    )),

    # Projects
    "createProject": ActionSpec("POST", "/projects", body=lambda p: compact({
        "name": p.get("name"),
        "status": p.get("status") or "Open",
        "details": p.get("details") or None,
    })),
    "updateProject": ActionSpec("PUT", "/projects/{projectId}",
                                body=lambda p: _truthy(p, {"name": "name", "status": "status"})),
    "searchForAProject": ActionSpec("POST", "/projects/search", body=lambda p: _search(
        p, name=p.get("name"), statuses=[p["status"]] if p.get("status") else None)),

    # Tasks and activities
    "createTask": ActionSpec("POST", "/tasks", body=lambda p: compact({
        "name": p.get("name"),
        "due_date": p.get("dueDate") or None,
        "priority": p.get("priority") or "None",
        "details": p.get("details") or None,
        "related_resource": _resource(p.get("relatedResourceType"), p.get("relatedResourceId")),
    })),
    "createActivity": ActionSpec("POST", "/activities", body=lambda p: {
        "type": {"category": p.get("activityType")},
        "details": p.get("details"),
        "parent": {"type": p.get("parentType"), "id": to_int(p.get("parentId"))},
    }),
    "searchForAnActivity": ActionSpec("POST", "/activities/search", body=lambda p: _search(
        p,
        parent=_resource(p.get("parentType"), p.get("parentId")),
        activity_types=[{"category": p["activityType"]}] if p.get("activityType") else None,
    )),

    "createCustomApiCall": custom_call(),
}


class CopperProxy(RestProxy):
    """Token and user email go in the X-PW-* headers."""

    name = "copper-proxy"
    base_url = "https://api.copper.com/developer_api/v1"
    credential_fields = ("apiKey", "email")
    actions = ACTIONS

    def check_credentials(self, body: Dict[str, Any]) -> None:
        if not body.get("apiKey"):
            raise ProxyRequestError("API key is required")
        if not body.get("email"):
            raise ProxyRequestError("User email is required")

    def headers(self, body: Dict[str, Any]) -> Dict[str, str]:
        return {
            "X-PW-AccessToken": body["apiKey"],
            "X-PW-Application": "developer_api",
            "X-PW-UserEmail": body["email"],
            "Content-Type": "application/json",
        }

    def shape(self, action: str, params: Dict[str, Any], data: Any) -> Dict[str, Any]:
        record_id = data.get("id") if isinstance(data, dict) else None
        return {
            "success": True,
            "data": data,
            "id": str(record_id) if record_id is not None else None,
            "items": data if isinstance(data, list) else None,
        }
