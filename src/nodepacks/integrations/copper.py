"""Copper CRM - people, leads, companies, opportunities, projects and activities."""

from typing import Any, Dict

from node_sdk import CredentialsMissingError, InputField, OutputField, select, text

from .base import STANDARD_OUTPUTS, ProxyNode, action_select


RESOURCE_TYPES = ["person", "company", "opportunity", "lead", "project"]
ACTIVITY_TYPES = ["note", "call", "meeting"]
OPPORTUNITY_STATUSES = ["Open", "Won", "Lost", "Abandoned"]
PROJECT_STATUSES = ["Open", "Completed"]


def _page_size():
    return InputField(name="pageSize", label="Page Size", type="number", default=20)


def _details():
    return InputField(name="details", label="Details", type="textarea")


def _json(name, label):
    return InputField(name=name, label=label, type="code", language="json")


class CopperNode(ProxyNode):
    type = "copper"
    name = "Copper"
    description = "CRM built for Google Workspace"
    proxy_name = "copper-proxy"

    ACTIONS = [
        "createPerson", "updatePerson", "searchForAPerson",
        "createLead", "updateLead", "convertLead", "searchForALead",
        "createCompany", "updateCompany", "searchForACompany",
        "createOpportunity", "updateOpportunity", "searchForAnOpportunity",
        "createProject", "updateProject", "searchForAProject",
        "createTask", "createActivity", "searchForAnActivity",
        "createCustomApiCall",
    ]

    inputs = [
        text("apiKey", "API Key", required=True, isApiKey=True),
        text("email", "User Email", required=True, isApiKey=True,
             description="Email of the Copper user owning the API key"),
        action_select(ACTIONS, default="searchForAPerson"),
    ]
    outputs = [
        *STANDARD_OUTPUTS,
        OutputField(name="id", type="string", description="ID of the created or updated record"),
        OutputField(name="items", type="array", description="Search results"),
    ]

    ACTION_FIELDS = {
        "createPerson": [
            text("name", "Name", required=True), text("personEmail", "Email"), text("phone", "Phone"),
            text("title", "Title"), text("companyId", "Company ID"), _details(),
        ],
        "updatePerson": [
            text("personId", "Person ID", required=True), text("name", "Name"),
            text("personEmail", "Email"), text("phone", "Phone"), text("title", "Title"),
        ],
        "searchForAPerson": [text("name", "Name"), text("personEmail", "Email"), text("phone", "Phone"),
                             _page_size()],
        "createLead": [
            text("name", "Name", required=True), text("leadEmail", "Email"), text("phone", "Phone"),
            text("companyName", "Company Name"), text("title", "Title"), _details(),
            InputField(name="monetaryValue", label="Monetary Value", type="number"),
        ],
        "updateLead": [text("leadId", "Lead ID", required=True), text("name", "Name"),
                       text("leadEmail", "Email"), text("status", "Status")],
        "convertLead": [
            text("leadId", "Lead ID", required=True),
            _json("personDetails", "Person (JSON)"),
            _json("companyDetails", "Company (JSON)"),
            _json("opportunityDetails", "Opportunity (JSON)"),
        ],
        "searchForALead": [text("name", "Name"), text("leadEmail", "Email"), text("phone", "Phone"),
                           _page_size()],
        "createCompany": [
            text("name", "Name", required=True), text("website", "Website"), text("phone", "Phone"),
            _json("address", "Address (JSON)"), _details(),
        ],
        "updateCompany": [text("companyId", "Company ID", required=True), text("name", "Name"),
                          text("website", "Website"), text("phone", "Phone")],
        "searchForACompany": [text("name", "Name"), text("website", "Website"), _page_size()],
        "createOpportunity": [
            text("name", "Name", required=True),
            InputField(name="monetaryValue", label="Monetary Value", type="number"),
            text("pipelineId", "Pipeline ID"), text("stageId", "Stage ID"),
            text("closeDate", "Close Date"), text("primaryContactId", "Primary Contact ID"),
            text("companyId", "Company ID"),
        ],
        "updateOpportunity": [
            text("opportunityId", "Opportunity ID", required=True), text("name", "Name"),
            InputField(name="monetaryValue", label="Monetary Value", type="number"),
            text("stageId", "Stage ID"), select("status", "Status", OPPORTUNITY_STATUSES),
        ],
        "searchForAnOpportunity": [text("name", "Name"), text("pipelineId", "Pipeline ID"),
                                   select("status", "Status", OPPORTUNITY_STATUSES), _page_size()],
        "createProject": [text("name", "Name", required=True),
                          select("status", "Status", PROJECT_STATUSES, default="Open"), _details()],
        "updateProject": [text("projectId", "Project ID", required=True), text("name", "Name"),
                          select("status", "Status", PROJECT_STATUSES)],
        "searchForAProject": [text("name", "Name"), select("status", "Status", PROJECT_STATUSES),
                              _page_size()],
        "createTask": [
            text("name", "Name", required=True), text("dueDate", "Due Date"),
            select("priority", "Priority", ["None", "High"], default="None"),
            select("relatedResourceType", "Related To", RESOURCE_TYPES),
            text("relatedResourceId", "Related Record ID"), _details(),
        ],
        "createActivity": [
            select("activityType", "Activity Type", ACTIVITY_TYPES, required=True), _details(),
            select("parentType", "Parent Type", RESOURCE_TYPES, required=True),
            text("parentId", "Parent ID", required=True),
        ],
        "searchForAnActivity": [
            select("parentType", "Parent Type", RESOURCE_TYPES), text("parentId", "Parent ID"),
            select("activityType", "Activity Type", ACTIVITY_TYPES), _page_size(),
        ],
        "createCustomApiCall": [
            select("method", "HTTP Method", ["GET", "POST", "PUT", "DELETE"], required=True, default="GET"),
            text("endpoint", "Endpoint", required=True, description="Path relative to /developer_api/v1"),
            _json("body", "Request Body (JSON)"),
        ],
    }

    def check_credentials(self, inputs: Dict[str, Any]) -> None:
        if not inputs.get("apiKey"):
            raise CredentialsMissingError("API key is required", node=self, missing=["apiKey"])
        if not inputs.get("email"):
            raise CredentialsMissingError("User email is required", node=self, missing=["email"])
