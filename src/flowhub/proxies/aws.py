"""
Amazon SES and SQS proxies backed by boto3.

Each request builds its own client from the caller's keys and region; keys
are never cached between requests.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from nodepacks.integrations.aws import AWS_CREDENTIALS_ERROR

from .base import ProxyFunction, ProxyRequestError, ProxyResponse, compact, parse_json_field, split_csv, to_int


logger = logging.getLogger(__name__)

ClientFactory = Callable[..., Any]


class AwsProxy(ProxyFunction):
    """
    Base for boto3-backed proxies.

    Subclasses set ``service`` and implement one ``action_<name>(client, params)``
    method per action, each returning the success payload.
    """

    service: str = ""
    default_region: str = "us-east-1"

    def __init__(self, client_factory: Optional[ClientFactory] = None, default_region: Optional[str] = None):
        self.client_factory = client_factory or boto3.client
        if default_region:
            self.default_region = default_region

    def client(self, body: Dict[str, Any]):
        return self.client_factory(
            self.service,
            aws_access_key_id=body["accessKeyId"],
            aws_secret_access_key=body["secretAccessKey"],
            region_name=body.get("region") or self.default_region,
        )

    def handle(self, body: Dict[str, Any]) -> ProxyResponse:
        if not body.get("accessKeyId") or not body.get("secretAccessKey"):
            raise ProxyRequestError(AWS_CREDENTIALS_ERROR)

        action = body.get("action")
        handler = getattr(self, f"action_{action}", None) if action else None
        if handler is None:
            raise ProxyRequestError(f"Unknown action: {action}")

        params = {k: v for k, v in body.items() if k not in ("action", "accessKeyId", "secretAccessKey", "region")}
        logger.info(f"{self.name}: {action}")

        try:
            payload = handler(self.client(body), params)
        except ClientError as e:
            error = e.response.get("Error", {})
            logger.warning(f"{self.name} {action} failed: {error.get('Code', 'Unknown')}")
            return self.failure(200, error.get("Message") or str(e), {
                "code": error.get("Code"),
                "statusCode": e.response.get("ResponseMetadata", {}).get("HTTPStatusCode"),
            })
        except BotoCoreError as e:
            return self.failure(200, str(e))

        return ProxyResponse(200, {"success": True, **payload})

    @staticmethod
    def strip_metadata(response: Dict[str, Any]) -> Dict[str, Any]:
        return {k: v for k, v in response.items() if k != "ResponseMetadata"}


# ==============================================================================
# SES
# ==============================================================================

def _addresses(value: Any) -> List[str]:
    return split_csv(value) if value else []


class AmazonSesProxy(AwsProxy):
    name = "amazon-ses-proxy"
    service = "ses"

    def _sender(self, params: Dict[str, Any]) -> str:
        if not params.get("fromEmail"):
            raise ProxyRequestError("From email is required")
        return params["fromEmail"]

    def _template(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return compact({
            "TemplateName": params.get("templateName"),
            "SubjectPart": params.get("templateSubject"),
            "HtmlPart": params.get("templateHtml") or None,
            "TextPart": params.get("templateText") or None,
        })

    def _verification_template(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return compact({
            "TemplateName": params.get("templateName"),
            "FromEmailAddress": params.get("fromEmail") or None,
            "TemplateSubject": params.get("templateSubject"),
            "TemplateContent": params.get("templateHtml") or params.get("templateText"),
            "SuccessRedirectionURL": params.get("successRedirectionURL"),
            "FailureRedirectionURL": params.get("failureRedirectionURL"),
        })

    def action_sendEmail(self, client, params: Dict[str, Any]) -> Dict[str, Any]:
        to_addresses = _addresses(params.get("toEmails"))
        if not to_addresses:
            raise ProxyRequestError("At least one recipient is required")

        body = {}
        if params.get("bodyText"):
            body["Text"] = {"Data": params["bodyText"], "Charset": "UTF-8"}
        if params.get("bodyHtml"):
            body["Html"] = {"Data": params["bodyHtml"], "Charset": "UTF-8"}

        response = client.send_email(
            Source=self._sender(params),
            Destination=compact({
                "ToAddresses": to_addresses,
                "CcAddresses": _addresses(params.get("ccEmails")) or None,
                "BccAddresses": _addresses(params.get("bccEmails")) or None,
            }),
            Message={"Subject": {"Data": params.get("subject") or "", "Charset": "UTF-8"}, "Body": body},
        )
        return {"messageId": response.get("MessageId"), "data": self.strip_metadata(response)}

    def action_sendTemplatedEmail(self, client, params: Dict[str, Any]) -> Dict[str, Any]:
        sender = self._sender(params)
        template_data = parse_json_field(params.get("templateData"), "templateData", default={})
        recipients = params.get("recipients")

        if recipients:
            # one message per recipient with its own replacement data
            destinations = []
            for recipient in recipients:
                if isinstance(recipient, dict):
                    destinations.append({
                        "Destination": {"ToAddresses": _addresses(recipient.get("email"))},
                        "ReplacementTemplateData": json.dumps(recipient.get("data") or {}),
                    })
                else:
                    destinations.append({"Destination": {"ToAddresses": [str(recipient)]}})
            response = client.send_bulk_templated_email(
                Source=sender,
                Template=params.get("templateName"),
                DefaultTemplateData=json.dumps(template_data),
                Destinations=destinations,
            )
            message_ids = [status.get("MessageId") for status in response.get("Status", [])]
            return {"messageIds": message_ids, "data": self.strip_metadata(response)}

        response = client.send_templated_email(
            Source=sender,
            Destination={"ToAddresses": _addresses(params.get("toEmails"))},
            Template=params.get("templateName"),
            TemplateData=json.dumps(template_data),
        )
        return {"messageId": response.get("MessageId"), "data": self.strip_metadata(response)}

    def action_createEmailTemplate(self, client, params: Dict[str, Any]) -> Dict[str, Any]:
        response = client.create_template(Template=self._template(params))
        return {"data": self.strip_metadata(response)}

    def action_updateEmailTemplate(self, client, params: Dict[str, Any]) -> Dict[str, Any]:
        response = client.update_template(Template=self._template(params))
        return {"data": self.strip_metadata(response)}

    def action_createCustomVerificationEmailTemplate(self, client, params: Dict[str, Any]) -> Dict[str, Any]:
        self._sender(params)
        response = client.create_custom_verification_email_template(**self._verification_template(params))
        return {"data": self.strip_metadata(response)}

    def action_updateCustomVerificationEmailTemplate(self, client, params: Dict[str, Any]) -> Dict[str, Any]:
        response = client.update_custom_verification_email_template(**self._verification_template(params))
        return {"data": self.strip_metadata(response)}

    def action_sendCustomVerificationEmail(self, client, params: Dict[str, Any]) -> Dict[str, Any]:
        response = client.send_custom_verification_email(
            EmailAddress=params.get("emailAddress"),
            TemplateName=params.get("templateName"),
        )
        return {"messageId": response.get("MessageId"), "data": self.strip_metadata(response)}

    def action_listIdentities(self, client, params: Dict[str, Any]) -> Dict[str, Any]:
        response = client.list_identities(**compact({"IdentityType": params.get("identityType") or None}))
        return {"identities": response.get("Identities", []), "data": self.strip_metadata(response)}

    def action_getSendStatistics(self, client, params: Dict[str, Any]) -> Dict[str, Any]:
        response = client.get_send_statistics()
        return {"statistics": response.get("SendDataPoints", []), "data": self.strip_metadata(response)}


# ==============================================================================
# SQS
# ==============================================================================

class AmazonSqsProxy(AwsProxy):
    name = "amazon-sqs-proxy"
    service = "sqs"

    @staticmethod
    def _queue_url(params: Dict[str, Any]) -> str:
        if not params.get("queueUrl"):
            raise ProxyRequestError("queueUrl is required")
        return params["queueUrl"]

    def action_sendMessage(self, client, params: Dict[str, Any]) -> Dict[str, Any]:
        response = client.send_message(**compact({
            "QueueUrl": self._queue_url(params),
            "MessageBody": params.get("messageBody") or "",
            "DelaySeconds": to_int(params.get("delaySeconds")),
            "MessageGroupId": params.get("messageGroupId") or None,
            "MessageDeduplicationId": params.get("messageDeduplicationId") or None,
        }))
        return {"messageId": response.get("MessageId"), "data": self.strip_metadata(response)}

    def action_receiveMessages(self, client, params: Dict[str, Any]) -> Dict[str, Any]:
        response = client.receive_message(**compact({
            "QueueUrl": self._queue_url(params),
            "MaxNumberOfMessages": to_int(params.get("maxNumberOfMessages")) or 1,
            "WaitTimeSeconds": to_int(params.get("waitTimeSeconds")) or 0,
            "VisibilityTimeout": to_int(params.get("visibilityTimeout")),
            "MessageAttributeNames": ["All"],
        }))
        messages = [
            {
                "messageId": message.get("MessageId"),
                "receiptHandle": message.get("ReceiptHandle"),
                "body": message.get("Body"),
                "attributes": message.get("MessageAttributes") or {},
            }
            for message in response.get("Messages", [])
        ]
        return {"messages": messages, "data": self.strip_metadata(response)}

    def action_deleteMessage(self, client, params: Dict[str, Any]) -> Dict[str, Any]:
        if not params.get("receiptHandle"):
            raise ProxyRequestError("receiptHandle is required")
        response = client.delete_message(QueueUrl=self._queue_url(params), ReceiptHandle=params["receiptHandle"])
        return {"data": self.strip_metadata(response)}

    def action_listQueues(self, client, params: Dict[str, Any]) -> Dict[str, Any]:
        response = client.list_queues(**compact({"QueueNamePrefix": params.get("queueNamePrefix") or None}))
        return {"queueUrls": response.get("QueueUrls", []), "data": self.strip_metadata(response)}

    def action_purgeQueue(self, client, params: Dict[str, Any]) -> Dict[str, Any]:
        response = client.purge_queue(QueueUrl=self._queue_url(params))
        return {"data": self.strip_metadata(response)}
