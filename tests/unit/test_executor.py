"""Tests for FlowExecutor and monitoring rows."""
from node_sdk import ProxyInvocationError, ProxyNotFoundError
from workflow_runtime import (
    FlowExecutor,
    FlowLogEntry,
    FlowRunResult,
    FlowStatus,
    PartialError,
    build_monitoring_rows,
)


class FakeInvoker:
    """Proxy invoker answering from a dict; unknown names are not found."""

    def __init__(self, answers=None):
        self.answers = answers or {}
        self.calls = []

    def invoke(self, name, body):
        self.calls.append((name, body))
        if name not in self.answers:
            raise ProxyNotFoundError(name)
        answer = self.answers[name]
        if isinstance(answer, Exception):
            raise answer
        return answer


def _node(node_id, node_type, label=None, **data):
    payload = {"type": node_type, **data}
    if label:
        payload["label"] = label
    return {"id": node_id, "data": payload}


def _chain(*nodes):
    edges = [{"source": a["id"], "target": b["id"]} for a, b in zip(nodes, nodes[1:])]
    return {"nodes": list(nodes), "edges": edges}


class TestFlowExecutor:
    """Test flow execution."""

    def test_response_node_shapes_result(self, simple_flow):
        """Status, body and headers come from the response node."""
        result = FlowExecutor().execute(simple_flow, request={"body": {"name": "Ada"}})

        assert result.status == FlowStatus.SUCCESS
        assert result.is_success
        assert result.status_code == 201
        assert result.response_body() == {"received": "Ada"}

        headers = result.response_headers()
        assert headers["X-Flow"] == "simple"
        assert headers["X-Execution-Id"] == result.execution_id
        assert headers["X-Execution-Time"] == str(result.execution_time_ms)

    def test_logs_per_node(self, simple_flow):
        result = FlowExecutor().execute(simple_flow, request={"body": {"name": "Ada"}})

        logs = result.logs_as_dicts()
        assert [(entry["nodeId"], entry["type"]) for entry in logs] == [
            ("trigger", "info"),
            ("trigger", "success"),
            ("reply", "info"),
            ("reply", "success"),
        ]
        assert logs[0]["nodeName"] == "Webhook"
        assert logs[0]["message"] == "Executing Webhook"
        assert logs[1]["data"]["body"] == {"name": "Ada"}

    def test_execution_id_is_kept(self, simple_flow):
        result = FlowExecutor().execute(simple_flow, execution_id="exec-42", flow_id="flow-1")

        assert result.execution_id == "exec-42"
        assert result.context["_executionId"] == "exec-42"
        assert result.context["_flowProjectId"] == "flow-1"

    def test_condition_selects_branch(self):
        flow = {
            "nodes": [
                _node("trigger", "webhook-trigger"),
                _node("check", "condition", inputs={
                    "value": "{{trigger.body.amount}}",
                    "operation": "gt",
                    "compareValue": 100,
                }),
                _node("big", "response", inputs={"body": {"size": "big"}}),
                _node("small", "response", inputs={"body": {"size": "small"}}),
            ],
            "edges": [
                {"source": "trigger", "target": "check"},
                {"source": "check", "target": "big", "sourceHandle": "true"},
                {"source": "check", "target": "small", "sourceHandle": "false"},
            ],
        }

        large = FlowExecutor().execute(flow, request={"body": {"amount": 150}})
        tiny = FlowExecutor().execute(flow, request={"body": {"amount": 5}})

        assert large.response_body() == {"size": "big"}
        assert "small" not in large.context
        assert tiny.response_body() == {"size": "small"}
        assert "big" not in tiny.context

    def test_variables_flow_between_nodes(self):
        flow = _chain(
            _node("store", "set-variable", inputs={"variableName": "greeting", "value": "hi"}),
            _node("reply", "response", inputs={"body": {"said": "{{variables.greeting}} there"}}),
        )

        result = FlowExecutor().execute(flow)

        assert result.context["variables"] == {"greeting": "hi"}
        assert result.context["store"] == {"greeting": "hi", "success": True}
        assert result.response_body() == {"said": "hi there"}

    def test_failure_stops_flow(self):
        """A failing node ends the run with its error."""
        flow = _chain(
            _node("mystery", "mystery-widget"),
            _node("reply", "response", inputs={"body": {"never": True}}),
        )

        result = FlowExecutor(proxy_invoker=FakeInvoker()).execute(flow)

        assert result.status == FlowStatus.ERROR
        assert result.status_code == 500
        assert result.error_message == (
            'Proxy function "mystery-proxy" not found. '
            'Node type "mystery-widget" is not implemented server-side.'
        )
        assert "reply" not in result.context
        body = result.response_body()
        assert body["success"] is False
        assert body["message"] == result.error_message
        assert body["executionId"] == result.execution_id

    def test_continue_on_error_records_partial_error(self):
        flow = _chain(
            _node("broken", "code-execution", errorBehavior="continue",
                  inputs={"code": "raise ValueError('bad')"}),
            _node("after", "set-variable", inputs={"variableName": "flag", "value": "{{broken._failedNode}}"}),
        )

        result = FlowExecutor().execute(flow)

        assert result.status == FlowStatus.SUCCESS
        assert result.context["broken"] == {
            "error": "Code execution error: bad",
            "success": False,
            "_failedNode": True,
        }
        assert result.context["after"]["flag"] is True
        body = result.response_body()
        assert body["success"] is True
        assert body["message"] == "Flow completed with 1 node error(s)"
        assert body["partialErrors"] == [
            {"nodeId": "broken", "nodeName": "broken", "error": "Code execution error: bad"},
        ]

    def test_summary_without_response_node(self):
        result = FlowExecutor().execute(_chain(_node("store", "set-variable", inputs={"value": 1})))

        assert result.status_code == 200
        assert result.response_body()["message"] == "Flow executed successfully"
        assert "partialErrors" not in result.response_body()

    def test_response_node_without_body_sends_empty_object(self):
        flow = _chain(_node("trigger", "webhook-trigger"), _node("reply", "response", inputs={"statusCode": 202}))

        result = FlowExecutor().execute(flow)

        assert result.status_code == 202
        assert result.response_body() == {}

    def test_response_node_empty_list_body(self):
        flow = _chain(_node("reply", "response", inputs={"body": "[]"}))

        assert FlowExecutor().execute(flow).response_body() == []

    def test_error_behavior_other_than_continue_stops(self):
        for behavior in (None, "retry"):
            flow = _chain(
                _node("broken", "code-execution", errorBehavior=behavior,
                      inputs={"code": "raise ValueError('bad')"}),
                _node("after", "set-variable", inputs={"value": 1}),
            )

            result = FlowExecutor().execute(flow)

            assert result.status == FlowStatus.ERROR
            assert result.error_message == "Code execution error: bad"
            assert "after" not in result.context

    def test_malformed_node_is_a_validation_failure(self):
        result = FlowExecutor().execute({"nodes": [{"id": "a", "data": {"label": "no type"}}], "edges": []})

        assert result.status == FlowStatus.ERROR
        assert result.error_message.startswith("Flow validation failed: ")

    def test_validation_failure(self):
        flow = {
            "nodes": [_node("a", "set-variable"), _node("b", "set-variable")],
            "edges": [{"source": "a", "target": "b"}, {"source": "b", "target": "a"}],
        }

        result = FlowExecutor().execute(flow)

        assert result.status == FlowStatus.ERROR
        assert result.error_message.startswith("Flow validation failed: ")
        assert result.logs == []

    def test_max_steps(self):
        flow = _chain(_node("a", "set-variable"), _node("b", "set-variable"))

        result = FlowExecutor(max_steps=1).execute(flow)

        assert result.status == FlowStatus.ERROR
        assert result.error_message == "Flow exceeded the maximum of 1 steps"

    def test_disabled_node_is_skipped(self):
        flow = _chain(
            _node("off", "code-execution", disabled=True, inputs={"code": "raise ValueError('x')"}),
            _node("on", "set-variable", inputs={"variableName": "ran", "value": True}),
        )

        result = FlowExecutor().execute(flow)

        assert result.is_success
        assert "off" not in result.context
        assert result.context["variables"]["ran"] is True
        assert all(entry.node_id != "off" for entry in result.logs)

    def test_unknown_type_falls_back_to_proxy(self):
        invoker = FakeInvoker({"weather-proxy": {"temp": 20}})
        flow = _chain(_node("w", "weather", inputs={"city": "Oslo"}))

        result = FlowExecutor(proxy_invoker=invoker).execute(flow)

        assert result.is_success
        assert result.context["w"] == {"temp": 20, "success": True}
        assert invoker.calls == [("weather-proxy", {"city": "Oslo", "action": "execute"})]

    def test_proxy_fallback_error_payload(self):
        invoker = FakeInvoker({"weather-proxy": {"error": "city unknown"}})

        result = FlowExecutor(proxy_invoker=invoker).execute(_chain(_node("w", "weather")))

        assert result.error_message == "weather: city unknown"

    def test_proxy_fallback_invocation_error_is_cleaned(self):
        invoker = FakeInvoker({"weather-proxy": ProxyInvocationError("weather-proxy", 502, None)})

        result = FlowExecutor(proxy_invoker=invoker).execute(_chain(_node("w", "weather")))

        assert result.error_message == "weather: Request failed"

    def test_integration_node_uses_invoker(self):
        invoker = FakeInvoker({"clockodo-proxy": {"success": True, "data": {"users": [{"id": 1}]}}})
        flow = _chain(
            _node("users", "clockodo", inputs={
                "email": "{{env.CLOCKODO_EMAIL}}",
                "apiKey": "{{env.CLOCKODO_KEY}}",
                "action": "getUsers",
            }),
            _node("reply", "response", inputs={"body": "{{users.data.users}}"}),
        )

        result = FlowExecutor(proxy_invoker=invoker).execute(
            flow, env={"CLOCKODO_EMAIL": "me@example.com", "CLOCKODO_KEY": "k"},
        )

        assert result.response_body() == [{"id": 1}]
        name, body = invoker.calls[0]
        assert name == "clockodo-proxy"
        assert body["email"] == "me@example.com"
        assert body["apiKey"] == "k"

    def test_integration_node_missing_credentials(self):
        flow = _chain(_node("users", "clockodo", inputs={"action": "getUsers"}))

        result = FlowExecutor(proxy_invoker=FakeInvoker()).execute(flow)

        assert result.error_message == "Email and API token are required"

    def test_logger_node_writes_to_sink(self):
        rows = []

        def sink(row):
            rows.append(row)
            return f"row-{len(rows)}"

        flow = _chain(
            _node("trigger", "webhook-trigger"),
            _node("log", "logger", inputs={"message": "hello {{trigger.body.name}}", "logLevel": "warning"}),
        )

        result = FlowExecutor(log_sink=sink).execute(
            flow, request={"body": {"name": "Ada"}}, flow_id="flow-1", execution_id="exec-1",
        )

        assert result.context["log"]["logId"] == "row-1"
        assert rows[0]["flow_id"] == "flow-1"
        assert rows[0]["execution_id"] == "exec-1"
        assert rows[0]["node_id"] == "log"
        assert rows[0]["level"] == "warning"
        assert rows[0]["message"] == "hello Ada"


class TestMonitoringRows:
    """Test build_monitoring_rows."""

    @staticmethod
    def _entry(node_id, level, message, data=None):
        return FlowLogEntry(node_id=node_id, node_name=node_id.title(), type=level,
                            message=message, data=data, timestamp=1700000000000)

    def test_failed_run(self):
        result = FlowRunResult(
            execution_id="exec-1",
            status=FlowStatus.ERROR,
            error_message="boom",
            node_types={"api": "http-request"},
            logs=[
                self._entry("api", "info", "Executing api"),
                self._entry("api", "error", "boom"),
            ],
        )

        rows = build_monitoring_rows(result, "flow-1")

        assert len(rows) == 2
        assert rows[0]["level"] == "error"
        assert rows[0]["message"] == "[Api] boom"
        assert rows[0]["metadata"]["nodeType"] == "http-request"
        assert rows[1]["node_id"] is None
        assert rows[1]["message"] == "[Flow Execution] boom"

    def test_suspicious_success_outputs(self):
        result = FlowRunResult(
            execution_id="exec-2",
            status=FlowStatus.SUCCESS,
            partial_errors=[PartialError(node_id="x", node_name="X", error="e")],
            logs=[
                self._entry("a", "success", "Execution completed", {"message": "Action not implemented yet"}),
                self._entry("b", "success", "Execution completed", {"error": "quota exceeded"}),
                self._entry("c", "success", "Execution completed", {"success": False}),
                self._entry("d", "success", "Execution completed", {"message": "all good"}),
            ],
        )

        rows = build_monitoring_rows(result, "flow-1")

        assert [(row["node_id"], row["level"]) for row in rows] == [
            ("a", "warning"),
            ("b", "error"),
            ("c", "error"),
        ]
        assert rows[0]["message"] == "[A] Action not implemented yet"
        assert rows[1]["message"] == "[B] quota exceeded"
        assert rows[2]["message"] == "[C] Node returned failure"

    def test_clean_run_has_no_rows(self):
        result = FlowRunResult(
            execution_id="exec-3",
            status=FlowStatus.SUCCESS,
            logs=[self._entry("a", "success", "Execution completed", {"value": 1})],
        )

        assert build_monitoring_rows(result, "flow-1") == []
