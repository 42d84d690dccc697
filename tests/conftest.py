"""Pytest configuration and fixtures."""
import json
import os

import pytest
import requests

# Set test environment variables
os.environ["FLOWHUB_ENV"] = "test"
os.environ["FLOWHUB_LOG_FORMAT"] = "text"
os.environ["FLOWHUB_REDIS_URL"] = "redis://localhost:6379/15"  # Test DB
os.environ["FLOWHUB_BROKER_URL"] = "memory://"
os.environ.pop("FLOWHUB_PROXY_BASE_URL", None)


class FakeRedis:
    """In-memory stand-in for the handful of Redis commands the stores use."""

    def __init__(self):
        self.values = {}
        self.lists = {}

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value, **kwargs):
        self.values[key] = value
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            removed += int(self.values.pop(key, None) is not None)
            removed += int(self.lists.pop(key, None) is not None)
        return removed

    def rpush(self, key, *values):
        self.lists.setdefault(key, []).extend(values)
        return len(self.lists[key])

    def lpush(self, key, *values):
        items = self.lists.setdefault(key, [])
        for value in values:
            items.insert(0, value)
        return len(items)

    @staticmethod
    def _bounds(items, start, stop):
        size = len(items)
        if start < 0:
            start = max(size + start, 0)
        if stop < 0:
            stop = size + stop
        return start, stop + 1

    def lrange(self, key, start, stop):
        items = self.lists.get(key, [])
        begin, end = self._bounds(items, start, stop)
        return list(items[begin:end])

    def ltrim(self, key, start, stop):
        items = self.lists.get(key, [])
        begin, end = self._bounds(items, start, stop)
        self.lists[key] = items[begin:end]
        return True


@pytest.fixture(autouse=True)
def reset_singletons():
    """Drop cached settings, proxy registry and node registry around every test."""
    from flowhub.config import reset_settings
    from flowhub.proxies import reset_proxy_registry
    from node_registry import reset_global_registry

    reset_settings()
    reset_proxy_registry()
    reset_global_registry()
    yield
    reset_settings()
    reset_proxy_registry()
    reset_global_registry()


@pytest.fixture
def fake_redis(monkeypatch):
    """Route every store to one in-memory FakeRedis."""
    client = FakeRedis()
    monkeypatch.setattr("flowhub.storage.base.redis.from_url", lambda *args, **kwargs: client)
    return client


@pytest.fixture
def make_response():
    """Build real requests.Response objects for patched HTTP calls."""

    def build(status_code=200, json_body=None, text=None, reason=None, headers=None):
        response = requests.Response()
        response.status_code = status_code
        response.reason = reason if reason is not None else ("OK" if status_code < 400 else "Error")
        if text is None:
            text = json.dumps(json_body) if json_body is not None else ""
        response._content = text.encode("utf-8")
        response.encoding = "utf-8"
        response.headers.update(headers or {"Content-Type": "application/json"})
        response.url = "https://api.example.test/"
        return response

    return build


@pytest.fixture
def mock_request(make_response):
    """Patch the single requests entry point used by HttpClient."""
    from unittest.mock import patch

    with patch("node_sdk.http.requests.request") as mocked:
        mocked.return_value = make_response(200, {})
        yield mocked


@pytest.fixture
def simple_flow():
    """Webhook -> response flow echoing the request body."""
    return {
        "nodes": [
            {"id": "trigger", "data": {"type": "webhook-trigger", "label": "Webhook"}},
            {
                "id": "reply",
                "data": {
                    "type": "response",
                    "label": "Reply",
                    "inputs": {
                        "statusCode": 201,
                        "body": {"received": "{{trigger.body.name}}"},
                        "customHeaders": {"X-Flow": "simple"},
                    },
                },
            },
        ],
        "edges": [{"source": "trigger", "target": "reply"}],
    }
