"""
Unit Tests for client IP resolution and error response helpers.

Usage:
    cd backend && pytest tests/test_security.py -v
"""

import json
import sys
import os
from typing import Dict, Optional

# Add backend to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from starlette.requests import Request

from richat_funding.security import TRUSTED_PROXY_COUNT, error_response, get_client_ip


def make_request(headers: Optional[Dict[str, str]] = None, peer: str = "10.0.0.5") -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/funding-opportunities",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": (peer, 52000),
        "query_string": b"",
    }
    return Request(scope)


class TestGetClientIp:
    def test_socket_peer_without_headers(self):
        assert get_client_ip(make_request()) == "10.0.0.5"

    def test_forwarded_for_skips_trusted_proxies(self):
        hops = ["198.51.100.7", "203.0.113.9"] + ["10.1.1.1"] * TRUSTED_PROXY_COUNT
        request = make_request({"X-Forwarded-For": ", ".join(hops)})
        assert get_client_ip(request) == "203.0.113.9"

    def test_malformed_forwarded_for_falls_back(self):
        request = make_request({"X-Forwarded-For": "not-an-ip", "X-Real-IP": "192.0.2.4"})
        assert get_client_ip(request) == "192.0.2.4"

    def test_unparseable_peer_is_unknown(self):
        assert get_client_ip(make_request(peer="testclient")) == "unknown"


class TestErrorResponse:
    def test_body_and_header_share_request_id(self):
        request = make_request()
        request.state.request_id = "req-123"

        response = error_response(request, 404, "Client not found")

        assert response.status_code == 404
        assert json.loads(response.body) == {"message": "Client not found", "requestId": "req-123"}
        assert response.headers["X-Request-ID"] == "req-123"

    def test_extra_fields_are_merged(self):
        response = error_response(make_request(), 400, "Invalid data", errors=[])
        body = json.loads(response.body)
        assert body["errors"] == []
        assert body["requestId"]
