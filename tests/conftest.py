"""
Pytest configuration and shared fixtures.
"""

import json

import pytest
from unittest.mock import Mock
from typing import Any, Dict, List, Optional

import requests
from requests.structures import CaseInsensitiveDict
from urllib3 import HTTPHeaderDict

from sap_b1.core.models import Credentials, ServiceLayerConfig
from sap_b1.core.session import SessionManager


BASE_URL = "https://b1.test.example.com:50000/b1s/v1"


def build_response(
    status: int = 200,
    payload: Any = None,
    text: Optional[str] = None,
    set_cookies: Optional[List[str]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> requests.Response:
    """Build a real ``requests.Response`` without touching the network."""
    r = requests.Response()
    r.status_code = status
    r.encoding = "utf-8"
    if payload is not None:
        r._content = json.dumps(payload).encode("utf-8")
    else:
        r._content = (text or "").encode("utf-8")

    r.headers = CaseInsensitiveDict(headers or {})
    raw_headers = HTTPHeaderDict()
    for cookie in set_cookies or []:
        raw_headers.add("Set-Cookie", cookie)
    r.raw = Mock()
    r.raw.headers = raw_headers
    return r


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def credentials():
    return Credentials("SBODEMOUS", "manager", "secret")


@pytest.fixture
def config(credentials):
    return ServiceLayerConfig(base_url=BASE_URL, credentials=credentials)


@pytest.fixture
def http_mock():
    """Mock requests.Session; tests feed responses through request.side_effect."""
    http = Mock()
    http.cookies = Mock()
    return http


@pytest.fixture
def login_response():
    return build_response(
        200,
        payload={"SessionId": "abc-123", "Version": "1000190", "SessionTimeout": 30},
        set_cookies=[
            "B1SESSION=abc-123;HttpOnly;",
            "ROUTEID=.node1; path=/b1s",
        ],
    )


@pytest.fixture
def sessions(config, http_mock):
    return SessionManager(config, http_session=http_mock)


@pytest.fixture
def sample_items_page():
    """Sample Service Layer collection page with a continuation link."""
    return {
        "odata.metadata": f"{BASE_URL}/$metadata#Items",
        "value": [
            {"ItemCode": "A001", "ItemName": "Widget"},
            {"ItemCode": "A002", "ItemName": "Gadget"},
        ],
        "odata.nextLink": "Items?$skip=2",
    }


@pytest.fixture
def changeset_response_text():
    """Sample transactional $batch response."""
    return "\r\n".join([
        "--batchresponse_a1b2c3",
        "Content-Type: multipart/mixed;boundary=changesetresponse_d4e5f6",
        "",
        "--changesetresponse_d4e5f6",
        "Content-Type: application/http",
        "Content-Transfer-Encoding: binary",
        "Content-ID: 1",
        "",
        "HTTP/1.1 201 Created",
        "Content-Type: application/json;odata.metadata=minimal;charset=utf-8",
        f"Location: {BASE_URL}/BusinessPartners('C0001')",
        "",
        "{",
        '   "odata.metadata" : "$metadata#BusinessPartners/@Element",',
        '   "CardCode" : "C0001",',
        '   "CardName" : "Acme Corp",',
        '   "BPAddresses" : [',
        "      {",
        '         "AddressName" : "Main"',
        "      }",
        "   ]",
        "}",
        "--changesetresponse_d4e5f6",
        "Content-Type: application/http",
        "Content-Transfer-Encoding: binary",
        "Content-ID: 2",
        "",
        "HTTP/1.1 204 No Content",
        "",
        "",
        "--changesetresponse_d4e5f6--",
        "--batchresponse_a1b2c3--",
        "",
    ])


@pytest.fixture
def batch_response_text():
    """Sample non-transactional $batch response with one failed part."""
    return "\n".join([
        "--batchresponse_0f1e2d",
        "Content-Type: application/http",
        "Content-Transfer-Encoding: binary",
        "",
        "HTTP/1.1 200 OK",
        "Content-Type: application/json;odata.metadata=minimal;charset=utf-8",
        "",
        "{",
        '   "ItemCode" : "A001",',
        '   "ItemName" : "Widget"',
        "}",
        "--batchresponse_0f1e2d",
        "Content-Type: application/http",
        "Content-Transfer-Encoding: binary",
        "",
        "HTTP/1.1 404 Not Found",
        "Content-Type: application/json;charset=utf-8",
        "",
        "{",
        '   "error" : {',
        '      "code" : -2028,',
        '      "message" : {',
        '         "lang" : "en-us",',
        '         "value" : "No matching records found (ODBC -2028)"',
        "      }",
        "   }",
        "}",
        "--batchresponse_0f1e2d--",
        "",
    ])
