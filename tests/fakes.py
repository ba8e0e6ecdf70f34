# SPDX-License-Identifier: Apache-2.0

import json

API_URL = "https://api.test.abcd.p1.openshiftapps.com:6443"
ROLE_ARN = "arn:aws:iam::123456789012:role/test-role"


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None, headers=None):
        self.status_code = status_code
        self.payload = payload
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text
        self.headers = headers or {}

    def json(self):
        if self.payload is None:
            raise ValueError("No JSON")
        return self.payload


class FakeSession:
    """Routes requests to a handler(method, url, **kwargs) and records them."""

    def __init__(self, handler=None):
        self.handler = handler or (lambda method, url, **kwargs: FakeResponse(201))
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        return self.handler(method, url, **kwargs)

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)

    def close(self):
        pass

    def posted(self):
        return [call for call in self.calls if call[0] == "POST"]
