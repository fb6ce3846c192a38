"""
Shared test fixtures.

FakeClient stands in for PeckerClient: each endpoint gets either a list of
responses (consumed in order, the last one repeats) or a callable that
builds a response from the form data. A response that is an exception
instance is raised instead of returned.
"""

import asyncio

import pytest


BASE_URL = "http://pecker.test/"


class FakeClient:
    """Scripted stand-in for PeckerClient"""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    def url_for(self, endpoint):
        return f"{BASE_URL}cp4/webInterface/{endpoint}"

    def calls_to(self, endpoint):
        return [data for name, data in self.calls if name == endpoint]

    async def post_form(self, endpoint, data):
        self.calls.append((endpoint, dict(data)))
        # Yield so concurrent callers interleave like real requests
        await asyncio.sleep(0)
        return self._respond(endpoint, data)

    async def post_multipart(self, endpoint, fields, file_field, file_name, content, content_type):
        data = dict(fields)
        data[file_field] = {
            "file_name": file_name,
            "content": content,
            "content_type": content_type,
        }
        self.calls.append((endpoint, data))
        await asyncio.sleep(0)
        return self._respond(endpoint, data)

    def _respond(self, endpoint, data):
        if endpoint not in self.responses:
            raise AssertionError(f"unexpected request to {endpoint}")

        script = self.responses[endpoint]
        if callable(script):
            response = script(data)
        elif len(script) > 1:
            response = script.pop(0)
        else:
            response = script[0]

        if isinstance(response, BaseException):
            raise response
        return response


class RecordingSleep:
    """Awaitable sleep replacement that only records its calls"""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def make_client():
    """Factory for FakeClient instances"""
    return FakeClient


@pytest.fixture
def recording_sleep():
    return RecordingSleep()
