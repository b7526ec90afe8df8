"""Test fixtures for the pass-cli integration layer."""

from __future__ import annotations

import json

import pytest

from passdeck.passcli.client import PassCliClient
from passdeck.passcli.errors import PassCliError


class FakeRunner:
    """Stands in for ProcessRunner: canned output keyed by the argument tuple.

    A response that is an exception instance is raised instead of returned.
    """

    def __init__(self, responses: dict[tuple[str, ...], object] | None = None):
        self.responses = dict(responses or {})
        self.calls: list[list[str]] = []

    def add(self, args: list[str] | tuple[str, ...], response: object) -> None:
        self.responses[tuple(args)] = response

    async def run(self, args):
        self.calls.append(list(args))
        response = self.responses.get(tuple(args))
        if response is None:
            raise AssertionError(f"unexpected pass-cli call: {args}")
        if isinstance(response, PassCliError):
            raise response
        if isinstance(response, str):
            return response
        return json.dumps(response)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def client(fake_runner):
    return PassCliClient(fake_runner)


@pytest.fixture
def vault_list_payload():
    return {
        "vaults": [
            {"share_id": "share-1", "name": "Personal", "itemCount": 3, "role": "Owner"},
            {"shareId": "share-2", "name": "Work", "items_count": "2", "role": "viewer"},
        ]
    }


@pytest.fixture
def login_item_payload():
    return {
        "id": "item-1",
        "share_id": "share-1",
        "state": "Active",
        "content": {
            "title": "GitHub",
            "note": "  personal account  ",
            "content": {
                "Login": {
                    "username": "octocat",
                    "email": "",
                    "password": "hunter2",
                    "urls": ["https://github.com", "", "  "],
                    "totp_uri": "otpauth://totp/GitHub?secret=ABC",
                }
            },
            "extra_fields": [
                {"name": "PIN", "type": "hidden", "value": "1234"},
                {"name": "", "value": "dropped"},
                {"name": "Recovery", "value": None},
            ],
        },
    }


@pytest.fixture
def item_list_payload(login_item_payload):
    return {
        "items": [
            login_item_payload,
            {
                "id": "item-2",
                "share_id": "share-1",
                "state": "Trashed",
                "content": {"title": "Old", "content": {"Note": None}},
            },
            {
                "itemId": "item-3",
                "shareId": "share-1",
                "content": {"title": "Home Wifi", "content": {"Wifi": {"ssid": "home"}}},
            },
        ]
    }
