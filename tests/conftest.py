"""
Pytest fixtures and configuration for form_engine tests.
Provides sample schema documents and shared fixtures.
"""

import copy

import pytest

from form_engine.runtime.registry import BLOCKS_DIR
from form_engine.runtime.schema_loader import load_schema, load_schema_file
from form_engine.startup import reset_for_testing


MAIL_SCHEMA_DOC = {
    "blockType": "mail",
    "fields": [
        {"id": "operation"},
        {"id": "credential"},
        {
            "id": "folder",
            "dependsOn": ["credential"],
            "condition": {"field": "operation", "value": "read"},
        },
        {
            "id": "manualFolder",
            "canonicalParamId": "folder",
            "mode": "advanced",
            "condition": {"field": "operation", "value": "read"},
        },
        {"id": "limit", "valueKind": "number"},
        {
            "id": "mediaIds",
            "valueKind": "array",
            "condition": {"field": "operation", "value": "send"},
        },
        {"id": "id", "condition": {"field": "operation", "value": "delete"}},
        {
            "id": "confirm",
            "valueKind": "boolean",
            "condition": {"field": "operation", "value": "delete"},
        },
    ],
    "operation": {
        "discriminatorField": "operation",
        "mapping": {"read": "read", "send": "A", "delete": "B"},
        "unknownValuePolicy": "strict-throw",
    },
    "requirements": [
        {"actionId": "read", "optional": ["limit"], "defaults": {"folder": "INBOX"}},
        {"actionId": "A", "optional": ["mediaIds", "limit"]},
        {"actionId": "B", "required": ["id", "confirm"]},
    ],
}

FEED_SCHEMA_DOC = {
    "blockType": "feed",
    "fields": [
        {"id": "limit", "valueKind": "number"},
        {"id": "tags", "valueKind": "array"},
    ],
    "requirements": [
        {"actionId": "feed", "optional": ["limit", "tags"]},
    ],
}


@pytest.fixture(autouse=True)
def _reset_engine_state():
    """Drop cached settings and the process-wide registry between tests."""
    reset_for_testing()
    yield
    reset_for_testing()


@pytest.fixture
def mail_doc():
    """Mail-like schema document (fresh copy, safe to mutate)."""
    return copy.deepcopy(MAIL_SCHEMA_DOC)


@pytest.fixture
def mail_schema(mail_doc):
    """Loaded mail-like schema with read/send/delete actions."""
    return load_schema(mail_doc)


@pytest.fixture
def feed_doc():
    """Single-action schema document without an operation rule."""
    return copy.deepcopy(FEED_SCHEMA_DOC)


@pytest.fixture
def feed_schema(feed_doc):
    return load_schema(feed_doc)


@pytest.fixture(scope="session")
def gmail_schema():
    return load_schema_file(BLOCKS_DIR / "gmail.yaml")


@pytest.fixture(scope="session")
def github_schema():
    return load_schema_file(BLOCKS_DIR / "github.yaml")


@pytest.fixture(scope="session")
def reddit_schema():
    return load_schema_file(BLOCKS_DIR / "reddit.yaml")
