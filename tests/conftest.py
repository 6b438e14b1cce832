"""Shared fixtures: isolated storage root, fresh users, sample books."""
import os
import tempfile

# settings are read at import time: point storage at a scratch dir first
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="bookster-tests-")
os.environ["OPENAI_API_KEY"] = ""
os.environ["ALLOW_OPEN_API"] = "0"

import shutil  # noqa: E402

import pytest  # noqa: E402

from bookster import storage, users  # noqa: E402
from bookster.exporters.errors import RenderError  # noqa: E402
from bookster.models import BookData, Chapter, ExportOptions  # noqa: E402

OWNER_KEY = "demo_key_owner"
USER_KEY = "demo_key_user"


@pytest.fixture(autouse=True)
def clean_storage():
    """Every test starts with empty storage and the two demo accounts."""
    shutil.rmtree(storage.BASE_DIR, ignore_errors=True)
    storage.ensure_dirs()
    users.USERS.clear()
    users.USERS_BY_KEY.clear()
    users.seed_demo_users()
    yield


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from bookster.main import app

    return TestClient(app)


@pytest.fixture
def owner_headers():
    return {"x-api-key": OWNER_KEY}


@pytest.fixture
def user_headers():
    return {"x-api-key": USER_KEY}


@pytest.fixture
def all_options():
    return ExportOptions(include_cover=True, include_table_of_contents=True, include_page_numbers=True)


@pytest.fixture
def bare_options():
    return ExportOptions(include_cover=False, include_table_of_contents=False, include_page_numbers=False)


@pytest.fixture
def book():
    return BookData(
        title="Remote Work Playbook",
        subtitle="Thriving away from the office",
        author="Jane Doe",
        description="A practical guide for distributed teams.",
        selected_template="modern",
        chapters=[
            Chapter(
                id="1",
                title="Getting Started",
                content="Getting Started\n\nSet up a quiet workspace.\n\nThe Major Changes Ahead\n\nExpect new habits.",
            ),
            Chapter(id="2", title="Staying Focused", content="Block your calendar.\n\nThe weather was nice."),
            Chapter(id="3", title="Team Rituals", content="## Team Rituals\n\nRun a weekly demo."),
        ],
    )


@pytest.fixture
def no_browser(monkeypatch):
    """PDF path behaves as if no Chromium could be launched."""
    from bookster.exporters import pdf

    def _fail(*args, **kwargs):
        raise RenderError("No suitable Chrome/Chromium installation found")

    monkeypatch.setattr(pdf, "print_html_to_pdf", _fail)


@pytest.fixture
def fake_browser(monkeypatch):
    """PDF path returns canned bytes and records the HTML it was given."""
    from bookster.exporters import pdf

    calls = []

    def _print(html, **kwargs):
        calls.append({"html": html, **kwargs})
        return b"%PDF-1.4 fake"

    monkeypatch.setattr(pdf, "print_html_to_pdf", _print)
    return calls
