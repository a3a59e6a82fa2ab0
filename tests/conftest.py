"""Shared pytest fixtures for mailsync tests."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from dotenv import load_dotenv

from mailsync.config import Config

load_dotenv()


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live IMAP server",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live IMAP server"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


@pytest.fixture
def mock_config():
    """Create a Config instance for testing."""
    return Config(
        host="imap.example.com",
        username="testuser",
        password="testpass",
    )


@pytest.fixture
def mock_mailbox_client(mock_config):
    """Create a mock MailboxClient instance for testing."""
    from mailsync.core.client import MailboxClient

    client = MagicMock(spec=MailboxClient)
    client.config = mock_config
    return client


@pytest.fixture
def make_maildir(tmp_path: Path):
    """Factory fixture creating a Maildir populated with message files.

    Usage::

        root = make_maildir(cur=["101:2,S"], new=["102"])
    """

    def _create(
        cur: list[str] | None = None,
        new: list[str] | None = None,
        name: str = "Maildir",
    ) -> Path:
        root = tmp_path / name
        for sub in ("cur", "new", "tmp"):
            (root / sub).mkdir(parents=True, exist_ok=True)
        for filename in cur or []:
            (root / "cur" / filename).write_text(
                "Subject: test\n\nbody\n", encoding="utf-8"
            )
        for filename in new or []:
            (root / "new" / filename).write_text(
                "Subject: test\n\nbody\n", encoding="utf-8"
            )
        return root

    return _create
