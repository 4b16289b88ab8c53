"""Unit tests for the structured log invite notifier."""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from domain.entities.invite import OrgInvite, PlatformInvite
from domain.entities.org import OrgRole
from infrastructure.notifications import log_notifier
from infrastructure.notifications.log_notifier import LogInviteNotifier


@pytest.fixture
def logger(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    mock = MagicMock()
    monkeypatch.setattr(log_notifier, "logger", mock)
    return mock


async def test_org_invite_event(logger: MagicMock) -> None:
    invite = OrgInvite(
        inviter_id=uuid4(),
        org_id=uuid4(),
        invitee_role=OrgRole.EDITOR,
        invitee_id=uuid4(),
        org_name="Acme",
    )

    await LogInviteNotifier().org_invite_created(invite, "/orgs/acme")

    logger.info.assert_called_once()
    assert logger.info.call_args.args[0] == "org_invite_notification"
    fields = logger.info.call_args.kwargs
    assert fields["role"] == "editor"
    assert fields["org_name"] == "Acme"
    assert fields["redirect_path"] == "/orgs/acme"


async def test_platform_invite_event(logger: MagicMock) -> None:
    invite = PlatformInvite(invitee_email="new@example.com")

    await LogInviteNotifier().platform_invite_created(invite, "/signup", "Acme")

    fields = logger.info.call_args.kwargs
    assert logger.info.call_args.args[0] == "platform_invite_notification"
    assert fields["invitee_email"] == "new@example.com"
    assert fields["org_name"] == "Acme"
