"""Tests for milestone notifiers."""

from __future__ import annotations

import json
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from buildtrack.core.notifier import (
    NotificationError,
    NullNotifier,
    WebhookMilestoneNotifier,
    create_notifier,
)


def _response(status: int) -> MagicMock:
    response = MagicMock()
    response.status = status
    response.__enter__.return_value = response
    return response


class TestCreateNotifier:
    def test_without_url(self):
        assert isinstance(create_notifier(None), NullNotifier)

    def test_with_url(self):
        notifier = create_notifier("http://cm.local/hook", timeout=2.5)
        assert isinstance(notifier, WebhookMilestoneNotifier)
        assert notifier.timeout == 2.5


class TestWebhookMilestoneNotifier:
    @patch("buildtrack.core.notifier.urllib.request.urlopen")
    def test_posts_json(self, mock_urlopen):
        mock_urlopen.return_value = _response(204)
        WebhookMilestoneNotifier("http://cm.local/hook").notify_milestone_change("CM-1", "QA", "ok")

        request = mock_urlopen.call_args.args[0]
        assert request.get_method() == "POST"
        assert json.loads(request.data) == {
            "external_reference_id": "CM-1",
            "milestone": "QA",
            "comment": "ok",
        }

    @patch("buildtrack.core.notifier.urllib.request.urlopen")
    def test_unreachable(self, mock_urlopen):
        mock_urlopen.side_effect = urllib.error.URLError("refused")
        with pytest.raises(NotificationError, match="unreachable"):
            WebhookMilestoneNotifier("http://cm.local/hook").notify_milestone_change("CM-1", "QA", "")

    @patch("buildtrack.core.notifier.urllib.request.urlopen")
    def test_http_error(self, mock_urlopen):
        mock_urlopen.side_effect = urllib.error.HTTPError("http://cm.local/hook", 500, "err", {}, None)
        with pytest.raises(NotificationError, match="HTTP 500"):
            WebhookMilestoneNotifier("http://cm.local/hook").notify_milestone_change("CM-1", "QA", "")
