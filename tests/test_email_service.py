"""Tests for the cleanup report email."""
import json
from datetime import datetime

import httpx
import pytest

from app.errors import NotificationFailure
from app.services.email_service import (
    RESEND_API_URL,
    CleanupReportNotifier,
    ResendEmailClient,
    format_bytes,
    render_cleanup_report,
)
from app.services.retention import SweepResult, UserStats


@pytest.fixture
def sweep_result():
    return SweepResult(
        status="completed",
        cutoff=datetime(2026, 9, 18, 3, 0, 0),
        deleted_count=12,
        size_enforced_count=3,
        user_stats=[
            UserStats(user_id="u1", email="light@example.com", webhook_count=1, data_count=2, total_size_bytes=100),
            UserStats(user_id="u2", email="heavy@example.com", webhook_count=3, data_count=40, total_size_bytes=2048),
        ],
    )


def test_format_bytes():
    assert format_bytes(0) == "0 B"
    assert format_bytes(512) == "512.00 B"
    assert format_bytes(1536) == "1.50 KB"
    assert format_bytes(5 * 1024 * 1024) == "5.00 MB"


def test_report_lists_heaviest_user_first(sweep_result):
    report = render_cleanup_report(sweep_result)

    assert report.index("heavy@example.com") < report.index("light@example.com")
    assert "Total deleted: 15" in report
    assert "2026-09-18" in report


def test_notifier_posts_to_resend(sweep_result):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"id": "msg_123"})

    client = ResendEmailClient("re_test", "noreply@example.com", transport=httpx.MockTransport(handler))

    CleanupReportNotifier(client).send_cleanup_report("admin@example.com", sweep_result)

    assert len(requests) == 1
    request = requests[0]
    assert str(request.url) == RESEND_API_URL
    assert request.headers["authorization"] == "Bearer re_test"
    body = json.loads(request.content)
    assert body["to"] == ["admin@example.com"]
    assert body["from"] == "noreply@example.com"
    assert "15 deleted" in body["subject"]


def test_error_response_raises_notification_failure(sweep_result):
    transport = httpx.MockTransport(lambda request: httpx.Response(422, json={"message": "bad from"}))
    client = ResendEmailClient("re_test", "noreply@example.com", transport=transport)

    with pytest.raises(NotificationFailure, match="422"):
        CleanupReportNotifier(client).send_cleanup_report("admin@example.com", sweep_result)


def test_transport_error_raises_notification_failure(sweep_result):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = ResendEmailClient("re_test", "noreply@example.com", transport=httpx.MockTransport(handler))

    with pytest.raises(NotificationFailure, match="connection refused"):
        CleanupReportNotifier(client).send_cleanup_report("admin@example.com", sweep_result)


def test_missing_api_key_raises(sweep_result):
    client = ResendEmailClient(None, "noreply@example.com")

    with pytest.raises(NotificationFailure, match="not configured"):
        CleanupReportNotifier(client).send_cleanup_report("admin@example.com", sweep_result)
