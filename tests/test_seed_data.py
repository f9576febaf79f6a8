"""Tests for the sample data seeder."""
from datetime import timedelta

from app.models import User, Webhook, WebhookData
from app.utils import utcnow
from scripts.seed_data import seed


def test_seed_creates_aged_captures(db_session):
    inserted = seed(db_session, num_users=2, requests_per_webhook=5, max_age_days=60)

    assert inserted == 20
    assert db_session.query(User).count() == 2
    assert db_session.query(Webhook).count() == 4

    rows = db_session.query(WebhookData).all()
    assert len(rows) == 20
    oldest_allowed = utcnow() - timedelta(days=60, minutes=1)
    for row in rows:
        assert row.method in ("GET", "POST")
        assert row.size_bytes == len(row.data.encode("utf-8"))
        assert row.received_at >= oldest_allowed
