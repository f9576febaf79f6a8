"""Seed users, webhooks and captured requests spread over the last few months."""
import json
import random
import sys
from datetime import timedelta

from sqlalchemy.orm import Session

from app.database import Base, SessionLocal, engine
from app.models import User, Webhook, WebhookData
from app.utils import utcnow


def seed(db: Session, num_users: int, requests_per_webhook: int, max_age_days: int = 60) -> int:
    """
    Insert sample data with received timestamps up to ``max_age_days`` old.

    Args:
        db: Database session
        num_users: Number of users to create (two webhooks each)
        requests_per_webhook: Captured requests per webhook
        max_age_days: Oldest capture age in days

    Returns:
        Number of captured requests inserted
    """
    events = ["order.created", "order.paid", "invoice.sent", "user.signup", "ping"]
    sources = ["stripe", "github", "shopify", "slack", "custom"]
    now = utcnow()
    inserted = 0

    for i in range(num_users):
        user = User(email=f"user{i+1}@example.com", name=f"User {i+1}")
        db.add(user)
        db.flush()

        for source in random.sample(sources, 2):
            webhook = Webhook(user_id=user.id, name=f"{source.title()} events", tags=[source])
            db.add(webhook)
            db.flush()

            for _ in range(requests_per_webhook):
                method = random.choice(["GET", "POST"])
                if method == "POST":
                    data = json.dumps({"event": random.choice(events), "amount": random.randint(1, 500)})
                else:
                    data = json.dumps({"source": source, "ping": "1"})
                db.add(
                    WebhookData(
                        webhook_id=webhook.id,
                        method=method,
                        headers=json.dumps({"content-type": "application/json", "user-agent": source}),
                        data=data,
                        size_bytes=len(data.encode("utf-8")),
                        received_at=now - timedelta(minutes=random.randint(0, max_age_days * 24 * 60)),
                    )
                )
                inserted += 1

    db.commit()
    print(f"✅ Seeded {num_users} users and {inserted:,} captured requests")
    return inserted


def main():
    """Parse arguments and seed the configured database."""
    if len(sys.argv) < 2:
        print("Usage: python -m scripts.seed_data <num_users> [requests_per_webhook]")
        print("Example: python -m scripts.seed_data 5 200")
        sys.exit(1)

    num_users = int(sys.argv[1])
    requests_per_webhook = int(sys.argv[2]) if len(sys.argv) > 2 else 100

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed(db, num_users, requests_per_webhook)
    finally:
        db.close()


if __name__ == "__main__":
    main()
