"""Data retention sweep for captured webhook requests."""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Iterator, List, Optional, Protocol

import redis
from redis.exceptions import LockError
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import RetentionConfig, get_settings
from app.errors import RetentionStoreFailure
from app.models.user import User
from app.models.webhook import Webhook
from app.models.webhook_data import WebhookData
from app.services.email_service import CleanupReportNotifier, ResendEmailClient
from app.services.webhook_cache import get_redis_client
from app.utils import utcnow

DELETE_CHUNK_SIZE = 500

logger = logging.getLogger(__name__)


@dataclass
class UserStats:
    """Per-user usage snapshot taken before deletion."""

    user_id: str
    email: str
    webhook_count: int = 0
    data_count: int = 0
    total_size_bytes: int = 0


@dataclass
class SweepResult:
    """Outcome of one sweep invocation."""

    status: str  # completed, failed, skipped
    cutoff: datetime
    deleted_count: int = 0
    size_enforced_count: int = 0
    user_stats: List[UserStats] = field(default_factory=list)
    error: Optional[str] = None
    notified: bool = False
    notification_error: Optional[str] = None
    size_enforcement_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "completed"

    @property
    def total_deleted(self) -> int:
        return self.deleted_count + self.size_enforced_count


class CleanupNotifier(Protocol):
    def send_cleanup_report(self, to: str, result: SweepResult) -> None:
        ...


class SweepGuard:
    """Single-flight lock held in Redis for the duration of a sweep.

    If Redis cannot be reached the sweep runs unguarded; deleting by age is
    safe to repeat.
    """

    def __init__(self, redis_client: redis.Redis, name: str = "retention", ttl_seconds: int = 900):
        self.redis = redis_client
        self.key = f"lock:sweep:{name}"
        self.ttl_seconds = ttl_seconds

    @contextmanager
    def hold(self) -> Iterator[bool]:
        """Yield True when this caller may run, False when another sweep holds the lock."""
        lock = self.redis.lock(self.key, timeout=self.ttl_seconds, blocking=False)
        try:
            acquired = lock.acquire()
        except redis.RedisError as e:
            logger.warning(f"⚠️ Sweep lock unavailable, running unguarded: {e}")
            yield True
            return

        if not acquired:
            yield False
            return

        try:
            yield True
        finally:
            try:
                lock.release()
            except LockError as e:
                logger.warning(f"⚠️ Sweep lock expired before release: {e}")
            except redis.RedisError as e:
                logger.warning(f"⚠️ Failed to release sweep lock, it will expire: {e}")


class RetentionSweep:
    """Deletes captured requests older than the retention threshold.

    Each run is a function of ``(now, retention_days)`` against the current
    table contents. Store failures are reported in the result, never raised.
    """

    def __init__(
        self,
        db: Session,
        config: RetentionConfig,
        notifier: Optional[CleanupNotifier] = None,
        guard: Optional[SweepGuard] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.config = config
        self.notifier = notifier
        self.guard = guard
        self.clock = clock

    def cutoff_for(self, now: datetime) -> datetime:
        return now - timedelta(days=self.config.retention_days)

    def run(self, now: Optional[datetime] = None) -> SweepResult:
        """
        Run one sweep.

        Args:
            now: Reference time (naive UTC); defaults to the current time

        Returns:
            SweepResult with status completed, failed or skipped
        """
        cutoff = self.cutoff_for(now or self.clock())

        with self._hold() as acquired:
            if not acquired:
                logger.warning("⏭️ Retention sweep already running, skipping")
                return SweepResult(
                    status="skipped", cutoff=cutoff, error="Retention sweep already running"
                )

            result = self._sweep(cutoff)
            if result.ok and result.total_deleted > 0:
                self._notify(result)
            return result

    @contextmanager
    def _hold(self) -> Iterator[bool]:
        if self.guard is None:
            yield True
            return
        with self.guard.hold() as acquired:
            yield acquired

    def _sweep(self, cutoff: datetime) -> SweepResult:
        logger.info(f"🧹 Starting cleanup of data older than {cutoff.isoformat()}")
        result = SweepResult(status="completed", cutoff=cutoff)

        try:
            result.user_stats = self.collect_user_stats()
            result.deleted_count = self.delete_expired(cutoff)
            logger.info(
                f"🧹 Cleanup completed: deleted {result.deleted_count} records "
                f"older than {cutoff.isoformat()}"
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            failure = RetentionStoreFailure(f"Retention sweep failed: {e}")
            logger.error(f"🚨 {failure}", exc_info=True)
            result.status = "failed"
            result.error = str(failure)
            return result

        # The age delete is committed; a cap failure is reported alongside it.
        if self.config.max_user_storage_bytes > 0:
            try:
                self.enforce_storage_cap(result, self.config.max_user_storage_bytes)
                if result.size_enforced_count:
                    logger.info(
                        f"📦 Size enforcement deleted {result.size_enforced_count} additional records"
                    )
            except SQLAlchemyError as e:
                self.db.rollback()
                failure = RetentionStoreFailure(f"Size enforcement failed: {e}")
                logger.error(f"🚨 {failure}", exc_info=True)
                result.size_enforcement_error = str(failure)

        return result

    def collect_user_stats(self) -> List[UserStats]:
        """Webhook count, captured request count and bytes per user."""
        stats = {
            user_id: UserStats(user_id=user_id, email=email)
            for user_id, email in self.db.query(User.id, User.email).all()
        }

        webhook_counts = (
            self.db.query(Webhook.user_id, func.count(Webhook.id))
            .group_by(Webhook.user_id)
            .all()
        )
        for user_id, count in webhook_counts:
            if user_id in stats:
                stats[user_id].webhook_count = count

        for user_id, count, size in self._usage_by_user():
            if user_id in stats:
                stats[user_id].data_count = count
                stats[user_id].total_size_bytes = int(size or 0)

        return list(stats.values())

    def delete_expired(self, cutoff: datetime) -> int:
        """Delete every row received strictly before ``cutoff`` in one statement."""
        result = self.db.execute(
            delete(WebhookData)
            .where(WebhookData.received_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount or 0

    def enforce_storage_cap(self, result: SweepResult, max_bytes: int) -> None:
        """Delete each over-quota user's oldest rows until usage is within ``max_bytes``.

        Each user is committed separately and counted into ``result`` as it goes.
        """
        for user_id, _count, size in self._usage_by_user():
            usage = int(size or 0)
            if usage <= max_bytes:
                continue

            logger.info(f"🗑️ User {user_id} uses {usage} bytes (limit {max_bytes}), trimming oldest requests")
            ids = self._oldest_rows_to_free(user_id, usage - max_bytes)
            for start in range(0, len(ids), DELETE_CHUNK_SIZE):
                chunk = ids[start:start + DELETE_CHUNK_SIZE]
                self.db.execute(
                    delete(WebhookData)
                    .where(WebhookData.id.in_(chunk))
                    .execution_options(synchronize_session=False)
                )
            self.db.commit()
            result.size_enforced_count += len(ids)
            logger.info(f"✅ User {user_id} trimmed: deleted {len(ids)} requests")

    def _usage_by_user(self):
        return (
            self.db.query(
                Webhook.user_id,
                func.count(WebhookData.id),
                func.coalesce(func.sum(WebhookData.size_bytes), 0),
            )
            .join(Webhook, WebhookData.webhook_id == Webhook.id)
            .group_by(Webhook.user_id)
            .all()
        )

    def _oldest_rows_to_free(self, user_id: str, excess: int) -> List[str]:
        rows = self.db.execute(
            select(WebhookData.id, WebhookData.size_bytes)
            .join(Webhook, WebhookData.webhook_id == Webhook.id)
            .where(Webhook.user_id == user_id)
            .order_by(WebhookData.received_at.asc(), WebhookData.id.asc())
        )
        ids: List[str] = []
        freed = 0
        try:
            for row_id, size in rows:
                if freed >= excess:
                    break
                ids.append(row_id)
                freed += size
        finally:
            rows.close()
        return ids

    def _notify(self, result: SweepResult) -> None:
        to = self.config.admin_notify_address
        if not to or self.notifier is None:
            logger.info("📭 No admin notify address configured, skipping cleanup report")
            return

        try:
            self.notifier.send_cleanup_report(to, result)
            result.notified = True
        except Exception as e:
            logger.error(f"📧 Failed to send cleanup report to {to}: {e}")
            result.notification_error = str(e)


def build_retention_sweep(db: Session) -> RetentionSweep:
    """Wire a sweep from application settings."""
    settings = get_settings()
    notifier = CleanupReportNotifier(ResendEmailClient(settings.resend_api_key, settings.from_email))
    guard = SweepGuard(get_redis_client(), ttl_seconds=settings.sweep_lock_ttl_seconds)
    return RetentionSweep(
        db,
        RetentionConfig.from_settings(settings),
        notifier=notifier,
        guard=guard,
    )
