"""Email delivery through the Resend HTTP API."""
import asyncio
import html
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

import httpx

from app.errors import NotificationFailure

if TYPE_CHECKING:
    from app.services.retention import SweepResult

RESEND_API_URL = "https://api.resend.com/emails"

logger = logging.getLogger(__name__)


class ResendEmailClient:
    """Minimal Resend client."""

    def __init__(
        self,
        api_key: Optional[str],
        from_email: str,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.timeout = timeout
        self.transport = transport

    async def send_email(self, to: str, subject: str, html: str) -> Dict[str, Any]:
        """
        Send a single email.

        Args:
            to: Recipient address
            subject: Subject line
            html: HTML body

        Returns:
            Decoded Resend response (contains the message id)

        Raises:
            NotificationFailure: Missing API key, transport error or non-2xx response
        """
        if not self.api_key:
            raise NotificationFailure("Resend API key not configured")

        payload = {"from": self.from_email, "to": [to], "subject": subject, "html": html}
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(RESEND_API_URL, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise NotificationFailure(f"Email request failed: {e}") from e

        if response.status_code >= 300:
            raise NotificationFailure(
                f"Email sending failed with status {response.status_code}: {response.text}"
            )

        return response.json()


def format_bytes(size: int) -> str:
    """Human readable size, e.g. ``1.50 KB``."""
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    for unit in units:
        if value < 1024 or unit == units[-1]:
            return f"{value:.2f} {unit}"
        value /= 1024


def render_cleanup_report(result: "SweepResult") -> str:
    """Render the cleanup report sent to the administrator."""
    stats = sorted(result.user_stats, key=lambda s: s.data_count, reverse=True)
    rows = "".join(
        f"<tr><td>{html.escape(s.email)}</td><td>{s.webhook_count}</td>"
        f"<td>{s.data_count}</td><td>{format_bytes(s.total_size_bytes)}</td></tr>"
        for s in stats
    )
    total_webhooks = sum(s.webhook_count for s in stats)
    total_records = sum(s.data_count for s in stats)
    total_size = sum(s.total_size_bytes for s in stats)
    enforcement_note = ""
    if result.size_enforcement_error:
        enforcement_note = f"<p style=\"color: #b00;\">{html.escape(result.size_enforcement_error)}</p>"

    return f"""
    <html>
      <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; color: #333;">
        <h1>Webhook Data Cleanup Report</h1>
        <p>
          Users: <strong>{len(stats)}</strong> &middot;
          Webhooks: <strong>{total_webhooks}</strong> &middot;
          Records before cleanup: <strong>{total_records}</strong> &middot;
          Storage: <strong>{format_bytes(total_size)}</strong>
        </p>
        <p>Deleted {result.deleted_count} records older than {result.cutoff.date().isoformat()}.</p>
        <p>Deleted {result.size_enforced_count} records to enforce per-user storage limits.</p>
        {enforcement_note}
        <p><strong>Total deleted: {result.total_deleted}</strong></p>
        <table>
          <thead><tr><th>User</th><th>Webhooks</th><th>Records</th><th>Storage</th></tr></thead>
          <tbody>{rows}</tbody>
        </table>
      </body>
    </html>
    """


class CleanupReportNotifier:
    """Sends the post-sweep report to the configured admin address."""

    def __init__(self, client: ResendEmailClient):
        self.client = client

    def send_cleanup_report(self, to: str, result: "SweepResult") -> None:
        subject = (
            f"🧹 Webhook cleanup | {result.total_deleted} deleted | "
            f"cutoff {result.cutoff.date().isoformat()}"
        )
        asyncio.run(self.client.send_email(to, subject, render_cleanup_report(result)))
        logger.info(f"📧 Cleanup report sent to {to}")
