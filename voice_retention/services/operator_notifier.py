"""Operator alert hand-off for retention runs that need attention.

Delivery channels (e-mail, paging) live outside this service. The
default notifier emits the alert as one structured ERROR record that
log-based alerting routes to the on-call operator.
"""

from voice_retention.core.retention.models import OperatorAlert
from voice_retention.logging_config import get_logger

logger = get_logger(__name__)


def format_alert_message(alert: OperatorAlert) -> str:
    """Render a plain-text alert body for human-facing channels."""
    lines = [
        alert.subject,
        "",
        f"Run at: {alert.timestamp.isoformat()}",
        f"Consents found: {alert.records_found}",
        f"Consents deleted: {alert.records_deleted}",
    ]

    if alert.failures:
        lines.append("")
        lines.append(f"Failed consents ({len(alert.failures)}), retried next run:")
        lines.extend(f"  - {f.record_id}: {f.reason}" for f in alert.failures)

    if alert.artifact_failures:
        lines.append("")
        lines.append(
            f"Dependent artifacts left behind ({len(alert.artifact_failures)}), "
            "manual cleanup required:"
        )
        lines.extend(
            f"  - consent {f.record_id} artifact {f.artifact_id or '?'}: {f.reason}"
            for f in alert.artifact_failures
        )

    return "\n".join(lines)


class LoggingOperatorNotifier:
    """Emits operator alerts to the structured log."""

    async def notify(self, alert: OperatorAlert) -> None:
        logger.error(
            alert.subject,
            alert=alert.model_dump(mode="json"),
            message_text=format_alert_message(alert),
        )
