# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Operator alert client.
Posts operational problems (snapshot failures) to an operator webhook.
Chat users never see these.
"""

import httpx

from chorebot.core.config import settings
from chorebot.core.logging import get_logger
from chorebot.metrics.prometheus import OPERATOR_ALERTS

logger = get_logger(__name__)


class OperatorAlertClient:
    """Fire-and-forget alert sender."""

    def __init__(self, webhook_url: str | None = None, timeout: float | None = None) -> None:
        self.webhook_url = settings.OPERATOR_WEBHOOK_URL if webhook_url is None else webhook_url
        self.timeout = settings.OPERATOR_TIMEOUT if timeout is None else timeout

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    def send(self, message: str, severity: str = "warning") -> bool:
        """Post an alert. Failures are logged but never raised."""
        if not self.enabled:
            logger.warning("Operator alert (no webhook configured): %s", message)
            OPERATOR_ALERTS.labels(result="skipped").inc()
            return False
        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.post(
                    self.webhook_url,
                    json={
                        "service": settings.SERVICE_NAME,
                        "severity": severity,
                        "message": message,
                    },
                )
            resp.raise_for_status()
            OPERATOR_ALERTS.labels(result="sent").inc()
            logger.info("Operator alert sent: severity=%s, status=%d",
                        severity, resp.status_code)
            return True
        except httpx.HTTPError as exc:
            OPERATOR_ALERTS.labels(result="failed").inc()
            logger.warning("Operator alert failed: %s", exc)
            return False
