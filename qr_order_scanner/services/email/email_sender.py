import logging
from typing import Any, Dict, Optional

import resend

from qr_order_scanner.core.config import Settings

logger = logging.getLogger(__name__)


def missing_config(settings: Settings) -> Optional[str]:
    """name of the first missing Resend setting, or None."""
    if not settings.RESEND_API_KEY:
        return "missing_api_key"
    if not settings.FROM_EMAIL:
        return "missing_from_email"
    return None


def is_configured(settings: Settings) -> bool:
    return missing_config(settings) is None


def send_html(
    settings: Settings,
    to: str,
    subject: str,
    html: str,
    tags: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """one HTML email through Resend; {"status": "skipped"} when Resend isn't set up."""
    if not is_configured(settings):
        return {"status": "skipped", "reason": "resend_not_configured"}

    resend.api_key = settings.RESEND_API_KEY
    params: Dict[str, Any] = {
        "from": f"{settings.FROM_NAME} <{settings.FROM_EMAIL}>",
        "to": [to],
        "subject": subject,
        "html": html,
    }
    if tags:
        params["tags"] = [{"name": name, "value": str(value)} for name, value in tags.items()]

    try:
        sent = resend.Emails.send(params)
    except Exception as e:
        logger.error(f"Resend rejected mail to {to}: {e}")
        return {"status": "error", "reason": "send_failed", "error": str(e)}

    logger.info(f"Mail '{subject}' sent to {to}")
    return {
        "status": "sent",
        "message_id": sent.get("id") if isinstance(sent, dict) else None,
        "recipient": to,
        "subject": subject,
    }


def health_check(settings: Settings) -> Dict[str, str]:
    reason = missing_config(settings)
    if reason:
        return {"status": "misconfigured", "reason": reason}
    return {"status": "configured", "from_email": settings.FROM_EMAIL, "from_name": settings.FROM_NAME}
