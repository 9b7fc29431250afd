import logging
from typing import Dict, Optional

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from qr_order_scanner.core.config import Settings

logger = logging.getLogger(__name__)


def build_client(settings: Settings) -> Optional[Client]:
    if not settings.TWILIO_ACCOUNT_SID or not settings.TWILIO_AUTH_TOKEN:
        return None
    return Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)


def health_check(settings: Settings) -> Dict[str, str]:
    """check SMS integration config status."""
    if not settings.TWILIO_ACCOUNT_SID:
        return {"status": "misconfigured", "reason": "missing_account_sid"}
    if not settings.TWILIO_AUTH_TOKEN:
        return {"status": "misconfigured", "reason": "missing_auth_token"}
    if not settings.TWILIO_FROM_NUMBER:
        return {"status": "misconfigured", "reason": "missing_from_number"}
    return {
        "status": "configured",
        "account_sid": settings.TWILIO_ACCOUNT_SID[:8] + "...",
        "from_number": settings.TWILIO_FROM_NUMBER,
    }


def send_sms(settings: Settings, to_number: str, body: str, client: Optional[Client] = None) -> Dict[str, str]:
    """send SMS message to a phone number."""
    client = client or build_client(settings)
    if client is None:
        return {"status": "skipped", "reason": "sms_not_configured"}

    from_number = settings.TWILIO_FROM_NUMBER
    if not from_number:
        return {"status": "error", "reason": "missing_from_number"}

    try:
        message = client.messages.create(body=body, from_=from_number, to=to_number)
        return {"status": "sent", "sid": message.sid}
    except TwilioRestException as e:
        logger.error(f"Twilio rejected SMS to {to_number}: {e}")
        return {"status": "error", "reason": "twilio_api_error", "error": str(e)}
