"""
WhatsApp integration through the Evolution API.

Sends protocolo messages to customers and drivers.
"""

import re
from typing import Optional, Protocol
import requests
import structlog

from config import settings
from exceptions import ExternalServiceError, NotificationError

logger = structlog.get_logger(__name__)

COUNTRY_CODE = "55"


class NotificationSink(Protocol):
    """Delivers a text message to a phone number."""

    def send(self, phone: str, message: str) -> bool: ...


def normalize_phone(phone: str) -> str:
    """
    Digits only, with the Brazilian country code.

    "(74) 99999-0000" -> "5574999990000"
    """
    digits = re.sub(r"\D", "", phone or "")
    if not digits.startswith(COUNTRY_CODE):
        digits = COUNTRY_CODE + digits
    return digits


class EvolutionWhatsAppSink:
    """
    NotificationSink that posts to the Evolution API sendText endpoint.

    Usage:
        sink = EvolutionWhatsAppSink()
        sink.send("74999990000", "Protocolo PROT-1 encerrado")
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        instance_name: Optional[str] = None,
        timeout: float = 15,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url if api_url is not None else settings.evolution_api_url
        self.api_key = api_key if api_key is not None else settings.evolution_api_key
        self.instance_name = instance_name if instance_name is not None else settings.evolution_instance_name
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.api_url and self.api_key and self.instance_name)

    def send(self, phone: str, message: str) -> bool:
        """
        Send a text message.

        Args:
            phone: Destination phone (any formatting)
            message: Text to send

        Returns:
            True if the API accepted the message

        Raises:
            ExternalServiceError: If the Evolution API is not configured
            NotificationError: If the API call fails
        """
        if not self.configured:
            logger.warning("whatsapp_not_configured")
            raise ExternalServiceError(
                service="evolution_api",
                message=(
                    "Evolution API is not configured. Set EVOLUTION_API_URL, "
                    "EVOLUTION_API_KEY and EVOLUTION_INSTANCE_NAME"
                )
            )

        number = normalize_phone(phone)
        url = f"{self.api_url.rstrip('/')}/message/sendText/{self.instance_name}"

        logger.info("sending_whatsapp_message", number=number, preview=message[:60])

        try:
            response = self.session.post(
                url,
                json={"number": number, "text": message},
                headers={"apikey": self.api_key},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error("whatsapp_request_failed", number=number, error=str(e))
            raise NotificationError(
                f"Failed to send WhatsApp message: {e}",
                details={"number": number}
            )

        logger.info("whatsapp_message_sent", number=number, status_code=response.status_code)
        return True
