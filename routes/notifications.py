"""
Notification API routes.

Sends protocolo messages to clients over WhatsApp (Evolution API).
"""

from fastapi import APIRouter
import structlog

from integrations.whatsapp import EvolutionWhatsAppSink, normalize_phone
from integrations.whatsapp_messages import format_message
from models.notification import WhatsAppNotificationRequest, WhatsAppNotificationResponse
from routes.errors import handle_error

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.post("/whatsapp", response_model=WhatsAppNotificationResponse)
async def send_whatsapp(body: WhatsAppNotificationRequest):
    """
    Format and send a protocolo message (lancar, encerrar or reabrir).

    Raises:
        502: Evolution API rejected the message
        503: Evolution API not configured
    """
    logger.info("whatsapp_notification_requested", numero=body.numero, tipo=body.tipo.value)

    try:
        message = format_message(body)
        EvolutionWhatsAppSink().send(body.cliente_telefone, message)

        return WhatsAppNotificationResponse(
            success=True,
            numero_destino=normalize_phone(body.cliente_telefone),
            preview=message[:100] + "...",
        )

    except Exception as e:
        return handle_error(e)
