"""
Alerts API routes.

SLA check triggered by an external scheduler.
"""

from fastapi import APIRouter
import structlog

from models.notification import SlaCheckResponse
from routes.errors import handle_error
from services.sla_alert_service import get_sla_alert_service

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/alerts", tags=["Alerts"])


@router.post("/sla-check", response_model=SlaCheckResponse)
async def run_sla_check():
    """
    Alert every open protocolo past the SLA.

    Meant for a daily cron job. Each protocolo is alerted once.

    Raises:
        500: Protocolos could not be read
        503: Webhook not configured
    """
    try:
        result = get_sla_alert_service().run()
        return SlaCheckResponse(**result.to_dict())

    except Exception as e:
        return handle_error(e)
