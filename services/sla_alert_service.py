"""
SLA alert service.

Finds open protocolos that went too long without being closed and posts an
alert for each one to the configured webhook. Each protocolo is alerted at
most once (the sla_16_enviado flag).
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional
from pydantic import ValidationError as PydanticValidationError
import requests
import structlog

from config import settings, get_supabase_client, get_admin_client
from exceptions import DatabaseError, ExternalServiceError
from models.protocolo import ProtocoloRecord, ProtocoloStatus

logger = structlog.get_logger(__name__)

OPEN_STATUSES = [ProtocoloStatus.ABERTO.value, ProtocoloStatus.EM_ANDAMENTO.value]


@dataclass
class SlaCheckResult:
    """Outcome of one SLA run."""
    checked: int = 0
    alerted: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    executed_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict:
        return {
            "sucesso": True,
            "protocolos_verificados": self.checked,
            "protocolos_alertados": self.alerted,
            "quantidade_alertados": len(self.alerted),
            "erros": self.errors,
            "executado_em": self.executed_at,
        }


def days_since(data_protocolo: str, today: Optional[date] = None) -> int:
    """
    Whole days between a DD/MM/YYYY date and today.

    Unparseable dates count as 0 days.
    """
    try:
        opened = datetime.strptime(data_protocolo.strip(), "%d/%m/%Y").date()
    except (ValueError, AttributeError):
        return 0
    return ((today or date.today()) - opened).days


def build_alert_payload(protocolo: ProtocoloRecord, days: int) -> dict:
    """Webhook body, same shape as the protocolo creation payload."""
    return {
        "tipo": "alerta_sla_16_dias",
        "numero": protocolo.numero,
        "data": protocolo.data,
        "hora": protocolo.hora or "",
        "mapa": protocolo.mapa or "",
        "codigoPdv": protocolo.codigo_pdv or "",
        "notaFiscal": protocolo.nota_fiscal or "",
        "motoristaNome": protocolo.motorista_nome or "",
        "motoristaCodigo": protocolo.motorista_codigo or "",
        "motoristaWhatsapp": protocolo.motorista_whatsapp or "",
        "motoristaEmail": protocolo.motorista_email or "",
        "unidade": protocolo.motorista_unidade or "",
        "tipoReposicao": protocolo.tipo_reposicao or "",
        "causa": protocolo.causa or "",
        "produtos": protocolo.produtos,
        "fotos": protocolo.fotos_protocolo or {},
        "whatsappContato": protocolo.contato_whatsapp or "",
        "emailContato": protocolo.contato_email or "",
        "observacaoGeral": protocolo.observacao_geral or "",
        "alertaSla16Dias": True,
        "diasSla": days,
        "motivoEnvio": "SLA_16_DIAS",
        "mensagemAlerta": (
            f"Protocolo {protocolo.numero} atingiu {days} dias sem encerramento "
            f"(SLA {settings.sla_alert_days} dias)"
        ),
    }


class SlaAlertService:
    """
    SLA alert business logic.

    Meant to be triggered by a scheduler (cron hitting the API endpoint).
    """

    def __init__(
        self,
        client=None,
        webhook_url: Optional[str] = None,
        alert_days: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        self.db = client or get_admin_client() or get_supabase_client()
        self.table = "protocolos"
        self.webhook_url = webhook_url if webhook_url is not None else settings.sla_webhook_url
        self.alert_days = alert_days or settings.sla_alert_days
        self.session = session or requests.Session()

    def get_pending_protocolos(self) -> list[dict]:
        """Open, visible protocolos that were not alerted yet (raw rows)."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .in_("status", OPEN_STATUSES)
                .eq("sla_16_enviado", False)
                .eq("oculto", False)
                .execute()
            )
        except Exception as e:
            logger.error("get_pending_protocolos_failed", error=str(e))
            raise DatabaseError("select", str(e))

        return list(result.data or [])

    def run(self, today: Optional[date] = None) -> SlaCheckResult:
        """
        Alert every protocolo past the SLA.

        Failures for one protocolo are collected in the result and do not
        stop the run.

        Raises:
            ExternalServiceError: If no webhook is configured
            DatabaseError: If the protocolos cannot be read
        """
        if not self.webhook_url:
            raise ExternalServiceError(
                service="sla_webhook",
                message="SLA_WEBHOOK_URL is not configured"
            )

        rows = self.get_pending_protocolos()
        result = SlaCheckResult(checked=len(rows))

        logger.info("sla_check_started", protocolos=len(rows), alert_days=self.alert_days)

        for row in rows:
            try:
                protocolo = ProtocoloRecord(**row)
            except PydanticValidationError as e:
                numero = row.get("numero") or row.get("id")
                logger.error("sla_protocolo_invalid", numero=numero, error=str(e))
                result.errors.append(f"Invalid protocolo {numero}: {e.error_count()} invalid field(s)")
                continue

            days = days_since(protocolo.data, today)
            if days < self.alert_days:
                continue

            logger.info("sla_reached", numero=protocolo.numero, days=days)

            try:
                response = self.session.post(
                    self.webhook_url,
                    json=build_alert_payload(protocolo, days),
                    timeout=15,
                )
            except requests.exceptions.RequestException as e:
                logger.error("sla_webhook_failed", numero=protocolo.numero, error=str(e))
                result.errors.append(f"Webhook error for {protocolo.numero}: {e}")
                continue

            if not response.ok:
                logger.error(
                    "sla_webhook_rejected",
                    numero=protocolo.numero,
                    status_code=response.status_code
                )
                result.errors.append(f"Webhook failed for {protocolo.numero}: {response.status_code}")
                continue

            try:
                self.mark_alerted(protocolo.id)
            except DatabaseError as e:
                result.errors.append(f"Failed to update {protocolo.numero}: {e.message}")
                continue

            result.alerted.append(protocolo.numero)

        logger.info(
            "sla_check_finished",
            checked=result.checked,
            alerted=len(result.alerted),
            error_count=len(result.errors)
        )

        return result

    def mark_alerted(self, protocolo_id: str) -> None:
        """Set the sla_16_enviado flag so the alert is not sent again."""
        try:
            (
                self.db.table(self.table)
                .update({
                    "sla_16_enviado": True,
                    "sla_16_enviado_at": datetime.now(timezone.utc).isoformat(),
                })
                .eq("id", protocolo_id)
                .execute()
            )
        except Exception as e:
            logger.error("mark_alerted_failed", protocolo_id=protocolo_id, error=str(e))
            raise DatabaseError("update", str(e))


# =============================================================================
# Singleton
# =============================================================================

_sla_alert_service: Optional[SlaAlertService] = None


def get_sla_alert_service() -> SlaAlertService:
    """Get or create SlaAlertService instance."""
    global _sla_alert_service
    if _sla_alert_service is None:
        _sla_alert_service = SlaAlertService()
    return _sla_alert_service
