"""
Notification schemas (WhatsApp via Evolution API).
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from models.base import DateBR, PhoneText
from models.protocolo import ProdutoProtocolo, FotosProtocolo


class MessageKind(str, Enum):
    """Which protocolo event the message announces."""
    LANCAR = "lancar"
    ENCERRAR = "encerrar"
    REABRIR = "reabrir"


class WhatsAppNotificationRequest(BaseModel):
    """Payload for a protocolo WhatsApp message."""
    tipo: MessageKind
    numero: str
    data: DateBR
    hora: Optional[str] = None
    mapa: Optional[str] = None
    nota_fiscal: Optional[str] = None
    motorista_nome: str
    motorista_whatsapp: Optional[str] = None
    motorista_email: Optional[str] = None
    unidade: Optional[str] = None
    observacao_geral: Optional[str] = None
    produtos: list[ProdutoProtocolo] = Field(default_factory=list)
    fotos_protocolo: Optional[FotosProtocolo] = None
    mensagem_encerramento: Optional[str] = None
    motivo_reabertura: Optional[str] = None
    usuario_reabertura: Optional[str] = None
    cliente_telefone: PhoneText


class WhatsAppNotificationResponse(BaseModel):
    """Delivery result."""
    success: bool
    numero_destino: str
    preview: str


class SlaCheckResponse(BaseModel):
    """Result of one SLA alert run."""
    sucesso: bool = True
    protocolos_verificados: int
    protocolos_alertados: list[str] = Field(default_factory=list)
    quantidade_alertados: int
    erros: list[str] = Field(default_factory=list)
    executado_em: str
