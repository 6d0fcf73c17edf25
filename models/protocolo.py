"""
Protocolo schemas shared by notifications and SLA alerts.
"""

from enum import Enum
from typing import Optional
from pydantic import Field, field_validator

from models.base import BaseSchema


class ProtocoloStatus(str, Enum):
    """Protocolo lifecycle status."""
    ABERTO = "aberto"
    EM_ANDAMENTO = "em_andamento"
    ENCERRADO = "encerrado"


class ProdutoProtocolo(BaseSchema):
    """Product line reported in a protocolo."""
    codigo: str
    nome: str
    unidade: str = "UN"
    quantidade: int = Field(default=0, ge=0)
    validade: Optional[str] = None


class FotosProtocolo(BaseSchema):
    """Photo URLs (or data URIs before upload) attached to a protocolo."""
    foto_motorista_pdv: Optional[str] = None
    foto_lote_produto: Optional[str] = None
    foto_avaria: Optional[str] = None


class ProtocoloRecord(BaseSchema):
    """Subset of the protocolos table read by the SLA check."""
    id: str
    numero: str
    data: str = Field(..., description="Opening date as DD/MM/YYYY")
    hora: Optional[str] = None
    status: ProtocoloStatus = ProtocoloStatus.ABERTO
    mapa: Optional[str] = None
    codigo_pdv: Optional[str] = None
    nota_fiscal: Optional[str] = None
    motorista_nome: Optional[str] = None
    motorista_codigo: Optional[str] = None
    motorista_whatsapp: Optional[str] = None
    motorista_email: Optional[str] = None
    motorista_unidade: Optional[str] = None
    tipo_reposicao: Optional[str] = None
    causa: Optional[str] = None
    produtos: list[dict] = Field(default_factory=list)
    fotos_protocolo: Optional[dict] = None
    contato_whatsapp: Optional[str] = None
    contato_email: Optional[str] = None
    observacao_geral: Optional[str] = None
    sla_16_enviado: bool = False
    oculto: bool = False

    @field_validator("produtos", mode="before")
    @classmethod
    def null_produtos_as_empty(cls, v):
        """Legacy rows store NULL when no product was reported."""
        return [] if v is None else v
