"""
WhatsApp message templates for protocolo events.

Usage:
    from integrations.whatsapp_messages import format_message

    text = format_message(request)  # picks the template from request.tipo
"""

from models.notification import MessageKind, WhatsAppNotificationRequest

EMPTY = "-"


def _or_dash(value) -> str:
    return str(value) if value else EMPTY


def format_open_message(data: WhatsAppNotificationRequest) -> str:
    """Message sent when a protocolo is opened."""
    lines = [
        f"🆔 Protocolo: {data.numero}",
        f"📆 Data: {data.data}",
        f"⏰ Horário: {_or_dash(data.hora)}",
        f"📋 MAPA: {_or_dash(data.mapa)}",
        f"📦 NF: {_or_dash(data.nota_fiscal)}",
        f"👤 Motorista: {data.motorista_nome}",
        f"🏭 Unidade: {_or_dash(data.unidade)}",
        f"📧 {_or_dash(data.motorista_email)}",
        f"📞 {_or_dash(data.motorista_whatsapp)}",
        f"📝 Obs: {_or_dash(data.observacao_geral)}",
        "",
    ]

    for produto in data.produtos:
        lines.append(
            f"Produto: {produto.codigo} {produto.nome} ({produto.unidade}) | "
            f"{produto.quantidade:02d} UND"
        )
        lines.append(f"Validade: {_or_dash(produto.validade)}")
        lines.append("")

    fotos = data.fotos_protocolo
    if fotos:
        for label, url in (
            ("📸 Motorista:", fotos.foto_motorista_pdv),
            ("📦 Lote:", fotos.foto_lote_produto),
            ("⚠️ Avaria:", fotos.foto_avaria),
        ):
            if url:
                lines.extend([label, url, ""])

    return "\n".join(lines).strip()


def format_close_message(data: WhatsAppNotificationRequest) -> str:
    """Message sent when a protocolo is closed."""
    return "\n".join([
        "📦 Revalle - Encerramento de Protocolo",
        "",
        f"✅ Protocolo: {data.numero}",
        f"🧾 NF: {_or_dash(data.nota_fiscal)}",
        f"👤 Motorista: {data.motorista_nome}",
        f"🏭 Unidade: {_or_dash(data.unidade)}",
        f"📅 Data: {data.data}",
        "",
        f"🗒️ Mensagem: {data.mensagem_encerramento or 'Encerrando protocolo'}",
        "",
        "⚙️ Status: Encerrado com sucesso.",
    ])


def format_reopen_message(data: WhatsAppNotificationRequest) -> str:
    """Message sent when a closed protocolo is reopened."""
    return "\n".join([
        "🔄 Revalle - Reabertura de Protocolo",
        "",
        f"⚠️ Protocolo: {data.numero}",
        f"🧾 NF: {_or_dash(data.nota_fiscal)}",
        f"👤 Motorista: {data.motorista_nome}",
        f"🏭 Unidade: {_or_dash(data.unidade)}",
        f"📅 Data: {data.data}",
        f"⏰ Horário: {_or_dash(data.hora)}",
        "",
        f"🔓 Reaberto por: {_or_dash(data.usuario_reabertura)}",
        f"📝 Motivo: {data.motivo_reabertura or 'Não informado'}",
        "",
        "⚙️ Status: Protocolo reaberto para tratativa.",
    ])


FORMATTERS = {
    MessageKind.LANCAR: format_open_message,
    MessageKind.ENCERRAR: format_close_message,
    MessageKind.REABRIR: format_reopen_message,
}


def format_message(data: WhatsAppNotificationRequest) -> str:
    """Format the message matching the request kind."""
    return FORMATTERS[data.tipo](data)
