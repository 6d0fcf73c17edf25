"""
Unit tests for the WhatsApp integration and message templates.
"""

from unittest.mock import MagicMock

import pytest
import requests

from exceptions import ExternalServiceError, NotificationError
from integrations.whatsapp import EvolutionWhatsAppSink, normalize_phone
from integrations.whatsapp_messages import format_message
from models.notification import WhatsAppNotificationRequest


def make_request(**overrides) -> WhatsAppNotificationRequest:
    data = {
        "tipo": "lancar",
        "numero": "PROT-00001",
        "data": "15/01/2026",
        "hora": "08:30",
        "motorista_nome": "João Silva",
        "unidade": "BA",
        "produtos": [{"codigo": "P1", "nome": "Refrigerante 2L", "unidade": "UN", "quantidade": 3}],
        "cliente_telefone": "(74) 99999-0000",
    }
    data.update(overrides)
    return WhatsAppNotificationRequest(**data)


def make_sink(session=None, **overrides) -> EvolutionWhatsAppSink:
    config = {
        "api_url": "https://evolution.test/",
        "api_key": "secret",
        "instance_name": "protocolos",
        "session": session or MagicMock(),
    }
    config.update(overrides)
    return EvolutionWhatsAppSink(**config)


class TestNormalizePhone:

    def test_adds_country_code(self):
        assert normalize_phone("(74) 99999-0000") == "5574999990000"

    def test_keeps_existing_country_code(self):
        assert normalize_phone("+55 74 99999-0000") == "5574999990000"


class TestEvolutionWhatsAppSink:
    """Tests for EvolutionWhatsAppSink.send."""

    def test_posts_to_send_text(self):
        session = MagicMock()
        sink = make_sink(session)

        assert sink.send("74 99999-0000", "Olá") is True

        session.post.assert_called_once()
        args, kwargs = session.post.call_args
        assert args[0] == "https://evolution.test/message/sendText/protocolos"
        assert kwargs["json"] == {"number": "5574999990000", "text": "Olá"}
        assert kwargs["headers"] == {"apikey": "secret"}

    def test_not_configured(self):
        sink = make_sink(api_key="")

        assert sink.configured is False
        with pytest.raises(ExternalServiceError) as exc_info:
            sink.send("74999990000", "Olá")

        assert exc_info.value.code == "EVOLUTION_API_ERROR"

    def test_http_error_raises_notification_error(self):
        session = MagicMock()
        session.post.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError("401")
        sink = make_sink(session)

        with pytest.raises(NotificationError) as exc_info:
            sink.send("74999990000", "Olá")

        assert exc_info.value.status_code == 502

    def test_connection_error(self):
        session = MagicMock()
        session.post.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(NotificationError):
            make_sink(session).send("74999990000", "Olá")


class TestMessageTemplates:
    """Tests for format_message."""

    def test_open_message(self):
        text = format_message(make_request(
            fotos_protocolo={"foto_avaria": "https://cdn.test/avaria.jpg"}
        ))

        assert "🆔 Protocolo: PROT-00001" in text
        assert "📋 MAPA: -" in text
        assert "Produto: P1 Refrigerante 2L (UN) | 03 UND" in text
        assert "https://cdn.test/avaria.jpg" in text
        assert "📸 Motorista:" not in text

    def test_close_message_default_text(self):
        text = format_message(make_request(tipo="encerrar"))

        assert text.startswith("📦 Revalle - Encerramento de Protocolo")
        assert "Encerrando protocolo" in text

    def test_reopen_message(self):
        text = format_message(make_request(
            tipo="reabrir",
            motivo_reabertura="Cliente contestou",
            usuario_reabertura="maria"
        ))

        assert "🔓 Reaberto por: maria" in text
        assert "📝 Motivo: Cliente contestou" in text
