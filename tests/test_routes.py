"""
Testes para os endpoints de conversa.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from main import app
from src.models.funnel import utcnow
from src.routes.conversations import get_conversation_service
from src.services.conversation_service import ConversationService
from src.services.funnel import FunnelStateMachine, WELCOME_MESSAGE

from conftest import FakeWriter, InMemoryConversationRepository

PHONE = "5511999999999"


class TestConversationRoutes:

    def setup_method(self):
        self.repository = InMemoryConversationRepository()
        classifier = MagicMock()
        classifier.score = AsyncMock(return_value=0.3)
        funnel = FunnelStateMachine(writer=FakeWriter(), classifier=classifier, threshold=0.7)
        self.service = ConversationService(repository=self.repository, funnel=funnel)

        app.dependency_overrides[get_conversation_service] = lambda: self.service
        self.client = TestClient(app)

    def teardown_method(self):
        app.dependency_overrides.clear()

    def test_health(self):
        response = self.client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_send_first_message(self):
        response = self.client.post(f"/conversations/{PHONE}/messages", json={"content": "Olá"})

        assert response.status_code == 200
        body = response.json()
        assert body["type"] == "text"
        assert body["content"] == WELCOME_MESSAGE
        assert body["conversation"] == {
            "phoneNumber": PHONE,
            "status": "active",
            "funnelStep": "collect_name",
            "variables": {},
        }

    def test_funnel_until_rejection(self):
        for content in ["Oi", "Maria", "15/03/1990"]:
            self.client.post(f"/conversations/{PHONE}/messages", json={"content": content})

        response = self.client.post(f"/conversations/{PHONE}/messages", json={"content": "Quero usar biquini"})

        body = response.json()
        assert body["content"] == "resposta:rejected"
        assert body["conversation"]["status"] == "rejected"
        assert body["conversation"]["variables"] == {
            "name": "Maria",
            "birthDate": "1990-03-15",
            "weightLossReason": "Quero usar biquini",
        }

    def test_expired_conversation_returns_410(self):
        conversation = self.repository.create(PHONE)
        self.repository.conversations[PHONE] = conversation.model_copy(
            update={"last_activity": utcnow() - timedelta(minutes=40)}
        )

        response = self.client.post(f"/conversations/{PHONE}/messages", json={"content": "Maria"})

        assert response.status_code == 410
        assert response.json() == {"message": "Conversa expirada, por favor inicie novamente."}

    @pytest.mark.parametrize("payload", [{}, {"content": ""}])
    def test_invalid_body(self, payload):
        response = self.client.post(f"/conversations/{PHONE}/messages", json=payload)

        assert response.status_code == 422

    def test_persistence_failure_returns_500(self):
        self.repository.create = MagicMock(side_effect=RuntimeError("db down"))

        response = self.client.post(f"/conversations/{PHONE}/messages", json={"content": "Oi"})

        assert response.status_code == 500
        assert response.json() == {"message": "Erro ao processar mensagem"}

    def test_status_not_found(self):
        response = self.client.get(f"/conversations/{PHONE}/status")

        assert response.status_code == 200
        assert response.json() == {"phoneNumber": PHONE, "status": "not_found", "variables": {}}

    def test_status_after_name(self):
        self.client.post(f"/conversations/{PHONE}/messages", json={"content": "Oi"})
        self.client.post(f"/conversations/{PHONE}/messages", json={"content": "Maria"})

        response = self.client.get(f"/conversations/{PHONE}/status")

        assert response.json() == {
            "phoneNumber": PHONE,
            "status": "active",
            "funnelStep": "collect_birth_date",
            "variables": {"name": "Maria"},
        }
