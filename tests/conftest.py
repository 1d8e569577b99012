"""
Dublês compartilhados pelos testes do funil.
"""

import uuid

from src.models.funnel import ConversationSnapshot


class InMemoryConversationRepository:
    """Repositório em memória com a mesma interface do ConversationRepository."""

    def __init__(self):
        self.conversations = {}
        self.messages = []
        self.updates = []

    def find(self, phone):
        return self.conversations.get(phone)

    def create(self, phone):
        conversation = ConversationSnapshot(id=uuid.uuid4(), phone=phone)
        self.conversations[phone] = conversation
        return conversation

    def apply_update(self, phone, update):
        self.updates.append(update)
        data = {**self.conversations[phone].model_dump(), **update.changes()}
        conversation = ConversationSnapshot.model_validate(data)
        self.conversations[phone] = conversation
        return conversation

    def append_message(self, conversation, role, content):
        self.messages.append((conversation.phone, role.value, content))


class FakeWriter:
    """Gera respostas previsíveis por etapa e registra as chamadas."""

    def __init__(self):
        self.calls = []

    async def generate_reply(self, conversation, user_text):
        self.calls.append((conversation.funnel_step, user_text))
        return f"resposta:{conversation.funnel_step.value}"
