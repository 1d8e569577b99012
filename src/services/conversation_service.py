import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from src.core.config import settings
from src.core.locks import phone_locks
from src.models.funnel import ConversationSnapshot, ConversationStatus, MessageRole, utcnow
from src.models.schemas import (
    ConversationStatusResponse,
    ConversationVariables,
    MessageResponse,
    build_message_response,
    build_variables,
)

logger = logging.getLogger(__name__)

EXPIRED_MESSAGE = "Conversa expirada, por favor inicie novamente."


class ConversationExpiredError(Exception):
    """Conversa existente sem atividade além do timeout de sessão."""

    def __init__(self, phone: str, last_activity: datetime):
        super().__init__(EXPIRED_MESSAGE)
        self.phone = phone
        self.last_activity = last_activity


def is_expired(last_activity: datetime, now: Optional[datetime] = None, timeout_minutes: Optional[int] = None) -> bool:
    """Verifica se a conversa passou do timeout de sessão."""
    timeout = settings.SESSION_TIMEOUT_MINUTES if timeout_minutes is None else timeout_minutes
    now = now or utcnow()
    if last_activity.tzinfo is None:
        last_activity = last_activity.replace(tzinfo=timezone.utc)
    return now - last_activity > timedelta(minutes=timeout)


class ConversationService:
    """
    Processa mensagens do WhatsApp pelo funil e expõe o status da conversa.

    Dependências injetadas: repositório (persistência) e máquina de estados do funil.
    """

    def __init__(self, repository, funnel, locks=None):
        self.repository = repository
        self.funnel = funnel
        self.locks = locks or phone_locks

    async def handle_inbound(self, phone: str, text: str) -> MessageResponse:
        """
        Processa a mensagem recebida e retorna a resposta + estado atualizado.

        Raises:
            ConversationExpiredError: conversa existente inativa além do timeout (nada é gravado)
        """
        async with self.locks.get(phone):
            try:
                existing = self.repository.find(phone)

                if existing and is_expired(existing.last_activity):
                    logger.info(f"Conversation expired for {phone} (last activity {existing.last_activity})")
                    raise ConversationExpiredError(phone, existing.last_activity)

                is_new_conversation = existing is None
                conversation = existing or self.repository.create(phone)

                self.repository.append_message(conversation, MessageRole.USER, text)
                result = await self.funnel.advance(conversation, text, is_new_conversation)

                # Resposta só entra no histórico depois que o estado do turno foi gravado
                conversation = self.repository.apply_update(phone, result.state_update)
                self.repository.append_message(conversation, MessageRole.ASSISTANT, result.reply_text)
                return build_message_response(conversation, result.reply_text)

            except ConversationExpiredError:
                raise
            except Exception as e:
                logger.error(f"Failed to process message for {phone}: {e}", exc_info=True)
                raise

    def get_status(self, phone: str) -> ConversationStatusResponse:
        """Status atual e variáveis coletadas; not_found quando não há conversa."""
        conversation = self.repository.find(phone)

        if not conversation:
            return ConversationStatusResponse(
                phoneNumber=phone,
                status="not_found",
                variables=ConversationVariables(),
            )

        return ConversationStatusResponse(
            phoneNumber=conversation.phone,
            status=self._effective_status(conversation).value,
            funnelStep=conversation.funnel_step.value,
            variables=build_variables(conversation),
        )

    def _effective_status(self, conversation: ConversationSnapshot) -> ConversationStatus:
        # Conversa ativa parada além do timeout aparece como expirada (sem gravar nada)
        if conversation.status == ConversationStatus.ACTIVE and is_expired(conversation.last_activity):
            return ConversationStatus.EXPIRED
        return conversation.status
