"""
Máquina de estados do funil de qualificação.
Decide a resposta e a atualização de estado para cada mensagem recebida.
"""
import logging
from typing import Optional
from src.agents.writer import FALLBACK_REPLY
from src.core.config import settings
from src.models.funnel import (
    ConversationSnapshot,
    ConversationStatus,
    FunnelResult,
    FunnelStep,
    StateUpdate,
)
from src.services.date_parser import parse_date
from src.services.greeting_detector import is_greeting

logger = logging.getLogger(__name__)

# ============================================================================
# MENSAGENS FIXAS (SEM IA)
# ============================================================================

WELCOME_MESSAGE = "Olá! Bem-vindo à clínica. Qual é o seu nome?"
INVALID_DATE_MESSAGE = "Por favor, informe uma data válida no formato DD/MM/AAAA."


class FunnelStateMachine:
    """
    Avança o funil: collect_name → collect_birth_date → collect_weight_loss_reason → qualified | rejected.

    Não guarda estado entre chamadas: recebe um snapshot e devolve a resposta
    mais a atualização que o chamador deve persistir.
    """

    def __init__(self, writer, classifier, threshold: Optional[float] = None):
        self.writer = writer
        self.classifier = classifier
        self.threshold = settings.QUALIFICATION_THRESHOLD if threshold is None else threshold

    async def advance(
        self,
        conversation: ConversationSnapshot,
        inbound_text: str,
        is_new_conversation: bool = False
    ) -> FunnelResult:
        update = StateUpdate()

        # Conversa nova começando com saudação → boas-vindas fixa
        if is_new_conversation and is_greeting(inbound_text):
            logger.info(f"Welcome message for new conversation {conversation.phone}")
            return FunnelResult(reply_text=WELCOME_MESSAGE, state_update=update)

        # Resposta padrão gerada com a etapa ATUAL (antes da atualização)
        reply = await self.writer.generate_reply(conversation, inbound_text)
        step = conversation.funnel_step

        if step == FunnelStep.COLLECT_NAME:
            if is_greeting(inbound_text):
                logger.info(f"Greeting while collecting name for {conversation.phone}")
            else:
                update.name = inbound_text
                update.funnel_step = FunnelStep.COLLECT_BIRTH_DATE

        elif step == FunnelStep.COLLECT_BIRTH_DATE:
            birth_date = parse_date(inbound_text)
            if birth_date:
                update.birth_date = birth_date
                update.funnel_step = FunnelStep.COLLECT_WEIGHT_LOSS_REASON
            else:
                logger.info(f"Invalid birth date from {conversation.phone}: {inbound_text}")
                reply = INVALID_DATE_MESSAGE

        elif step == FunnelStep.COLLECT_WEIGHT_LOSS_REASON:
            score = await self.classifier.score(inbound_text, phone=conversation.phone)
            qualified = score > self.threshold
            final_step = FunnelStep.QUALIFIED if qualified else FunnelStep.REJECTED

            update.weight_loss_reason = inbound_text
            update.qualified = qualified
            update.funnel_step = final_step
            update.status = ConversationStatus.QUALIFIED if qualified else ConversationStatus.REJECTED
            logger.info(
                f"Lead {conversation.phone} {final_step.value} "
                f"(score={score:.2f}, threshold={self.threshold})"
            )

            reply = await self._render_final_decision(conversation, final_step, inbound_text)

        elif step.is_terminal:
            logger.info(f"Conversation {conversation.phone} already {step.value}, no progression")

        return FunnelResult(reply_text=reply or FALLBACK_REPLY, state_update=update)

    async def _render_final_decision(
        self,
        conversation: ConversationSnapshot,
        final_step: FunnelStep,
        inbound_text: str
    ) -> str:
        """
        Segunda geração, só na decisão final: a resposta padrão foi gerada com a
        etapa antiga, então gera de novo com a conversa já na etapa terminal.

        Nas etapas intermediárias a resposta continua refletindo a etapa antiga.
        """
        return await self.writer.generate_reply(conversation.at_step(final_step), inbound_text)
