"""
Testes para a máquina de estados do funil.
"""

import asyncio
from datetime import date
from unittest.mock import AsyncMock, MagicMock

from src.agents.writer import FALLBACK_REPLY
from src.models.funnel import ConversationSnapshot, ConversationStatus, FunnelStep
from src.services.funnel import FunnelStateMachine, INVALID_DATE_MESSAGE, WELCOME_MESSAGE

from conftest import FakeWriter


def make_funnel(score=0.5):
    writer = FakeWriter()
    classifier = MagicMock()
    classifier.score = AsyncMock(return_value=score)
    return FunnelStateMachine(writer=writer, classifier=classifier, threshold=0.7), writer, classifier


def conversation_at(step, **fields):
    return ConversationSnapshot(phone="+5511999999999", funnel_step=step, **fields)


class TestNewConversation:

    def test_greeting_gets_welcome_message(self):
        """Conversa nova + saudação: boas-vindas fixa, sem chamar a IA."""
        funnel, writer, _ = make_funnel()
        conversation = conversation_at(FunnelStep.COLLECT_NAME)

        result = asyncio.run(funnel.advance(conversation, "Oi", is_new_conversation=True))

        assert result.reply_text == WELCOME_MESSAGE
        assert writer.calls == []
        assert set(result.state_update.changes()) == {"last_activity"}

    def test_new_conversation_with_name_collects_it(self):
        funnel, writer, _ = make_funnel()
        conversation = conversation_at(FunnelStep.COLLECT_NAME)

        result = asyncio.run(funnel.advance(conversation, "Maria", is_new_conversation=True))

        assert result.state_update.name == "Maria"
        assert result.state_update.funnel_step == FunnelStep.COLLECT_BIRTH_DATE
        assert writer.calls == [(FunnelStep.COLLECT_NAME, "Maria")]


class TestCollectName:

    def test_name_advances_to_birth_date(self):
        funnel, _, _ = make_funnel()

        result = asyncio.run(funnel.advance(conversation_at(FunnelStep.COLLECT_NAME), "Maria"))

        assert result.state_update.name == "Maria"
        assert result.state_update.funnel_step == FunnelStep.COLLECT_BIRTH_DATE

    def test_reply_uses_step_before_update(self):
        """A resposta é gerada com a etapa antiga (collect_name)."""
        funnel, writer, _ = make_funnel()

        result = asyncio.run(funnel.advance(conversation_at(FunnelStep.COLLECT_NAME), "Maria"))

        assert result.reply_text == "resposta:collect_name"
        assert writer.calls == [(FunnelStep.COLLECT_NAME, "Maria")]

    def test_greeting_keeps_step(self):
        funnel, writer, _ = make_funnel()

        result = asyncio.run(funnel.advance(conversation_at(FunnelStep.COLLECT_NAME), "bom dia"))

        assert result.reply_text == "resposta:collect_name"
        assert set(result.state_update.changes()) == {"last_activity"}
        assert len(writer.calls) == 1

    def test_name_is_stored_verbatim(self):
        funnel, _, _ = make_funnel()

        result = asyncio.run(funnel.advance(conversation_at(FunnelStep.COLLECT_NAME), "  Ana Clara "))

        assert result.state_update.name == "  Ana Clara "


class TestCollectBirthDate:

    def test_valid_date_advances(self):
        funnel, _, _ = make_funnel()

        result = asyncio.run(funnel.advance(
            conversation_at(FunnelStep.COLLECT_BIRTH_DATE, name="Maria"), "15/03/1990"
        ))

        assert result.state_update.birth_date == date(1990, 3, 15)
        assert result.state_update.funnel_step == FunnelStep.COLLECT_WEIGHT_LOSS_REASON
        assert result.reply_text == "resposta:collect_birth_date"

    def test_invalid_calendar_date_reprompts(self):
        """31/04 não existe: mensagem de validação e etapa inalterada."""
        funnel, _, _ = make_funnel()

        result = asyncio.run(funnel.advance(
            conversation_at(FunnelStep.COLLECT_BIRTH_DATE, name="Maria"), "31/04/2000"
        ))

        assert result.reply_text == INVALID_DATE_MESSAGE
        assert set(result.state_update.changes()) == {"last_activity"}

    def test_wrong_format_reprompts(self):
        funnel, _, _ = make_funnel()

        result = asyncio.run(funnel.advance(
            conversation_at(FunnelStep.COLLECT_BIRTH_DATE), "15 de março de 1990"
        ))

        assert result.reply_text == INVALID_DATE_MESSAGE
        assert result.state_update.funnel_step is None


class TestCollectWeightLossReason:

    def test_high_score_qualifies(self):
        funnel, writer, classifier = make_funnel(score=0.85)
        conversation = conversation_at(FunnelStep.COLLECT_WEIGHT_LOSS_REASON, name="Maria")

        result = asyncio.run(funnel.advance(conversation, "Meu médico pediu por causa da diabetes"))

        update = result.state_update
        assert update.qualified is True
        assert update.funnel_step == FunnelStep.QUALIFIED
        assert update.status == ConversationStatus.QUALIFIED
        assert update.weight_loss_reason == "Meu médico pediu por causa da diabetes"
        assert result.reply_text == "resposta:qualified"
        classifier.score.assert_awaited_once_with(
            "Meu médico pediu por causa da diabetes", phone="+5511999999999"
        )

    def test_low_score_rejects(self):
        funnel, _, _ = make_funnel(score=0.2)
        conversation = conversation_at(FunnelStep.COLLECT_WEIGHT_LOSS_REASON, name="Maria")

        result = asyncio.run(funnel.advance(conversation, "Quero usar biquini"))

        update = result.state_update
        assert update.qualified is False
        assert update.funnel_step == FunnelStep.REJECTED
        assert update.status == ConversationStatus.REJECTED
        assert result.reply_text == "resposta:rejected"

    def test_threshold_is_exclusive(self):
        """Score exatamente 0.7 não qualifica."""
        funnel, _, _ = make_funnel(score=0.7)

        result = asyncio.run(funnel.advance(
            conversation_at(FunnelStep.COLLECT_WEIGHT_LOSS_REASON), "não sei"
        ))

        assert result.state_update.qualified is False
        assert result.state_update.funnel_step == FunnelStep.REJECTED

    def test_final_reply_rendered_for_terminal_step(self):
        """Gera a resposta padrão e depois de novo com a etapa terminal."""
        funnel, writer, _ = make_funnel(score=0.9)

        asyncio.run(funnel.advance(conversation_at(FunnelStep.COLLECT_WEIGHT_LOSS_REASON), "cirurgia"))

        assert [step for step, _ in writer.calls] == [
            FunnelStep.COLLECT_WEIGHT_LOSS_REASON,
            FunnelStep.QUALIFIED,
        ]


class TestTerminalSteps:

    def test_qualified_conversation_does_not_progress(self):
        funnel, writer, classifier = make_funnel(score=0.9)
        conversation = conversation_at(
            FunnelStep.QUALIFIED, status=ConversationStatus.QUALIFIED, qualified=True
        )

        result = asyncio.run(funnel.advance(conversation, "Quando é a avaliação?"))

        assert result.reply_text == "resposta:qualified"
        assert set(result.state_update.changes()) == {"last_activity"}
        classifier.score.assert_not_awaited()

    def test_rejected_conversation_does_not_progress(self):
        funnel, _, _ = make_funnel()
        conversation = conversation_at(FunnelStep.REJECTED, status=ConversationStatus.REJECTED)

        result = asyncio.run(funnel.advance(conversation, "Oi"))

        assert result.reply_text == "resposta:rejected"
        assert result.state_update.funnel_step is None

    def test_only_decisions_are_terminal(self):
        assert {step for step in FunnelStep if step.is_terminal} == {
            FunnelStep.QUALIFIED,
            FunnelStep.REJECTED,
        }


class TestReplyFallback:

    def test_empty_generation_uses_fallback(self):
        writer = MagicMock()
        writer.generate_reply = AsyncMock(return_value="")
        funnel = FunnelStateMachine(writer=writer, classifier=MagicMock(), threshold=0.7)

        result = asyncio.run(funnel.advance(conversation_at(FunnelStep.COLLECT_NAME), "Maria"))

        assert result.reply_text == FALLBACK_REPLY
        assert result.state_update.name == "Maria"
