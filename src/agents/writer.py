import logging
from src.core.gemini import gemini_client
from src.models.funnel import ConversationSnapshot, FunnelStep

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Desculpe, não consegui processar sua mensagem."

PERSONA = "Você é um atendente de clínica de emagrecimento."

# Instrução por etapa do funil
STEP_PROMPTS = {
    FunnelStep.COLLECT_NAME: (
        "O usuário acabou de se apresentar com o nome. Responda EXATAMENTE: "
        "'Prazer, [NOME]! Qual é a sua data de nascimento no formato DD/MM/AAAA?' "
        "- Substitua [NOME] pelo nome informado."
    ),
    FunnelStep.COLLECT_BIRTH_DATE: (
        "O usuário informou a data de nascimento. Responda EXATAMENTE: "
        "'Obrigada! Qual o principal motivo que te faz querer emagrecer?'"
    ),
    FunnelStep.COLLECT_WEIGHT_LOSS_REASON: (
        "O usuário informou o motivo para emagrecer. "
        "Agradeça pela informação de forma empática e breve."
    ),
    FunnelStep.QUALIFIED: (
        "O lead foi QUALIFICADO por motivo de saúde. Responda EXATAMENTE: "
        "'Entendo, [NOME]. Sua saúde é prioridade! Vamos agendar uma avaliação gratuita.' "
        "- Substitua [NOME] pelo nome da pessoa."
    ),
    FunnelStep.REJECTED: (
        "O lead foi REJEITADO por motivo estético. Responda EXATAMENTE: "
        "'Obrigada pelo contato, [NOME]! Infelizmente não conseguimos atender sua necessidade no momento.' "
        "- Substitua [NOME] pelo nome da pessoa."
    ),
}

DEFAULT_PROMPT = "Responda EXATAMENTE: 'Olá! Bem-vindo à clínica. Qual é o seu nome?'"


class WriterAgent:
    """
    Agente Redator (The Voice):
    Gera a resposta do atendente para a etapa em que a conversa está.
    """

    def __init__(self, client=None):
        self.client = client or gemini_client

    def system_prompt(self, step: FunnelStep) -> str:
        return f"{PERSONA} {STEP_PROMPTS.get(step, DEFAULT_PROMPT)}"

    def build_context(self, conversation: ConversationSnapshot) -> str:
        context = "Contexto da conversa:\n"
        if conversation.name:
            context += f"Nome: {conversation.name}\n"
        if conversation.birth_date:
            context += f"Data de nascimento: {conversation.birth_date.strftime('%d/%m/%Y')}\n"
        if conversation.weight_loss_reason:
            context += f"Motivo para emagrecer: {conversation.weight_loss_reason}\n"
        return context

    async def generate_reply(self, conversation: ConversationSnapshot, user_text: str) -> str:
        """
        Gera a resposta para a etapa atual da conversa.

        Nunca levanta exceção: em caso de erro ou resposta vazia retorna FALLBACK_REPLY.
        """
        prompt = (
            f"{self.system_prompt(conversation.funnel_step)}\n\n"
            f"{self.build_context(conversation)}\n"
            f"Usuário: {user_text}"
        )
        try:
            response = await self.client.generate_content(prompt)
        except Exception as e:
            logger.error(
                f"❌ Error in WriterAgent for {conversation.phone} "
                f"(step={conversation.funnel_step.value}): {e}"
            )
            return FALLBACK_REPLY

        reply = (response or "").strip()
        if not reply:
            logger.warning(f"Empty reply from Gemini for {conversation.phone}, using fallback")
            return FALLBACK_REPLY
        return reply
