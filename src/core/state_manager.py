import logging
from typing import Optional
from sqlalchemy.orm import Session
from src.models.conversation import Conversation, Message
from src.models.funnel import ConversationSnapshot, ConversationStatus, FunnelStep, MessageRole, StateUpdate, utcnow

logger = logging.getLogger(__name__)

class ConversationRepository:
    """Persistência das conversas do funil e do histórico de mensagens"""

    def __init__(self, db: Session):
        self.db = db

    def find(self, phone: str) -> Optional[ConversationSnapshot]:
        """
        Busca a conversa de um telefone.

        Args:
            phone: Número de telefone

        Returns:
            ConversationSnapshot ou None se não existir
        """
        conversation = self._get(phone)
        if conversation is None:
            logger.info(f"No conversation found for {phone}")
            return None

        logger.info(f"Conversation found for {phone}: {conversation.funnel_step}")
        return ConversationSnapshot.model_validate(conversation)

    def create(self, phone: str) -> ConversationSnapshot:
        """Cria a conversa na etapa inicial (collect_name, active)."""
        try:
            conversation = Conversation(
                phone=phone,
                funnel_step=FunnelStep.COLLECT_NAME.value,
                status=ConversationStatus.ACTIVE.value,
                last_activity=utcnow()
            )
            self.db.add(conversation)
            self.db.commit()
            self.db.refresh(conversation)
            logger.info(f"Created conversation for {phone}")
            return ConversationSnapshot.model_validate(conversation)

        except Exception as e:
            logger.error(f"Error creating conversation for {phone}: {e}")
            self.db.rollback()
            raise

    def apply_update(self, phone: str, update: StateUpdate) -> ConversationSnapshot:
        """
        Aplica a atualização parcial do turno em uma única transação.

        Args:
            phone: Número de telefone
            update: Campos alterados + last_activity

        Returns:
            ConversationSnapshot atualizado
        """
        try:
            conversation = self._get(phone)
            if conversation is None:
                raise LookupError(f"Conversation not found for {phone}")

            for field, value in update.changes().items():
                setattr(conversation, field, value)

            self.db.commit()
            self.db.refresh(conversation)
            logger.info(f"Updated conversation for {phone}: {conversation.funnel_step}")
            return ConversationSnapshot.model_validate(conversation)

        except Exception as e:
            logger.error(f"Error updating conversation for {phone}: {e}")
            self.db.rollback()
            raise

    def append_message(self, conversation: ConversationSnapshot, role: MessageRole, content: str) -> None:
        """Registra uma mensagem no histórico (somente inserção)."""
        try:
            self.db.add(Message(
                conversation_id=conversation.id,
                role=role.value,
                content=content
            ))
            self.db.commit()
            logger.debug(f"Saved {role.value} message for {conversation.phone}")

        except Exception as e:
            logger.error(f"Error saving message for {conversation.phone}: {e}")
            self.db.rollback()
            raise

    def _get(self, phone: str) -> Optional[Conversation]:
        return self.db.query(Conversation).filter(
            Conversation.phone == phone
        ).first()
