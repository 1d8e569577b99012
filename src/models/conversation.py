from sqlalchemy import Column, String, Text, Boolean, Date, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from src.core.database import Base
from src.models.funnel import FunnelStep, ConversationStatus, utcnow
import uuid

class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    phone = Column(String(50), unique=True, nullable=False, index=True)
    funnel_step = Column(String(50), nullable=False, default=FunnelStep.COLLECT_NAME.value)
    status = Column(String(20), nullable=False, default=ConversationStatus.ACTIVE.value, index=True)

    # Dados coletados no funil
    name = Column(String(255), nullable=True)
    birth_date = Column(Date, nullable=True)
    weight_loss_reason = Column(Text, nullable=True)
    qualified = Column(Boolean, nullable=True)

    last_activity = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    messages = relationship("Message", back_populates="conversation", order_by="Message.created_at")

    def __repr__(self):
        return f"<Conversation(phone={self.phone}, step={self.funnel_step}, status={self.status})>"


class Message(Base):
    __tablename__ = "messages"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    conversation_id = Column(UUID(as_uuid=True), ForeignKey('conversations.id'), nullable=False, index=True)
    role = Column(String(20), nullable=False)  # 'user', 'assistant'
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    conversation = relationship("Conversation", back_populates="messages")


class ReasonExample(Base):
    """
    Exemplos de motivos para emagrecer usados na busca por similaridade.

    A coluna embedding (vector) é criada em init_db e acessada via SQL puro.
    """
    __tablename__ = "reason_examples"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    reason = Column(Text, nullable=False, unique=True)
    qualified = Column(Boolean, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<ReasonExample(qualified={self.qualified}, reason={self.reason[:30]})>"
