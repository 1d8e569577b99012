"""
Tipos de domínio do funil de qualificação.
Snapshots imutáveis da conversa e o registro de atualização produzido a cada turno.
"""

from enum import Enum
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID
from pydantic import BaseModel, Field


class FunnelStep(str, Enum):
    """Etapas do funil (ordenadas, não cíclicas)."""

    COLLECT_NAME = "collect_name"
    COLLECT_BIRTH_DATE = "collect_birth_date"
    COLLECT_WEIGHT_LOSS_REASON = "collect_weight_loss_reason"
    QUALIFIED = "qualified"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (FunnelStep.QUALIFIED, FunnelStep.REJECTED)


class ConversationStatus(str, Enum):
    """Status da conversa. qualified/rejected são terminais."""

    ACTIVE = "active"
    EXPIRED = "expired"
    QUALIFIED = "qualified"
    REJECTED = "rejected"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationSnapshot(BaseModel):
    """Cópia imutável do registro de conversa, passada por valor para cada componente."""

    id: Optional[UUID] = None
    phone: str
    funnel_step: FunnelStep = FunnelStep.COLLECT_NAME
    status: ConversationStatus = ConversationStatus.ACTIVE
    name: Optional[str] = None
    birth_date: Optional[date] = None
    weight_loss_reason: Optional[str] = None
    qualified: Optional[bool] = None
    last_activity: datetime = Field(default_factory=utcnow)

    class Config:
        frozen = True
        from_attributes = True

    def at_step(self, step: FunnelStep) -> "ConversationSnapshot":
        """Retorna uma cópia hipotética da conversa em outra etapa."""
        return self.model_copy(update={"funnel_step": step})


class StateUpdate(BaseModel):
    """
    Atualização parcial da conversa gerada por um turno.

    last_activity é sempre renovado, mesmo quando nenhum outro campo muda.
    """

    funnel_step: Optional[FunnelStep] = None
    status: Optional[ConversationStatus] = None
    name: Optional[str] = None
    birth_date: Optional[date] = None
    weight_loss_reason: Optional[str] = None
    qualified: Optional[bool] = None
    last_activity: datetime = Field(default_factory=utcnow)

    class Config:
        use_enum_values = True
        validate_assignment = True

    def changes(self) -> Dict[str, Any]:
        """Campos efetivamente alterados (inclui sempre last_activity)."""
        return self.model_dump(exclude_none=True)


class FunnelResult(BaseModel):
    reply_text: str
    state_update: StateUpdate
