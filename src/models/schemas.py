"""
Schemas Pydantic da API de conversas.
Os nomes dos campos seguem o contrato JSON consumido pelo gateway de WhatsApp (camelCase).
"""

from typing import Optional
from pydantic import BaseModel, Field

from src.models.funnel import ConversationSnapshot


class SendMessageRequest(BaseModel):
    """Request body para envio de mensagem."""

    content: str = Field(..., min_length=1, description="Texto enviado pelo usuário")

    class Config:
        json_schema_extra = {
            "example": {"content": "Oi"}
        }


class ConversationVariables(BaseModel):
    name: Optional[str] = None
    birthDate: Optional[str] = Field(None, description="Data de nascimento (YYYY-MM-DD)")
    weightLossReason: Optional[str] = None


class ConversationSummary(BaseModel):
    phoneNumber: str
    status: str
    funnelStep: str
    variables: ConversationVariables


class MessageResponse(BaseModel):
    """Response do endpoint de mensagens."""

    type: str = "text"
    content: str
    conversation: ConversationSummary


class ConversationStatusResponse(BaseModel):
    """Response da consulta de status. status = not_found quando não há conversa."""

    phoneNumber: str
    status: str
    funnelStep: Optional[str] = None
    variables: ConversationVariables = Field(default_factory=ConversationVariables)


def build_variables(conversation: ConversationSnapshot) -> ConversationVariables:
    return ConversationVariables(
        name=conversation.name,
        birthDate=conversation.birth_date.isoformat() if conversation.birth_date else None,
        weightLossReason=conversation.weight_loss_reason,
    )


def build_message_response(conversation: ConversationSnapshot, content: str) -> MessageResponse:
    return MessageResponse(
        type="text",
        content=content,
        conversation=ConversationSummary(
            phoneNumber=conversation.phone,
            status=conversation.status.value,
            funnelStep=conversation.funnel_step.value,
            variables=build_variables(conversation),
        ),
    )
