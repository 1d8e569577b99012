from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from src.core.database import get_db
from src.core.state_manager import ConversationRepository
from src.agents.writer import WriterAgent
from src.models.schemas import SendMessageRequest, MessageResponse, ConversationStatusResponse
from src.services.conversation_service import ConversationService, ConversationExpiredError
from src.services.embedding_service import embedding_service
from src.services.funnel import FunnelStateMachine
from src.services.reason_index import ReasonIndexService
from src.services.similarity_classifier import SimilarityClassifier
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["Conversations"])


def get_conversation_service(db: Session = Depends(get_db)) -> ConversationService:
    """Monta o serviço com as dependências da requisição"""
    classifier = SimilarityClassifier(
        embedder=embedding_service,
        index=ReasonIndexService(db)
    )
    funnel = FunnelStateMachine(writer=WriterAgent(), classifier=classifier)
    return ConversationService(repository=ConversationRepository(db), funnel=funnel)


@router.post("/{phone_number}/messages", response_model=MessageResponse, response_model_exclude_none=True)
async def send_message(
    phone_number: str,
    request: SendMessageRequest,
    service: ConversationService = Depends(get_conversation_service)
):
    """
    Processa a mensagem do usuário pelo funil e retorna a resposta do atendente
    """
    try:
        return await service.handle_inbound(phone_number, request.content)

    except ConversationExpiredError as e:
        raise HTTPException(
            status_code=status.HTTP_410_GONE,
            detail=str(e)
        )
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Erro ao processar mensagem"
        )


@router.get("/{phone_number}/status", response_model=ConversationStatusResponse, response_model_exclude_none=True)
async def get_status(
    phone_number: str,
    service: ConversationService = Depends(get_conversation_service)
):
    """
    Status da conversa e variáveis coletadas
    """
    return service.get_status(phone_number)
