from google.generativeai import embed_content
import google.generativeai as genai
import logging

logger = logging.getLogger(__name__)

class EmbeddingService:
    """Gera embeddings para busca semântica de motivos"""
    
    def __init__(self):
        from src.core.config import settings
        self.api_key = settings.GOOGLE_GEMINI_API_KEY
        if self.api_key:
            genai.configure(api_key=self.api_key)
        self.model = settings.GEMINI_EMBEDDING_MODEL
    
    async def generate_embedding(self, text: str, task_type: str = "retrieval_query") -> list:
        """
        Gera embedding de um texto usando Gemini
        
        Args:
            text: Texto para gerar embedding (motivo informado ou exemplo do índice)
            task_type: "retrieval_query" para consultas, "retrieval_document" para exemplos
        
        Returns:
            list: Vetor de 768 dimensões

        Raises:
            Exception: qualquer falha da API é propagada (o classificador tem fallback próprio)
        """
        if not self.api_key:
            raise ValueError("Gemini API key not configured")

        try:
            # Limitar tamanho do texto (Gemini tem limite)
            text_truncated = text[:2000]
            
            result = embed_content(
                model=self.model,
                content=text_truncated,
                task_type=task_type
            )
            
            embedding = result['embedding']
            logger.info(f"Generated embedding with {len(embedding)} dimensions")
            
            return embedding
            
        except Exception as e:
            logger.error(f"Error generating embedding: {e}")
            raise

embedding_service = EmbeddingService()
