import logging
from typing import Optional

logger = logging.getLogger(__name__)

# Score fixo quando o exemplo mais próximo é um motivo rejeitado
REJECTED_MATCH_SCORE = 0.2

# Motivos estéticos (REJEITADOS)
AESTHETIC_KEYWORDS = [
    'bonit', 'verão', 'praia', 'biquini', 'roupa', 'vestido', 'aparencia',
    'aparência', 'beleza', 'magr', 'secar', 'definir', 'corpo', 'barriga',
    'perna', 'braço', 'selfie', 'foto', 'instagram', 'namor', 'paquera'
]

# Motivos de saúde (QUALIFICADOS)
HEALTH_KEYWORDS = [
    'médico', 'cirurgia', 'saúde', 'diabetes', 'pressão', 'colesterol',
    'articulações', 'dor', 'engravidar', 'infarto', 'risco', 'doença',
    'problema', 'exame', 'tratamento', 'remédio', 'hospital'
]


class SimilarityClassifier:
    """
    Calcula a confiança (0 a 1) de que um motivo para emagrecer é de saúde.

    Usa embedding + índice de exemplos; se qualquer etapa falhar,
    cai para a heurística de palavras-chave.
    """

    def __init__(self, embedder, index):
        self.embedder = embedder
        self.index = index

    async def score(self, text: str, phone: Optional[str] = None) -> float:
        stage = "embedding"
        try:
            embedding = await self.embedder.generate_embedding(text)
            stage = "index_query"
            match = await self.index.query_nearest(embedding)
        except Exception as e:
            logger.warning(
                f"Similarity search failed for {phone} at {stage}, using keyword fallback: {e}"
            )
            return self.fallback_score(text)

        if not match:
            return 0.0

        # Match com motivo rejeitado sempre vira score baixo
        if (match.get("metadata") or {}).get("qualified") is False:
            return REJECTED_MATCH_SCORE

        score = match.get("score") or 0.0
        return min(max(float(score), 0.0), 1.0)

    def fallback_score(self, text: str) -> float:
        text_lower = text.lower()

        # Estético tem precedência sobre saúde
        if any(keyword in text_lower for keyword in AESTHETIC_KEYWORDS):
            return 0.2

        if any(keyword in text_lower for keyword in HEALTH_KEYWORDS):
            return 0.8

        # Caso neutro, rejeita por segurança
        return 0.3
