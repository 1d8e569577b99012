from sqlalchemy.orm import Session
from sqlalchemy import text
from typing import Optional
from src.models.conversation import ReasonExample
import logging

logger = logging.getLogger(__name__)

# Exemplos que alimentam o índice de similaridade
QUALIFIED_REASONS = [
    "Preciso fazer cirurgia e o médico exigiu perder peso",
    "Minha saúde está em risco, pressão alta e diabetes",
    "Quero engravidar mas o médico disse que preciso emagrecer",
    "Tenho dor nas articulações por causa do peso",
    "Meu colesterol está altíssimo e estou com medo de infarto",
]

REJECTED_REASONS = [
    "Quero ficar mais bonita pro verão",
    "Quero usar biquini na praia",
    "Quero ficar magra para as fotos",
    "Quero um corpo perfeito",
    "Quero impressionar meu namorado",
]


def _to_vector_literal(embedding: list) -> str:
    # Converter embedding para string PostgreSQL
    return '[' + ','.join(map(str, embedding)) + ']'


class ReasonIndexService:
    """Busca o motivo de exemplo mais próximo usando pgvector"""

    def __init__(self, db: Session):
        self.db = db

    async def query_nearest(self, embedding: list) -> Optional[dict]:
        """
        Busca o exemplo mais similar (top-1, distância cosseno)

        Args:
            embedding: Vetor do motivo informado pelo usuário

        Returns:
            dict {"score": float, "metadata": {"reason", "qualified"}} ou None se o índice estiver vazio

        Raises:
            Exception: falhas de banco são propagadas após rollback
        """
        query = text("""
            SELECT
                reason,
                qualified,
                1 - (embedding <=> CAST(:embedding AS vector)) as similarity
            FROM reason_examples
            WHERE embedding IS NOT NULL
            ORDER BY embedding <=> CAST(:embedding AS vector)
            LIMIT 1
        """)

        try:
            row = self.db.execute(query, {"embedding": _to_vector_literal(embedding)}).first()
        except Exception as e:
            logger.error(f"❌ Error querying reason index: {e}")
            # Limpa a transação abortada para não afetar as próximas escritas
            self.db.rollback()
            raise

        if row is None:
            logger.info("Reason index returned no match")
            return None

        match = {
            "score": float(row.similarity) if row.similarity is not None else None,
            "metadata": {"reason": row.reason, "qualified": row.qualified},
        }
        logger.info(f"✅ Nearest reason: '{row.reason}' (qualified={row.qualified}, score={match['score']})")
        return match


async def seed_reason_examples(db: Session, embedder) -> int:
    """
    Popula reason_examples com os exemplos qualificados e rejeitados.

    Idempotente: exemplos já existentes são ignorados.

    Returns:
        int: quantidade de exemplos inseridos
    """
    examples = [(reason, True) for reason in QUALIFIED_REASONS]
    examples += [(reason, False) for reason in REJECTED_REASONS]

    existing = {
        reason for (reason,) in db.query(ReasonExample.reason).filter(
            ReasonExample.reason.in_([reason for reason, _ in examples])
        )
    }

    inserted = 0
    for reason, qualified in examples:
        if reason in existing:
            continue

        embedding = await embedder.generate_embedding(reason, task_type="retrieval_document")
        db.execute(
            text("""
                INSERT INTO reason_examples (id, reason, qualified, embedding, created_at)
                VALUES (gen_random_uuid(), :reason, :qualified, CAST(:embedding AS vector), now())
                ON CONFLICT (reason) DO NOTHING
            """),
            {"reason": reason, "qualified": qualified, "embedding": _to_vector_literal(embedding)}
        )
        inserted += 1

    db.commit()
    logger.info(f"Reason index seeded: {inserted} new examples ({len(existing)} already present)")
    return inserted
