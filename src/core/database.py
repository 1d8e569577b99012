from sqlalchemy import create_engine, text
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from .config import settings

# Ensure we use 127.0.0.1 instead of localhost to avoid Windows/Docker resolution issues
db_url = settings.DATABASE_URL.replace("localhost", "127.0.0.1")

engine = create_engine(db_url, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    """
    Creates all tables defined in the metadata.
    This replaces Alembic for simple setups.
    """
    # Import models here to ensure they are registered with Base
    from src.models.conversation import Conversation, Message, ReasonExample  # noqa

    from sqlalchemy.orm import configure_mappers
    configure_mappers()

    # Enable pgvector extension
    with engine.connect() as connection:
        connection.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        connection.commit()

    Base.metadata.create_all(bind=engine)

    # Embedding column lives outside the ORM (queried with raw pgvector SQL)
    with engine.connect() as connection:
        connection.execute(text(
            "ALTER TABLE reason_examples "
            f"ADD COLUMN IF NOT EXISTS embedding vector({int(settings.EMBEDDING_DIMENSIONS)})"
        ))
        connection.commit()
