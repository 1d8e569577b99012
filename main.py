from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import HTTPException as FastAPIHTTPException
from src.core.config import settings
from src.routes.conversations import router as conversations_router
import uvicorn
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def seed_reason_index():
    """Popula o índice de motivos. Falhas não impedem a subida da API."""
    from src.core.database import SessionLocal
    from src.services.embedding_service import embedding_service
    from src.services.reason_index import seed_reason_examples

    db = SessionLocal()
    try:
        await seed_reason_examples(db, embedding_service)
    except Exception as e:
        logger.error(f"Error seeding reason index (keyword fallback will be used): {e}")
        db.rollback()
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gerencia ciclo de vida da aplicação."""
    from src.core.database import init_db
    logger.info("Initializing database tables...")
    init_db()
    logger.info("Database tables created successfully.")

    if settings.SEED_REASON_EXAMPLES:
        await seed_reason_index()

    yield

    logger.info("Shutting down Clinic Funnel Backend...")


app = FastAPI(title="Clinic Funnel Backend", lifespan=lifespan)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Standardize error responses to {"message": "..."}
@app.exception_handler(FastAPIHTTPException)
async def custom_http_exception_handler(request: Request, exc: FastAPIHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})

# Include routers
app.include_router(conversations_router)

@app.get("/health")
def health_check():
    return {"status": "ok"}

if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.API_HOST, port=settings.API_PORT, reload=True)
