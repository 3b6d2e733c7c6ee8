from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import os
from dotenv import load_dotenv
import logging

from yuki.core.config import settings
from yuki.api.v1.api import api_router
from yuki.core.database import Base, engine, SessionLocal
from yuki import models  # noqa: F401  registers every table on Base.metadata
from yuki.services.seeding_service import SeedingService

# Load environment variables
load_dotenv()

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Configure audit logger (JSON lines)
audit_logger = logging.getLogger("audit")
if not audit_logger.handlers:
    handler = logging.StreamHandler()
    # Keep raw JSON line without extra prefixes
    handler.setFormatter(logging.Formatter("%(message)s"))
    audit_logger.addHandler(handler)
audit_logger.setLevel(logging.INFO)
# Do not propagate to root to avoid duplication
audit_logger.propagate = False

# Create uploads directory if it doesn't exist
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)

api_description = """
## Yuki - local-first personal finance ledger

- **Documents**: upload bank statements and receipts (PDF, CSV, TXT, photos)
- **Ledger**: every transaction, whatever its source, in one signed-amount table
- **Query**: ask questions in plain language and get text, chart and table cards
- **Chat**: mention a purchase in conversation and it is recorded
"""

app = FastAPI(
    title=settings.PROJECT_NAME,
    description=api_description,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# GZip compression for large JSON responses
app.add_middleware(GZipMiddleware, minimum_size=500)

# Set up CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router, prefix="/api/v1")


# --- Schema and idempotent seeding on startup ---
@app.on_event("startup")
def seed_on_startup():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        stats = SeedingService.seed_all(db)
        logger.info(f"Startup seeding: {stats}")
    except Exception as e:
        # Do not block startup if seeding fails; just log
        logger.error(f"Seeding error: {e}")
    finally:
        db.close()


@app.get("/")
async def root():
    return {"message": f"{settings.PROJECT_NAME} API is running"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000)
