from pydantic_settings import BaseSettings
from typing import List, Optional
from pathlib import Path


class Settings(BaseSettings):
    PROJECT_NAME: str = "Yuki Ledger"

    # Database - local SQLite file by default, override with environment variable
    DATABASE_URL: str = "sqlite:///./yuki.db"

    # File Storage
    UPLOAD_DIR: str = "./uploads"

    # App Settings
    DEBUG: bool = False
    CORS_ORIGINS: List[str] = [
        "http://localhost:1420",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "tauri://localhost",
    ]

    # Ledger defaults
    DEFAULT_CURRENCY: str = "USD"
    # "reject" raises DuplicateError on a repeated file hash, "version" stores a new document row
    DUPLICATE_UPLOAD_POLICY: str = "reject"

    # A PDF whose text layer is smaller than either threshold is treated as scanned
    SCANNED_PDF_MIN_CHARS: int = 50
    SCANNED_PDF_MIN_WORDS: int = 10
    MAX_VISION_PAGES: int = 5
    VISION_DPI: int = 144

    # Query engine
    QUERY_ROW_LIMIT: int = 200
    CONVERSATION_HISTORY_LIMIT: int = 10

    # Fallback model provider, used until one is saved through /settings
    LLM_PROVIDER: str = "ollama"
    LLM_ENDPOINT: Optional[str] = None
    LLM_API_KEY: Optional[str] = None
    LLM_MODEL: Optional[str] = None
    LLM_VISION_MODEL: Optional[str] = None
    LLM_TIMEOUT_SECONDS: float = 120.0

    class Config:
        # Use absolute path to .env file
        env_file = Path(__file__).parent.parent.parent / ".env"
        env_file_encoding = 'utf-8'
        extra = "ignore"


settings = Settings()
