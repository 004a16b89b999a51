from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # App
    APP_NAME: str = "RideLedger"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:5173"]

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_SERVICE_KEY: str = ""

    # OCR
    TESSERACT_CMD: str = "/usr/bin/tesseract"
    TESSERACT_LANG: str = "ron"

    # Storage
    DOCUMENT_BUCKET: str = "documents"
    MAX_UPLOAD_MB: int = 10

    # VAT reference data
    VAT_CACHE_TTL_SECONDS: int = 3600

    # ANAF registry
    ANAF_URL: str = "https://webservicesp.anaf.ro/PlatitorTvaRest/api/v8/ws/tva"
    ANAF_TIMEOUT_SECONDS: float = 10.0

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
