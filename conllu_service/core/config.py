from pydantic_settings import BaseSettings
from typing import List, Optional
import os

from ..schemas.jobs import HttpProviderConfig

class Settings(BaseSettings):
    PROJECT_NAME: str = "CoNLL-U NLP Service"

    # Default values that can be overridden by environment variables
    NLP_RETRY_WAIT_PERIOD_MS: int = 10000
    NLP_REQUEST_TIMEOUT_S: float = 30.0
    NLP_SERVICES: List[HttpProviderConfig] = []  # JSON list of {"url": ..., "anno_type": ...}
    STORAGE_PATH: Optional[str] = os.getenv("STORAGE_PATH")
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"

    class Config:
        case_sensitive = True
        env_file = ".env"

    def service_for(self, anno_type: str) -> Optional[HttpProviderConfig]:
        """Return the configured prediction service for an annotation type"""
        for service in self.NLP_SERVICES:
            if service.anno_type == anno_type:
                return service
        return None

settings = Settings()
