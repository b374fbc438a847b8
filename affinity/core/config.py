from typing import Optional

from pydantic import BaseModel
import os
from dotenv import load_dotenv

load_dotenv()


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else None


class Settings(BaseModel):
    port: int = int(os.getenv("PORT", "8080"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    mongo_uri: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    mongo_db: str = os.getenv("MONGO_DB", "affinity")
    store_backend: str = os.getenv("STORE_BACKEND", "mongo")

    age_off_max_days: int = int(os.getenv("AGE_OFF_MAX_DAYS", "180"))
    age_off_exponent: float = float(os.getenv("AGE_OFF_EXPONENT", "3"))
    age_off_easing: float = float(os.getenv("AGE_OFF_EASING", "2"))

    recompute_concurrency: int = int(os.getenv("RECOMPUTE_CONCURRENCY", "2"))
    recompute_timeout: Optional[float] = _optional_float("RECOMPUTE_TIMEOUT")


settings = Settings()
