import os
from dataclasses import dataclass, field
from typing import List
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Settings:
    ENV: str = os.getenv("ENV", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    OFF_BASE_URL: str = os.getenv("OFF_BASE_URL", "https://world.openfoodfacts.org").rstrip("/")
    OFF_TIMEOUT: float = float(os.getenv("OFF_TIMEOUT", "10"))
    OFF_USER_AGENT: str = os.getenv("OFF_USER_AGENT", "EcoScan/0.1.0 (sustainability lookup)")
    ALLOW_ORIGINS: List[str] = field(default_factory=lambda: os.getenv("ALLOW_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(","))

settings = Settings()
