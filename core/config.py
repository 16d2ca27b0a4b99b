import os
from typing import List
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

class Settings:
    def __init__(self):
        self.database_url: str = os.getenv("DATABASE_URL", "sqlite:///./squares.db")
        self.debug: bool = os.getenv("DEBUG", "False").lower() == "true"
        self.cors_origins: List[str] = [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
        ]
        extra_origins = os.getenv("CORS_ORIGINS", "")
        if extra_origins:
            self.cors_origins.extend(o.strip() for o in extra_origins.split(",") if o.strip())

        # JWT
        # ВАЖЛИВО: на проді обов'язково задати JWT_SECRET_KEY через змінні оточення.
        # "fallback-secret" використовується лише для локальної розробки.
        self.jwt_secret_key: str = os.getenv("JWT_SECRET_KEY", "fallback-secret")
        self.jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
        self.jwt_expire_minutes: int = int(os.getenv("JWT_EXPIRE_MINUTES", 60 * 24 * 3))  # 3 days by default

        # ESPN scoreboard
        self.espn_scoreboard_url: str = os.getenv(
            "ESPN_SCOREBOARD_URL",
            "https://site.api.espn.com/apis/site/v2/sports/football/nfl/scoreboard",
        )
        self.espn_timeout_seconds: float = float(os.getenv("ESPN_TIMEOUT_SECONDS", 5))

        # Reservations / background loops
        self.reservation_ttl_minutes: int = int(os.getenv("RESERVATION_TTL_MINUTES", 10))
        self.expiry_sweep_interval_seconds: int = int(os.getenv("EXPIRY_SWEEP_INTERVAL_SECONDS", 60))
        self.score_poll_interval_seconds: int = int(os.getenv("SCORE_POLL_INTERVAL_SECONDS", 30))
        self.enable_background_tasks: bool = os.getenv("ENABLE_BACKGROUND_TASKS", "False").lower() == "true"
        # Якщо задано, /cron/* вимагає "Authorization: Bearer <CRON_SECRET>"
        self.cron_secret: str = os.getenv("CRON_SECRET", "")

        # Peer-to-peer payment link
        self.venmo_username: str = os.getenv("VENMO_USERNAME", "")
        self.payment_note_prefix: str = os.getenv("PAYMENT_NOTE_PREFIX", "SB Boxes")

settings = Settings()
