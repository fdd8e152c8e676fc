from __future__ import annotations
import os
from pydantic import BaseModel

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "fantasy-contest-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "Fantasy Contest")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/fantasy_dev")
    redis_url: str = os.getenv("REDIS_URL", "redis://redis:6379/0")
    notification_queue: str = os.getenv("NOTIFICATION_QUEUE", "notifications")

    # Wallet amounts (virtual coins, integer)
    welcome_bonus_amount: int = int(os.getenv("WELCOME_BONUS_AMOUNT", "500"))
    daily_login_bonus_amount: int = int(os.getenv("DAILY_LOGIN_BONUS_AMOUNT", "100"))
    contest_join_fee: int = int(os.getenv("CONTEST_JOIN_FEE", "50"))

    # Contest shape
    roster_size: int = int(os.getenv("ROSTER_SIZE", "11"))
    leaderboard_size: int = int(os.getenv("LEADERBOARD_SIZE", "20"))

    # Live score simulation (background task, off unless enabled)
    live_sim_enabled: bool = os.getenv("LIVE_SIM_ENABLED", "0") == "1"
    live_sim_interval_seconds: float = float(os.getenv("LIVE_SIM_INTERVAL_SECONDS", "8"))

settings = Settings()
