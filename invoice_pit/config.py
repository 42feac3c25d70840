"""
アプリケーション設定を管理
環境変数から設定を読み込む
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """アプリケーション設定"""

    # データベース
    DATABASE_URL: str = "postgresql://postgres:password@db:5432/invoice_db"

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"

    # Celery
    CELERY_BROKER_URL: str = "redis://redis:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://redis:6379/0"

    # Stripe Webhook
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_WEBHOOK_TOLERANCE: int = 300  # 秒

    # 請求書計算
    TAX_RATE_PERCENT: int = 10

    # 無料枠
    FREE_TIER_MAX_INVOICES: int = 3
    FREE_TIER_TRIAL_MONTHS: int = 3

    # アプリケーション
    APP_NAME: str = "請求書ぴっと"
    DEBUG: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
