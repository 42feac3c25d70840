"""
FastAPIアプリケーションのエントリーポイント
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from invoice_pit import __version__
from invoice_pit.api import billing_webhook, health, invoices, organizer, organizers, talent
from invoice_pit.core.exceptions import InvoiceError
from invoice_pit.models.database import init_db
from invoice_pit.config import settings

# ログ設定
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """アプリケーションのライフサイクル管理"""
    # 起動時
    logger.info(f"Starting {settings.APP_NAME}...")
    init_db()
    yield
    # 終了時
    logger.info(f"Shutting down {settings.APP_NAME}...")


app = FastAPI(
    title=settings.APP_NAME,
    description="タレントと主催者をつなぐ請求書作成・承認システム",
    version=__version__,
    lifespan=lifespan,
)

# CORS設定
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InvoiceError)
async def invoice_error_handler(request: Request, exc: InvoiceError):
    """業務エラーを利用者向けメッセージに変換"""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ルーター登録
app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(invoices.router, tags=["Invoices"])
app.include_router(organizers.router, prefix="/organizers", tags=["Organizers"])
app.include_router(talent.router, prefix="/talent", tags=["Talent"])
app.include_router(organizer.router, prefix="/organizer", tags=["Organizer"])
app.include_router(billing_webhook.router, prefix="/webhook", tags=["Billing"])


@app.get("/")
def root():
    """ルートエンドポイント"""
    return {
        "service": settings.APP_NAME,
        "message": f"{settings.APP_NAME} APIサーバー稼働中",
        "version": __version__,
        "docs": "/docs",
    }
