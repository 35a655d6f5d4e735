import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from photovocab.config import get_settings, validate_mongo_settings
from photovocab.db import create_indexes, ping_db
from photovocab.routes.analytics import router as analytics_router
from photovocab.routes.practice import router as practice_router
from photovocab.routes.review import router as review_router
from photovocab.routes.vocab import router as vocab_router
from photovocab.services.rate_limit import FixedWindowRateLimiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if settings.store_backend == "mongo":
        try:
            validate_mongo_settings(settings)
            await ping_db()
            await create_indexes()
        except RuntimeError:
            raise
        except Exception as exc:
            raise RuntimeError(
                "Failed to start backend. Check MongoDB connection and env values (MONGO_URL, MONGO_DB)."
            ) from exc
    logger.info("Photo vocabulary backend started with %s store", settings.store_backend)
    yield


app = FastAPI(title="Photo Vocabulary SRS Backend", version="1.0.0", lifespan=lifespan)

_settings = get_settings()
app.state.attempt_limiter = FixedWindowRateLimiter(
    limit=_settings.attempt_rate_limit,
    window_seconds=_settings.attempt_rate_window_seconds,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(vocab_router)
app.include_router(review_router)
app.include_router(practice_router)
app.include_router(analytics_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
