from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

BACKEND_DIR = Path(__file__).resolve().parent
REPO_ROOT = BACKEND_DIR.parent
load_dotenv(BACKEND_DIR / ".env", override=False)
load_dotenv(REPO_ROOT / ".env", override=False)

from core.ai_engine import ai_engine
from core.settings import cors_origins, training_pacing
from routers.ai_datasets import router as ai_datasets_router
from routers.ai_models import router as ai_models_router
from routers.ai_websocket import router as ai_ws_router

logger = logging.getLogger(__name__)
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


@asynccontextmanager
async def lifespan(_: FastAPI):
    datasets = ai_engine.get_all_datasets()
    logger.info(
        "AI engine ready with datasets: %s",
        ", ".join(f"{d.id} ({len(d.rows)} rows)" for d in datasets),
    )
    pacing = training_pacing()
    if pacing > 0:
        logger.info("Training pacing enabled (x%.2f)", pacing)
    else:
        logger.info("Training pacing disabled; models train as fast as possible")
    yield


app = FastAPI(title="Learnonauts AI Builder Backend", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ai_datasets_router)
app.include_router(ai_models_router)
app.include_router(ai_ws_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)
