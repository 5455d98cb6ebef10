import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from config import LOG_LEVEL
from models import db, client, init_models
from api.api_router import api_router

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models(db)
    yield
    client.close()

app = FastAPI(
    lifespan=lifespan,
    title="habit_reminders",
)

app.include_router(api_router)

@app.get("/healthcheck", status_code=200)
async def healthcheck():
    return {"status": "ok"}
