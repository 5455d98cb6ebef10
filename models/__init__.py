from __future__ import annotations

from motor.motor_asyncio import AsyncIOMotorDatabase
from beanie import init_beanie
from .db import db, client
from .users import User
from .habits import Habit
from .push_tokens import PushToken

ALL_MODELS = [
    User,
    Habit,
    PushToken,
]


async def init_models(database: AsyncIOMotorDatabase) -> None:
    await init_beanie(database=database, document_models=ALL_MODELS)
