"""Run a single reminder tick and exit.

Point cron or a systemd timer at it once a minute:

    * * * * *  cd /srv/habit-reminders && .venv/bin/python -m tick_runner
"""
from __future__ import annotations

import asyncio
import logging

from config import LOG_LEVEL
from models import client, db, init_models
from api.reminders.services import run_tick
from api.reminders.store import MongoReminderStore
from utils.fcm import build_transport

logger = logging.getLogger("tick_runner")


async def run_once() -> None:
    try:
        await init_models(db)
        result = await run_tick(MongoReminderStore(), build_transport())
        logger.info("[tick][done] %s", result.model_dump())
    finally:
        client.close()


def main() -> None:
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(run_once())


if __name__ == "__main__":
    main()
