from fastapi                        import APIRouter
from .reminders.reminders           import router as reminders_router


api_router = APIRouter(prefix="/api/v1")

api_router.include_router(reminders_router)
