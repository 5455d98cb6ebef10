import os
from dotenv import load_dotenv

load_dotenv()

MONGO_URI = (os.getenv("MONGO_URI") or "").strip()
DB_HOST = os.getenv("DB_HOST", "127.0.0.1")
DB_PORT = os.getenv("DB_PORT", "27017")
DB_NAME = os.getenv("DB_NAME", "habits_db")

PUSH_MODE = (os.getenv("PUSH_MODE", "stub") or "stub").strip().lower()
PUSH_INTERNAL_TOKEN = (os.getenv("PUSH_INTERNAL_TOKEN", "") or "").strip()
FCM_PROJECT_ID = (os.getenv("FCM_PROJECT_ID", "") or "").strip()
FCM_SERVICE_ACCOUNT_JSON = (os.getenv("FCM_SERVICE_ACCOUNT_JSON", "") or "").strip()
FCM_SERVICE_ACCOUNT_PATH = (os.getenv("FCM_SERVICE_ACCOUNT_PATH", "") or "").strip()
FCM_TIMEOUT_SECONDS = int(os.getenv("FCM_TIMEOUT_SECONDS", "12"))

FALLBACK_TIMEZONE = (os.getenv("FALLBACK_TIMEZONE", "Europe/London") or "Europe/London").strip()
DIGEST_TIME = (os.getenv("DIGEST_TIME", "16:00") or "16:00").strip()
TICK_CONCURRENCY = int(os.getenv("TICK_CONCURRENCY", "8"))

LOG_LEVEL = (os.getenv("LOG_LEVEL", "INFO") or "INFO").strip().upper()
