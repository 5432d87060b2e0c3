import os
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = LOG_LEVEL == "DEBUG"

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise ValueError("DATABASE_URL must be set in the environment")

# Postgres schema for all tables; unset keeps the connection's default schema
SCHEMA = os.getenv("DB_SCHEMA") or None

ALLOWED_ORIGINS_RAW = os.getenv("ALLOWED_ORIGINS")
if not ALLOWED_ORIGINS_RAW:
    raise ValueError("ALLOWED_ORIGINS must be set in the environment")

ALLOWED_ORIGINS: list[str] = [
    origin.strip() for origin in ALLOWED_ORIGINS_RAW.split(",")
]

# Payment processor (Stripe)
PAYMENT_SECRET_KEY = os.getenv("PAYMENT_SECRET_KEY", "")
PAYMENT_WEBHOOK_SECRET = os.getenv("PAYMENT_WEBHOOK_SECRET", "")
PAYMENT_TIMEOUT_SECONDS = float(os.getenv("PAYMENT_TIMEOUT_SECONDS", "10"))

# Property-management system (Smoobu)
PMS_BASE_URL = os.getenv("PMS_BASE_URL", "https://login.smoobu.com")
PMS_TIMEOUT_SECONDS = float(os.getenv("PMS_TIMEOUT_SECONDS", "10"))
PMS_CHANNEL_ID = int(os.getenv("PMS_CHANNEL_ID", "70"))

# Relative tolerance between client-submitted and server-computed prices
PRICE_TOLERANCE = float(os.getenv("PRICE_TOLERANCE", "0.01"))

# Platform commission taken from each charge, in percent; owners may override it
PLATFORM_FEE_PERCENT = Decimal(os.getenv("PLATFORM_FEE_PERCENT", "10"))

PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")
