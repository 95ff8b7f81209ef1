import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def env(name: str, default: Optional[str] = None) -> str:
    v = os.environ.get(name)
    if v is not None and str(v).strip() != "":
        return v
    if default is not None:
        return default
    raise KeyError(f"Missing required env var: {name}")


# ================== DATABASE ==================

DATABASE_URL = env("DATABASE_URL", "sqlite:///./feedindia.db")

# ================== JWT ==================

JWT_SECRET = env("JWT_SECRET", "feed-india-secret-key")
JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_DAYS = int(env("JWT_EXPIRATION_DAYS", "30"))

# ================== PAYMENTS ==================

PAYMENT_SIMULATION_DELAY = float(env("PAYMENT_SIMULATION_DELAY", "1.5"))  # seconds
PAYMENT_SUCCESS_RATE = float(env("PAYMENT_SUCCESS_RATE", "0.95"))
CURRENCY = "INR"

# ₹25 per meal estimate
MEAL_COST = int(env("MEAL_COST", "25"))

# ================== LOGGING / HTTP ==================

LOG_LEVEL = env("LOG_LEVEL", "INFO")

CORS_ORIGINS = [
    o.strip()
    for o in env(
        "CORS_ORIGINS",
        "http://localhost:8080,http://localhost:8081,http://localhost:5173,http://localhost:3000",
    ).split(",")
    if o.strip()
]

# ================== NOTIFICATIONS ==================

SMTP_HOST = os.environ.get("SMTP_HOST", "")
SMTP_PORT = int(env("SMTP_PORT", "25"))
SMTP_FROM = env("SMTP_FROM", "noreply@feedindia.org")
SUPPORT_EMAIL = env("SUPPORT_EMAIL", "support@feedindia.org")
