import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./gym_agenda.db")

# Calendar computations (ISO week id, end of month) happen in the gym's local time
GYM_TIMEZONE = os.getenv("GYM_TIMEZONE", "Europe/Rome")

# Ledger configuration
MONTHLY_FEE = float(os.getenv("MONTHLY_FEE", "25"))

# Optimistic concurrency: how many times a conflicting transaction is re-run
TRANSACTION_MAX_ATTEMPTS = int(os.getenv("TRANSACTION_MAX_ATTEMPTS", "5"))

# Firebase Configuration (push notifications)
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")
# Path to a service account JSON; Application Default Credentials are used when unset
FIREBASE_CREDENTIALS_PATH = os.getenv("FIREBASE_CREDENTIALS_PATH")

# Comma separated list of allowed origins for the web front end
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]
