import os
from dotenv import load_dotenv

# Load .env file
load_dotenv()

class Config:
    # --- MongoDB Settings ---
    MONGO_URI = os.getenv("MONGO_URI")
    DB_NAME = os.getenv("DB_NAME", "taskhub") # Can be overridden in .env

    # --- Environment ---
    ENV = os.getenv("ENV", "development") # "development", "production" or "testing"
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # --- Logging ---
    LOG_LEVEL = os.getenv("LOG_LEVEL") # Defaults to DEBUG in development, INFO elsewhere
    LOG_DIR = os.getenv("LOG_DIR") # Rotating JSON log file; defaults to ./logs

    # --- Security Settings ---
    # In production, ALWAYS set this in .env. Never use the fallback.
    SECRET_KEY = os.getenv("SECRET_KEY")
    if ENV == "production" and not SECRET_KEY:
        raise ValueError("SECRET_KEY environment variable is mandatory in production!")
    elif not SECRET_KEY:
        SECRET_KEY = "dev_secret_key_change_in_prod"
    ALGORITHM = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24 * 7 # 7 Days

    # --- Notification Settings ---
    NOTIFICATION_PAGE_SIZE = int(os.getenv("NOTIFICATION_PAGE_SIZE", "20"))
    NOTIFICATION_MAX_PAGE_SIZE = int(os.getenv("NOTIFICATION_MAX_PAGE_SIZE", "100"))
    NOTIFICATION_RETENTION_DAYS = int(os.getenv("NOTIFICATION_RETENTION_DAYS", "30")) # Read notifications older than this are swept
    NOTIFICATION_POLL_INTERVAL_SECONDS = float(os.getenv("NOTIFICATION_POLL_INTERVAL_SECONDS", "30"))
    NOTIFICATION_WRITE_TIMEOUT_SECONDS = float(os.getenv("NOTIFICATION_WRITE_TIMEOUT_SECONDS", "5")) # Engine drops writes slower than this

    # --- Inbox Client ---
    API_URL = os.getenv("API_URL", "http://localhost:8000")

config = Config()
