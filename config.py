import os
from dotenv import load_dotenv

load_dotenv()


def _csv(name: str, default: str) -> list:
    return [part.strip() for part in os.getenv(name, default).split(",") if part.strip()]


ENV = os.getenv("ENV", "development")

SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    if ENV == "production":
        raise RuntimeError("SECRET_KEY is not set")
    SECRET_KEY = "devsecret"
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480"))

# "memory" oder "sql"
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory")
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./shiftboard.db")

UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(os.getcwd(), "uploads"))
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))

ALLOWED_ORIGINS = _csv("ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
ALLOWED_HOSTS = _csv("ALLOWED_HOSTS", "localhost,127.0.0.1,0.0.0.0")

LOGIN_RATE_LIMIT = os.getenv("LOGIN_RATE_LIMIT", "10/minute")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Startdaten (Admin + Beispiel-Mitarbeiter)
SEED_DATA = os.getenv("SEED_DATA", "true").lower() in ("1", "true", "yes")
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@company.com")
EMPLOYEE_USERNAME = os.getenv("EMPLOYEE_USERNAME", "employee")
EMPLOYEE_PASSWORD = os.getenv("EMPLOYEE_PASSWORD", "password123")
EMPLOYEE_EMAIL = os.getenv("EMPLOYEE_EMAIL", "employee@company.com")

DB_ENCRYPTION_KEY = os.getenv("DB_ENCRYPTION_KEY")
