import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Backing file for the entity store (JSON snapshot of all four tables)
STORE_PATH: str = os.environ.get("STORE_PATH", "./data/db.json")

# Allow requests from this origin
ALLOW_ORIGIN: Optional[str] = os.environ.get("ALLOW_ORIGIN")

# If true, enable docs and openapi.json endpoints
ENABLE_DOCS: bool = os.environ.get("ENABLE_DOCS") == "1"

# Token signing
JWT_SECRET: str = os.environ.get("JWT_SECRET", "uam-development-secret-change-me-in-production")
JWT_ALGORITHM: str = os.environ.get("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES: int = int(os.environ.get("JWT_EXPIRES_MINUTES", "1440"))

# Password hashing cost
BCRYPT_ROUNDS: int = int(os.environ.get("BCRYPT_ROUNDS", "12"))

# Account created when the store is seeded on first startup
DEFAULT_ADMIN_USERNAME: str = os.environ.get("DEFAULT_ADMIN_USERNAME", "admin")
DEFAULT_ADMIN_EMAIL: str = os.environ.get("DEFAULT_ADMIN_EMAIL", "admin@example.com")
DEFAULT_ADMIN_PASSWORD: str = os.environ.get("DEFAULT_ADMIN_PASSWORD", "pa$$w0rd")

# Per-client request limit, keyed on the Authorization header
RATE_LIMIT: str = os.environ.get("RATE_LIMIT", "100/minute")
RATE_LIMIT_ENABLED: bool = os.environ.get("RATE_LIMIT_ENABLED", "1") == "1"

LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")
