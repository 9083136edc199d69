"""Test environment: in-memory SQLite, cheap bcrypt, fixed JWT secret. Set before any app import."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "dev"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret-for-warden-unit-tests-only-0123456789"
os.environ["SEED_ON_STARTUP"] = "false"
os.environ["SEED_ADMIN_EMAIL"] = "admin@example.com"
os.environ["DEFAULT_LOCALE"] = "en"
os.environ.pop("SMTP_HOST", None)
