from __future__ import annotations

import os


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///ucrif.db",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # "tenant" -> artifacts/{tenant}/{collection}
    # "user"   -> artifacts/{tenant}/users/{user}/{collection}
    RECORD_SCOPE = os.getenv("UCRIF_RECORD_SCOPE", "tenant")
    DEFAULT_APP_ID = os.getenv("UCRIF_DEFAULT_APP_ID", "default-app-id")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
