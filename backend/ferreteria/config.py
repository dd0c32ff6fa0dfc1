# backend/ferreteria/config.py
from __future__ import annotations
import os


STOCK_ADJUSTMENT_MODES = ("atomic", "per_line")


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/ferreteria.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///ferreteria.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Upper bound for a single store round-trip; expiry is reported as a connectivity failure
    STORE_TIMEOUT_SECONDS = float(os.environ.get("STORE_TIMEOUT_SECONDS", "5"))

    # "atomic": sale row + conditional decrements share one transaction
    # "per_line": sale committed first, each line decremented on its own (legacy behavior)
    STOCK_ADJUSTMENT_MODE = os.environ.get("STOCK_ADJUSTMENT_MODE", "atomic")

    CORS_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:8080",
        ).split(",")
        if origin.strip()
    }


def engine_options(database_uri: str, timeout_seconds: float) -> dict:
    """
    Engine options that bound how long a store call may block.

    SQLite has no connection pool timeout worth tuning; its busy timeout is
    what makes a locked database fail instead of hanging.
    """
    if database_uri.startswith("sqlite"):
        return {"connect_args": {"timeout": timeout_seconds}}
    return {
        "pool_pre_ping": True,
        "pool_timeout": timeout_seconds,
        "connect_args": {"connect_timeout": int(max(timeout_seconds, 1))},
    }
