from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


class EventStreamFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        # Suppress GET /commands/runs/*/events reconnect noise
        return "/events" not in record.getMessage()


def _load_env_files() -> None:
    """Load environment variables from .env files.

    The working directory wins, then the repository root; neither overrides
    variables already set in the process environment.
    """
    load_dotenv()
    root_env = Path(__file__).resolve().parents[2] / ".env"
    if root_env.exists():
        load_dotenv(dotenv_path=root_env, override=False)


_load_env_files()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger("uvicorn.access").addFilter(EventStreamFilter())

from .routers import auth as r_auth  # noqa: E402
from .routers import catalog as r_catalog  # noqa: E402
from .routers import commands as r_commands  # noqa: E402
from .routers import config as r_config  # noqa: E402
from .routers import health as r_health  # noqa: E402
from .routers import reports as r_reports  # noqa: E402

app = FastAPI(title="Test Chat Backend", version=os.getenv("APP_VERSION", "0.1.0"))

# CORS for the local dashboard; adjust via env ALLOW_ORIGINS
allow_origins = os.getenv("ALLOW_ORIGINS", "http://localhost:5173").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in allow_origins if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(r_health.router)
app.include_router(r_auth.router)
app.include_router(r_catalog.router)
app.include_router(r_commands.router)
app.include_router(r_config.router)
app.include_router(r_reports.router)


if __name__ == "__main__":
    import uvicorn

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8001"))
    uvicorn.run("testchat.api.main:app", host=host, port=port, reload=False)
