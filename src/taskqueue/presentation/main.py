from __future__ import annotations

from fastapi import FastAPI

from src.setup.api_config import get_api_settings
from src.setup.app_config import configure_di

# Configure DI once at process start
_settings = get_api_settings()
configure_di()

app = FastAPI(
    title=_settings.APP_NAME,
    version=_settings.APP_VERSION,
    description="Durable message task queue: producers queue tasks, dispatchers claim and report them",
)

# Routes instantiate services at import time, so import them AFTER configure_di()
from src.taskqueue.presentation.routes import router as task_router  # noqa: E402

app.include_router(task_router, prefix="")
