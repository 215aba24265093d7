"""FastAPI 웹 애플리케이션 팩토리."""

from __future__ import annotations

from fastapi import FastAPI

from tagregen.infrastructure.config.container import Container
from tagregen.presentation.web.routes import api


def create_app(container: Container) -> FastAPI:
    app = FastAPI(title=container.config.name, version="0.1.0")

    # 컨테이너를 앱 state에 저장
    app.state.container = container

    app.include_router(api.router, prefix="/api")

    return app
