"""Bookmark Tag Regenerator — 엔트리포인트.

1. 설정 로드 (.env + config/settings.yaml)
2. Firebase Firestore 초기화
3. 의존성 컨테이너 조립
4. 명령 실행: 웹 서버(+스케줄러), 즉시 재생성, 실패 항목 재시도, 실패 목록
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from pathlib import Path
from typing import Callable

import uvicorn

from tagregen.application.use_cases.regenerate_tags import BulkRegenerationEngine
from tagregen.application.use_cases.run_tracker import RunMode
from tagregen.application.use_cases.scheduler import Orchestrator
from tagregen.domain.entities import ProgressSnapshot, RunResult
from tagregen.infrastructure.config.container import Container
from tagregen.infrastructure.config.settings import AppConfig, Settings, load_app_config
from tagregen.infrastructure.database.firebase_client import init_firebase
from tagregen.presentation.web.app import create_app

Path("logs").mkdir(exist_ok=True)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler("logs/app.log", encoding="utf-8"),
    ],
)
logger = logging.getLogger(__name__)


def build_container(settings: Settings, config: AppConfig, preview: bool | None = None) -> Container:
    db = init_firebase(
        credential_path=settings.firebase_credential_path,
        project_id=settings.firebase_project_id or None,
    )
    return Container(settings=settings, app_config=config, firestore_db=db, preview_mode=preview)


def print_progress(snapshot: ProgressSnapshot) -> None:
    label = f" — {snapshot.current_label}" if snapshot.current_label else ""
    print(
        f"[{snapshot.status.value}] {snapshot.processed}/{snapshot.total} "
        f"(성공 {snapshot.successful}, 실패 {snapshot.failed}){label}"
    )


async def run_server(settings: Settings, config: AppConfig, no_scheduler: bool = False) -> None:
    """메인 서버 실행."""
    container = build_container(settings, config)

    orchestrator = None
    if not no_scheduler:
        orchestrator = Orchestrator(container)
        orchestrator.setup_jobs()
        orchestrator.start()

    app = create_app(container)
    server_config = uvicorn.Config(
        app,
        host=config.web.host,
        port=config.web.port,
        log_level="info",
    )
    server = uvicorn.Server(server_config)

    logger.info(
        f"서버 시작: http://{config.web.host}:{config.web.port} "
        f"(스케줄러: {'ON' if orchestrator else 'OFF'})"
    )

    try:
        await server.serve()
    finally:
        if orchestrator:
            orchestrator.stop()


async def run_interruptible(
    engine: BulkRegenerationEngine,
    mode: RunMode,
    on_progress: Callable[[ProgressSnapshot], None],
) -> RunResult:
    """엔진 실행 중 SIGINT(Ctrl+C)를 취소 요청으로 바꾼다.

    진행 중인 호출은 끝까지 기다리고 다음 배치부터 멈춘다.
    """
    loop = asyncio.get_running_loop()
    token = engine.begin()
    runner = (
        engine.retry_failed(on_progress, token)
        if mode == RunMode.RETRY
        else engine.regenerate_all(on_progress, token)
    )
    task = asyncio.create_task(runner)

    try:
        loop.add_signal_handler(signal.SIGINT, engine.cancel)
    except (NotImplementedError, RuntimeError):
        # Windows 이벤트 루프 등 시그널 핸들러를 지원하지 않는 경우
        try:
            return await asyncio.shield(task)
        except (KeyboardInterrupt, asyncio.CancelledError):
            engine.cancel()
            return await task

    try:
        return await task
    finally:
        loop.remove_signal_handler(signal.SIGINT)


async def run_now(settings: Settings, config: AppConfig, mode: RunMode, preview: bool) -> None:
    """태그 재생성을 즉시 실행하고 진행 상황을 출력. Ctrl+C로 취소."""
    container = build_container(settings, config, preview=preview or None)
    result = await run_interruptible(container.engine, mode, print_progress)

    print(
        f"완료: 전체 {result.total}건, 성공 {result.successful}건, "
        f"실패 {result.failed}건{' (취소됨)' if result.cancelled else ''}"
    )
    for url, tags in result.previews.items():
        print(f"  {url}: {', '.join(tags)}")


async def show_failures(settings: Settings, config: AppConfig) -> None:
    container = build_container(settings, config)
    max_retries = container.generation_config.max_retries
    failures = await container.failure_repo.get_all()
    if not failures:
        print("태그 생성 실패 기록 없음")
        return
    for f in failures:
        state = "재시도 가능" if f.is_retriable(max_retries) else "재시도 한도 초과"
        print(f"{f.url}  [{f.retry_count}/{max_retries} {state}]  {f.reason}")
    print(f"\n총 {len(failures)}건")


def main() -> None:
    parser = argparse.ArgumentParser(description="Bookmark Tag Regenerator")
    subparsers = parser.add_subparsers(dest="command", help="실행 명령")

    serve_parser = subparsers.add_parser("serve", help="서버 시작 (API + 스케줄러)")
    serve_parser.add_argument("--no-scheduler", action="store_true", help="스케줄러 없이 시작 (API만)")

    all_parser = subparsers.add_parser("regenerate-all", help="모든 북마크 태그 즉시 재생성")
    all_parser.add_argument("--preview", action="store_true", help="저장하지 않고 결과만 출력")

    retry_parser = subparsers.add_parser("retry-failed", help="실패한 북마크만 즉시 재시도")
    retry_parser.add_argument("--preview", action="store_true", help="저장하지 않고 결과만 출력")

    subparsers.add_parser("failures", help="실패 기록 목록 출력")

    args = parser.parse_args()

    settings = Settings()
    config = load_app_config()

    if args.command == "serve":
        asyncio.run(run_server(settings, config, args.no_scheduler))
    elif args.command == "regenerate-all":
        asyncio.run(run_now(settings, config, RunMode.ALL, args.preview))
    elif args.command == "retry-failed":
        asyncio.run(run_now(settings, config, RunMode.RETRY, args.preview))
    elif args.command == "failures":
        asyncio.run(show_failures(settings, config))
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
