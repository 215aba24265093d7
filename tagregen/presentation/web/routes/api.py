"""REST API 라우트 — 태그 재생성 트리거, 진행 상황, 실패 기록."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from tagregen.application.use_cases.run_tracker import RunMode
from tagregen.domain.exceptions import RunInProgressError

router = APIRouter(tags=["api"])


def _get_container(request: Request):
    return request.app.state.container


def _start(request: Request, mode: RunMode):
    c = _get_container(request)
    try:
        c.run_tracker.start(mode)
    except RunInProgressError as e:
        return JSONResponse(status_code=409, content={"error": str(e)})
    return JSONResponse(status_code=202, content={"status": "started", "mode": mode.value})


@router.post("/regeneration/all")
async def regenerate_all(request: Request):
    """전체 태그 재생성 시작 (백그라운드)."""
    return _start(request, RunMode.ALL)


@router.post("/regeneration/retry")
async def retry_failed(request: Request):
    """실패 항목 재시도 시작 (백그라운드)."""
    return _start(request, RunMode.RETRY)


@router.post("/regeneration/cancel")
async def cancel_regeneration(request: Request):
    """진행 중인 실행 취소. 실행 중이 아니면 아무것도 하지 않는다."""
    c = _get_container(request)
    return {"cancelled": c.run_tracker.cancel()}


@router.get("/regeneration/progress")
async def regeneration_progress(request: Request):
    c = _get_container(request)
    tracker = c.run_tracker
    return {
        "running": tracker.is_running,
        "progress": tracker.latest.to_dict(),
        "last_result": tracker.last_result.to_dict() if tracker.last_result else None,
        "last_error": tracker.last_error,
    }


@router.get("/failures")
async def list_failures(request: Request):
    """태그 생성 실패 기록 목록."""
    c = _get_container(request)
    max_retries = c.generation_config.max_retries
    failures = await c.failure_repo.get_all()
    return {
        "count": len(failures),
        "retriable": sum(1 for f in failures if f.is_retriable(max_retries)),
        "items": [
            {
                "url": f.url,
                "resource_id": f.resource_id,
                "reason": f.reason,
                "retry_count": f.retry_count,
                "first_failure_at": f.first_failure_at.isoformat() if f.first_failure_at else None,
                "last_retry_at": f.last_retry_at.isoformat() if f.last_retry_at else None,
                "retriable": f.is_retriable(max_retries),
            }
            for f in failures
        ],
    }


@router.delete("/failures")
async def clear_failures(request: Request):
    """모든 실패 기록 삭제."""
    c = _get_container(request)
    if c.run_tracker.is_running:
        return JSONResponse(
            status_code=409, content={"error": "태그 재생성이 진행 중에는 삭제할 수 없습니다"}
        )
    deleted = await c.failure_repo.clear()
    return {"deleted": deleted}
