"""도메인 레이어 예외 정의."""

from __future__ import annotations


class DomainError(Exception):
    """도메인 레이어 최상위 예외."""


class GenerationError(DomainError):
    """한 리소스의 태그 생성 실패. 배치나 실행 전체를 중단시키지 않는다."""


class RateLimitedError(GenerationError):
    """원격 서비스가 요청 한도 초과(429)를 알렸을 때. 일시적 오류."""

    def __init__(self, message: str = "요청 한도 초과 (429)", retry_after: float | None = None):
        self.retry_after = retry_after
        super().__init__(message)


class GenerationFailedError(GenerationError):
    """원격 호출 오류 등 그 밖의 생성 실패."""


class EmptyResultError(GenerationError):
    """응답을 파싱한 결과 태그가 하나도 없을 때."""

    def __init__(self):
        super().__init__("생성된 태그가 없습니다")


class ResolutionError(DomainError):
    """실패 기록의 원본 리소스를 찾을 수 없을 때 (재시도 모드 전용)."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"리소스를 찾을 수 없습니다: {url}")


class RunInProgressError(DomainError):
    """같은 엔진에서 이미 실행 중인데 새 실행을 요청했을 때."""

    def __init__(self):
        super().__init__("이미 태그 재생성이 진행 중입니다")


class StorageError(DomainError):
    """저장소 읽기/쓰기 실패."""
