from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GenerationConfig:
    """일괄 태그 재생성 실행 설정. 한 번의 실행 동안 변경되지 않는다."""

    batch_size: int = 5
    delay_between_batches: float = 1.0  # 초
    max_retries: int = 3
    preview_mode: bool = False

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size는 1 이상이어야 합니다")
        if self.delay_between_batches < 0:
            raise ValueError("delay_between_batches는 0 이상이어야 합니다")
        if self.max_retries < 0:
            raise ValueError("max_retries는 0 이상이어야 합니다")
