from __future__ import annotations


class CancellationToken:
    """협조적 취소 플래그. 실행마다 새로 만들고 한 번만 설정된다.

    엔진은 배치 경계와 각 항목 호출 직전에만 확인한다.
    이미 진행 중인 원격 호출은 중단하지 않는다.
    """

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> bool:
        """취소 설정. 이번 호출로 처음 설정됐으면 True."""
        if self._cancelled:
            return False
        self._cancelled = True
        return True

    def is_cancelled(self) -> bool:
        return self._cancelled
