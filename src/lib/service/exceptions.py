from __future__ import annotations


class ServiceError(RuntimeError):
    """補正サービス呼び出しの失敗を表す例外。"""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


__all__ = ["ServiceError"]
