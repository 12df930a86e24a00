from __future__ import annotations


class SessionError(RuntimeError):
    """対話セッションの利用条件を満たさない場合の例外。"""


__all__ = ["SessionError"]
