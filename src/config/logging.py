from __future__ import annotations

import logging
import os

"""ログ設定。補正セッション本体と外部通信ライブラリのレベルを個別に調整する。"""

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

SESSION_LOGGERS: tuple[str, ...] = ("src.lib.document", "src.lib.session", "src.lib.service")
"""変換の承認/却下/取り消しイベントを出力するロガー。"""

TRANSPORT_LOGGERS: tuple[str, ...] = ("httpx", "httpcore")
"""リクエスト毎に INFO を出すため、DEBUG 以外では WARNING に抑える。"""

_ALIASES = {"WARN": "WARNING", "TRACE": "DEBUG"}


def resolve_log_level(value: str | int | None, *, default: int = logging.INFO) -> int:
    """レベル名 (WARN/TRACE 別名を含む) もしくは数値を解決する。不明な値は ``default``。"""

    if isinstance(value, int):
        return value
    name = (value or "").strip().upper()
    if not name:
        return default
    if name.lstrip("-").isdigit():
        return int(name)
    level = logging.getLevelName(_ALIASES.get(name, name))
    return level if isinstance(level, int) else default


def setup_logging(
    level: str | int | None = None,
    *,
    session_level: str | int | None = None,
) -> int:
    """ルートロガーを設定し、解決したレベルを返す。

    ``level`` 未指定時は ``LOG_LEVEL``、``session_level`` 未指定時は
    ``SESSION_LOG_LEVEL`` を参照する。後者はセッション系ロガーだけを
    個別に詳細化したい場合に使う (例: ``SESSION_LOG_LEVEL=DEBUG``)。
    """

    resolved = resolve_log_level(level if level is not None else os.getenv("LOG_LEVEL"))
    logging.basicConfig(level=resolved, format=LOG_FORMAT, force=True)

    session_resolved = resolve_log_level(
        session_level if session_level is not None else os.getenv("SESSION_LOG_LEVEL"),
        default=resolved,
    )
    for name in SESSION_LOGGERS:
        logging.getLogger(name).setLevel(session_resolved)

    transport_level = logging.NOTSET if resolved <= logging.DEBUG else logging.WARNING
    for name in TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)
    return resolved
