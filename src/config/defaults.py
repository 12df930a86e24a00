from __future__ import annotations

import os

"""アプリ全体で共有する既定値。"""

DEFAULT_API_URL = "https://api.perfecttense.com"
"""補正サービスのベース URL。"""

DEFAULT_RESPONSE_TYPES: tuple[str, ...] = ("rulesApplied", "grammarScore", "corrected")
"""submit 時に要求するレスポンス種別。"""

DEFAULT_TIMEOUT = 30.0
"""HTTP 呼び出しのタイムアウト秒。"""

SUCCESS_JOB_STATUS = 201
"""ジョブ成功時にサービスが返すステータスコード。"""

MIN_APP_DESCRIPTION_LENGTH = 50
"""アプリキー発行時の説明文の最小文字数。"""


def _env_flag(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "on", "yes"}


def load_service_config() -> dict[str, object]:
    return {
        "url": os.getenv("PT_API_URL", DEFAULT_API_URL).rstrip("/"),
        "app_key": os.getenv("PT_APP_KEY"),
        "api_key": os.getenv("PT_API_KEY"),
        "persist": _env_flag("PT_PERSIST", False),
        "timeout": float(os.getenv("PT_TIMEOUT", str(DEFAULT_TIMEOUT))),
    }


SERVICE_CONFIG = load_service_config()
"""補正サービス接続用の環境設定 (import 時点)。"""
