from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Sequence

import httpx

from src.config.defaults import MIN_APP_DESCRIPTION_LENGTH, SERVICE_CONFIG, SUCCESS_JOB_STATUS
from src.lib.document import Document

from .exceptions import ServiceError
from .models import DocumentModel, StatusUpdate, document_from_payload
from .options import ClientOptions

logger = logging.getLogger(__name__)


def _decode(response: httpx.Response, endpoint: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise ServiceError(f"{endpoint} の応答を JSON として解釈できませんでした。") from exc


def _send(
    method: str,
    url: str,
    *,
    headers: Mapping[str, str],
    payload: Mapping[str, Any] | None,
    timeout: float,
) -> Any:
    """1 回だけ呼び出す。リトライは呼び出し側の責務。"""

    try:
        if method == "GET":
            response = httpx.get(url, headers=dict(headers), timeout=timeout)
        else:
            response = httpx.post(url, headers=dict(headers), json=payload, timeout=timeout)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        raise ServiceError(f"補正サービスが HTTP {status} を返しました: {url}", status_code=status) from exc
    except httpx.RequestError as exc:
        raise ServiceError(f"補正サービスへの接続に失敗しました: {url}") from exc
    return _decode(response, url)


def generate_app_key(
    api_key: str,
    name: str,
    description: str,
    contact_email: str | None = None,
    site_url: str | None = None,
    *,
    base_url: str | None = None,
    timeout: float | None = None,
) -> Dict[str, Any]:
    """API キーに紐づくアプリキーを発行する。"""

    if len(description or "") < MIN_APP_DESCRIPTION_LENGTH:
        raise ValueError(f"description は {MIN_APP_DESCRIPTION_LENGTH} 文字以上で指定してください。")

    payload = {
        "name": name,
        "description": description,
        "contactEmail": contact_email,
        "siteUrl": site_url,
    }
    root = (base_url or str(SERVICE_CONFIG["url"])).rstrip("/")
    return _send(
        "POST",
        f"{root}/generateAppKey",
        headers={"Content-Type": "application/json", "Authorization": api_key},
        payload=payload,
        timeout=timeout if timeout is not None else float(SERVICE_CONFIG["timeout"]),
    )


class CorrectionServiceClient:
    """補正サービスとの薄い request/response クライアント。"""

    def __init__(self, options: ClientOptions | Mapping[str, Any] | None = None) -> None:
        if isinstance(options, ClientOptions):
            self.options = options
        else:
            self.options = ClientOptions.from_mapping(options)

    @property
    def persist(self) -> bool:
        return self.options.persist

    def set_app_key(self, app_key: str | None) -> None:
        self.options = self.options.update(app_key=app_key)

    def _headers(self, api_key: str) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Authorization": api_key}
        if self.options.app_key:
            headers["AppAuthorization"] = self.options.app_key
        return headers

    def _url(self, endpoint: str) -> str:
        return f"{self.options.base_url}{endpoint}"

    def _post(self, endpoint: str, payload: Mapping[str, Any], api_key: str) -> Any:
        return _send(
            "POST",
            self._url(endpoint),
            headers=self._headers(api_key),
            payload=payload,
            timeout=self.options.timeout,
        )

    def submit_job(
        self,
        text: str,
        api_key: str,
        *,
        options: Mapping[str, Any] | None = None,
        response_type: Sequence[str] | None = None,
    ) -> Document:
        """テキストを送信し、メタデータ構築済みの ``Document`` を返す。"""

        payload = {
            "text": text,
            "responseType": list(response_type or self.options.response_types),
            "options": json.dumps(dict(options if options is not None else self.options.request_options)),
        }
        logger.debug("submit_job: chars=%d response_type=%s", len(text), payload["responseType"])
        data = self._post("/correct", payload, api_key)
        if not isinstance(data, Mapping):
            raise ServiceError("/correct の応答形式が不正です。")
        document = document_from_payload(DocumentModel.model_validate(data))
        if document.job_status is not None and document.job_status != SUCCESS_JOB_STATUS:
            logger.warning("補正ジョブが成功ステータスを返しませんでした: status=%s", document.job_status)
        return document

    def get_usage(self, api_key: str) -> Dict[str, Any]:
        data = _send(
            "GET",
            self._url("/usage"),
            headers={"Authorization": api_key},
            payload=None,
            timeout=self.options.timeout,
        )
        if not isinstance(data, dict):
            raise ServiceError("/usage の応答形式が不正です。")
        return data

    def save_transform_status(self, update: StatusUpdate, api_key: str) -> Any:
        logger.debug(
            "save_transform_status: job=%s sentence=%s transform=%s status=%s",
            update.job_id,
            update.sentence_index,
            update.transform_index,
            update.status,
        )
        return self._post("/updateStatus", update.dump(), api_key)


def successful_job(document: Document) -> bool:
    return document.job_status == SUCCESS_JOB_STATUS


__all__ = [
    "CorrectionServiceClient",
    "generate_app_key",
    "successful_job",
]
