from __future__ import annotations

import asyncio
import logging
import uuid
from functools import partial
from typing import Any, Callable, Dict

from fastapi import FastAPI, HTTPException

from src.cmd.schemas.session import (
    ActionResponsePayload,
    SessionCreatePayload,
    SessionStatePayload,
    SubmitPayload,
)
from src.config.defaults import load_service_config
from src.config.logging import setup_logging
from src.lib.document import Transformation, UnknownTransformError
from src.lib.service import ClientOptions, CorrectionServiceClient, ServiceError, document_from_payload
from src.lib.service.models import DocumentModel
from src.lib.session import InteractiveEditor

logger = logging.getLogger(__name__)


class SessionStore:
    """プロセス内のセッション保持。

    更新系の操作はワーカースレッドで実行されるため、セッションごとのロックで直列化する。
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, InteractiveEditor] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def add(self, editor: InteractiveEditor) -> str:
        session_id = uuid.uuid4().hex
        self._sessions[session_id] = editor
        self._locks[session_id] = asyncio.Lock()
        return session_id

    def get(self, session_id: str) -> InteractiveEditor:
        editor = self._sessions.get(session_id)
        if editor is None:
            raise HTTPException(status_code=404, detail="セッションが見つかりません")
        return editor

    def lock(self, session_id: str) -> asyncio.Lock:
        self.get(session_id)
        return self._locks[session_id]

    def remove(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise HTTPException(status_code=404, detail="セッションが見つかりません")
        self._locks.pop(session_id, None)


def _resolve_transform(editor: InteractiveEditor, transform_index: int) -> Transformation:
    try:
        return editor.transform(transform_index)
    except UnknownTransformError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


def create_app(client: CorrectionServiceClient | None = None) -> FastAPI:
    """FastAPIアプリケーションを構築して返す。"""

    setup_logging()
    app = FastAPI(title="Correction Session Service")
    store = SessionStore()
    service_client = client or CorrectionServiceClient(ClientOptions.from_env())

    def _state(session_id: str) -> SessionStatePayload:
        return SessionStatePayload.from_editor(session_id, store.get(session_id))

    def _action(session_id: str, success: bool, count: int | None = None) -> ActionResponsePayload:
        return ActionResponsePayload(success=success, count=count, state=_state(session_id))

    async def _run_locked(session_id: str, operation: Callable[[], Any], *, counted: bool = False) -> ActionResponsePayload:
        # 状態通知を含む更新はワーカースレッドで実行し、同一セッション内では直列化する
        async with store.lock(session_id):
            result = await asyncio.to_thread(operation)
            if counted:
                return _action(session_id, result > 0, result)
            return _action(session_id, bool(result))

    @app.get("/healthz")
    async def health_check() -> dict[str, str]:
        """死活監視用エンドポイント。"""

        return {"status": "ok"}

    @app.post("/sessions", response_model=SessionStatePayload, status_code=201)
    async def create_session(payload: SessionCreatePayload) -> SessionStatePayload:
        document = document_from_payload(payload.document)
        editor = InteractiveEditor(document, ignore_no_replacement=payload.ignore_no_replacement)
        session_id = store.add(editor)
        logger.debug(
            "session_created: id=%s sentences=%d transforms=%d",
            session_id,
            editor.num_sentences,
            editor.num_transformations,
        )
        return _state(session_id)

    @app.post("/sessions/submit", response_model=SessionStatePayload, status_code=201)
    async def submit_session(payload: SubmitPayload) -> SessionStatePayload:
        api_key = payload.api_key or load_service_config()["api_key"]
        if not api_key:
            raise HTTPException(status_code=400, detail="API キーが指定されていません")
        try:
            document = await asyncio.to_thread(
                service_client.submit_job,
                payload.text,
                str(api_key),
                options=payload.options,
            )
        except ServiceError as exc:
            logger.warning("補正サービスの呼び出しに失敗しました: %s", exc)
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        editor = InteractiveEditor(
            document,
            client=service_client,
            api_key=str(api_key),
            ignore_no_replacement=payload.ignore_no_replacement,
        )
        return _state(store.add(editor))

    @app.get("/sessions/{session_id}", response_model=SessionStatePayload)
    async def get_session(session_id: str) -> SessionStatePayload:
        async with store.lock(session_id):
            return _state(session_id)

    @app.get("/sessions/{session_id}/document", response_model=None)
    async def get_snapshot(session_id: str) -> dict:
        async with store.lock(session_id):
            snapshot: DocumentModel = store.get(session_id).snapshot()
        return snapshot.dump()

    @app.delete("/sessions/{session_id}", status_code=204)
    async def delete_session(session_id: str) -> None:
        async with store.lock(session_id):
            store.remove(session_id)

    @app.post("/sessions/{session_id}/transforms/{transform_index}/accept", response_model=ActionResponsePayload)
    async def accept(session_id: str, transform_index: int) -> ActionResponsePayload:
        editor = store.get(session_id)
        transform = _resolve_transform(editor, transform_index)
        return await _run_locked(session_id, partial(editor.accept_correction, transform))

    @app.post("/sessions/{session_id}/transforms/{transform_index}/reject", response_model=ActionResponsePayload)
    async def reject(session_id: str, transform_index: int) -> ActionResponsePayload:
        editor = store.get(session_id)
        transform = _resolve_transform(editor, transform_index)
        return await _run_locked(session_id, partial(editor.reject_correction, transform))

    @app.post("/sessions/{session_id}/undo", response_model=ActionResponsePayload)
    async def undo(session_id: str) -> ActionResponsePayload:
        return await _run_locked(session_id, store.get(session_id).undo_last)

    @app.post("/sessions/{session_id}/apply-all", response_model=ActionResponsePayload)
    async def apply_all(session_id: str, skip_suggestions: bool = False) -> ActionResponsePayload:
        editor = store.get(session_id)
        operation = partial(editor.apply_all, skip_suggestions=skip_suggestions)
        return await _run_locked(session_id, operation, counted=True)

    @app.post("/sessions/{session_id}/undo-all", response_model=ActionResponsePayload)
    async def undo_all(session_id: str) -> ActionResponsePayload:
        return await _run_locked(session_id, store.get(session_id).undo_all, counted=True)

    return app


app = create_app()
