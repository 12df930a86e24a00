from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from src.lib.document import Transformation
from src.lib.service import DocumentModel
from src.lib.session import InteractiveEditor


class SessionCreatePayload(BaseModel):
    document: DocumentModel = Field(..., description="補正サービスの応答、または保存済みスナップショット")
    ignore_no_replacement: bool = Field(False, description="置換を伴わない提案を走査対象から除外するか")


class SubmitPayload(BaseModel):
    text: str = Field(..., min_length=1, description="補正対象のテキスト")
    api_key: Optional[str] = Field(None, description="利用者の API キー。未指定時は環境変数")
    options: Optional[Dict[str, Any]] = Field(None, description="サービスへ渡す補正オプション")
    ignore_no_replacement: bool = False


class TransformView(BaseModel):
    transform_index: int
    sentence_index: int
    index_in_sentence: int
    group_id: Optional[int] = None
    status: str
    is_available: bool
    is_suggestion: bool
    has_replacement: bool
    affected_text: str
    added_text: str
    offset: Optional[int] = Field(None, description="文書先頭からの文字位置。位置が定まらない場合は null")

    @classmethod
    def from_transform(cls, editor: InteractiveEditor, transform: Transformation) -> "TransformView":
        return cls(
            transform_index=transform.transform_index or 0,
            sentence_index=transform.sentence_index or 0,
            index_in_sentence=transform.index_in_sentence or 0,
            group_id=transform.group_id,
            status=transform.status.value,
            is_available=transform.is_available,
            is_suggestion=transform.is_suggestion,
            has_replacement=transform.has_replacement,
            affected_text=editor.affected_text(transform),
            added_text=editor.added_text(transform),
            offset=editor.transform_document_offset(transform),
        )


class SessionStatePayload(BaseModel):
    session_id: str
    text: str
    original_text: str
    grammar_score: Optional[float] = None
    available: list[TransformView] = Field(default_factory=list)
    history: list[int] = Field(default_factory=list)
    can_undo: bool = False

    @classmethod
    def from_editor(cls, session_id: str, editor: InteractiveEditor) -> "SessionStatePayload":
        return cls(
            session_id=session_id,
            text=editor.current_text(),
            original_text=editor.original_text(),
            grammar_score=editor.grammar_score(),
            available=[TransformView.from_transform(editor, t) for t in editor.available_transforms],
            history=list(editor.history),
            can_undo=editor.can_undo_last(),
        )


class ActionResponsePayload(BaseModel):
    success: bool = Field(..., description="操作が適用されたか")
    count: Optional[int] = Field(None, ge=0, description="一括操作で処理した件数")
    state: SessionStatePayload


__all__ = [
    "ActionResponsePayload",
    "SessionCreatePayload",
    "SessionStatePayload",
    "SubmitPayload",
    "TransformView",
]
