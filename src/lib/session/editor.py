from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple, TYPE_CHECKING

from src.lib.document import (
    Document,
    Sentence,
    Transformation,
    accept_transform,
    added_text,
    affected_text,
    affects_same_tokens,
    can_make_transform,
    can_undo_transform,
    current_sentence_text,
    current_text,
    ensure_metadata,
    original_text,
    overlapping_group,
    reject_transform,
    sentence_offset,
    transform_document_offset,
    transform_offset,
    undo_transform,
)
from src.lib.service.exceptions import ServiceError
from src.lib.service.models import DocumentModel, StatusUpdate, document_to_payload

from .exceptions import SessionError

if TYPE_CHECKING:  # pragma: no cover
    from src.lib.service.client import CorrectionServiceClient

logger = logging.getLogger(__name__)


class InteractiveEditor:
    """1 ドキュメント分の対話的な補正セッション。

    全変換を (文, 文内位置) 順に並べた一覧を走査順とし、承認/却下の履歴を
    スタックとして保持する。スレッドセーフではないため、同一ドキュメントへの
    操作は呼び出し側で直列化すること。
    """

    def __init__(
        self,
        document: Document,
        *,
        client: "CorrectionServiceClient | None" = None,
        api_key: str | None = None,
        ignore_no_replacement: bool = False,
    ) -> None:
        self.document = ensure_metadata(document)
        self.client = client
        self.api_key = api_key
        self.ignore_no_replacement = ignore_no_replacement

        # 復元時は実際の操作順ではなく走査順で履歴を再構築する
        self._history: List[int] = [
            transform.transform_index  # type: ignore[misc]
            for transform in self.document.transformations
            if not transform.is_clean
        ]
        self._available: List[Transformation] = []
        self._refresh_available()

    # ------------------------------------------------------------------
    # 参照系
    # ------------------------------------------------------------------
    @property
    def transformations(self) -> List[Transformation]:
        return self.document.transformations

    @property
    def available_transforms(self) -> List[Transformation]:
        return list(self._available)

    @property
    def history(self) -> Tuple[int, ...]:
        return tuple(self._history)

    @property
    def num_sentences(self) -> int:
        return len(self.document.sentences)

    @property
    def num_transformations(self) -> int:
        return len(self.document.transformations)

    def transform(self, transform_index: int) -> Transformation:
        return self.document.transform(transform_index)

    def sentence(self, sentence_index: int) -> Sentence:
        return self.document.sentences[sentence_index]

    def sentence_of(self, transform: Transformation) -> Sentence:
        return self.document.sentence_of(transform)

    def all_clean(self) -> List[Transformation]:
        return [transform for transform in self.document.transformations if transform.is_clean]

    def overlapping_group(self, transform: Transformation) -> List[Transformation]:
        return overlapping_group(self.document, transform)

    def overlapping_transforms(self, transform: Transformation) -> List[Transformation]:
        """同じグループのうち、``transform`` と全く同じトークンを対象とする変換。"""

        return [
            candidate
            for candidate in overlapping_group(self.document, transform)
            if affects_same_tokens(candidate, transform)
        ]

    def can_make_transform(self, transform: Transformation) -> bool:
        return can_make_transform(self.sentence_of(transform), transform)

    def can_undo_transform(self, transform: Transformation) -> bool:
        return can_undo_transform(self.sentence_of(transform), transform)

    def current_text(self) -> str:
        return current_text(self.document)

    def original_text(self) -> str:
        return original_text(self.document)

    def affected_text(self, transform: Transformation) -> str:
        return affected_text(transform)

    def added_text(self, transform: Transformation) -> str:
        return added_text(transform)

    def transform_offset(self, transform: Transformation) -> int | None:
        return transform_offset(self.document, transform)

    def sentence_offset(self, sentence: Sentence) -> int | None:
        return sentence_offset(self.document, sentence)

    def transform_document_offset(self, transform: Transformation) -> int | None:
        return transform_document_offset(self.document, transform)

    def grammar_score(self) -> float | None:
        return self.document.grammar_score

    def usage(self) -> Dict[str, Any]:
        if self.client is None or not self.api_key:
            raise SessionError("利用状況の取得にはクライアントと API キーが必要です。")
        return self.client.get_usage(self.api_key)

    def snapshot(self) -> DocumentModel:
        return document_to_payload(self.document)

    # ------------------------------------------------------------------
    # 走査
    # ------------------------------------------------------------------
    def _next_non_suggestion(self) -> Transformation | None:
        for transform in self._available:
            if not transform.is_suggestion:
                return transform
        return None

    def has_next_transform(self, ignore_suggestions: bool = False) -> bool:
        return self.next_transform(ignore_suggestions) is not None

    def next_transform(self, ignore_suggestions: bool = False) -> Transformation | None:
        if ignore_suggestions:
            return self._next_non_suggestion()
        return self._available[0] if self._available else None

    def last_transform(self) -> Transformation | None:
        if not self._history:
            return None
        return self.document.transform(self._history[-1])

    def can_undo_last(self) -> bool:
        last = self.last_transform()
        if last is None:
            return False
        return can_undo_transform(self.sentence_of(last), last)

    # ------------------------------------------------------------------
    # 更新系
    # ------------------------------------------------------------------
    def accept_correction(self, transform: Transformation) -> bool:
        sentence = self.sentence_of(transform)
        prev_text = current_sentence_text(sentence)
        offset = transform_offset(self.document, transform)
        if not accept_transform(self.document, transform):
            return False
        self._record(transform)
        self._notify(transform, prev_text, offset)
        return True

    def reject_correction(self, transform: Transformation) -> bool:
        sentence = self.sentence_of(transform)
        prev_text = current_sentence_text(sentence)
        offset = transform_offset(self.document, transform)
        if not reject_transform(self.document, transform):
            return False
        self._record(transform)
        self._notify(transform, prev_text, offset)
        return True

    def undo_last(self) -> bool:
        """直近の承認/却下を取り消す。失敗時は履歴を残したまま False を返す。

        承認/却下の通知とは異なり、取り消しの通知には取り消し後の文と位置を載せる。
        affected トークンが作業列へ戻った状態でないと位置が定まらないため。
        """

        last = self.last_transform()
        if last is None:
            return False
        if not undo_transform(self.document, last):
            return False
        self._history.pop()
        self._refresh_available()
        sentence = self.sentence_of(last)
        self._notify(last, current_sentence_text(sentence), transform_offset(self.document, last))
        return True

    def apply_all(self, skip_suggestions: bool = False) -> int:
        """利用可能な変換がなくなるまで先頭から承認し続ける。承認件数を返す。"""

        applied = 0
        while True:
            transform = self.next_transform(skip_suggestions)
            if transform is None:
                break
            if not self.accept_correction(transform):
                logger.warning("変換を承認できなかったため一括適用を中断します: %s", transform.transform_index)
                break
            applied += 1
        logger.debug("apply_all: applied=%d skip_suggestions=%s", applied, skip_suggestions)
        return applied

    def undo_all(self) -> int:
        undone = 0
        while self.can_undo_last():
            if not self.undo_last():
                break
            undone += 1
        logger.debug("undo_all: undone=%d remaining=%d", undone, len(self._history))
        return undone

    # ------------------------------------------------------------------
    # 内部処理
    # ------------------------------------------------------------------
    def _record(self, transform: Transformation) -> None:
        self._history.append(transform.transform_index)  # type: ignore[arg-type]
        self._refresh_available()

    def _refresh_available(self) -> None:
        self._available = [
            transform
            for transform in self.document.transformations
            if transform.is_available and (not self.ignore_no_replacement or transform.has_replacement)
        ]

    def _can_persist(self) -> bool:
        return self.client is not None and self.client.persist and bool(self.api_key)

    def _notify(self, transform: Transformation, sentence_text: str, offset: int | None) -> None:
        if not self._can_persist():
            return
        update = StatusUpdate.for_transform(self.document, transform, sentence_text=sentence_text, offset=offset)
        try:
            self.client.save_transform_status(update, self.api_key)  # type: ignore[union-attr,arg-type]
        except ServiceError as exc:
            # 通知はベストエフォート。メモリ上の状態は巻き戻さない
            logger.warning("変換ステータスの保存に失敗しました: %s", exc)


__all__ = ["InteractiveEditor"]
