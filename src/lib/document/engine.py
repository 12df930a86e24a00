from __future__ import annotations

import logging
from typing import Iterable, List

from .tokens import find_run, find_token_index, insert_after, replace_tokens, tokens_are_present
from .types import Document, Sentence, Transformation, TransformStatus

logger = logging.getLogger(__name__)


def is_transform_available(sentence: Sentence, transform: Transformation) -> bool:
    """未決定かつ affected トークンが作業列に連続して存在するかを返す。"""

    return transform.is_clean and tokens_are_present(transform.tokens_affected, sentence.active_tokens)


can_make_transform = is_transform_available


def _is_pure_deletion(transform: Transformation) -> bool:
    return transform.has_replacement and not transform.tokens_added and bool(transform.tokens_affected)


def can_undo_transform(sentence: Sentence, transform: Transformation) -> bool:
    if not transform.has_replacement:
        return True
    if transform.is_accepted:
        if _is_pure_deletion(transform):
            anchor = transform.deletion_anchor
            return anchor is None or find_token_index(sentence.active_tokens, anchor) is not None
        # affected が空の挿入は位置を決められず、承認時に差し替えていない
        if not transform.tokens_affected:
            return True
        return tokens_are_present(transform.tokens_added, sentence.active_tokens)
    if transform.is_rejected:
        return tokens_are_present(transform.tokens_affected, sentence.active_tokens)
    return False


def refresh_availability(sentence: Sentence, transforms: Iterable[Transformation]) -> None:
    for transform in transforms:
        transform.is_available = is_transform_available(sentence, transform)


def refresh_group(document: Document, transform: Transformation) -> None:
    """``transform`` と同じ重なりグループの利用可否だけを再計算する。"""

    sentence = document.sentence_of(transform)
    refresh_availability(sentence, document.group_members(transform))


def splice_accept(sentence: Sentence, transform: Transformation) -> None:
    if _is_pure_deletion(transform):
        start = find_run(sentence.active_tokens, transform.tokens_affected)
        if start is not None:
            transform.deletion_anchor = sentence.active_tokens[start - 1].id if start > 0 else None
    sentence.active_tokens = replace_tokens(
        sentence.active_tokens,
        transform.tokens_affected,
        transform.tokens_added,
    )


def _splice_undo(sentence: Sentence, transform: Transformation) -> None:
    if _is_pure_deletion(transform):
        restored = insert_after(sentence.active_tokens, transform.deletion_anchor, transform.tokens_affected)
        if restored is not None:
            sentence.active_tokens = restored
        transform.deletion_anchor = None
        return
    sentence.active_tokens = replace_tokens(
        sentence.active_tokens,
        transform.tokens_added,
        transform.tokens_affected,
    )


def accept_transform(document: Document, transform: Transformation) -> bool:
    """変換を承認し、affected を added に差し替える。利用不可なら False。"""

    sentence = document.sentence_of(transform)
    if not transform.is_available:
        logger.debug("accept_skipped: transform=%s reason=unavailable", transform.transform_index)
        return False

    transform.status = TransformStatus.ACCEPTED
    transform.is_available = False
    if transform.has_replacement:
        splice_accept(sentence, transform)
        refresh_group(document, transform)

    logger.debug(
        "transform_accepted: sentence=%s transform=%s group=%s",
        transform.sentence_index,
        transform.transform_index,
        transform.group_id,
    )
    return True


def reject_transform(document: Document, transform: Transformation) -> bool:
    document.sentence_of(transform)
    if not transform.is_available:
        logger.debug("reject_skipped: transform=%s reason=unavailable", transform.transform_index)
        return False

    transform.status = TransformStatus.REJECTED
    transform.is_available = False
    logger.debug("transform_rejected: sentence=%s transform=%s", transform.sentence_index, transform.transform_index)
    return True


def undo_transform(document: Document, transform: Transformation) -> bool:
    """承認/却下を取り消して clean に戻す。取り消せない状態なら False。"""

    sentence = document.sentence_of(transform)
    if not can_undo_transform(sentence, transform):
        logger.debug("undo_skipped: transform=%s status=%s", transform.transform_index, transform.status.value)
        return False

    was_accepted = transform.is_accepted
    transform.status = TransformStatus.CLEAN
    if transform.has_replacement and was_accepted:
        _splice_undo(sentence, transform)
        refresh_group(document, transform)
    else:
        transform.is_available = is_transform_available(sentence, transform)

    logger.debug("transform_reset: sentence=%s transform=%s", transform.sentence_index, transform.transform_index)
    return True


def available_transforms(sentence: Sentence) -> List[Transformation]:
    return [transform for transform in sentence.transformations if transform.is_available]


def affects_same_tokens(first: Transformation, second: Transformation) -> bool:
    """同じ文で、affected トークン id 列が位置ごとに一致するかを返す。"""

    return first.sentence_index == second.sentence_index and first.affected_ids == second.affected_ids


def overlapping_group(document: Document, transform: Transformation) -> List[Transformation]:
    return document.group_members(transform)


__all__ = [
    "accept_transform",
    "affects_same_tokens",
    "available_transforms",
    "can_make_transform",
    "can_undo_transform",
    "is_transform_available",
    "overlapping_group",
    "refresh_availability",
    "refresh_group",
    "reject_transform",
    "splice_accept",
    "undo_transform",
]
