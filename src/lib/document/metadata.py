from __future__ import annotations

import logging
from collections import deque
from typing import List, Sequence

from .engine import is_transform_available, splice_accept
from .tokens import token_arrays_overlap, tokens_are_present
from .types import Document, Sentence, Transformation, TransformStatus

logger = logging.getLogger(__name__)


def transforms_overlap(first: Transformation, second: Transformation, *, in_order: bool = True) -> bool:
    """2 つの変換が影響トークンを共有するかを判定する。

    ``in_order`` が真の場合、``first`` は ``second`` より先に生成された変換とみなし、
    ``first`` の affected と ``second`` の added の比較を省略する
    (先の変換が後の変換の追加トークンに依存することはない)。
    """

    return (
        token_arrays_overlap(first.tokens_affected, second.tokens_affected)
        or token_arrays_overlap(first.tokens_added, second.tokens_affected)
        or (not in_order and token_arrays_overlap(first.tokens_affected, second.tokens_added))
    )


def assign_groups(transformations: Sequence[Transformation]) -> List[int]:
    """文内の変換を重なり関係の連結成分に分割し、位置ごとのグループ ID を返す。

    グループ ID は左から順に 0 から採番する。比較は常に生成順
    (位置が小さい方を先) の形で行う。
    """

    count = len(transformations)
    assigned: List[int | None] = [None] * count
    next_group = 0

    for seed in range(count):
        if assigned[seed] is not None:
            continue
        group_id = next_group
        next_group += 1
        queue = deque([seed])
        while queue:
            current = queue.popleft()
            if assigned[current] is not None:
                continue
            assigned[current] = group_id
            for other in range(count):
                if other == current or assigned[other] is not None:
                    continue
                earlier, later = (current, other) if current < other else (other, current)
                if transforms_overlap(transformations[earlier], transformations[later], in_order=True):
                    queue.append(other)

    return [group for group in assigned if group is not None]


def _apply_recovered(sentence: Sentence, transform: Transformation) -> None:
    if not (transform.has_replacement and transform.is_accepted):
        return
    if not tokens_are_present(transform.tokens_affected, sentence.active_tokens):
        # 復元データが不整合な場合は作業列に反映されない
        logger.warning(
            "承認済みの変換を作業トークン列に反映できませんでした: sentence=%s transform=%s",
            sentence.sentence_index,
            transform.index_in_sentence,
        )
        return
    splice_accept(sentence, transform)


def _build_sentence(
    document: Document,
    sentence: Sentence,
    sentence_index: int,
    start_index: int,
) -> int:
    sentence.sentence_index = sentence_index
    sentence.active_tokens = list(sentence.original_sentence)
    sentence.groups = {}

    transform_index = start_index
    for position, transform in enumerate(sentence.transformations):
        transform.sentence_index = sentence_index
        transform.index_in_sentence = position
        transform.transform_index = transform_index
        transform.status = TransformStatus.parse(transform.status)
        document.transformations.append(transform)
        transform_index += 1
        _apply_recovered(sentence, transform)

    for position, group_id in enumerate(assign_groups(sentence.transformations)):
        transform = sentence.transformations[position]
        transform.group_id = group_id
        sentence.groups.setdefault(group_id, []).append(transform.transform_index)

    for transform in sentence.transformations:
        transform.is_available = is_transform_available(sentence, transform)

    return transform_index


def build_metadata(document: Document) -> Document:
    """受信直後のドキュメントに索引・グループ・作業トークン列を設定する。

    ``status`` が accept の変換は作業トークン列へ即時反映するため、
    以前のセッションの状態を復元できる。構築済みなら何もしない。
    """

    if document.has_meta:
        return document

    document.transformations = []
    next_index = 0
    for sentence_index, sentence in enumerate(document.sentences):
        next_index = _build_sentence(document, sentence, sentence_index, next_index)

    document.has_meta = True
    logger.debug(
        "metadata_built: job=%s sentences=%d transforms=%d",
        document.job_id,
        len(document.sentences),
        next_index,
    )
    return document


def ensure_metadata(document: Document) -> Document:
    return build_metadata(document)


__all__ = [
    "assign_groups",
    "build_metadata",
    "ensure_metadata",
    "transforms_overlap",
]
