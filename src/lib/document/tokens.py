from __future__ import annotations

import logging
from typing import List, Sequence

from .types import Token

logger = logging.getLogger(__name__)


def find_token_index(tokens: Sequence[Token], token_id: int) -> int | None:
    for index, token in enumerate(tokens):
        if token.id == token_id:
            return index
    return None


def find_run(tokens: Sequence[Token], run: Sequence[Token]) -> int | None:
    """``run`` が ``tokens`` 内で id 順に連続して現れる場合、その開始位置を返す。

    空の ``run`` は常に存在するものとみなし 0 を返す。
    """

    if not run:
        return 0

    start = find_token_index(tokens, run[0].id)
    if start is None or start + len(run) > len(tokens):
        return None

    for offset, token in enumerate(run):
        if tokens[start + offset].id != token.id:
            return None
    return start


def tokens_are_present(run: Sequence[Token], tokens: Sequence[Token]) -> bool:
    return find_run(tokens, run) is not None


def token_arrays_overlap(first: Sequence[Token], second: Sequence[Token]) -> bool:
    if not first or not second:
        return False
    second_ids = {token.id for token in second}
    return any(token.id in second_ids for token in first)


def replace_tokens(
    tokens: Sequence[Token],
    affected: Sequence[Token],
    added: Sequence[Token],
) -> List[Token]:
    """``affected`` の連続区間を ``added`` に差し替えた新しい列を返す。

    ``affected`` が連続区間として存在しない場合は元の列をそのまま返す。
    """

    if not affected:
        logger.debug("replace_tokens_skipped: reason=empty_run added=%s", [t.id for t in added])
        return list(tokens)

    start = find_run(tokens, affected)
    if start is None:
        logger.debug("replace_tokens_skipped: reason=missing_run affected=%s", [t.id for t in affected])
        return list(tokens)

    end = start + len(affected)
    return [*tokens[:start], *added, *tokens[end:]]


def insert_after(
    tokens: Sequence[Token],
    anchor_id: int | None,
    run: Sequence[Token],
) -> List[Token] | None:
    """``anchor_id`` のトークン直後 (None なら先頭) に ``run`` を挿入する。"""

    if anchor_id is None:
        return [*run, *tokens]
    index = find_token_index(tokens, anchor_id)
    if index is None:
        return None
    return [*tokens[: index + 1], *run, *tokens[index + 1 :]]


__all__ = [
    "insert_after",
    "find_token_index",
    "find_run",
    "tokens_are_present",
    "token_arrays_overlap",
    "replace_tokens",
]
