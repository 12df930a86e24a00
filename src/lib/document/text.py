from __future__ import annotations

from typing import Iterable

from .tokens import tokens_are_present
from .types import Document, Sentence, Token, Transformation


def token_text(token: Token) -> str:
    return token.value + token.after


def tokens_text(tokens: Iterable[Token]) -> str:
    """トークン列を ``value + after`` の連結として文字列化する。"""

    return "".join(token_text(token) for token in tokens)


def current_sentence_text(sentence: Sentence) -> str:
    return tokens_text(sentence.active_tokens)


def original_sentence_text(sentence: Sentence) -> str:
    return tokens_text(sentence.original_sentence)


def current_text(document: Document) -> str:
    return "".join(current_sentence_text(sentence) for sentence in document.sentences)


def original_text(document: Document) -> str:
    return "".join(original_sentence_text(sentence) for sentence in document.sentences)


def affected_text(transform: Transformation) -> str:
    return tokens_text(transform.tokens_affected)


def added_text(transform: Transformation) -> str:
    return tokens_text(transform.tokens_added)


def sentence_offset(document: Document, sentence: Sentence) -> int | None:
    """現在の状態における文の開始文字位置。文書に含まれなければ None。"""

    offset = 0
    for candidate in document.sentences:
        if candidate is sentence:
            return offset
        offset += len(current_sentence_text(candidate))
    return None


def transform_offset(document: Document, transform: Transformation) -> int | None:
    """文頭から affected 先頭トークンまでの文字数。

    affected が作業列に連続して存在しない場合は位置が定まらないため None。
    """

    sentence = document.sentence_of(transform)
    if not transform.tokens_affected:
        return None
    if not tokens_are_present(transform.tokens_affected, sentence.active_tokens):
        return None

    first_id = transform.tokens_affected[0].id
    offset = 0
    for token in sentence.active_tokens:
        if token.id == first_id:
            return offset
        offset += len(token_text(token))
    return None


def transform_document_offset(document: Document, transform: Transformation) -> int | None:
    sentence = document.sentence_of(transform)
    base = sentence_offset(document, sentence)
    relative = transform_offset(document, transform)
    if base is None or relative is None:
        return None
    return base + relative


__all__ = [
    "added_text",
    "affected_text",
    "current_sentence_text",
    "current_text",
    "original_sentence_text",
    "original_text",
    "sentence_offset",
    "token_text",
    "tokens_text",
    "transform_document_offset",
    "transform_offset",
]
