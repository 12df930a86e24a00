from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Tuple


class DocumentError(ValueError):
    """補正ドキュメントの操作に関する汎用例外。"""


class UnknownTransformError(DocumentError):
    """ドキュメントに属さない変換を指定した場合に発生する例外。"""


class TransformStatus(str, Enum):
    CLEAN = "clean"
    ACCEPTED = "accept"
    REJECTED = "reject"

    @classmethod
    def parse(cls, value: "TransformStatus | str | None") -> "TransformStatus":
        if value is None:
            return cls.CLEAN
        if isinstance(value, TransformStatus):
            return value
        text = str(value).strip().lower()
        if text in {"accept", "accepted"}:
            return cls.ACCEPTED
        if text in {"reject", "rejected"}:
            return cls.REJECTED
        if text in {"", "clean"}:
            return cls.CLEAN
        raise DocumentError(f"unknown transform status: {value!r}")


@dataclass(frozen=True)
class Token:
    """表示テキストの最小単位。同一性は id のみで判定する。"""

    id: int
    value: str
    after: str = ""

    @property
    def text(self) -> str:
        return self.value + self.after

    def same_token(self, other: "Token") -> bool:
        return self.id == other.id


@dataclass(eq=False)
class Transformation:
    """1 件の補正候補。

    ``tokens_affected`` を ``tokens_added`` で置き換える。位置情報
    (``sentence_index`` / ``index_in_sentence`` / ``transform_index``) と
    ``group_id`` はメタデータ構築時に一度だけ設定される。
    """

    tokens_affected: Tuple[Token, ...] = field(default_factory=tuple)
    tokens_added: Tuple[Token, ...] = field(default_factory=tuple)
    has_replacement: bool = False
    is_suggestion: bool = False
    status: TransformStatus = TransformStatus.CLEAN
    is_available: bool = False
    group_id: int | None = None
    sentence_index: int | None = None
    index_in_sentence: int | None = None
    transform_index: int | None = None
    # 削除のみの変換を承認した際、直前にあったトークンの id (文頭なら None)
    deletion_anchor: int | None = field(default=None, repr=False)

    @property
    def is_clean(self) -> bool:
        return self.status is TransformStatus.CLEAN

    @property
    def is_accepted(self) -> bool:
        return self.status is TransformStatus.ACCEPTED

    @property
    def is_rejected(self) -> bool:
        return self.status is TransformStatus.REJECTED

    @property
    def affected_ids(self) -> Tuple[int, ...]:
        return tuple(token.id for token in self.tokens_affected)

    @property
    def added_ids(self) -> Tuple[int, ...]:
        return tuple(token.id for token in self.tokens_added)


@dataclass(eq=False)
class Sentence:
    original_sentence: Tuple[Token, ...]
    transformations: List[Transformation] = field(default_factory=list)
    active_tokens: List[Token] = field(default_factory=list)
    groups: Dict[int, List[int]] = field(default_factory=dict)
    sentence_index: int | None = None

    def __post_init__(self) -> None:
        if not self.active_tokens:
            self.active_tokens = list(self.original_sentence)


@dataclass(eq=False)
class Document:
    """補正結果 1 ジョブ分。

    ``transformations`` は全文の変換を ``transform_index`` 順に並べた
    アリーナで、各 ``Sentence.transformations`` と同じオブジェクトを共有する。
    """

    sentences: List[Sentence] = field(default_factory=list)
    job_id: str | int | None = None
    grammar_score: float | None = None
    job_status: int | None = None
    corrected: str | None = None
    transformations: List[Transformation] = field(default_factory=list)
    has_meta: bool = False

    def __iter__(self) -> Iterator[Sentence]:
        return iter(self.sentences)

    def __len__(self) -> int:
        return len(self.sentences)

    def sentence_of(self, transform: Transformation) -> Sentence:
        index = transform.sentence_index
        if index is None or not 0 <= index < len(self.sentences):
            raise UnknownTransformError("transform does not belong to this document")
        sentence = self.sentences[index]
        position = transform.index_in_sentence
        if position is None or position >= len(sentence.transformations):
            raise UnknownTransformError("transform does not belong to this document")
        if sentence.transformations[position] is not transform:
            raise UnknownTransformError("transform does not belong to this document")
        return sentence

    def transform(self, transform_index: int) -> Transformation:
        if not 0 <= transform_index < len(self.transformations):
            raise UnknownTransformError(f"transform index out of range: {transform_index}")
        return self.transformations[transform_index]

    def group_members(self, transform: Transformation) -> List[Transformation]:
        sentence = self.sentence_of(transform)
        if transform.group_id is None:
            return [transform]
        indices = sentence.groups.get(transform.group_id, [])
        return [self.transformations[index] for index in indices]


__all__ = [
    "DocumentError",
    "UnknownTransformError",
    "TransformStatus",
    "Token",
    "Transformation",
    "Sentence",
    "Document",
]
