from __future__ import annotations

from typing import Any, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.lib.document import (
    Document,
    Sentence,
    Token,
    Transformation,
    TransformStatus,
    build_metadata,
)


class TokenModel(BaseModel):
    """サービスが返すトークン 1 件。"""

    model_config = ConfigDict(extra="ignore")

    id: int
    value: str = ""
    after: str = ""

    def to_token(self) -> Token:
        return Token(id=self.id, value=self.value, after=self.after)

    @classmethod
    def from_token(cls, token: Token) -> "TokenModel":
        return cls(id=token.id, value=token.value, after=token.after)


class TransformationModel(BaseModel):
    """補正候補。索引類は書き出し時のみ設定される。"""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    tokens_affected: List[TokenModel] = Field(default_factory=list, alias="tokensAffected")
    tokens_added: List[TokenModel] = Field(default_factory=list, alias="tokensAdded")
    has_replacement: bool | None = Field(None, alias="hasReplacement")
    is_suggestion: bool | None = Field(None, alias="isSuggestion")
    status: str | None = None
    is_available: bool | None = Field(None, alias="isAvailable")
    group_id: int | None = Field(None, alias="groupId")
    sentence_index: int | None = Field(None, alias="sentenceIndex")
    index_in_sentence: int | None = Field(None, alias="indexInSentence")
    transform_index: int | None = Field(None, alias="transformIndex")

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return TransformStatus.parse(value).value

    def to_transformation(self) -> Transformation:
        added = tuple(token.to_token() for token in self.tokens_added)
        has_replacement = self.has_replacement if self.has_replacement is not None else bool(added)
        return Transformation(
            tokens_affected=tuple(token.to_token() for token in self.tokens_affected),
            tokens_added=added,
            has_replacement=has_replacement,
            is_suggestion=self.is_suggestion is True,
            status=TransformStatus.parse(self.status),
        )

    @classmethod
    def from_transformation(cls, transform: Transformation) -> "TransformationModel":
        return cls(
            tokens_affected=[TokenModel.from_token(token) for token in transform.tokens_affected],
            tokens_added=[TokenModel.from_token(token) for token in transform.tokens_added],
            has_replacement=transform.has_replacement,
            is_suggestion=transform.is_suggestion,
            status=transform.status.value,
            is_available=transform.is_available,
            group_id=transform.group_id,
            sentence_index=transform.sentence_index,
            index_in_sentence=transform.index_in_sentence,
            transform_index=transform.transform_index,
        )


class SentenceModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    original_sentence: List[TokenModel] = Field(default_factory=list, alias="originalSentence")
    transformations: List[TransformationModel] = Field(default_factory=list)


class DocumentModel(BaseModel):
    """``/correct`` の応答、もしくは保存済みセッションのスナップショット。"""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    rules_applied: List[SentenceModel] | None = Field(None, alias="rulesApplied")
    grammar_score: float | None = Field(None, alias="grammarScore")
    id: str | int | None = None
    status: int | None = None
    corrected: str | None = None

    def to_document(self) -> Document:
        sentences = [
            Sentence(
                original_sentence=tuple(token.to_token() for token in sentence.original_sentence),
                transformations=[item.to_transformation() for item in sentence.transformations],
            )
            for sentence in self.rules_applied or []
        ]
        return Document(
            sentences=sentences,
            job_id=self.id,
            grammar_score=self.grammar_score,
            job_status=self.status,
            corrected=self.corrected,
        )

    def dump(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class StatusUpdate(BaseModel):
    """承認/却下/取り消しをサービスへ通知するペイロード。"""

    model_config = ConfigDict(populate_by_name=True)

    job_id: str | int | None = Field(None, alias="jobId")
    response_type: str = Field("rulesApplied", alias="responseType")
    sentence_index: int = Field(..., ge=0, alias="sentenceIndex")
    transform_index: int = Field(..., ge=0, alias="transformIndex")
    sentence: str
    offset: int = Field(..., ge=-1)
    status: str

    @classmethod
    def for_transform(
        cls,
        document: Document,
        transform: Transformation,
        *,
        sentence_text: str,
        offset: int | None,
    ) -> "StatusUpdate":
        return cls(
            job_id=document.job_id,
            sentence_index=transform.sentence_index or 0,
            transform_index=transform.index_in_sentence or 0,
            sentence=sentence_text,
            offset=-1 if offset is None else offset,
            status=transform.status.value,
        )

    def dump(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def document_from_payload(payload: DocumentModel | Mapping[str, Any]) -> Document:
    """サービス応答を ``Document`` に変換し、メタデータを構築して返す。"""

    model = payload if isinstance(payload, DocumentModel) else DocumentModel.model_validate(payload)
    return build_metadata(model.to_document())


def document_to_payload(document: Document) -> DocumentModel:
    """現在の判定状態を含むスナップショットを作る。後で復元に利用できる。"""

    return DocumentModel(
        rules_applied=[
            SentenceModel(
                original_sentence=[TokenModel.from_token(token) for token in sentence.original_sentence],
                transformations=[
                    TransformationModel.from_transformation(transform) for transform in sentence.transformations
                ],
            )
            for sentence in document.sentences
        ],
        grammar_score=document.grammar_score,
        id=document.job_id,
        status=document.job_status,
        corrected=document.corrected,
    )


__all__ = [
    "DocumentModel",
    "SentenceModel",
    "StatusUpdate",
    "TokenModel",
    "TransformationModel",
    "document_from_payload",
    "document_to_payload",
]
