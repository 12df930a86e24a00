"""Token/sentence/transformation model and the accept/reject/undo engine."""
from __future__ import annotations

from .engine import (
    accept_transform,
    affects_same_tokens,
    available_transforms,
    can_make_transform,
    can_undo_transform,
    is_transform_available,
    overlapping_group,
    refresh_group,
    reject_transform,
    undo_transform,
)
from .metadata import assign_groups, build_metadata, ensure_metadata, transforms_overlap
from .text import (
    added_text,
    affected_text,
    current_sentence_text,
    current_text,
    original_sentence_text,
    original_text,
    sentence_offset,
    tokens_text,
    transform_document_offset,
    transform_offset,
)
from .types import (
    Document,
    DocumentError,
    Sentence,
    Token,
    Transformation,
    TransformStatus,
    UnknownTransformError,
)

__all__ = [
    "Document",
    "DocumentError",
    "Sentence",
    "Token",
    "Transformation",
    "TransformStatus",
    "UnknownTransformError",
    "accept_transform",
    "added_text",
    "affected_text",
    "affects_same_tokens",
    "assign_groups",
    "available_transforms",
    "build_metadata",
    "can_make_transform",
    "can_undo_transform",
    "current_sentence_text",
    "current_text",
    "ensure_metadata",
    "is_transform_available",
    "original_sentence_text",
    "original_text",
    "overlapping_group",
    "refresh_group",
    "reject_transform",
    "sentence_offset",
    "tokens_text",
    "transform_document_offset",
    "transform_offset",
    "transforms_overlap",
    "undo_transform",
]
