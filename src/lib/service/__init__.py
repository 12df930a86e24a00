"""Boundary with the remote correction service."""
from __future__ import annotations

from .client import CorrectionServiceClient, generate_app_key, successful_job
from .exceptions import ServiceError
from .models import (
    DocumentModel,
    SentenceModel,
    StatusUpdate,
    TokenModel,
    TransformationModel,
    document_from_payload,
    document_to_payload,
)
from .options import ClientOptions

__all__ = [
    "ClientOptions",
    "CorrectionServiceClient",
    "DocumentModel",
    "SentenceModel",
    "ServiceError",
    "StatusUpdate",
    "TokenModel",
    "TransformationModel",
    "document_from_payload",
    "document_to_payload",
    "generate_app_key",
    "successful_job",
]
