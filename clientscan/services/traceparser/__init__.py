"""Trace parser module - parsing only, no I/O."""
from .classifier import TraceLineClassifier, determine_auth
from .extractor import RequestExtractor
from .schemas import ApiKind, AuthKind, NotApplicable, RequestRecord

__all__ = [
    "TraceLineClassifier",
    "RequestExtractor",
    "determine_auth",
    "ApiKind",
    "AuthKind",
    "NotApplicable",
    "RequestRecord",
]
