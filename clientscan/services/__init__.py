from .scan import ClientInventoryScanService
from .traceparser import RequestExtractor, TraceLineClassifier

__all__ = ["ClientInventoryScanService", "RequestExtractor", "TraceLineClassifier"]
