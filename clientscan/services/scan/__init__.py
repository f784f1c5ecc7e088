from .service import ClientInventoryScanService, FileFailure

__all__ = ["ClientInventoryScanService", "FileFailure"]
