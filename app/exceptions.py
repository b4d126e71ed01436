# =============================================================================
# app/exceptions.py - Custom Exceptions
# =============================================================================
# Centralized error types for the store and the migration jobs.
# Errors should tell HOW to fix, not just WHAT failed.
#
# Recovery policy lives in the callers: batch drivers catch these per
# document or per candidate and count them; only ConfigurationError is
# allowed to stop a job before it starts.
# =============================================================================

from typing import Any


class AssetPipelineError(Exception):
    """
    Base exception for the persistence and asset migration subsystem.

    All custom exceptions inherit from this class.
    Provides structured errors with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "ASSET_PIPELINE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a serializable dict (task results, logs)."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Configuration
# =============================================================================

class ConfigurationError(AssetPipelineError):
    """Raised at startup when required environment values are missing."""

    def __init__(self, missing: list[str]):
        super().__init__(
            message=f"Missing required environment variable(s): {', '.join(missing)}",
            code="CONFIGURATION_ERROR",
            suggestion="Set the variables in your environment or .env file",
            details={"missing": missing}
        )


# =============================================================================
# Document Store Exceptions
# =============================================================================

class StoreError(AssetPipelineError):
    """Raised when a relational backend call fails."""

    def __init__(
        self,
        message: str,
        code: str = "STORE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, suggestion=suggestion, details=details)


class DocumentNotFoundError(AssetPipelineError):
    """Raised when an update targets a document id that doesn't exist."""

    def __init__(self, collection: str, document_id: str):
        super().__init__(
            message=f"Document not found: {collection}/{document_id}",
            code="DOCUMENT_NOT_FOUND",
            suggestion="Check that the document still exists; updates never create documents",
            details={"collection": collection, "document_id": document_id}
        )


# =============================================================================
# Asset Exceptions
# =============================================================================

class ReferenceParseError(AssetPipelineError):
    """Raised when an inline payload or legacy URL cannot be decoded."""

    def __init__(self, reference: str, reason: str):
        super().__init__(
            message=f"Unparseable asset reference: {reason}",
            code="REFERENCE_PARSE_ERROR",
            details={"reference": reference[:60], "reason": reason}
        )


class AssetDownloadError(AssetPipelineError):
    """Raised when a foreign-hosted asset cannot be downloaded."""

    def __init__(self, url: str, error: str):
        super().__init__(
            message=f"Failed to download asset: {error}",
            code="ASSET_DOWNLOAD_ERROR",
            suggestion="Check that the legacy URL is still reachable",
            details={"url": url, "error": error}
        )


class StorageUploadError(AssetPipelineError):
    """Raised when an upload to object storage fails."""

    def __init__(self, key: str, error: str):
        super().__init__(
            message=f"Failed to upload object to storage: {error}",
            code="STORAGE_UPLOAD_ERROR",
            suggestion="Check R2 credentials and bucket permissions",
            details={"key": key, "error": error}
        )


class StorageProbeError(AssetPipelineError):
    """Raised when an existence check fails for reasons other than 404."""

    def __init__(self, key: str, error: str):
        super().__init__(
            message=f"Failed to probe object in storage: {error}",
            code="STORAGE_PROBE_ERROR",
            details={"key": key, "error": error}
        )
