"""Main comparison engine for ShapeDiff."""

from __future__ import annotations

import logging
from typing import Any, Optional

from .models import (
    EngineConfig,
    ComparisonResult,
    ShapeAnalysis,
    Summary,
    ErrorResponse,
)
from .shapes import ShapeAnalyzer
from .keys import KeyResolver
from .differ import Differ
from .exceptions import (
    InvalidInputShape,
    MissingKeySelection,
    RecordParseError,
    KeyMappingError,
)

logger = logging.getLogger(__name__)


class ShapeDiffEngine:
    """
    Main comparison engine that orchestrates the pipeline:

    1. Shape Analysis: Partition both collections by record shape
    2. Key Validation: Every shape present on both sides needs a key field
    3. Classification: Match records by key and sort them into new,
       modified and deleted entries
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize the engine.

        Args:
            config: Engine configuration (uses defaults if not provided)
        """
        self.config = config or EngineConfig()

    def analyze(self, before: Any, after: Any) -> tuple[ShapeAnalysis, ShapeAnalysis]:
        """
        Discover the shapes of both collections.

        Raises:
            InvalidInputShape: If either collection is malformed
        """
        strict = self.config.strict_input_validation
        return (
            ShapeAnalyzer("before", strict).analyze(before),
            ShapeAnalyzer("after", strict).analyze(after),
        )

    def resolve_keys(self, before: Any, after: Any, key_mapping: Optional[dict] = None) -> dict:
        """Analyze both collections and fill unambiguous key selections."""
        before_shapes, after_shapes = self.analyze(before, after)
        return KeyResolver(before_shapes, after_shapes).resolve(key_mapping)

    def compare(
        self,
        before: Any,
        after: Any,
        key_mapping: Optional[dict] = None
    ) -> ComparisonResult | ErrorResponse:
        """
        Compare two record collections.

        Args:
            before: The baseline list of records
            after: The list of records to compare against the baseline
            key_mapping: Signature -> key field used to match records

        Returns:
            ComparisonResult on success, ErrorResponse on fatal errors
        """
        key_mapping = key_mapping or {}

        try:
            if self.config.validate_key_selection:
                before_shapes, after_shapes = self.analyze(before, after)
                KeyResolver(before_shapes, after_shapes).validate(key_mapping)

            differ = Differ(key_mapping, self.config)
            result = differ.diff(before, after)

        except (InvalidInputShape, MissingKeySelection) as e:
            return self.error_response(e)
        except Exception as e:
            logger.exception("Unexpected error while comparing records")
            return self.error_response(e)

        if self.config.collect_statistics:
            result.summary = Summary(
                before_records=len(before),
                after_records=len(after),
                new_count=len(result.new_entries),
                modified_count=len(result.modified_entries),
                deleted_count=len(result.deleted_entries),
                warnings_count=len(result.warnings),
            )

        logger.info(
            "Compared %d before / %d after record(s): %d new, %d modified, %d deleted",
            len(before),
            len(after),
            len(result.new_entries),
            len(result.modified_entries),
            len(result.deleted_entries)
        )

        return result

    def error_response(self, error: Exception) -> ErrorResponse:
        """Convert a fatal error into an ErrorResponse; unknown errors become PROCESSING_ERROR."""
        if isinstance(error, InvalidInputShape):
            return self._create_error_response(
                "INVALID_INPUT_SHAPE",
                error.message,
                error.to_details()
            )
        if isinstance(error, MissingKeySelection):
            return self._create_error_response(
                "MISSING_KEY_SELECTION",
                str(error),
                {"signature": error.signature}
            )
        if isinstance(error, RecordParseError):
            return self._create_error_response(
                "RECORD_PARSE_ERROR",
                error.message,
                {"line": error.line, "column": error.column, "reason": error.reason}
            )
        if isinstance(error, KeyMappingError):
            return self._create_error_response(
                "KEY_MAPPING_ERROR",
                error.message,
                error.details
            )
        return self._create_error_response(
            "PROCESSING_ERROR",
            str(error),
            {"type": type(error).__name__}
        )

    def _create_error_response(self, code: str, message: str, details: dict) -> ErrorResponse:
        """Create an error response."""
        logger.info("Comparison failed with %s: %s", code, message)
        return ErrorResponse(
            success=False,
            error={
                "code": code,
                "message": message,
                "details": details
            }
        )


def compare(
    before: Any,
    after: Any,
    key_mapping: Optional[dict] = None,
    config: Optional[EngineConfig] = None
) -> ComparisonResult | ErrorResponse:
    """
    Convenience function to compare two record collections.

    Args:
        before: The baseline list of records
        after: The list of records to compare against the baseline
        key_mapping: Signature -> key field used to match records
        config: Optional engine configuration

    Returns:
        ComparisonResult on success, ErrorResponse on fatal errors
    """
    engine = ShapeDiffEngine(config)
    return engine.compare(before, after, key_mapping)
