"""
Error taxonomy for FilterContigs.
Every error names the pipeline stage it was raised in.
"""

from typing import Optional

from src.filter_contigs.core.models import PipelineState

class FilterContigsError(Exception):
    """
    Base class for failures surfaced to the caller of filter_contigs.
    """
    stage: PipelineState = PipelineState.FAILED

    def __init__(self, message: str, stage: Optional[PipelineState] = None):
        super().__init__(message)
        self.message = message
        if stage is not None:
            self.stage = stage

    def __str__(self) -> str:
        return f"[{self.stage.value}] {self.message}"

class InvalidParameter(FilterContigsError, ValueError):
    """
    A caller-supplied parameter is missing or out of range. Raised before any I/O.
    """
    stage = PipelineState.VALIDATING

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field

class PipelineStageError(FilterContigsError):
    """
    An unexpected failure (e.g. OSError) inside a stage with no dedicated error kind.
    """

    def __init__(self, message: str, stage: PipelineState):
        super().__init__(message, stage)

class RemoteFetchError(FilterContigsError):
    stage = PipelineState.FETCHING

class MalformedSequenceData(FilterContigsError):
    stage = PipelineState.FILTERING

class RemoteSaveError(FilterContigsError):
    stage = PipelineState.SAVING

class RemoteReportError(FilterContigsError):
    stage = PipelineState.REPORTING
