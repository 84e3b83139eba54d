"""
Data models for FilterContigs.
Defines the request, outcome and result records and the PipelineState enum.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

class PipelineState(Enum):
    """
    Enum representing the stage a filter_contigs invocation is in.
    """
    VALIDATING = "VALIDATING"
    FETCHING = "FETCHING"
    FILTERING = "FILTERING"
    SAVING = "SAVING"
    REPORTING = "REPORTING"
    DONE = "DONE"
    FAILED = "FAILED"

@dataclass(frozen=True)
class FilterRequest:
    """
    Parameters of one filter_contigs call. Missing values stay None so the
    validator can tell an absent min_length from a zero one.
    """
    workspace_name: Optional[str]
    assembly_input_ref: Optional[str]
    min_length: Any

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "FilterRequest":
        """
        Build a request from the caller's parameter mapping.

        :param params: Mapping with workspace_name, assembly_input_ref and min_length.
        :return: A FilterRequest, not yet validated.
        """
        return cls(
            workspace_name=params.get("workspace_name"),
            assembly_input_ref=params.get("assembly_input_ref"),
            min_length=params.get("min_length")
        )

@dataclass
class FilterOutcome:
    """
    Counters accumulated while streaming records through the length filter.
    """
    total_records_seen: int = 0
    records_kept: int = 0
    bases_seen: int = 0
    bases_kept: int = 0

    @property
    def records_removed(self) -> int:
        return self.total_records_seen - self.records_kept

@dataclass(frozen=True)
class FastaAssemblyFile:
    """
    A local FASTA file downloaded from an assembly object.
    """
    path: str
    assembly_name: str

@dataclass(frozen=True)
class ReportInfo:
    name: str
    ref: str

@dataclass(frozen=True)
class FilterResult:
    """
    Final result of filter_contigs, returned to the caller in one piece.
    """
    assembly_output: str
    n_initial_contigs: int
    n_contigs_remaining: int
    n_contigs_removed: int
    report_name: str
    report_ref: str

    @classmethod
    def build(cls, assembly_output: str, outcome: FilterOutcome, report: ReportInfo) -> "FilterResult":
        return cls(
            assembly_output=assembly_output,
            n_initial_contigs=outcome.total_records_seen,
            n_contigs_remaining=outcome.records_kept,
            n_contigs_removed=outcome.total_records_seen - outcome.records_kept,
            report_name=report.name,
            report_ref=report.ref
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "assembly_output": self.assembly_output,
            "n_initial_contigs": self.n_initial_contigs,
            "n_contigs_remaining": self.n_contigs_remaining,
            "n_contigs_removed": self.n_contigs_removed,
            "report_name": self.report_name,
            "report_ref": self.report_ref
        }
