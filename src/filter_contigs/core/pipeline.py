"""
Pipeline coordinator for FilterContigs.
Runs validate -> fetch -> filter -> save -> report strictly in sequence and
assembles the FilterResult once every stage has succeeded.
"""

import logging
from typing import List, Optional

from src.filter_contigs.core.errors import (
    FilterContigsError,
    PipelineStageError,
    RemoteFetchError,
    RemoteReportError,
    RemoteSaveError
)
from src.filter_contigs.core.filtering import filter_fasta_stage
from src.filter_contigs.core.models import FilterRequest, FilterResult, PipelineState
from src.filter_contigs.core.validation import validate_request
from src.filter_contigs.gateways.assembly import AssemblyGateway
from src.filter_contigs.gateways.report import ReportGateway, summary_text
from src.filter_contigs.utils.config import ServiceConfig

logger = logging.getLogger(__name__)

# Unexpected errors raised by a gateway are reported as that stage's error kind
_STAGE_ERRORS = {
    PipelineState.FETCHING: RemoteFetchError,
    PipelineState.SAVING: RemoteSaveError,
    PipelineState.REPORTING: RemoteReportError
}

class FilterContigsPipeline:
    """
    Coordinates one filter_contigs invocation at a time.

    Completed remote side effects are never rolled back: if publishing the
    report fails, the saved assembly stays saved.

    :param config: Service configuration (scratch root, output file name).
    :param assembly_gateway: Assembly storage collaborator.
    :param report_gateway: Report storage collaborator.
    """

    def __init__(self, config: ServiceConfig, assembly_gateway: AssemblyGateway, report_gateway: ReportGateway):
        self.config = config
        self.assembly_gateway = assembly_gateway
        self.report_gateway = report_gateway
        self.state: Optional[PipelineState] = None
        self.history: List[PipelineState] = []
        self.failed_stage: Optional[PipelineState] = None

    def _enter(self, state: PipelineState):
        self.state = state
        self.history.append(state)
        logger.debug(f"Pipeline state: {state.value}")

    def _fail(self, error: Exception):
        self.failed_stage = self.state
        stage = self.state.value if self.state else "UNKNOWN"
        self._enter(PipelineState.FAILED)
        logger.error(f"filter_contigs failed during {stage}: {error}")

    def run(self, request: FilterRequest) -> FilterResult:
        """
        Execute the whole pipeline for one request.

        :param request: The caller's parameters.
        :return: The complete FilterResult.
        :raises FilterContigsError: identifying the failing stage.
        """
        self.state = None
        self.history = []
        self.failed_stage = None

        logger.info(f"Starting filter contigs. Parameters: {request}")
        try:
            self._enter(PipelineState.VALIDATING)
            request = validate_request(request)

            self._enter(PipelineState.FETCHING)
            logger.info("Downloading assembly data as FASTA file.")
            fasta = self.assembly_gateway.fetch_as_fasta(request.assembly_input_ref)

            self._enter(PipelineState.FILTERING)
            self.config.scratch.mkdir(parents=True, exist_ok=True)
            output_path, outcome = filter_fasta_stage(fasta.path, self.config.output_path, request.min_length)
            result_text = summary_text(outcome)
            logger.info(result_text)

            self._enter(PipelineState.SAVING)
            new_assembly_ref = self.assembly_gateway.save_from_fasta(
                request.workspace_name, fasta.assembly_name, output_path
            )

            self._enter(PipelineState.REPORTING)
            report = self.report_gateway.publish(request.workspace_name, result_text, new_assembly_ref)

            result = FilterResult.build(new_assembly_ref, outcome, report)
        except FilterContigsError as e:
            self._fail(e)
            raise
        except Exception as e:
            stage = self.state
            self._fail(e)
            message = f"{type(e).__name__}: {e}"
            if stage in _STAGE_ERRORS:
                raise _STAGE_ERRORS[stage](message) from e
            raise PipelineStageError(message, stage) from e
        except BaseException as e:
            # cancellation (KeyboardInterrupt, SystemExit) still ends the run in FAILED
            self._fail(e)
            raise

        self._enter(PipelineState.DONE)
        logger.info(f"returning: {result.to_dict()}")
        return result
