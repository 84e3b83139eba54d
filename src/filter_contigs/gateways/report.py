"""
Report storage gateway.
Publishes a text report that references the objects a run created.
"""

import logging
from abc import ABC, abstractmethod

from src.filter_contigs.core.errors import RemoteReportError
from src.filter_contigs.core.models import FilterOutcome, ReportInfo
from src.filter_contigs.gateways.rpc import CallbackClient, RpcError

logger = logging.getLogger(__name__)

CREATED_OBJECT_DESCRIPTION = "Filtered contigs"

def summary_text(outcome: FilterOutcome) -> str:
    return f"Filtered assembly to {outcome.records_kept} contigs out of {outcome.total_records_seen}"

def report_params(workspace_name: str, text: str, created_object_ref: str) -> dict:
    return {
        "workspace_name": workspace_name,
        "report": {
            "text_message": text,
            "objects_created": [
                {"ref": created_object_ref, "description": CREATED_OBJECT_DESCRIPTION}
            ]
        }
    }

class ReportGateway(ABC):

    @abstractmethod
    def publish(self, workspace_name: str, summary: str, created_object_ref: str) -> ReportInfo:
        """
        Create a report in the workspace pointing at exactly one created object.

        :raises RemoteReportError: on any failure.
        """

class CallbackReportGateway(ReportGateway):
    """
    KBaseReport reached through the SDK callback server.
    """
    module = "KBaseReport"

    def __init__(self, client: CallbackClient):
        self.client = client

    def publish(self, workspace_name: str, summary: str, created_object_ref: str) -> ReportInfo:
        try:
            reply = self.client.call(f"{self.module}.create", report_params(workspace_name, summary, created_object_ref))
        except RpcError as e:
            raise RemoteReportError(f"Could not create report in {workspace_name}: {e.message}") from e

        if not isinstance(reply, dict) or not reply.get("name") or not reply.get("ref"):
            raise RemoteReportError(f"Report creation in {workspace_name} returned no name/ref")
        logger.info(f"Created report {reply['name']} ({reply['ref']})")
        return ReportInfo(name=reply["name"], ref=reply["ref"])
