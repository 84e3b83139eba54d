"""
Inbound operations of the FilterContigs service: filter_contigs and status.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from src.filter_contigs.core.errors import InvalidParameter
from src.filter_contigs.core.models import FilterRequest
from src.filter_contigs.core.pipeline import FilterContigsPipeline
from src.filter_contigs.gateways.assembly import AssemblyGateway, CallbackAssemblyGateway
from src.filter_contigs.gateways.report import CallbackReportGateway, ReportGateway
from src.filter_contigs.gateways.rpc import CallbackClient
from src.filter_contigs.utils.config import ServiceConfig

logger = logging.getLogger(__name__)

VERSION = "0.1.0"
GIT_URL = ""
GIT_COMMIT_HASH = ""

def build_pipeline(
    config: ServiceConfig,
    client: Optional[CallbackClient] = None,
    assembly_gateway: Optional[AssemblyGateway] = None,
    report_gateway: Optional[ReportGateway] = None
) -> FilterContigsPipeline:
    """
    Build a coordinator, wiring callback gateways on client for any collaborator not supplied.
    """
    assembly_gateway = assembly_gateway or CallbackAssemblyGateway(client)
    report_gateway = report_gateway or CallbackReportGateway(client)
    return FilterContigsPipeline(config, assembly_gateway, report_gateway)

def filter_contigs(
    params: Mapping[str, Any],
    token: Optional[str] = None,
    config: Optional[ServiceConfig] = None,
    assembly_gateway: Optional[AssemblyGateway] = None,
    report_gateway: Optional[ReportGateway] = None
) -> Dict[str, Any]:
    """
    Filter the contigs of an assembly by minimum length.

    :param params: workspace_name, assembly_input_ref and min_length.
    :param token: Caller's auth token, forwarded to the collaborators.
    :param config: Service configuration, read from the environment when omitted.
    :return: The FilterResult as a plain dict.
    """
    if not isinstance(params, Mapping):
        raise InvalidParameter("params", f"Parameters must be an object, got {type(params).__name__}")
    config = config or ServiceConfig.from_environment()

    client = None
    if assembly_gateway is None or report_gateway is None:
        client = CallbackClient(config.callback_url, token=token, timeout=config.timeout)
    try:
        pipeline = build_pipeline(config, client, assembly_gateway, report_gateway)
        return pipeline.run(FilterRequest.from_params(params)).to_dict()
    finally:
        if client is not None:
            client.close()

def status() -> Dict[str, str]:
    return {
        "state": "OK",
        "message": "",
        "version": VERSION,
        "git_url": GIT_URL,
        "git_commit_hash": GIT_COMMIT_HASH
    }
