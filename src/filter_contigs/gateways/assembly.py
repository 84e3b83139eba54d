"""
Assembly storage gateway.
Downloads an assembly as a local FASTA file and saves a FASTA file back as a
new assembly object.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

from src.filter_contigs.core.errors import RemoteFetchError, RemoteSaveError
from src.filter_contigs.core.models import FastaAssemblyFile
from src.filter_contigs.gateways.rpc import CallbackClient, RpcError

logger = logging.getLogger(__name__)

class AssemblyGateway(ABC):

    @abstractmethod
    def fetch_as_fasta(self, assembly_ref: str) -> FastaAssemblyFile:
        """
        Download the assembly to local scratch storage.

        :raises RemoteFetchError: on any failure; never retried here.
        """

    @abstractmethod
    def save_from_fasta(self, workspace_name: str, assembly_name: str, fasta_path: Union[str, Path]) -> str:
        """
        Save a local FASTA file as a new assembly and return its reference.

        :raises RemoteSaveError: on any failure.
        """

class CallbackAssemblyGateway(AssemblyGateway):
    """
    AssemblyUtil reached through the SDK callback server.
    """
    module = "AssemblyUtil"

    def __init__(self, client: CallbackClient):
        self.client = client

    def fetch_as_fasta(self, assembly_ref: str) -> FastaAssemblyFile:
        try:
            reply = self.client.call(f"{self.module}.get_assembly_as_fasta", {"ref": assembly_ref})
        except RpcError as e:
            raise RemoteFetchError(f"Could not download assembly {assembly_ref}: {e.message}") from e

        if not isinstance(reply, dict) or not reply.get("path"):
            raise RemoteFetchError(f"Download of assembly {assembly_ref} returned no file path")
        if not reply.get("assembly_name"):
            raise RemoteFetchError(f"Download of assembly {assembly_ref} returned no assembly name")
        fasta = FastaAssemblyFile(path=reply["path"], assembly_name=reply["assembly_name"])
        logger.info(f"Downloaded assembly {assembly_ref} ({fasta.assembly_name}) to {fasta.path}")
        return fasta

    def save_from_fasta(self, workspace_name: str, assembly_name: str, fasta_path: Union[str, Path]) -> str:
        params = {
            "file": {"path": str(fasta_path)},
            "workspace_name": workspace_name,
            "assembly_name": assembly_name
        }
        try:
            ref = self.client.call(f"{self.module}.save_assembly_from_fasta", params)
        except RpcError as e:
            raise RemoteSaveError(f"Could not save assembly {assembly_name}: {e.message}") from e

        if not ref or not isinstance(ref, str):
            raise RemoteSaveError(f"Saving assembly {assembly_name} returned no reference")
        logger.info(f"Saved assembly {assembly_name} to {workspace_name} as {ref}")
        return ref
