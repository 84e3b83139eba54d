"""
Local stand-ins for the assembly and report services.
Objects live in a directory on disk, so the whole pipeline can run without a
callback server.
"""

import shutil
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from src.filter_contigs.core.errors import RemoteFetchError, RemoteReportError, RemoteSaveError
from src.filter_contigs.core.models import FastaAssemblyFile, ReportInfo
from src.filter_contigs.gateways.assembly import AssemblyGateway
from src.filter_contigs.gateways.report import ReportGateway

class LocalAssemblyGateway(AssemblyGateway):
    """
    Assemblies stored as FASTA files under store_dir, addressed by "ws/obj/ver" refs.

    :param store_dir: Directory holding saved assemblies.
    :param fail: Operation names ("fetch", "save") that should fail.
    """

    def __init__(self, store_dir: Union[str, Path], fail: Tuple[str, ...] = ()):
        self.store_dir = Path(store_dir)
        self.store_dir.mkdir(parents=True, exist_ok=True)
        self.fail = set(fail)
        self.assemblies: Dict[str, FastaAssemblyFile] = {}
        self.calls: List[Tuple[str, tuple]] = []
        self._next_id = 1

    def _new_ref(self, workspace_name: str) -> str:
        ref = f"{workspace_name}/{self._next_id}/1"
        self._next_id += 1
        return ref

    def add_assembly(self, workspace_name: str, assembly_name: str, fasta_path: Union[str, Path]) -> str:
        target = self.store_dir / f"{self._next_id}_{assembly_name}.fa"
        shutil.copyfile(fasta_path, target)
        ref = self._new_ref(workspace_name)
        self.assemblies[ref] = FastaAssemblyFile(path=str(target), assembly_name=assembly_name)
        return ref

    def fetch_as_fasta(self, assembly_ref: str) -> FastaAssemblyFile:
        self.calls.append(("fetch", (assembly_ref,)))
        if "fetch" in self.fail:
            raise RemoteFetchError(f"Could not download assembly {assembly_ref}: simulated failure")
        if assembly_ref not in self.assemblies:
            raise RemoteFetchError(f"Could not download assembly {assembly_ref}: no such object")
        return self.assemblies[assembly_ref]

    def save_from_fasta(self, workspace_name: str, assembly_name: str, fasta_path: Union[str, Path]) -> str:
        self.calls.append(("save", (workspace_name, assembly_name, str(fasta_path))))
        if "save" in self.fail:
            raise RemoteSaveError(f"Could not save assembly {assembly_name}: simulated failure")
        return self.add_assembly(workspace_name, assembly_name, fasta_path)

class LocalReportGateway(ReportGateway):
    """
    Keeps published reports in memory.
    """

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.reports: List[dict] = []

    def publish(self, workspace_name: str, summary: str, created_object_ref: str) -> ReportInfo:
        if self.fail:
            raise RemoteReportError(f"Could not create report in {workspace_name}: simulated failure")
        number = len(self.reports) + 1
        info = ReportInfo(name=f"report_{number}", ref=f"{workspace_name}/report/{number}")
        self.reports.append({
            "workspace_name": workspace_name,
            "text_message": summary,
            "objects_created": [created_object_ref],
            "info": info
        })
        return info

    @property
    def last(self) -> Optional[dict]:
        return self.reports[-1] if self.reports else None
