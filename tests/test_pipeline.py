import pytest
from pathlib import Path
from Bio import SeqIO
from src.filter_contigs import service
from src.filter_contigs.core.errors import (
    InvalidParameter,
    MalformedSequenceData,
    PipelineStageError,
    RemoteFetchError,
    RemoteReportError,
    RemoteSaveError
)
from src.filter_contigs.core.models import FilterRequest, PipelineState
from src.filter_contigs.core.pipeline import FilterContigsPipeline
from src.filter_contigs.gateways.local import LocalAssemblyGateway, LocalReportGateway
from src.filter_contigs.utils.config import ServiceConfig

ALL_STAGES = [
    PipelineState.VALIDATING,
    PipelineState.FETCHING,
    PipelineState.FILTERING,
    PipelineState.SAVING,
    PipelineState.REPORTING,
    PipelineState.DONE
]

def write_fasta(path, lengths):
    with open(path, "w", encoding="utf-8") as f:
        for i, length in enumerate(lengths, start=1):
            f.write(f">contig{i}\n{'G' * length}\n")
    return path

def setup_pipeline(tmp_path, lengths=(50, 150, 200, 90, 300), fail=(), report_fail=False, scratch="scratch"):
    config = ServiceConfig(callback_url="http://localhost:9999", scratch=tmp_path / scratch)
    assemblies = LocalAssemblyGateway(tmp_path / "store", fail=fail)
    reports = LocalReportGateway(fail=report_fail)
    source = write_fasta(tmp_path / "source.fa", lengths)
    ref = assemblies.add_assembly("my_ws", "MyAssembly", source)
    return FilterContigsPipeline(config, assemblies, reports), assemblies, reports, ref

def test_pipeline_filters_saves_and_reports(tmp_path):
    pipeline, assemblies, reports, ref = setup_pipeline(tmp_path)

    result = pipeline.run(FilterRequest("my_ws", ref, 100))

    assert result.n_initial_contigs == 5
    assert result.n_contigs_remaining == 3
    assert result.n_contigs_removed == 2
    assert result.report_name == "report_1"
    assert result.report_ref == "my_ws/report/1"
    assert pipeline.history == ALL_STAGES
    assert pipeline.state == PipelineState.DONE

    # Saved under the source assembly name, from scratch/filtered.fasta
    assert assemblies.calls[-1] == ("save", ("my_ws", "MyAssembly", str(tmp_path / "scratch" / "filtered.fasta")))
    saved = assemblies.assemblies[result.assembly_output]
    assert saved.assembly_name == "MyAssembly"
    assert [len(r.seq) for r in SeqIO.parse(saved.path, "fasta")] == [150, 200, 300]

    report = reports.last
    assert report["text_message"] == "Filtered assembly to 3 contigs out of 5"
    assert report["objects_created"] == [result.assembly_output]

def test_result_dict_keys(tmp_path):
    pipeline, _, _, ref = setup_pipeline(tmp_path)
    result = pipeline.run(FilterRequest("my_ws", ref, 100)).to_dict()
    assert set(result) == {
        "assembly_output", "n_initial_contigs", "n_contigs_remaining",
        "n_contigs_removed", "report_name", "report_ref"
    }
    assert result["n_contigs_removed"] == result["n_initial_contigs"] - result["n_contigs_remaining"]

def test_empty_assembly(tmp_path):
    pipeline, _, reports, ref = setup_pipeline(tmp_path, lengths=())
    result = pipeline.run(FilterRequest("my_ws", ref, 100))
    assert result.n_initial_contigs == 0
    assert result.n_contigs_remaining == 0
    assert result.n_contigs_removed == 0
    assert reports.last["text_message"] == "Filtered assembly to 0 contigs out of 0"

@pytest.mark.parametrize("request_args", [
    ("", "1/2/3", 100),
    ("my_ws", "", 100),
    ("my_ws", "1/2/3", None),
    ("my_ws", "1/2/3", -1),
])
def test_invalid_request_makes_no_remote_calls(tmp_path, request_args):
    pipeline, assemblies, reports, _ = setup_pipeline(tmp_path)

    with pytest.raises(InvalidParameter):
        pipeline.run(FilterRequest(*request_args))

    assert assemblies.calls == []
    assert reports.reports == []
    assert pipeline.history == [PipelineState.VALIDATING, PipelineState.FAILED]
    assert pipeline.failed_stage == PipelineState.VALIDATING

def test_fetch_failure(tmp_path):
    pipeline, assemblies, reports, ref = setup_pipeline(tmp_path, fail=("fetch",))

    with pytest.raises(RemoteFetchError) as excinfo:
        pipeline.run(FilterRequest("my_ws", ref, 100))

    assert excinfo.value.stage == PipelineState.FETCHING
    assert pipeline.failed_stage == PipelineState.FETCHING
    assert [name for name, _ in assemblies.calls] == ["fetch"]
    assert reports.reports == []

def test_unknown_assembly_ref(tmp_path):
    pipeline, _, _, _ = setup_pipeline(tmp_path)
    with pytest.raises(RemoteFetchError, match="no such object"):
        pipeline.run(FilterRequest("my_ws", "9/9/9", 100))

def test_malformed_assembly_aborts_before_save(tmp_path):
    pipeline, assemblies, reports, _ = setup_pipeline(tmp_path)
    bad = tmp_path / "bad.fa"
    bad.write_text(">c1\nACGT\n>c2\nNOT VALID 123\n")
    ref = assemblies.add_assembly("my_ws", "Bad", bad)

    with pytest.raises(MalformedSequenceData):
        pipeline.run(FilterRequest("my_ws", ref, 1))

    assert pipeline.failed_stage == PipelineState.FILTERING
    assert [name for name, _ in assemblies.calls] == ["fetch"]
    assert reports.reports == []
    assert not (tmp_path / "scratch" / "filtered.fasta").exists()

def test_save_failure_skips_report(tmp_path):
    pipeline, _, reports, ref = setup_pipeline(tmp_path, fail=("save",))

    with pytest.raises(RemoteSaveError):
        pipeline.run(FilterRequest("my_ws", ref, 100))

    assert pipeline.history[-2:] == [PipelineState.SAVING, PipelineState.FAILED]
    assert reports.reports == []

def test_report_failure_keeps_saved_assembly(tmp_path):
    pipeline, assemblies, _, ref = setup_pipeline(tmp_path, report_fail=True)

    with pytest.raises(RemoteReportError):
        pipeline.run(FilterRequest("my_ws", ref, 100))

    # No rollback: the filtered assembly saved before the failure stays
    assert [name for name, _ in assemblies.calls] == ["fetch", "save"]
    assert len(assemblies.assemblies) == 2
    assert pipeline.failed_stage == PipelineState.REPORTING

def test_unexpected_gateway_error_is_wrapped(tmp_path):
    class BrokenSave(LocalAssemblyGateway):
        def save_from_fasta(self, workspace_name, assembly_name, fasta_path):
            raise ConnectionError("callback server went away")

    config = ServiceConfig(callback_url="http://localhost:9999", scratch=tmp_path / "scratch")
    assemblies = BrokenSave(tmp_path / "store")
    ref = assemblies.add_assembly("my_ws", "A", write_fasta(tmp_path / "a.fa", [10]))
    pipeline = FilterContigsPipeline(config, assemblies, LocalReportGateway())

    with pytest.raises(RemoteSaveError, match="callback server went away") as excinfo:
        pipeline.run(FilterRequest("my_ws", ref, 1))
    assert isinstance(excinfo.value.__cause__, ConnectionError)

def test_independent_pipelines_use_their_own_scratch(tmp_path):
    first, _, _, ref1 = setup_pipeline(tmp_path / "one", scratch="s1")
    second, _, _, ref2 = setup_pipeline(tmp_path / "two", lengths=(500, 600), scratch="s2")

    r1 = first.run(FilterRequest("my_ws", ref1, 100))
    r2 = second.run(FilterRequest("my_ws", ref2, 100))

    assert (r1.n_initial_contigs, r2.n_initial_contigs) == (5, 2)
    assert (tmp_path / "one" / "s1" / "filtered.fasta").exists()
    assert (tmp_path / "two" / "s2" / "filtered.fasta").exists()

def test_pipeline_can_run_again_after_failure(tmp_path):
    pipeline, _, _, ref = setup_pipeline(tmp_path)
    with pytest.raises(InvalidParameter):
        pipeline.run(FilterRequest("my_ws", ref, -1))
    result = pipeline.run(FilterRequest("my_ws", ref, 100))
    assert result.n_contigs_remaining == 3
    assert pipeline.failed_stage is None
    assert pipeline.history == ALL_STAGES

def test_service_filter_contigs_with_injected_gateways(tmp_path):
    _, assemblies, reports, ref = setup_pipeline(tmp_path)
    config = ServiceConfig(callback_url="http://localhost:9999", scratch=tmp_path / "scratch")

    result = service.filter_contigs(
        {"workspace_name": "my_ws", "assembly_input_ref": ref, "min_length": 100},
        token="secret",
        config=config,
        assembly_gateway=assemblies,
        report_gateway=reports
    )

    assert result["n_contigs_remaining"] == 3
    assert result["report_ref"] == "my_ws/report/1"

def test_service_rejects_non_mapping_params(tmp_path):
    config = ServiceConfig(callback_url="http://localhost:9999", scratch=tmp_path)
    with pytest.raises(InvalidParameter):
        service.filter_contigs(["not", "a", "dict"], config=config)

def test_status():
    status = service.status()
    assert status["state"] == "OK"
    assert set(status) == {"state", "message", "version", "git_url", "git_commit_hash"}

def test_missing_downloaded_file_fails_in_filtering_stage(tmp_path):
    pipeline, assemblies, reports, ref = setup_pipeline(tmp_path)
    Path(assemblies.assemblies[ref].path).unlink()

    with pytest.raises(PipelineStageError) as excinfo:
        pipeline.run(FilterRequest("my_ws", ref, 100))

    assert excinfo.value.stage == PipelineState.FILTERING
    assert "FILTERING" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, FileNotFoundError)
    assert pipeline.failed_stage == PipelineState.FILTERING
    assert [name for name, _ in assemblies.calls] == ["fetch"]
    assert reports.reports == []

def test_interrupted_run_ends_failed(tmp_path):
    class InterruptedFetch(LocalAssemblyGateway):
        def fetch_as_fasta(self, assembly_ref):
            raise KeyboardInterrupt()

    config = ServiceConfig(callback_url="http://localhost:9999", scratch=tmp_path / "scratch")
    pipeline = FilterContigsPipeline(config, InterruptedFetch(tmp_path / "store"), LocalReportGateway())

    with pytest.raises(KeyboardInterrupt):
        pipeline.run(FilterRequest("my_ws", "1/2/3", 100))

    assert pipeline.state == PipelineState.FAILED
    assert pipeline.failed_stage == PipelineState.FETCHING
    assert pipeline.history == [PipelineState.VALIDATING, PipelineState.FETCHING, PipelineState.FAILED]
