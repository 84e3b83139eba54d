"""
Core filtering logic for FilterContigs.
Streams a FASTA file record by record, keeping contigs at or above a minimum
length and writing them, in input order, to a new FASTA file.
"""

import logging
import re
from pathlib import Path
from typing import Iterable, Iterator, Tuple, Union

from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqIO.FastaIO import SimpleFastaParser
from Bio.SeqRecord import SeqRecord

from src.filter_contigs.core.errors import MalformedSequenceData
from src.filter_contigs.core.models import FilterOutcome

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# IUPAC letters, gaps and stop codons
_SEQUENCE_RE = re.compile(r"^[A-Za-z.*\-]*$")

def _checked_lines(handle: Iterable[str], source: str) -> Iterator[str]:
    """
    Pass FASTA lines through, rejecting any text ahead of the first header.

    :param handle: Open text handle on the FASTA file.
    :param source: File name used in error messages.
    """
    in_records = False
    for line_no, line in enumerate(handle, start=1):
        if not in_records:
            if not line.strip():
                continue
            if not line.startswith(">"):
                raise MalformedSequenceData(
                    f"{source}: line {line_no} is not a FASTA header: {line.strip()[:60]!r}"
                )
            in_records = True
        yield line

def read_records(handle: Iterable[str], source: str = "<fasta>") -> Iterator[SeqRecord]:
    """
    Lazily parse FASTA records from a handle.

    :param handle: Open text handle on the FASTA file.
    :param source: File name used in error messages.
    :return: Iterator of Biopython SeqRecord objects, one at a time.
    :raises MalformedSequenceData: on a record that cannot be parsed.
    """
    try:
        for index, (title, sequence) in enumerate(SimpleFastaParser(_checked_lines(handle, source)), start=1):
            identifier = title.split(None, 1)[0] if title.strip() else ""
            if not identifier:
                raise MalformedSequenceData(f"{source}: record {index} has an empty identifier")
            if not _SEQUENCE_RE.match(sequence):
                raise MalformedSequenceData(
                    f"{source}: record {identifier} contains invalid sequence characters"
                )
            yield SeqRecord(Seq(sequence), id=identifier, name=identifier, description=title)
    except ValueError as e:
        # includes UnicodeDecodeError on binary input
        raise MalformedSequenceData(f"{source}: {e}") from e

def passes_min_length(record: SeqRecord, min_length: int) -> bool:
    return len(record.seq) >= min_length

def _kept_records(records: Iterable[SeqRecord], min_length: int, outcome: FilterOutcome) -> Iterator[SeqRecord]:
    for record in records:
        length = len(record.seq)
        outcome.total_records_seen += 1
        outcome.bases_seen += length
        if length >= min_length:
            outcome.records_kept += 1
            outcome.bases_kept += length
            yield record
        else:
            logger.debug(f"Dropping {record.id} ({length} bp < {min_length} bp)")

def filter_fasta(input_path: PathLike, output_path: PathLike, min_length: int) -> FilterOutcome:
    """
    Copy every record of at least min_length bases from input_path to output_path.

    Only the current record is held in memory. On malformed input the partial
    output file is removed before MalformedSequenceData propagates.

    :param input_path: FASTA file to read.
    :param output_path: FASTA file to create (overwritten if present).
    :param min_length: Inclusive minimum sequence length.
    :return: FilterOutcome with record and base counts.
    """
    input_path = Path(input_path)
    output_path = Path(output_path)
    outcome = FilterOutcome()

    try:
        with open(input_path, "r", encoding="utf-8") as in_handle, \
                open(output_path, "w", encoding="utf-8") as out_handle:
            records = read_records(in_handle, source=input_path.name)
            SeqIO.write(_kept_records(records, min_length, outcome), out_handle, "fasta")
    except Exception:
        # a partial output file must never reach the save stage
        output_path.unlink(missing_ok=True)
        raise

    logger.info(
        f"Kept {outcome.records_kept} of {outcome.total_records_seen} contigs "
        f"({outcome.bases_kept} of {outcome.bases_seen} bp) with min_length={min_length}"
    )
    return outcome

def filter_fasta_stage(input_path: PathLike, output_path: PathLike, min_length: int) -> Tuple[Path, FilterOutcome]:
    """
    Run filter_fasta and return the output path alongside the outcome.
    """
    outcome = filter_fasta(input_path, output_path, min_length)
    return Path(output_path), outcome
