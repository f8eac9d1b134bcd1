"""Selective file rebuild from ldiff patch containers, verified by MD5."""

from .errors import (
    PatcherError,
    FatalStartupError,
    DecodeError,
    SegmentNotFound,
    NoSegmentAvailable,
    ExtractionError,
    PatchProcessError,
    PatchTimeout,
    ReadError,
    MoveError,
    Cancelled,
    UnsafePath,
)
from .manifest import Manifest, ManifestEntry, PatchSegment, decode_manifest, read_manifest
from .patterns import PatternFilter, load_patterns
from .paths import Layout
from .pipeline import JobState, JobStatus, PatchJob, RunSummary, run_job, run_pipeline
from .verify import HashCheck, verify_file

__version__ = "0.1.0"

__all__ = [
    "PatcherError",
    "FatalStartupError",
    "DecodeError",
    "SegmentNotFound",
    "NoSegmentAvailable",
    "ExtractionError",
    "PatchProcessError",
    "PatchTimeout",
    "ReadError",
    "MoveError",
    "Cancelled",
    "UnsafePath",
    "Manifest",
    "ManifestEntry",
    "PatchSegment",
    "decode_manifest",
    "read_manifest",
    "PatternFilter",
    "load_patterns",
    "Layout",
    "JobState",
    "JobStatus",
    "PatchJob",
    "RunSummary",
    "run_job",
    "run_pipeline",
    "HashCheck",
    "verify_file",
]
