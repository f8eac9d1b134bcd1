# ldiff_patcher/pipeline.py
from __future__ import annotations
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Sequence

from .errors import MoveError, UnsafePath
from .extract import extract_first_available
from .files import publish
from .hpatch import apply_patch
from .log import log, progress
from .manifest import ManifestEntry, PatchSegment
from .paths import Layout, group_key
from .patterns import PatternFilter
from .proc import kill_all
from .system import optimal_threads
from .verify import HashCheck, verify_file


class JobState(str, Enum):
    SELECTED = "selected"
    EXTRACTING = "extracting"
    PATCHING = "patching"
    VERIFYING = "verifying"
    PUBLISHED = "published"
    REJECTED = "rejected"
    FAILED = "failed"


class JobStatus(str, Enum):
    SUCCESS = "success"
    HASH_MISMATCH = "hash-mismatch"
    EXTRACTION_FAILED = "extraction-failed"
    PATCH_FAILED = "patch-failed"
    PUBLISH_FAILED = "publish-failed"


TERMINAL_STATES = frozenset({JobState.PUBLISHED, JobState.REJECTED, JobState.FAILED})

# status recorded when an error escapes while the job is in a given state
_FAILED_IN = {
    JobState.SELECTED: JobStatus.EXTRACTION_FAILED,
    JobState.EXTRACTING: JobStatus.EXTRACTION_FAILED,
    JobState.PATCHING: JobStatus.PATCH_FAILED,
    JobState.VERIFYING: JobStatus.PATCH_FAILED,
}


@dataclass
class PatchJob:
    entry: ManifestEntry
    base_path: Path | None = None
    diff_path: Path | None = None
    candidate_path: Path | None = None
    publish_path: Path | None = None
    state: JobState = JobState.SELECTED
    status: JobStatus | None = None
    segment: PatchSegment | None = None
    exit_code: int | None = None
    check: HashCheck | None = None
    error: BaseException | None = None

    @classmethod
    def for_entry(cls, entry: ManifestEntry, layout: Layout) -> "PatchJob":
        name = entry.file_name
        return cls(entry,
                   base_path=layout.base_file(name),
                   diff_path=layout.diff_file(name),
                   candidate_path=layout.candidate_file(name),
                   publish_path=layout.publish_file(name))

    @property
    def done(self) -> bool:
        return self.status is not None

    def advance(self, state: JobState) -> None:
        if self.done:
            raise RuntimeError(f"{self.entry.file_name}: job already finished ({self.status.value})")
        self.state = state

    def finish(self, state: JobState, status: JobStatus, error: BaseException | None = None) -> None:
        if state not in TERMINAL_STATES:
            raise ValueError(f"not a terminal state: {state}")
        if self.done:
            raise RuntimeError(f"{self.entry.file_name}: job already finished ({self.status.value})")
        self.state, self.status, self.error = state, status, error


@dataclass
class RunSummary:
    jobs: list[PatchJob] = field(default_factory=list)
    skipped: int = 0

    def _count(self, status: JobStatus | None) -> int:
        return sum(1 for j in self.jobs if j.status == status)

    @property
    def total(self) -> int:
        return len(self.jobs)

    @property
    def succeeded(self) -> int:
        return self._count(JobStatus.SUCCESS)

    @property
    def rejected(self) -> int:
        return self._count(JobStatus.HASH_MISMATCH)

    @property
    def failed(self) -> int:
        return sum(1 for j in self.jobs if j.state == JobState.FAILED)

    @property
    def not_run(self) -> int:
        return self._count(None)

    @property
    def ok(self) -> bool:
        return self.succeeded == self.total

    def line(self) -> str:
        s = (f"done. success={self.succeeded}, rejected={self.rejected}, failed={self.failed}, "
             f"skipped={self.skipped}, total={self.total}")
        if self.not_run:
            s += f", not run={self.not_run}"
        return s


def run_job(job: PatchJob, layout: Layout,
            patcher: Sequence[str] | None = None,
            timeout: float | None = None,
            cancel_event: threading.Event | None = None) -> PatchJob:
    """Extract -> patch -> verify -> publish one entry. Never raises for per-entry failures."""
    if cancel_event and cancel_event.is_set():
        return job

    name = job.entry.file_name
    try:
        job.advance(JobState.EXTRACTING)
        job.segment = extract_first_available(job.entry, layout.container_dir, job.diff_path)

        job.advance(JobState.PATCHING)
        job.exit_code = apply_patch(job.base_path, job.diff_path, job.candidate_path,
                                    patcher=patcher, timeout=timeout, cancel_event=cancel_event)
        log(f"patched: {name} (exit code {job.exit_code})")

        job.advance(JobState.VERIFYING)
        job.check = verify_file(job.candidate_path, job.entry.file_hash)
    except Exception as e:
        log(f"failed: {name} while {job.state.value}: {e}")
        job.finish(JobState.FAILED, _FAILED_IN[job.state], e)
        return job

    if job.check.size != job.entry.size:
        log(f"{name}: size {job.check.size} differs from manifest size {job.entry.size}")

    if not job.check.ok:
        # candidate stays in staging for inspection
        log(f"Bad! {name}: md5 {job.check.actual} != expected {job.check.expected}")
        job.finish(JobState.REJECTED, JobStatus.HASH_MISMATCH)
        return job

    log(f"Good! {name}: md5 {job.check.actual}")
    try:
        publish(job.candidate_path, job.publish_path)
    except MoveError as e:
        log(f"failed: {name}: {e}")
        job.finish(JobState.FAILED, JobStatus.PUBLISH_FAILED, e)
        return job

    log(f"published: {name} -> {job.publish_path}")
    job.finish(JobState.PUBLISHED, JobStatus.SUCCESS)
    return job


def run_group(jobs: list[PatchJob], layout: Layout,
              patcher: Sequence[str] | None = None,
              timeout: float | None = None,
              cancel_event: threading.Event | None = None) -> list[PatchJob]:
    """Run same-named jobs one after another, in manifest order; they share staging files."""
    for job in jobs:
        run_job(job, layout, patcher, timeout, cancel_event)
    return jobs


def select_jobs(entries: Iterable[ManifestEntry], patterns: PatternFilter,
                layout: Layout) -> tuple[list[PatchJob], int]:
    """
    Jobs for matching entries, plus the number of matches that carry no patch.
    Entries whose name would escape the staging/output folders come back
    already FAILED.
    """
    jobs: list[PatchJob] = []
    skipped = 0
    for entry in entries:
        if not patterns.matches(entry.file_name):
            continue
        if not entry.segments:
            log(f"matched: {entry.file_name} has no patch segments, skipped")
            skipped += 1
            continue
        try:
            job = PatchJob.for_entry(entry, layout)
        except UnsafePath as e:
            log(f"rejected: {e}")
            job = PatchJob(entry)
            job.finish(JobState.FAILED, JobStatus.EXTRACTION_FAILED, e)
        else:
            log(f"matched: {entry.file_name} ({entry.size} bytes, {len(entry.segments)} segment(s), "
                f"md5 {entry.file_hash})")
        jobs.append(job)
    return jobs, skipped


def group_jobs(jobs: Iterable[PatchJob]) -> list[list[PatchJob]]:
    groups: dict[str, list[PatchJob]] = {}
    for job in jobs:
        if not job.done:
            groups.setdefault(group_key(job.entry.file_name), []).append(job)
    return list(groups.values())


def run_pipeline(entries: Iterable[ManifestEntry], patterns: PatternFilter, layout: Layout,
                 workers: int | None = None,
                 patcher: Sequence[str] | None = None,
                 timeout: float | None = None,
                 cancel_event: threading.Event | None = None) -> RunSummary:
    """Run the matching entries on a bounded pool; returns the aggregate outcome."""
    jobs, skipped = select_jobs(entries, patterns, layout)
    summary = RunSummary(jobs, skipped)
    groups = group_jobs(jobs)
    if not groups:
        if not jobs:
            log("no manifest entries matched the pattern list")
        log(summary.line())
        return summary

    workers = workers or optimal_threads()
    with progress(sum(len(g) for g in groups), "Patching") as bar:
        with ThreadPoolExecutor(max_workers=workers) as ex:
            futs = [ex.submit(run_group, g, layout, patcher, timeout, cancel_event) for g in groups]
            try:
                for fut in as_completed(futs):
                    if cancel_event and cancel_event.is_set():
                        break
                    bar.update(len(fut.result()))
            except KeyboardInterrupt:
                if cancel_event:
                    cancel_event.set()
                kill_all()
                raise
            finally:
                for f in futs:
                    f.cancel()

    log(summary.line())
    return summary
