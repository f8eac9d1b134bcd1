from __future__ import annotations
import argparse, shlex, sys, threading
from pathlib import Path

from .errors import FatalStartupError
from .log import log
from .manifest import dump_manifest_json, read_manifest
from .paths import MANIFEST_JSON, PATTERN_FILE, Layout
from .patterns import load_patterns
from .pipeline import RunSummary, run_pipeline
from .system import check_resources

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_ENTRIES_FAILED = 2
EXIT_FATAL = 3
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ldiff-patcher",
                                description="Rebuild selected game files from ldiff containers")
    p.add_argument("manifest", nargs="?", help="Binary manifest file")
    p.add_argument("game_dir", nargs="?", help="Installed game folder (contains ldiff/)")
    p.add_argument("--list", dest="pattern_file", default=PATTERN_FILE,
                   help=f"Pattern list, one glob per line (default: {PATTERN_FILE})")
    p.add_argument("--work-dir", default=".", help="Where hdiff/ and output/ are created")
    p.add_argument("--threads", type=int, help="Worker threads (default: auto)")
    p.add_argument("--timeout", type=float, help="Seconds before a hpatchz run is killed")
    p.add_argument("--hpatchz", type=str, help="Patch tool command line (default: bin/hpatchz or $LDIFF_HPATCHZ)")
    p.add_argument("--dump-json", nargs="?", const=MANIFEST_JSON, metavar="PATH",
                   help=f"Also write the decoded manifest as JSON (default name: {MANIFEST_JSON})")
    return p


def run(args: argparse.Namespace, cancel_event: threading.Event | None = None) -> RunSummary:
    work_dir = Path(args.work_dir)
    layout = Layout.for_game(args.game_dir, work_dir)

    # the pattern list must be complete before anything is filtered
    patterns = load_patterns(args.pattern_file)
    manifest = read_manifest(args.manifest)
    log(f"manifest: {len(manifest)} entries")

    if args.dump_json:
        dump_manifest_json(manifest.message, work_dir / args.dump_json)

    if not layout.container_dir.is_dir():
        log(f"WARNING: container folder {layout.container_dir} not found")
    check_resources(work_dir)

    patcher = shlex.split(args.hpatchz) if args.hpatchz else None
    return run_pipeline(manifest, patterns, layout,
                        workers=args.threads, patcher=patcher,
                        timeout=args.timeout, cancel_event=cancel_event)


def run_cli(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.manifest or not args.game_dir:
        parser.print_usage(sys.stderr)
        print(f"{parser.prog}: error: <manifest> and <game_dir> are required", file=sys.stderr)
        return EXIT_USAGE

    cancel = threading.Event()
    try:
        summary = run(args, cancel)
    except FatalStartupError as e:
        log(f"fatal: {e}")
        return EXIT_FATAL
    except KeyboardInterrupt:
        log("aborted.")
        return EXIT_INTERRUPTED

    if not summary.ok:
        log("Some entries failed. See logs above.")
        return EXIT_ENTRIES_FAILED
    return EXIT_OK
