from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path

from mp3_combiner.audio.decode import AutoDecoder
from mp3_combiner.audio.encode import FfmpegMp3Capability
from mp3_combiner.convert import COMBINE_FORMATS, CONVERT_FORMATS, BatchConverter, Combiner
from mp3_combiner.errors import CombinerError
from mp3_combiner.io.jobs import Job, load_job_yaml
from mp3_combiner.model.types import RawFile
from mp3_combiner.util.config import AppConfig, default_config_path, load_config
from mp3_combiner.util.ffmpeg import find_ffmpeg
from mp3_combiner.util.formatting import format_file_size, format_time
from mp3_combiner.util.limits import validate_files
from mp3_combiner.util.logging_setup import setup_logging
from mp3_combiner.util.state_log import events_log_path, log_event


@dataclass
class DoctorResult:
    ok: bool
    notes: list[str]


def _doctor(cfg: AppConfig) -> DoctorResult:
    notes: list[str] = []
    ok = True

    ffmpeg = find_ffmpeg(cfg.ffmpeg_path)
    if ffmpeg:
        notes.append(f"ffmpeg: OK ({ffmpeg})")
    else:
        ok = False
        notes.append("ffmpeg: MISSING (needed for MP3 encodes and non-WAV inputs)")

    notes.append(f"python: {sys.version.split()[0]}")
    notes.append(f"platform: {sys.platform}")
    return DoctorResult(ok=ok, notes=notes)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="mp3-combiner",
        add_help=True,
        formatter_class=argparse.RawTextHelpFormatter,
        description="mp3-combiner — merge audio files into one track, or batch-convert them\n",
    )
    p.add_argument("--version", action="store_true", help="Print version and exit.")
    p.add_argument("--log-level", default=None, dest="log_level", help="DEBUG|INFO|WARNING|ERROR")
    p.add_argument("--quiet", action="store_true", help="Do not print progress.")

    sub = p.add_subparsers(dest="cmd")
    sub.add_parser("doctor", help="Check for ffmpeg.")
    sub.add_parser("paths", help="Print config and event log locations.")

    info = sub.add_parser("info", help="Print duration, sample rate and channels of audio files.")
    info.add_argument("inputs", nargs="+")

    comb = sub.add_parser("combine", help="Merge files (in order) into one track.")
    comb.add_argument("inputs", nargs="+")
    comb.add_argument("-o", "--out", default=None, help="Output path (default: <out_dir>/combined_<timestamp>.<fmt>)")
    comb.add_argument("--format", default=None, choices=COMBINE_FORMATS)
    comb.add_argument("--bitrate", type=int, default=None, help="MP3 bitrate in kbps")
    comb.add_argument("--gap", type=float, default=None, help="Seconds of silence between tracks")

    conv = sub.add_parser("convert", help="Convert each file independently.")
    conv.add_argument("inputs", nargs="+")
    conv.add_argument("--out-dir", default=None, dest="out_dir")
    conv.add_argument("--format", default=None, choices=CONVERT_FORMATS)
    conv.add_argument("--bitrate", type=int, default=None, help="MP3 bitrate in kbps")
    conv.add_argument("--sample-rate", type=int, default=None, dest="sample_rate")

    run = sub.add_parser("run", help="Run a YAML job file (mode: combine|convert).")
    run.add_argument("job")

    return p


def _read_inputs(paths: list[str]) -> list[RawFile]:
    files: list[RawFile] = []
    for s in paths:
        pth = Path(s).expanduser()
        if not pth.is_file():
            raise SystemExit(f"ERROR: input not found: {pth}")
        files.append(RawFile.from_path(pth))
    return files


def _progress_printer(label: str, quiet: bool):
    if quiet:
        return None

    def _show(pct: float) -> None:
        sys.stderr.write(f"\r{round(pct):3d}% {label}")
        if pct >= 100.0:
            sys.stderr.write("\n")
        sys.stderr.flush()

    return _show


def _validated(files: list[RawFile]) -> list[RawFile]:
    accepted, rejected = validate_files(files)
    for name, reason in rejected:
        print(f"skipped {name}: {reason}", file=sys.stderr)
    return accepted


def _do_combine(job: Job, cfg: AppConfig, *, quiet: bool) -> None:
    files = _validated(_read_inputs(job.inputs))
    if len(files) < 2:
        raise SystemExit("ERROR: combine needs at least 2 input files")

    combiner = Combiner(AutoDecoder(cfg.ffmpeg_path), FfmpegMp3Capability(cfg.ffmpeg_path))
    try:
        res = combiner.combine(
            files,
            gap_seconds=job.gap_seconds,
            output_format=job.format,
            bitrate_kbps=job.bitrate_kbps,
            on_progress=_progress_printer("combining", quiet),
        )
    except (CombinerError, ValueError) as e:
        raise SystemExit(f"ERROR: combine failed: {e}")

    out = res.save(job.out or Path(job.out_dir) / res.filename)
    print(f"wrote: {out}")
    print(f"- files: {res.input_count}")
    print(f"- duration: {format_time(res.duration)}")
    print(f"- size: {format_file_size(res.size)}")
    fmt = res.artifact.format if res.artifact is not None else job.format
    print(f"- format: {fmt.upper()} ({job.bitrate_kbps}kbps)" if fmt == "mp3" else f"- format: {fmt.upper()}")
    for w in res.warnings:
        print(f"warning: {w}", file=sys.stderr)

    if cfg.event_log:
        log_event(
            {
                "type": "combine",
                "inputs": [f.name for f in files],
                "out": out,
                "format": fmt,
                "duration": round(res.duration, 3),
                "size": res.size,
                "warnings": list(res.warnings),
            }
        )
    res.release()


def _do_convert(job: Job, cfg: AppConfig, *, quiet: bool) -> int:
    files = _validated(_read_inputs(job.inputs))
    if not files:
        raise SystemExit("ERROR: no convertible input files")

    conv = BatchConverter(AutoDecoder(cfg.ffmpeg_path), FfmpegMp3Capability(cfg.ffmpeg_path))
    results = conv.convert_all(
        files,
        target_format=job.format,
        bitrate_kbps=job.bitrate_kbps,
        sample_rate=job.sample_rate,
        on_progress=_progress_printer("converting", quiet),
    )

    failed = 0
    out_dir = Path(job.out_dir).expanduser()
    for r in results:
        if r.ok:
            out = r.artifact.save(out_dir / r.new_filename)
            print(f"OK   {r.original_name} -> {out} ({format_time(r.duration)}, {format_file_size(r.size)})")
            for w in r.warnings:
                print(f"warning: {r.original_name}: {w}", file=sys.stderr)
        else:
            failed += 1
            print(f"FAIL {r.original_name}: {r.error_message}")

    if cfg.event_log:
        log_event({"type": "convert", "format": job.format, "results": [r.to_dict() for r in results]})
    return 1 if failed else 0


def main(argv: list[str] | None = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from mp3_combiner import __version__

        print(f"mp3-combiner {__version__}")
        return

    cfg = load_config()
    setup_logging(args.log_level or cfg.log_level)

    if args.cmd == "doctor":
        res = _doctor(cfg)
        print(f"mp3-combiner doctor: {'OK' if res.ok else 'MISSING_DEPS'}")
        for n in res.notes:
            print(f"- {n}")
        if not res.ok:
            print("\nLinux (Debian/Ubuntu): sudo apt-get install ffmpeg")
            print("macOS: brew install ffmpeg")
        return

    if args.cmd == "paths":
        print(f"config: {default_config_path()}")
        print(f"events: {events_log_path()}")
        return

    if args.cmd == "info":
        combiner = Combiner(AutoDecoder(cfg.ffmpeg_path), FfmpegMp3Capability(cfg.ffmpeg_path))
        for f in _read_inputs(args.inputs):
            try:
                inf = combiner.info(f)
            except CombinerError as e:
                print(f"{f.name}: unreadable ({e})")
                continue
            print(
                f"{f.name}: {format_time(inf.duration)} ({inf.duration:.3f}s), "
                f"{inf.sample_rate} Hz, {inf.channels} ch, {format_file_size(f.size)}"
            )
        return

    if args.cmd == "combine":
        job = Job(
            mode="combine",
            inputs=list(args.inputs),
            format=args.format or (cfg.output_format if cfg.output_format in COMBINE_FORMATS else "mp3"),
            bitrate_kbps=args.bitrate or cfg.bitrate_kbps,
            gap_seconds=cfg.gap_seconds if args.gap is None else max(0.0, args.gap),
            out=args.out,
            out_dir=cfg.out_dir,
        )
        _do_combine(job, cfg, quiet=args.quiet)
        return

    if args.cmd == "convert":
        job = Job(
            mode="convert",
            inputs=list(args.inputs),
            format=args.format or cfg.output_format,
            bitrate_kbps=args.bitrate or cfg.bitrate_kbps,
            sample_rate=args.sample_rate or cfg.sample_rate,
            out_dir=args.out_dir or cfg.out_dir,
        )
        status = _do_convert(job, cfg, quiet=args.quiet)
        if status:
            raise SystemExit(status)
        return

    if args.cmd == "run":
        try:
            job = load_job_yaml(args.job, defaults=cfg)
        except (OSError, ValueError) as e:
            raise SystemExit(f"ERROR: invalid job file: {e}")
        if job.mode == "combine":
            if job.format not in COMBINE_FORMATS:
                raise SystemExit(f"ERROR: combine format must be one of: {'|'.join(COMBINE_FORMATS)}")
            _do_combine(job, cfg, quiet=args.quiet)
            return
        if job.format not in CONVERT_FORMATS:
            raise SystemExit(f"ERROR: convert format must be one of: {'|'.join(CONVERT_FORMATS)}")
        status = _do_convert(job, cfg, quiet=args.quiet)
        if status:
            raise SystemExit(status)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
