from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from mp3_combiner.util.config import AppConfig


@dataclass
class Job:
    """A combine or convert run described in YAML."""

    mode: str
    inputs: list[str]
    format: str = "mp3"
    bitrate_kbps: int = 192
    sample_rate: int = 44100
    gap_seconds: float = 0.0
    out: str | None = None
    out_dir: str = "out"


def load_job_yaml(path: str | Path, *, defaults: AppConfig | None = None) -> Job:
    p = Path(path)
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"job YAML could not be parsed: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("job YAML must be a mapping/object")

    cfg = defaults or AppConfig()

    mode = str(data.get("mode") or "").strip().lower()
    if mode not in {"combine", "convert"}:
        raise ValueError("job YAML field 'mode' must be combine or convert")

    raw_inputs = data.get("inputs")
    if not raw_inputs or not isinstance(raw_inputs, list):
        raise ValueError("job YAML missing required field: inputs")

    # Relative inputs resolve against the job file, not the cwd.
    inputs: list[str] = []
    for x in raw_inputs:
        ip = Path(str(x)).expanduser()
        inputs.append(str(ip if ip.is_absolute() else p.parent / ip))

    job = Job(
        mode=mode,
        inputs=inputs,
        format=str(data.get("format") or cfg.output_format).lower(),
        bitrate_kbps=int(data.get("bitrate_kbps", cfg.bitrate_kbps)),
        sample_rate=int(data.get("sample_rate", cfg.sample_rate)),
        gap_seconds=float(data.get("gap_seconds", cfg.gap_seconds)),
        out=str(data["out"]) if data.get("out") else None,
        out_dir=str(data.get("out_dir") or cfg.out_dir),
    )

    if job.gap_seconds < 0:
        raise ValueError("job YAML field 'gap_seconds' must be >= 0")
    if job.bitrate_kbps <= 0 or job.sample_rate <= 0:
        raise ValueError("job YAML fields 'bitrate_kbps' and 'sample_rate' must be > 0")
    return job
