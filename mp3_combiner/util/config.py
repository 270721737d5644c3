from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any


def default_config_dir() -> Path:
    env = os.environ.get("MP3_COMBINER_CONFIG_DIR")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".config" / "mp3-combiner"


def default_config_path() -> Path:
    return default_config_dir() / "config.json"


@dataclass
class AppConfig:
    ffmpeg_path: str | None = None
    output_format: str = "mp3"
    bitrate_kbps: int = 192
    sample_rate: int = 44100
    gap_seconds: float = 0.0
    out_dir: str = "out"
    log_level: str = "INFO"
    event_log: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "ffmpeg_path": self.ffmpeg_path,
            "output_format": self.output_format,
            "bitrate_kbps": self.bitrate_kbps,
            "sample_rate": self.sample_rate,
            "gap_seconds": self.gap_seconds,
            "out_dir": self.out_dir,
            "log_level": self.log_level,
            "event_log": self.event_log,
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "AppConfig":
        return AppConfig(
            ffmpeg_path=d.get("ffmpeg_path") or None,
            output_format=str(d.get("output_format") or "mp3").lower(),
            bitrate_kbps=int(d.get("bitrate_kbps", 192) or 192),
            sample_rate=int(d.get("sample_rate", 44100) or 44100),
            gap_seconds=max(0.0, float(d.get("gap_seconds", 0.0) or 0.0)),
            out_dir=str(d.get("out_dir") or "out"),
            log_level=str(d.get("log_level") or "INFO").upper(),
            event_log=bool(d.get("event_log", True)),
        )


def load_config(path: Path | None = None) -> AppConfig:
    p = path or default_config_path()
    if not p.exists():
        return AppConfig()
    data = json.loads(p.read_text(encoding="utf-8"))
    return AppConfig.from_dict(data)


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    p = path or default_config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(cfg.to_dict(), indent=2, sort_keys=True) + "\n", encoding="utf-8")
    return p
