from __future__ import annotations

import hashlib
import json
import platform
import sys
from pathlib import Path
from typing import Any, Dict

import numpy as np


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def code_digest(package_dir: Path) -> Dict[str, str]:
    return {
        str(p.relative_to(package_dir)): sha256_file(p)
        for p in sorted(package_dir.rglob("*.py"))
        if p.is_file()
    }


def environment_stamp() -> Dict[str, Any]:
    return {
        "python": sys.version,
        "platform": platform.platform(),
        "numpy": np.__version__,
    }


def write_meta(path: Path, extra: Dict[str, Any]) -> None:
    meta = {
        "env": environment_stamp(),
        "code_sha256": code_digest(Path(__file__).resolve().parent),
        "extra": extra,
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(meta, indent=2, sort_keys=True))
