from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Sequence

import pandas as pd

from .universe import TickReport


def write_json(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2, sort_keys=True))


def history_frame(reports: Sequence[TickReport]) -> pd.DataFrame:
    return pd.DataFrame([r.to_row() for r in reports])


def write_history_csv(path: Path, reports: Sequence[TickReport]) -> pd.DataFrame:
    df = history_frame(reports)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return df


def write_entanglement_csv(path: Path, pairs: List[tuple]) -> None:
    df = pd.DataFrame([{"a": str(a), "b": str(b)} for a, b in pairs], columns=["a", "b"])
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
