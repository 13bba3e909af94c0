from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

import yaml


# Entanglement fractions visited by `cycle_entanglement`, in order.
ENTANGLEMENT_CYCLE: Tuple[float, ...] = (0.01, 0.05, 0.10, 0.20)

BOUNDARIES = ("wrap", "clamp")
NEIGHBORHOODS = ("von_neumann", "moore")


class RateKind(str, Enum):
    OBSERVATION = "observation"
    DECAY = "decay"
    FLUCTUATION = "fluctuation"


def _check_probability(name: str, value: float) -> float:
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be a probability in [0, 1], got {value}")
    return value


@dataclass(frozen=True)
class Rates:
    """Tunable per-tick probabilities ("physical constants") of one universe."""
    observation: float = 0.0005
    decay: float = 0.01
    fluctuation: float = 0.001
    entanglement_fraction: float = 0.05  # share of cells that receive a partner

    def __post_init__(self) -> None:
        for name in ("observation", "decay", "fluctuation", "entanglement_fraction"):
            object.__setattr__(self, name, _check_probability(name, getattr(self, name)))

    def with_rate(self, which: RateKind | str, value: float) -> "Rates":
        kind = RateKind(which)
        return replace(self, **{kind.value: value})

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class CollapseConfig:
    """Optional state side effects of classification changes. All off by default."""
    project_on_observe: bool = False  # newly observed cell drops its pseudoscalar coefficient
    randomize_on_decay: bool = False  # decaying cell restarts from a random state
    invert_partner: bool = False      # entanglement-forced partner is multiplied by scalar -1


@dataclass(frozen=True)
class UniverseConfig:
    dims: Tuple[int, ...] = (120, 80)
    order: int = 2
    seed: int = 0
    boundary: str = "wrap"             # "wrap" | "clamp"
    neighborhood: str = "von_neumann"  # "von_neumann" | "moore"
    rates: Rates = field(default_factory=Rates)
    collapse: CollapseConfig = field(default_factory=CollapseConfig)

    def __post_init__(self) -> None:
        if self.boundary not in BOUNDARIES:
            raise ValueError(f"Unknown boundary={self.boundary!r} (use one of {BOUNDARIES})")
        if self.neighborhood not in NEIGHBORHOODS:
            raise ValueError(f"Unknown neighborhood={self.neighborhood!r} (use one of {NEIGHBORHOODS})")

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["dims"] = list(self.dims)
        return d


@dataclass(frozen=True)
class RunConfig:
    ticks: int = 500
    report_every: int = 50
    output_dir: str = "results/existon_run"


@dataclass(frozen=True)
class ExperimentConfig:
    universe: UniverseConfig
    run: RunConfig


def _require(d: Mapping[str, Any], key: str) -> Any:
    if key not in d:
        raise KeyError(f"Missing required config key: {key}")
    return d[key]


def _get(d: Mapping[str, Any], key: str, default: Any) -> Any:
    return d[key] if key in d else default


def load_yaml(path: str | Path) -> Dict[str, Any]:
    path = Path(path)
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML file {path} must contain a mapping at the top level")
    return data


def universe_config_from_dict(data: Mapping[str, Any]) -> UniverseConfig:
    rdict = dict(_get(data, "rates", {}))
    defaults = Rates()
    rates = Rates(
        observation=float(_get(rdict, "observation", defaults.observation)),
        decay=float(_get(rdict, "decay", defaults.decay)),
        fluctuation=float(_get(rdict, "fluctuation", defaults.fluctuation)),
        entanglement_fraction=float(_get(rdict, "entanglement_fraction", defaults.entanglement_fraction)),
    )
    collapse = CollapseConfig(**dict(_get(data, "collapse", {})))
    return UniverseConfig(
        dims=tuple(int(d) for d in _require(data, "dims")),
        order=int(_require(data, "order")),
        seed=int(_get(data, "seed", 0)),
        boundary=str(_get(data, "boundary", "wrap")),
        neighborhood=str(_get(data, "neighborhood", "von_neumann")),
        rates=rates,
        collapse=collapse,
    )


def load_experiment_config(path: str | Path) -> ExperimentConfig:
    data = load_yaml(path)
    if not data:
        raise ValueError(f"config {path} is empty")
    universe = universe_config_from_dict(_require(data, "universe"))
    rdict = dict(_get(data, "run", {}))
    run = RunConfig(
        ticks=int(_get(rdict, "ticks", RunConfig.ticks)),
        report_every=int(_get(rdict, "report_every", RunConfig.report_every)),
        output_dir=str(_get(rdict, "output_dir", RunConfig.output_dir)),
    )
    return ExperimentConfig(universe=universe, run=run)
