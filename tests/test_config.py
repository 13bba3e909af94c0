from pathlib import Path

import pytest

from existon_automaton.config import (
    CollapseConfig,
    Rates,
    RateKind,
    UniverseConfig,
    load_experiment_config,
    load_yaml,
)
from existon_automaton.universe import Universe

REPO = Path(__file__).resolve().parents[1]


def test_default_yaml_loads():
    cfg = load_experiment_config(REPO / "configs" / "default.yaml")
    assert cfg.universe.dims == (120, 80)
    assert cfg.universe.order == 2
    assert cfg.universe.rates == Rates()
    assert cfg.universe.collapse == CollapseConfig()
    assert cfg.run.ticks == 500


def test_partial_yaml_uses_defaults(tmp_path):
    path = tmp_path / "exp.yaml"
    path.write_text(
        "universe:\n"
        "  dims: [4, 4, 4]\n"
        "  order: 3\n"
        "  neighborhood: moore\n"
        "  rates:\n"
        "    decay: 0.5\n"
        "  collapse:\n"
        "    invert_partner: true\n"
        "run:\n"
        "  ticks: 12\n",
        encoding="utf-8",
    )
    cfg = load_experiment_config(path)
    assert cfg.universe.dims == (4, 4, 4)
    assert cfg.universe.rates.decay == 0.5
    assert cfg.universe.rates.observation == Rates().observation
    assert cfg.universe.collapse.invert_partner
    assert cfg.run.ticks == 12
    assert cfg.run.report_every == 50

    u = Universe.from_config(cfg.universe)
    assert u.states.shape == (64, 8)
    assert u.lattice.neighbors.shape == (64, 26)


def test_config_errors(tmp_path):
    missing = tmp_path / "missing.yaml"
    missing.write_text("universe:\n  order: 2\n", encoding="utf-8")
    with pytest.raises(KeyError):
        load_experiment_config(missing)

    listy = tmp_path / "list.yaml"
    listy.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_yaml(listy)

    bad_rate = tmp_path / "bad.yaml"
    bad_rate.write_text("universe:\n  dims: [3]\n  order: 1\n  rates:\n    observation: 2.0\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_experiment_config(bad_rate)

    with pytest.raises(ValueError):
        UniverseConfig(boundary="mirror")


def test_rate_kinds():
    rates = Rates().with_rate(RateKind.FLUCTUATION, 0.2).with_rate("observation", 0.3)
    assert rates.fluctuation == 0.2
    assert rates.observation == 0.3
    assert rates.to_dict()["entanglement_fraction"] == 0.05
