from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import List, Sequence

from .config import ExperimentConfig, RunConfig, UniverseConfig, load_experiment_config
from .export import write_entanglement_csv, write_history_csv, write_json
from .multivector import Multivector
from .observables import observed_cluster_sizes, summarize
from .plots import plot_classification_snapshot, plot_cluster_sizes, plot_population, plot_transitions
from .repro import write_meta
from .universe import TickReport, Universe


def _parse_coord(s: str) -> tuple:
    try:
        return tuple(int(x) for x in s.split(","))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected comma-separated integers, got {s!r}") from exc


def _apply_overrides(cfg: ExperimentConfig, args: argparse.Namespace) -> ExperimentConfig:
    u = cfg.universe
    rates = u.rates
    for name in ("observation", "decay", "fluctuation", "entanglement_fraction"):
        value = getattr(args, name)
        if value is not None:
            rates = replace(rates, **{name: float(value)})
    u = replace(
        u,
        dims=tuple(args.dims) if args.dims else u.dims,
        order=int(args.order) if args.order is not None else u.order,
        seed=int(args.seed) if args.seed is not None else u.seed,
        boundary=args.boundary or u.boundary,
        neighborhood=args.neighborhood or u.neighborhood,
        rates=rates,
    )
    r = cfg.run
    r = replace(
        r,
        ticks=int(args.ticks) if args.ticks is not None else r.ticks,
        report_every=int(args.report_every) if args.report_every is not None else r.report_every,
        output_dir=args.out_dir or r.output_dir,
    )
    return ExperimentConfig(universe=u, run=r)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Run the Existon automaton headless and write run artifacts")
    ap.add_argument("--config", type=str, default=None, help="YAML experiment config (see configs/default.yaml)")
    ap.add_argument("--dims", type=int, nargs="+", default=None)
    ap.add_argument("--order", type=int, default=None, help="algebra order p of Cl(p,0)")
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--boundary", choices=["wrap", "clamp"], default=None)
    ap.add_argument("--neighborhood", choices=["von_neumann", "moore"], default=None)
    ap.add_argument("--observation", type=float, default=None)
    ap.add_argument("--decay", type=float, default=None)
    ap.add_argument("--fluctuation", type=float, default=None)
    ap.add_argument("--entanglement_fraction", type=float, default=None)
    ap.add_argument("--operator", type=_parse_coord, nargs="*", default=[],
                    help="Coordinates (e.g. 2,2) to pin as scalar-1 operator cells")
    ap.add_argument("--ticks", type=int, default=None)
    ap.add_argument("--report_every", type=int, default=None)
    ap.add_argument("--out_dir", type=str, default=None)
    return ap


def run_experiment(cfg: ExperimentConfig, operators: Sequence[tuple] = ()) -> tuple[Universe, List[TickReport]]:
    universe = Universe.from_config(cfg.universe)
    for coord in operators:
        universe.place_operator(coord, Multivector.scalar(universe.order, 1))

    reports: List[TickReport] = []
    every = max(1, int(cfg.run.report_every))
    for _ in range(int(cfg.run.ticks)):
        rep = universe.tick()
        reports.append(rep)
        if rep.tick % every == 0:
            c = rep.counts
            print(
                f"tick {rep.tick:6d}  potential={c['potential']:6d}  observed={c['observed']:6d}  "
                f"operator={c['operator']:4d}  +obs={rep.observed} -dec={rep.decayed} ent={rep.entangled}"
            )
    return universe, reports


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    if args.config is not None:
        cfg = load_experiment_config(args.config)
    else:
        cfg = ExperimentConfig(universe=UniverseConfig(), run=RunConfig())
    cfg = _apply_overrides(cfg, args)

    out_dir = Path(cfg.run.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    universe, reports = run_experiment(cfg, operators=args.operator)

    write_json(out_dir / "config.json", {"universe": cfg.universe.to_dict(), "run": vars(cfg.run)})
    lat = universe.lattice
    write_entanglement_csv(out_dir / "entanglement.csv",
                           [(lat.coord(a), lat.coord(b)) for a, b in universe.entanglement.pairs()])
    summary = summarize(universe)
    write_json(out_dir / "final_summary.json", summary)

    if reports:
        df = write_history_csv(out_dir / "history.csv", reports)
        tag = f"dims={list(universe.dims)} p={universe.order}"
        plot_population(df, out_dir / "plots/population.png", title=f"Classification counts {tag}")
        plot_transitions(df, out_dir / "plots/transitions.png", title=f"Transitions per tick {tag}")
    plot_cluster_sizes(observed_cluster_sizes(universe), out_dir / "plots/observed_clusters.png",
                       title=f"Observed cluster sizes at tick {universe.tick_count}")
    plot_classification_snapshot(universe.classes, universe.dims, out_dir / "plots/classification.png",
                                 title=f"Classification at tick {universe.tick_count}")

    write_meta(out_dir / "meta.json", extra={
        "args": {k: (list(v) if isinstance(v, (list, tuple)) else v) for k, v in vars(args).items()},
        "ticks": universe.tick_count,
        "entangled_pairs": len(universe.entanglement),
    })

    print(f"Wrote artifacts to: {out_dir}")


if __name__ == "__main__":
    main()
