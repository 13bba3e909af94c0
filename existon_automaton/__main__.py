from __future__ import annotations

import sys
from typing import List, Optional

from .run import main as run_main

HELP = """existon_automaton: tristate Clifford-algebra cellular automaton

Common commands:
  python -m existon_automaton --config configs/default.yaml --out_dir results/default
  python -m existon_automaton --dims 64 64 --order 3 --ticks 200 --observation 0.002
  python -m existon_automaton --dims 32 32 --operator 16,16 --entanglement_fraction 0.2

Run `python -m existon_automaton --help` for every option.
"""


def main(argv: Optional[List[str]] = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print(HELP)
        return
    run_main(args)


if __name__ == "__main__":
    main()
