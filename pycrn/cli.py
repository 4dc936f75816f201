"""
Command line interface.

    pycrn ssa majority.crn --t-end 5 --seed 1 --csv trace.csv
    pycrn ode majority.crn --t-end 5 --dt 0.001
    pycrn run config.yml
    pycrn format majority.crn
    pycrn odes majority.crn
    pycrn info majority.crn
"""

import argparse
import logging
import sys
from typing import List, Optional

from tabulate import tabulate

from .config import load_config, read_model_text
from .core.exceptions import CRNError
from .core.models import DeterministicNetwork, Network, StochasticNetwork
from .simulation.gillespie import run_gillespie_simulation
from .simulation.ode import simulate_ode

logger = logging.getLogger(__name__)


def _read_model(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r") as f:
        return f.read()


def _network_class(deterministic: bool):
    return DeterministicNetwork if deterministic else StochasticNetwork


def _print_final_state(network: Network) -> None:
    rows = [
        [name, network.init_state.species[i].item(), network.state.species[i].item()]
        for i, name in enumerate(network.names)
    ]
    print(f"Final time: {network.state.time:g}")
    print(tabulate(rows, headers=["Species", "Initial", "Final"], tablefmt="psql"))


def _simulate_stochastic(text: str, t_end: float, seed: Optional[int], use_numba: bool,
                         csv: Optional[str]) -> int:
    network = StochasticNetwork.parse(text)
    results = run_gillespie_simulation(network, t_end, seed=seed, use_numba=use_numba)

    print(f"Simulation completed in {results['elapsed_ms']:.2f} ms")
    _print_final_state(network)
    print("\nSimulation Statistics:")
    print(tabulate(results['stats_df'], headers="keys", showindex=False, tablefmt="psql"))

    if results['simulator'].last_error is not None:
        print(f"warning: simulation stopped early: {results['simulator'].last_error}", file=sys.stderr)
    if csv:
        results['dataframe'].to_csv(csv, index=False)
        print(f"Trajectory saved to {csv}")
    return 0


def _simulate_deterministic(text: str, t_end: float, dt: float, csv: Optional[str]) -> int:
    network = DeterministicNetwork.parse(text)
    results = simulate_ode(network, t_end, dt)

    print(f"Integration completed in {results['elapsed_ms']:.2f} ms")
    _print_final_state(network)

    if csv:
        results['dataframe'].to_csv(csv, index=False)
        print(f"Trajectory saved to {csv}")
    return 0


def cmd_ssa(args) -> int:
    return _simulate_stochastic(_read_model(args.model), args.t_end, args.seed, not args.no_numba, args.csv)


def cmd_ode(args) -> int:
    return _simulate_deterministic(_read_model(args.model), args.t_end, args.dt, args.csv)


def cmd_run(args) -> int:
    config = load_config(args.config)
    if not args.verbose:
        logging.getLogger().setLevel(config['log_level'])
    text = read_model_text(config)
    if config['method'] == 'stochastic':
        return _simulate_stochastic(text, config['t_end'], config['seed'], config['use_numba'], config['csv'])
    return _simulate_deterministic(text, config['t_end'], config['dt'], config['csv'])


def cmd_format(args) -> int:
    network = _network_class(args.deterministic).parse(_read_model(args.model))
    print(network.to_text(), end="")
    return 0


def cmd_odes(args) -> int:
    network = DeterministicNetwork.parse(_read_model(args.model))
    for name, expr in network.generate_odes().items():
        print(f"d{name}/dt = {expr}")
    return 0


def cmd_info(args) -> int:
    network = _network_class(args.deterministic).parse(_read_model(args.model))
    graph = network.to_graph()
    rows = [
        [i, name, network.init_state.species[i].item(), graph.in_degree(name), graph.out_degree(name)]
        for i, name in enumerate(network.names)
    ]
    print(tabulate(rows, headers=["Index", "Species", "Initial", "In", "Out"], tablefmt="psql"))
    print(f"{network.species_count} species, {len(network.reactions)} reactions")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pycrn", description="Chemical reaction network simulator")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress information")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_ssa = sub.add_parser("ssa", help="Stochastic simulation (Gillespie)")
    p_ssa.add_argument("model", help="Network description file, or - for stdin")
    p_ssa.add_argument("--t-end", type=float, required=True)
    p_ssa.add_argument("--seed", type=int, default=None)
    p_ssa.add_argument("--no-numba", action="store_true", help="Use the pure Python propensity kernel")
    p_ssa.add_argument("--csv", type=str, default=None)
    p_ssa.set_defaults(func=cmd_ssa)

    p_ode = sub.add_parser("ode", help="Deterministic simulation (RK4)")
    p_ode.add_argument("model", help="Network description file, or - for stdin")
    p_ode.add_argument("--t-end", type=float, required=True)
    p_ode.add_argument("--dt", type=float, default=0.01)
    p_ode.add_argument("--csv", type=str, default=None)
    p_ode.set_defaults(func=cmd_ode)

    p_run = sub.add_parser("run", help="Run a simulation described by a YAML config")
    p_run.add_argument("config")
    p_run.set_defaults(func=cmd_run)

    p_format = sub.add_parser("format", help="Print the canonical description of a network")
    p_format.add_argument("model")
    p_format.add_argument("--deterministic", action="store_true")
    p_format.set_defaults(func=cmd_format)

    p_odes = sub.add_parser("odes", help="Print the mass-action ODE system")
    p_odes.add_argument("model")
    p_odes.set_defaults(func=cmd_odes)

    p_info = sub.add_parser("info", help="Summarize the species of a network")
    p_info.add_argument("model")
    p_info.add_argument("--deterministic", action="store_true")
    p_info.set_defaults(func=cmd_info)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (CRNError, ValueError, OSError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
