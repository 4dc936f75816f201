"""
Gillespie simulation algorithm.

This module implements the Gillespie Stochastic Simulation Algorithm (SSA)
for chemical reaction networks with discrete molecule counts.
"""

import logging
import math
import time
from typing import Optional

import numpy as np
import pandas as pd
from numba import njit

from ..core.exceptions import InsufficientPrecisionError, TerminalStateError
from ..core.models import StochasticNetwork
from .results import History, history_to_dataframe, time_weighted_stats

logger = logging.getLogger(__name__)

# Upper bound on the number of states kept by step-count driven runs.
MAX_POINTS = 100_000


def _flatten_reactants(reactions):
    """
    Pack reactant lists into flat arrays for the jitted propensity kernel.

    Reactants of reaction j occupy ``species[offsets[j]:offsets[j + 1]]`` and
    the matching slice of ``coefficients``, in the reaction's own order.
    """
    offsets = np.zeros(len(reactions) + 1, dtype=np.int64)
    species = []
    coefficients = []
    for j, rxn in enumerate(reactions):
        for s, c in rxn.reactants.items():
            species.append(s)
            coefficients.append(c)
        offsets[j + 1] = len(species)
    rate_constants = np.array([rxn.rate for rxn in reactions], dtype=np.float64)
    return (
        offsets,
        np.array(species, dtype=np.int64),
        np.array(coefficients, dtype=np.int64),
        rate_constants,
    )


@njit(cache=True)
def _propensities_numba(counts, offsets, species, coefficients, rate_constants, out):
    """
    Combinatorial propensities, optimized with Numba.

    Writes one propensity per reaction into ``out`` and returns their sum.
    """
    total = 0.0
    for j in range(rate_constants.shape[0]):
        rate = rate_constants[j]
        for p in range(offsets[j], offsets[j + 1]):
            n = counts[species[p]]
            c = coefficients[p]
            if n < c:
                rate = 0.0
                break
            for i in range(c):
                rate *= n - i
        out[j] = rate
        total += rate
    return total


class GillespieSimulator:
    """
    Gillespie direct-method simulator for a stochastic network.

    The simulator borrows the network: every step mutates ``network.state``
    in place, and nothing but the random generator and a scratch buffer is
    kept between calls.

    Args:
        network (StochasticNetwork): The network to simulate
        seed (int, optional): Seed for a fresh ``numpy.random.Generator``
        rng (np.random.Generator, optional): Generator to draw from; takes
            precedence over ``seed``
        use_numba (bool): Whether to compute propensities with the
            Numba-jitted kernel. Defaults to True

    Attributes:
        network (StochasticNetwork): The simulated network.
        rng (np.random.Generator): Source of the uniform draws.
        history (History): Trace recorded by the last driving call, or None.
        last_error (Exception): Error that ended the last ``run_for`` early
            other than reaching a terminal state, or None.
    """

    def __init__(self, network: StochasticNetwork, seed: Optional[int] = None,
                 rng: Optional[np.random.Generator] = None, use_numba: bool = True):
        if not isinstance(network, StochasticNetwork):
            raise TypeError(f"GillespieSimulator needs a StochasticNetwork, got {type(network).__name__}")
        self.network = network
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.use_numba = use_numba

        self._rates = np.zeros(len(network.reactions), dtype=np.float64)
        self._packed = _flatten_reactants(network.reactions)

        self.history: Optional[History] = None
        self.last_error: Optional[Exception] = None

    def new_buffer(self) -> np.ndarray:
        """A scratch buffer suitable for ``step``."""
        return np.zeros(len(self.network.reactions), dtype=np.float64)

    def _propensities_py(self, rates: np.ndarray) -> float:
        state = self.network.state
        total = 0.0
        for j, rxn in enumerate(self.network.reactions):
            rates[j] = state.rate(rxn)
            total += rates[j]
        return float(total)

    def propensities(self, rates: Optional[np.ndarray] = None) -> float:
        """
        Compute the propensity of every reaction in the current state.

        Args:
            rates (np.ndarray, optional): Buffer to write into. Defaults to
                the simulator's own buffer

        Returns:
            float: The total propensity
        """
        if rates is None:
            rates = self._rates
        if rates.shape != (len(self.network.reactions),):
            raise ValueError(f"Rates buffer must have shape ({len(self.network.reactions)},), got {rates.shape}")
        if self.use_numba:
            return float(_propensities_numba(self.network.state.species, *self._packed, rates))
        return self._propensities_py(rates)

    def step(self, rates: Optional[np.ndarray] = None) -> int:
        """
        Fire one reaction.

        The step is atomic: on failure neither time nor abundances change.

        Args:
            rates (np.ndarray, optional): Scratch buffer for the propensities,
                reused across steps to avoid reallocating

        Returns:
            int: Index of the reaction that fired

        Raises:
            TerminalStateError: If no reaction can fire
            InsufficientPrecisionError: If round-off prevented selecting a reaction
        """
        if rates is None:
            rates = self._rates
        total_rate = self.propensities(rates)
        if total_rate == 0.0:
            raise TerminalStateError()

        state = self.network.state
        # Both draws lie in (0, 1], so the waiting time is non-negative.
        u1 = 1.0 - self.rng.random()
        u2 = 1.0 - self.rng.random()
        tau = -math.log(u1) / total_rate
        threshold = u2 * total_rate

        cumulative_rate = 0.0
        for reaction_index in range(len(rates)):
            cumulative_rate += rates[reaction_index]
            if cumulative_rate > threshold:
                state.time += tau
                state.apply(self.network.reactions[reaction_index])
                return reaction_index
        raise InsufficientPrecisionError()

    def single_step(self) -> int:
        """Fire one reaction using a freshly allocated buffer."""
        return self.step(self.new_buffer())

    def steps(self, n: int) -> None:
        """Fire ``n`` reactions. Errors propagate; earlier steps stay applied."""
        rates = self.new_buffer()
        for _ in range(n):
            self.step(rates)

    def run_for(self, target_time: float, strict: bool = False) -> History:
        """
        Simulate until the network's time reaches ``target_time``.

        The current state is recorded before every step. Reaching a terminal
        state ends the run early and is not an error. Insufficient precision
        also ends the run: the error is logged and kept in ``last_error``, or
        re-raised when ``strict`` is set.

        Returns:
            History: The recorded ``(time, species)`` pairs
        """
        rates = self.new_buffer()
        history: History = []
        self.history = history
        self.last_error = None

        while self.network.state.time < target_time:
            state = self.network.state
            history.append((state.time, state.species.copy()))
            try:
                self.step(rates)
            except TerminalStateError:
                logger.debug("Terminal state reached at t=%g", self.network.state.time)
                break
            except InsufficientPrecisionError as e:
                self.last_error = e
                if strict:
                    raise
                logger.warning("Stopping simulation at t=%g: %s", self.network.state.time, e)
                break
        return history

    def simulate_history(self, steps: int) -> History:
        """
        Run ``steps`` steps, keeping at most about ``MAX_POINTS`` states.

        Above ``MAX_POINTS`` steps only every ``steps // MAX_POINTS``-th state
        is recorded; every step still advances the network. A terminal state
        ends the run early; other errors propagate.
        """
        ratio = max(1, steps // MAX_POINTS)
        if ratio > 1:
            logger.debug("Recording every %d-th of %d states", ratio, steps)

        rates = self.new_buffer()
        history: History = []
        self.history = history
        for i in range(steps):
            if i % ratio == 0:
                state = self.network.state
                history.append((state.time, state.species.copy()))
            try:
                self.step(rates)
            except TerminalStateError:
                break
        return history

    def to_dataframe(self) -> pd.DataFrame:
        """The most recent history as a DataFrame."""
        if self.history is None:
            raise RuntimeError("Simulation has not been run yet. Call .run_for() first.")
        return history_to_dataframe(self.history, self.network.names)

    def get_stats(self, end_time: Optional[float] = None) -> pd.DataFrame:
        """
        Calculate statistics for the most recent Gillespie simulation.

        Args:
            end_time (float, optional): Time up to which the last recorded
                state is held

        Returns:
            pd.DataFrame: Time-weighted mean and variance for each species
        """
        if self.history is None:
            raise RuntimeError("Simulation has not been run yet. Call .run_for() first.")
        return time_weighted_stats(self.history, self.network.names, end_time=end_time)


def run_gillespie_simulation(network: StochasticNetwork, t_end: float,
                             seed: Optional[int] = None, use_numba: bool = True) -> dict:
    """
    Run a Gillespie simulation of a network up to time ``t_end``.

    Args:
        network (StochasticNetwork): The network to simulate, from its current state
        t_end (float): Simulation time to stop at
        seed (int, optional): Random seed for reproducibility
        use_numba (bool): Whether to use the Numba propensity kernel

    Returns:
        dict: Results containing the simulator, history, dataframe, statistics
        and elapsed wall time
    """
    if t_end <= 0:
        raise ValueError(f"t_end must be positive, got {t_end}")

    simulator = GillespieSimulator(network, seed=seed, use_numba=use_numba)

    logger.info("Running Gillespie simulation until t=%g", t_end)
    start_time = time.perf_counter()
    history = simulator.run_for(t_end)
    elapsed_ms = (time.perf_counter() - start_time) * 1000
    logger.info("Simulation completed in %.2f ms (%d states)", elapsed_ms, len(history))

    return {
        'simulator': simulator,
        'history': history,
        'dataframe': simulator.to_dataframe(),
        'stats_df': simulator.get_stats(end_time=t_end),
        'elapsed_ms': elapsed_ms,
    }
