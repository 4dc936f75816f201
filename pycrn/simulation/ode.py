"""
ODE simulation utilities.

This module provides deterministic simulation of a network's mass-action
rate equations with the classical fixed-step fourth-order Runge-Kutta scheme.
"""

import logging
import math
import time
from typing import Optional

import pandas as pd

from ..core.models import DeterministicNetwork
from ..core.state import DeterministicState
from .results import History, history_to_dataframe

logger = logging.getLogger(__name__)

# Upper bound on the number of states kept by ``simulate_data``.
MAX_POINTS = 100_000


class RungeKuttaSimulator:
    """
    Fixed-step RK4 integrator for a deterministic network.

    Integrates ``dx/dt = sum(rate(x, r) * delta(r))`` over the network's
    reactions, mutating ``network.state`` in place.

    Args:
        network (DeterministicNetwork): The network to integrate
    """

    def __init__(self, network: DeterministicNetwork):
        if not isinstance(network, DeterministicNetwork):
            raise TypeError(f"RungeKuttaSimulator needs a DeterministicNetwork, got {type(network).__name__}")
        self.network = network
        self.history: Optional[History] = None

    def derivative(self, state: DeterministicState) -> DeterministicState:
        return state.species_rates(self.network.reactions)

    def step(self, dt: float) -> None:
        """Advance the network by one step of size ``dt``."""
        if not dt > 0:
            raise ValueError(f"Step size must be positive, got {dt}")
        x = self.network.state
        k1 = self.derivative(x)
        k2 = self.derivative(x + k1 * (dt / 2))
        k3 = self.derivative(x + k2 * (dt / 2))
        k4 = self.derivative(x + k3 * dt)

        x += (k1 + k2 * 2.0 + k3 * 2.0 + k4) * (dt / 6)
        x.time += dt

    def run_for(self, target_time: float, dt: float) -> History:
        """
        Integrate for ``target_time`` with step size ``dt``.

        Takes ``ceil(target_time / dt)`` steps and records the state before
        each one, so the state reached at the end is not part of the history.

        Returns:
            History: The recorded ``(time, species)`` pairs
        """
        if not dt > 0:
            raise ValueError(f"Step size must be positive, got {dt}")
        steps = max(0, math.ceil(target_time / dt))

        history: History = []
        self.history = history
        for _ in range(steps):
            state = self.network.state
            history.append((state.time, state.species.copy()))
            self.step(dt)
        return history

    def simulate_data(self, steps: int, dt: float) -> History:
        """
        Take ``steps`` steps, recording at most about ``MAX_POINTS`` states.

        Only every ``max(1, steps // MAX_POINTS)``-th state is recorded;
        the sampling does not change the integration itself.
        """
        ratio = max(1, steps // MAX_POINTS)
        if ratio > 1:
            logger.debug("Recording every %d-th of %d states", ratio, steps)

        history: History = []
        self.history = history
        for j in range(steps):
            if j % ratio == 0:
                state = self.network.state
                history.append((state.time, state.species.copy()))
            self.step(dt)
        return history

    def to_dataframe(self) -> pd.DataFrame:
        if self.history is None:
            raise RuntimeError("Simulation has not been run yet. Call .run_for() first.")
        return history_to_dataframe(self.history, self.network.names)


def simulate_ode(network: DeterministicNetwork, t_end: float, dt: float = 0.01) -> dict:
    """
    Integrate a network's rate equations up to time ``t_end``.

    Args:
        network (DeterministicNetwork): The network to integrate, from its current state
        t_end (float): Duration to integrate for
        dt (float): Step size. Default is 0.01

    Returns:
        dict: Dictionary containing:
            - 'simulator': The RungeKuttaSimulator used
            - 'history': Recorded (time, species) pairs
            - 'dataframe': The history as a DataFrame
            - 'elapsed_ms': Wall time of the integration
    """
    simulator = RungeKuttaSimulator(network)

    logger.info("Integrating until t=%g with dt=%g", t_end, dt)
    start_time = time.perf_counter()
    history = simulator.run_for(t_end, dt)
    elapsed_ms = (time.perf_counter() - start_time) * 1000
    logger.info("Integration completed in %.2f ms (%d steps)", elapsed_ms, len(history))

    return {
        'simulator': simulator,
        'history': history,
        'dataframe': simulator.to_dataframe(),
        'elapsed_ms': elapsed_ms,
    }
