"""
Helpers for simulation histories.

Both simulators record a history as a list of ``(time, species)`` pairs,
where ``species`` is a copy of the abundance vector at that time.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

History = List[Tuple[float, np.ndarray]]


def _as_arrays(history: History, n_species: int):
    times = np.array([t for t, _ in history], dtype=float)
    X = np.array([x for _, x in history], dtype=float).reshape(len(history), n_species)
    return times, X


def history_to_dataframe(history: History, names: Sequence[str]) -> pd.DataFrame:
    """
    Convert a history into a DataFrame.

    Args:
        history (History): Recorded ``(time, species)`` pairs
        names (Sequence[str]): Species names, in index order

    Returns:
        pd.DataFrame: A ``time`` column followed by one column per species
    """
    names = list(names)
    times, X = _as_arrays(history, len(names))
    df = pd.DataFrame(X, columns=names)
    df.insert(0, "time", times, allow_duplicates=True)
    return df


def time_weighted_stats(history: History, names: Sequence[str],
                        end_time: Optional[float] = None) -> pd.DataFrame:
    """
    Calculate time-weighted mean and variance of every species.

    Each recorded state is weighted by how long the system stayed in it: up
    to the next record, and for the last record up to ``end_time`` (or not at
    all when ``end_time`` is None).

    Returns:
        pd.DataFrame: Columns ``Species``, ``Mean`` and ``Variance``
    """
    names = list(names)
    if not history:
        raise ValueError("Cannot compute statistics of an empty history")

    times, X = _as_arrays(history, len(names))
    last = times[-1] if end_time is None else max(end_time, times[-1])
    dwell = np.diff(np.append(times, last))

    total_time = dwell.sum()
    if total_time <= 0:
        raise ValueError("History spans zero time")

    tw_means = (X * dwell[:, np.newaxis]).sum(axis=0) / total_time
    residuals = X - tw_means[np.newaxis, :]
    tw_vars = (dwell[:, np.newaxis] * residuals**2).sum(axis=0) / total_time

    return pd.DataFrame(
        {
            "Species": names,
            "Mean": tw_means,
            "Variance": tw_vars,
        }
    )
