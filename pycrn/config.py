"""
Run configuration.

A run is described by a small YAML file::

    model: majority.crn     # or model_text: "A = 30; B = 20; 2A + B -> 3A;"
    method: stochastic      # or deterministic
    t_end: 10.0
    dt: 0.01                # deterministic only
    seed: 42                # stochastic only
    csv: trace.csv

Relative paths are resolved against the directory of the config file.
"""

import logging
import os
from typing import Any, Dict, Optional

import yaml

DEFAULT_CONFIG: Dict[str, Any] = {
    'model': None,
    'model_text': None,
    'method': 'stochastic',
    't_end': 10.0,
    'dt': 0.01,
    'seed': None,
    'use_numba': True,
    'csv': None,
    'log_level': 'WARNING',
}

METHODS = ('stochastic', 'deterministic')


def validate_config(raw: Dict[str, Any], base_dir: Optional[str] = None) -> Dict[str, Any]:
    """
    Merge ``raw`` over the defaults and check every value.

    Args:
        raw (dict): Settings as read from YAML
        base_dir (str, optional): Directory relative paths are resolved against

    Returns:
        dict: The complete configuration
    """
    unknown = set(raw) - set(DEFAULT_CONFIG)
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    config = {**DEFAULT_CONFIG, **raw}

    if config['method'] not in METHODS:
        raise ValueError(f"method must be one of {METHODS}, got '{config['method']}'")

    for key in ('t_end', 'dt'):
        try:
            config[key] = float(config[key])
        except (TypeError, ValueError):
            raise ValueError(f"{key} must be a number, got {config[key]!r}") from None
        if not config[key] > 0:
            raise ValueError(f"{key} must be positive, got {config[key]}")

    if config['seed'] is not None and not isinstance(config['seed'], int):
        raise ValueError(f"seed must be an integer, got {config['seed']!r}")

    level = str(config['log_level']).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Unknown log_level '{config['log_level']}'")
    config['log_level'] = level

    if (config['model'] is None) == (config['model_text'] is None):
        raise ValueError("Exactly one of 'model' and 'model_text' must be given")

    if base_dir is not None:
        for key in ('model', 'csv'):
            if config[key] is not None and not os.path.isabs(config[key]):
                config[key] = os.path.join(base_dir, config[key])

    return config


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Loads a run configuration file.

    Args:
        config_path: Path to the YAML file

    Returns:
        dict: Configuration dictionary
    """
    with open(config_path, 'r') as f:
        raw = yaml.safe_load(f)
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"{config_path} must contain a mapping of settings")
    return validate_config(raw, base_dir=os.path.dirname(os.path.abspath(config_path)))


def read_model_text(config: Dict[str, Any]) -> str:
    """The network description referenced by a configuration."""
    if config['model_text'] is not None:
        return config['model_text']
    with open(config['model'], 'r') as f:
        return f.read()
