"""
Parameters of the merge preparation.

Parameters are plain dataclass fields with defaults. A YAML file and
runtime overrides can replace any of them:

    parameters = load_parameters('merge.yaml', overrides={'minor_n_max': 4})

with merge.yaml such as

    major_n_min: 6
    major_n_max: .inf
    minor_n_min: 1.5
    minor_n_max: 6
"""

import math
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


@dataclass(frozen=True)
class MergeParameters:
    """Gap thresholds, in multiples of each stream's modal sampling interval."""
    major_n_min: float = 6.0
    major_n_max: float = math.inf
    minor_n_min: float = 1.5
    minor_n_max: float = 6.0

    def __post_init__(self):
        for prefix in ('major', 'minor'):
            n_min = getattr(self, f'{prefix}_n_min')
            n_max = getattr(self, f'{prefix}_n_max')
            if not n_min >= 1:
                raise ValueError(f"{prefix}_n_min must be >= 1, got {n_min}")
            if not n_min < n_max:
                raise ValueError(f"{prefix}_n_min ({n_min}) must be smaller than {prefix}_n_max ({n_max})")

        if not math.isfinite(self.minor_n_max):
            raise ValueError(f"minor_n_max must be finite, got {self.minor_n_max}")

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def _deep_merge(base: Dict, override: Dict) -> Dict:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_parameters(path: Optional[Union[str, Path]] = None,
                    overrides: Optional[Dict[str, Any]] = None) -> MergeParameters:
    """
    Load merge parameters from a YAML file with optional runtime overrides.

    Args:
        path: YAML file holding a mapping of parameter names to values.
            Missing entries keep their defaults.
        overrides: Values applied on top of the file contents.

    Returns:
        MergeParameters

    Raises:
        FileNotFoundError: If `path` does not exist.
        ValueError: If the file is not a mapping, names an unknown
            parameter or holds invalid values.
    """
    config: Dict[str, Any] = {}

    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Parameter file not found: {path}")

        with open(path, 'r') as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Parameter file {path} must contain a mapping, got {type(loaded).__name__}")
        config = _deep_merge(config, loaded)

    if overrides:
        config = _deep_merge(config, overrides)

    known = {f.name for f in fields(MergeParameters)}
    unknown = sorted(set(config) - known)
    if unknown:
        raise ValueError(f"Unknown merge parameters {unknown}. Supported parameters: {sorted(known)}")

    return MergeParameters(**{key: float(value) for key, value in config.items()})
