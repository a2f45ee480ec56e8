from dataclasses import dataclass, field

import numpy as np

from pyTSMerge.utilities.validation import check_time_series


@dataclass(frozen=True, eq=False)
class TimeSeries:
    """
    Timestamps (seconds) paired 1:1 with rows of a sample array.

    Construction validates the pair and stores read-only copies, so a
    TimeSeries can be handed between processing steps without being
    modified along the way.
    """
    time: np.ndarray
    samples: np.ndarray
    name: str = field(default='', compare=False)

    def __post_init__(self):
        time, samples = check_time_series(self.time, self.samples, name=self.name or 'time series')

        time = time.copy()
        samples = samples.copy()
        time.flags.writeable = False
        samples.flags.writeable = False

        object.__setattr__(self, 'time', time)
        object.__setattr__(self, 'samples', samples)

    def __len__(self):
        return len(self.time)

    @property
    def n_components(self) -> int:
        return self.samples.shape[1]

    def segment(self, start: int, end: int) -> 'TimeSeries':
        """Return the inclusive index range [start, end] as a new TimeSeries."""
        return TimeSeries(self.time[start:end + 1], self.samples[start:end + 1], name=self.name)
