import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from pyTSMerge.config.parameters import MergeParameters
from pyTSMerge.gaps.fill_gaps import fill_gaps
from pyTSMerge.gaps.find_gaps import count_minor_gaps, find_gaps
from pyTSMerge.sync.merge_intervals import find_merge_intervals
from pyTSMerge.sync.sync_time import get_start_index
from pyTSMerge.time_series import TimeSeries

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class MergePreparation:
    """
    Result of preparing two streams for merging.

    The filled series and their intervals index into each other row by
    row: intervals_a[i] and intervals_b[i] cover the same stretch of time.
    """
    stream_a: TimeSeries
    stream_b: TimeSeries
    intervals_a: np.ndarray
    intervals_b: np.ndarray
    major_gaps_a: np.ndarray
    major_gaps_b: np.ndarray
    n_minor_gaps: Tuple[int, int]
    parameters: MergeParameters
    start_index: Optional[Tuple[int, int]] = None

    @property
    def n_intervals(self) -> int:
        return len(self.intervals_a)


def prepare_merge(stream_a: TimeSeries,
                  stream_b: TimeSeries,
                  parameters: Optional[MergeParameters] = None,
                  ref_time: Optional[float] = None) -> MergePreparation:
    """
    Find the merge intervals of two streams and fill their minor gaps.

    Parameters
    ----------
    stream_a, stream_b : TimeSeries
        The two streams. Neither is modified.
    parameters : MergeParameters, optional
        Gap thresholds. Defaults to MergeParameters().
    ref_time : float, optional
        If given, a synchronous start index is selected at this time
        within the filled merge intervals.

    Returns
    -------
    MergePreparation
    """

    parameters = parameters or MergeParameters()

    # Major gaps split the streams into separate continuous intervals
    major_gaps_a, _ = find_gaps(stream_a.time, parameters.major_n_min, parameters.major_n_max)
    major_gaps_b, _ = find_gaps(stream_b.time, parameters.major_n_min, parameters.major_n_max)

    intervals_a, intervals_b = find_merge_intervals(stream_a.time, stream_b.time,
                                                    major_gaps_a, major_gaps_b)

    n_minor_gaps = (
        count_minor_gaps(stream_a.time, intervals_a, parameters.minor_n_min, parameters.minor_n_max),
        count_minor_gaps(stream_b.time, intervals_b, parameters.minor_n_min, parameters.minor_n_max),
    )

    # Minor gaps are filled only inside the merge intervals
    time_a, samples_a, intervals_a = fill_gaps(stream_a.time, stream_a.samples,
                                               parameters.minor_n_min, parameters.minor_n_max,
                                               intervals_a)
    time_b, samples_b, intervals_b = fill_gaps(stream_b.time, stream_b.samples,
                                               parameters.minor_n_min, parameters.minor_n_max,
                                               intervals_b)
    filled_a = TimeSeries(time_a, samples_a, name=stream_a.name)
    filled_b = TimeSeries(time_b, samples_b, name=stream_b.name)

    start_index = None
    if ref_time is not None:
        start_index = get_start_index(filled_a.time, filled_b.time, ref_time, intervals_a)

    logger.info("Prepared %d merge intervals (%d + %d minor gaps filled)",
                len(intervals_a), *n_minor_gaps)

    return MergePreparation(stream_a=filled_a,
                            stream_b=filled_b,
                            intervals_a=intervals_a,
                            intervals_b=intervals_b,
                            major_gaps_a=major_gaps_a,
                            major_gaps_b=major_gaps_b,
                            n_minor_gaps=n_minor_gaps,
                            parameters=parameters,
                            start_index=start_index)


def interval_summary(preparation: MergePreparation) -> pd.DataFrame:
    """
    Tabulate the merge intervals of a preparation.

    Returns
    -------
    pd.DataFrame
        One row per interval with the start and end index and time of each
        stream, the number of samples per stream and the duration of the
        overlap in seconds. The gap thresholds used are attached as
        `summary.attrs['parameters']`.
    """

    t_a = preparation.stream_a.time
    t_b = preparation.stream_b.time

    rows = []
    for (start_a, end_a), (start_b, end_b) in zip(preparation.intervals_a, preparation.intervals_b):
        rows.append({
            'start_a': start_a,
            'end_a': end_a,
            'start_b': start_b,
            'end_b': end_b,
            't_start_a': t_a[start_a],
            't_end_a': t_a[end_a],
            't_start_b': t_b[start_b],
            't_end_b': t_b[end_b],
            'n_samples_a': end_a - start_a + 1,
            'n_samples_b': end_b - start_b + 1,
            'duration': min(t_a[end_a], t_b[end_b]) - max(t_a[start_a], t_b[start_b]),
        })

    columns = ['start_a', 'end_a', 'start_b', 'end_b',
               't_start_a', 't_end_a', 't_start_b', 't_end_b',
               'n_samples_a', 'n_samples_b', 'duration']

    summary = pd.DataFrame(rows, columns=columns)
    summary.attrs['parameters'] = preparation.parameters.to_dict()

    return summary
