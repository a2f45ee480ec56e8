import logging

import numpy as np

from pyTSMerge.utilities.validation import check_time, check_intervals

logger = logging.getLogger(__name__)


def modal_interval(time, decimals=9):
    """
    Calculate the modal sampling interval of a time array.

    The mean would be too large when gaps are present, so the most frequent
    spacing between adjacent points is taken as the nominal sample period.

    Parameters
    ----------
    time : array-like
        Strictly increasing timestamps.
    decimals : int, optional
        Differences are rounded to this many decimal places before counting,
        which removes small systematic noise from the timestamps. The default
        assumes a small epoch such as seconds since the start of the day.
        Float timestamps on a Unix-seconds epoch (about 1.7e9) are only
        resolved to about 2.4e-7 s, so their differences need fewer decimals
        (e.g. 5) to collapse onto one value.

    Returns
    -------
    float
        The most frequent rounded difference. If several values occur
        equally often, the smallest of them is returned.
    """

    time = check_time(time)
    dt = np.round(np.diff(time), decimals)

    # np.unique returns sorted values, so argmax picks the smallest among ties
    values, counts = np.unique(dt, return_counts=True)

    return float(values[np.argmax(counts)])


def find_gaps(time, n_min=1.5, n_max=np.inf):
    """
    Find gaps in a sequence of timestamps that are supposed to be evenly spaced.

    Parameters
    ----------
    time : array-like
        Monotonic timestamps. The sampling interval is taken to be the mode
        of the differences between adjacent points.
    n_min : float, optional
        Minimum number of sampling intervals considered to be a gap.
    n_max : float, optional
        Exclusive upper bound on the number of sampling intervals of a gap.

    Returns
    -------
    gap_markers : np.ndarray
        Ascending indices into `time` of the last point prior to each gap.
    n_gaps : int
        Number of gaps found.

    Examples
    --------
    >>> find_gaps([0, 1, 2, 3, 10, 11, 12])
    (array([3]), 1)
    """

    time = check_time(time)
    dt = np.diff(time)
    dt_mode = modal_interval(time)

    gap_markers = np.flatnonzero((dt >= dt_mode * n_min) & (dt < dt_mode * n_max))

    return gap_markers, len(gap_markers)


def missing_samples(dt, dt_mode):
    '''
    Number of samples to insert into a gap of width `dt` so that no spacing
    exceeds `dt_mode`.
    '''

    ratio = np.round(np.asarray(dt, dtype=float) / dt_mode, 6)
    return np.maximum(np.ceil(ratio).astype(int) - 1, 0)


def gap_sizes(time, gap_markers):
    """
    Estimate the number of missing points in each gap.

    Parameters
    ----------
    time : array-like
        Monotonic timestamps.
    gap_markers : array-like of int
        Indices of the points just prior to each gap, as returned by `find_gaps`.

    Returns
    -------
    np.ndarray
        Number of samples missing from each gap.
    """

    time = check_time(time)
    gap_markers = np.asarray(gap_markers, dtype=int)

    if gap_markers.size == 0:
        return np.empty(0, dtype=int)

    dt = time[gap_markers + 1] - time[gap_markers]
    return missing_samples(dt, modal_interval(time))


def find_continuous_intervals(time, n_min=1.5, n_max=np.inf):
    """
    Find the gap-free runs of a single time array.

    Gaps are located with `find_gaps`; they mark the end of one run and the
    beginning of the next.

    Returns
    -------
    np.ndarray
        (n, 2) array of inclusive [start, end] indices for each run.
    """

    time = check_time(time)
    gap_markers, _ = find_gaps(time, n_min, n_max)

    starts = np.concatenate(([0], gap_markers + 1))
    ends = np.concatenate((gap_markers, [len(time) - 1]))

    return np.column_stack((starts, ends)).astype(int)


def count_minor_gaps(time, intervals, n_min, n_max):
    """
    Count the minor gaps within each of a set of major intervals.

    Parameters
    ----------
    time : array-like
        Monotonic timestamps.
    intervals : array-like of int
        (n, 2) inclusive [start, end] indices of the major intervals.
    n_min, n_max : float
        Gap thresholds, see `find_gaps`.

    Returns
    -------
    int
        Total number of gaps with n_min <= dt/dt_mode < n_max over all
        intervals. The modal interval is computed per interval.
    """

    time = check_time(time)
    intervals = check_intervals(intervals, len(time))

    n = 0
    for start, end in intervals:
        # single-sample intervals cannot contain a gap
        if end - start < 1:
            continue
        _, n_gaps = find_gaps(time[start:end + 1], n_min, n_max)
        n += n_gaps

    logger.debug("Found %d minor gaps in %d intervals", n, len(intervals))

    return n
