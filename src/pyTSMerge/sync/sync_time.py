import logging
import operator
from enum import Enum
from typing import NamedTuple, Optional

import numpy as np

from pyTSMerge.utilities.find_nearest import find_nearest
from pyTSMerge.utilities.validation import (
    NoSyncPointError,
    check_intervals,
    check_time,
)

logger = logging.getLogger(__name__)

# Maximum number of reference points scanned on either side of the anchor
MAX_SYNC_WINDOW = 100

# Time differences closer than this (seconds) are treated as equal
SYNC_TOLERANCE = 1e-9


class SyncDirection(Enum):
    """Directional constraint on the synchronization anchor."""
    FORWARD = 'FORWARD'
    BACKWARD = 'BACKWARD'
    BOTH = 'BOTH'

    @classmethod
    def parse(cls, direction):
        """Convert a member or its (case-insensitive) name into a SyncDirection."""
        if isinstance(direction, cls):
            return direction
        if isinstance(direction, str) and direction.upper() in cls.__members__:
            return cls[direction.upper()]
        raise ValueError(
            f"direction must be one of {[member.value for member in cls]}, got {direction!r}")


class SyncResult(NamedTuple):
    scan_index: int
    ref_index: int


class _Anchor(NamedTuple):
    first_ref: int
    n_before: int
    n_after: int
    scan_lo: int
    scan_hi: int


def _anchor(scan_time, ref_time, ref_index, direction):
    """
    Find the anchor of the search window in the reference array.

    Returns the anchor index, the number of reference points to scan
    before and after it, and the inclusive range of scan indices that
    satisfy the directional constraint.
    """

    n_scan = len(scan_time)
    n_ref = len(ref_time)
    t_ref = ref_time[ref_index]

    if direction is SyncDirection.BACKWARD:
        first_time = int(np.searchsorted(scan_time, t_ref, side='right')) - 1
        if first_time < 0:
            raise NoSyncPointError(
                f"No scan sample at or before reference time {t_ref} (first scan sample at {scan_time[0]})")

        # Gaps in the scan array can leave scan_time[first_time] far behind
        # t_ref, so move the reference anchor back accordingly.
        first_ref = int(np.searchsorted(ref_time, scan_time[first_time], side='right')) - 1
        if first_ref < 0:
            raise NoSyncPointError(
                f"No reference sample at or before scan time {scan_time[first_time]}")

        return _Anchor(first_ref, first_ref, abs(ref_index - first_ref), 0, first_time)

    if direction is SyncDirection.FORWARD:
        first_time = int(np.searchsorted(scan_time, t_ref, side='left'))
        if first_time == n_scan:
            raise NoSyncPointError(
                f"No scan sample at or after reference time {t_ref} (last scan sample at {scan_time[-1]})")

        first_ref = int(np.searchsorted(ref_time, scan_time[first_time], side='left'))
        if first_ref == n_ref:
            raise NoSyncPointError(
                f"No reference sample at or after scan time {scan_time[first_time]}")

        return _Anchor(first_ref, abs(ref_index - first_ref), n_ref - 1 - first_ref, first_time, n_scan - 1)

    first_time = int(find_nearest(scan_time, t_ref)[0])
    first_ref = int(find_nearest(ref_time, scan_time[first_time])[0])

    return _Anchor(first_ref, first_ref, n_ref - 1 - first_ref, 0, n_scan - 1)


def _nearest_scan(scan_time, times, lo, hi):
    """
    For each time, find the nearest scan sample within scan_time[lo:hi + 1].

    Returns
    -------
    indices : np.ndarray
        Indices into the full scan array.
    distances : np.ndarray
        Absolute time differences to those samples.
    """

    indices, distances = find_nearest(scan_time[lo:hi + 1], times)
    return indices + lo, distances


def sync_time(scan_time, ref_time, ref_index: int, direction, tolerance: float = SYNC_TOLERANCE) -> SyncResult:
    """
    Find the pair of mutually nearest samples between two time arrays.

    Starting from `ref_time[ref_index]`, an anchor is located in `scan_time`
    subject to `direction`, a window of reference points around the anchor
    is scanned, and the reference point lying closest to an admissible scan
    sample is selected together with that scan sample.

    Parameters
    ----------
    scan_time : array-like
        Timestamps of the stream searched for a synchronous sample.
    ref_time : array-like
        Timestamps of the reference stream.
    ref_index : int
        Index into `ref_time` to synchronize from.
    direction : SyncDirection or str
        BACKWARD only accepts scan samples at or before
        `ref_time[ref_index]`, FORWARD only those at or after it, BOTH
        accepts any.
    tolerance : float, optional
        Time differences within `tolerance` seconds of the minimum are
        considered equally good. Among those, the reference point closest
        to `ref_index` wins.

    Returns
    -------
    SyncResult
        (scan_index, ref_index) of the synchronized pair.

    Raises
    ------
    ValueError
        If `direction` is not a valid SyncDirection or `ref_index` is out of range.
    NoSyncPointError
        If no scan sample satisfies the directional constraint.

    Notes
    -----
    The window holds at most MAX_SYNC_WINDOW points on each side of the
    anchor, so the cost of a call does not depend on the array lengths.

    Examples
    --------
    >>> sync_time([0.0, 1.0, 2.0, 3.0], [0.1, 1.1, 2.1], 2, 'BACKWARD')
    SyncResult(scan_index=2, ref_index=2)
    """

    direction = SyncDirection.parse(direction)
    scan_time = check_time(scan_time, name='scan_time')
    ref_time = check_time(ref_time, name='ref_time')

    ref_index = operator.index(ref_index)
    if not 0 <= ref_index < len(ref_time):
        raise ValueError(f"ref_index {ref_index} is outside [0, {len(ref_time) - 1}]")

    anchor = _anchor(scan_time, ref_time, ref_index, direction)

    i_start = max(anchor.first_ref - min(anchor.n_before, MAX_SYNC_WINDOW), 0)
    i_stop = min(anchor.first_ref + min(anchor.n_after, MAX_SYNC_WINDOW), len(ref_time) - 1)

    # Visit candidates nearest-first from the requested reference index
    candidates = np.arange(i_start, i_stop + 1)
    candidates = candidates[np.argsort(np.abs(candidates - ref_index), kind='stable')]

    scan_indices, dte = _nearest_scan(scan_time, ref_time[candidates], anchor.scan_lo, anchor.scan_hi)

    best = np.flatnonzero(dte <= dte.min() + tolerance)[0]
    it_ref = int(candidates[best])
    it = int(scan_indices[best])

    logger.debug("sync %s: ref %d -> window [%d, %d] -> scan %d, ref %d",
                 direction.value, ref_index, i_start, i_stop, it, it_ref)

    return SyncResult(it, it_ref)


def find_interval(index: int, intervals) -> int:
    '''
    Return the row of `intervals` containing `index`, or -1 if none does.
    '''
    intervals = np.asarray(intervals, dtype=int).reshape(-1, 2)
    inside = np.flatnonzero((intervals[:, 0] <= index) & (index <= intervals[:, 1]))
    return int(inside[0]) if inside.size else -1


def get_start_index(time_a, time_b, ref_time: float, intervals_a: Optional[np.ndarray] = None):
    """
    Synchronize both streams to a reference time.

    Parameters
    ----------
    time_a, time_b : array-like
        Timestamps of the two streams.
    ref_time : float
        Time (same epoch as the streams) to start from. Must lie within
        the time span of `time_a`.
    intervals_a : array-like of int, optional
        Merge intervals of stream A. If given, the synchronized index must
        fall inside one of them.

    Returns
    -------
    tuple of int
        (index_a, index_b) of the synchronous start samples.
    """

    time_a = check_time(time_a, name='time_a')
    time_b = check_time(time_b, name='time_b')

    if not time_a[0] <= ref_time <= time_a[-1]:
        raise ValueError(
            f"The reference time {ref_time} is outside the data interval [{time_a[0]}, {time_a[-1]}]")

    ref_index = int(find_nearest(time_a, ref_time)[0])
    index_b, index_a = sync_time(time_b, time_a, ref_index, SyncDirection.BOTH)

    if intervals_a is not None:
        intervals_a = check_intervals(intervals_a, len(time_a), name='intervals_a')
        if find_interval(index_a, intervals_a) < 0:
            raise ValueError(
                f"The reference time {ref_time} (index {index_a}) is not inside any merge interval")

    return index_a, index_b
