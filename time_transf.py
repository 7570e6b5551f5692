# time_transf.py
import numpy as np
import pandas as pd

# --- Reference point for absolute timestamps ---
EPOCH = pd.Timestamp(0)


def to_seconds(values):
    """
    Converts a column of timestamps to float seconds since the epoch.

    Accepts datetime columns (naive or timezone-aware), strings parseable by
    pandas, or plain numbers that already are seconds. Missing values (None,
    NaT, NaN) come back as NaN so that later stages can exclude them
    explicitly.

    Args:
        values (pd.Series or array-like): The timestamps.

    Returns:
        pd.Series: float64 seconds, index preserved.
    """
    s = values if isinstance(values, pd.Series) else pd.Series(values)

    if pd.api.types.is_bool_dtype(s):
        raise TypeError("Boolean columns cannot be interpreted as timestamps.")

    if pd.api.types.is_numeric_dtype(s):
        return s.astype(float)

    if pd.api.types.is_timedelta64_dtype(s):
        return s.dt.total_seconds()

    if not pd.api.types.is_datetime64_any_dtype(s):
        # Object columns may hold datetimes, strings or a mix with None.
        s = pd.to_datetime(s, utc=True)

    if s.dt.tz is not None:
        s = s.dt.tz_convert(None)

    return (s - EPOCH).dt.total_seconds()


def scale_to_clock(seconds, origin, factor):
    """
    Maps real seconds onto the animation clock: (seconds - origin) / factor.

    `origin` may be a scalar (absolute mode) or an aligned array of case
    starts (relative mode).
    """
    return (np.asarray(seconds, dtype=float) - np.asarray(origin, dtype=float)) / factor
