# File: case_bounds.py
from dataclasses import dataclass

import numpy as np
import pandas as pd

CASE_BOUNDS_COLUMNS = ['case', 'case_start', 'case_end', 'case_duration']


@dataclass(frozen=True)
class LogBounds:
    log_start: float
    log_end: float
    log_duration: float


def extract_case_bounds(precedence):
    """
    Aggregates the precedence table into per-case and log-wide bounds.

    case_start is the earliest start_time of a case, case_end its latest
    end_time, both ignoring missing values. Cases without a valid start or
    end are left out here and therefore from every later stage.

    Args:
        precedence (pd.DataFrame): precedence rows with float-second times.

    Returns:
        (pd.DataFrame, LogBounds or None): the case bounds, and the log bounds
        (None when no case survives).
    """
    rows = precedence[precedence['case'].notna()]
    if rows.empty:
        return pd.DataFrame(columns=CASE_BOUNDS_COLUMNS), None

    cases = (
        rows.groupby('case', sort=True)
        .agg(case_start=('start_time', 'min'), case_end=('end_time', 'max'))
        .reset_index()
    )
    cases = cases[np.isfinite(cases['case_start']) & np.isfinite(cases['case_end'])]
    if cases.empty:
        return pd.DataFrame(columns=CASE_BOUNDS_COLUMNS), None

    cases = cases.assign(case_duration=cases['case_end'] - cases['case_start'])
    cases = cases[CASE_BOUNDS_COLUMNS].reset_index(drop=True)

    log_start = float(cases['case_start'].min())
    log_end = float(cases['case_end'].max())
    return cases, LogBounds(log_start=log_start, log_end=log_end, log_duration=log_end - log_start)
