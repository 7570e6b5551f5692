# File: attribute_timeline.py
#
# Token size, color and image timelines. Each attribute is resolved from one
# of three sources (constant, event log column, external table), compacted to
# its value changes per case and rescaled onto the animation clock.
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

# --- Import from project files ---
from config import CONFIG, ATTRIBUTES
from errors import ConfigurationError
from time_transf import to_seconds, scale_to_clock

SAMPLE_COLUMNS = ['case', 'time', 'value']


# --- Value sources ---
@dataclass(frozen=True)
class Constant:
    value: Any


@dataclass(frozen=True)
class ColumnRef:
    name: str


@dataclass(frozen=True, eq=False)
class ExternalTable:
    frame: pd.DataFrame


def as_attribute_source(raw, eventlog, attribute):
    """
    Maps user input to a value source.

    None -> the attribute's default constant, DataFrame -> ExternalTable,
    name of an event log column -> ColumnRef. Sources that already are a
    Constant/ColumnRef/ExternalTable pass through.
    """
    if isinstance(raw, (Constant, ColumnRef, ExternalTable)):
        return raw
    if raw is None:
        return Constant(CONFIG['attribute_defaults'][attribute])
    if isinstance(raw, pd.DataFrame):
        return ExternalTable(raw)
    if isinstance(raw, str) and raw in eventlog.columns:
        return ColumnRef(raw)
    raise ConfigurationError(
        f"Token {attribute} source {raw!r} is neither None, an event log column nor a table "
        f"with columns (case, time, value). Wrap fixed values in Constant(...)."
    )


def _event_samples(eventlog, values, case_id_key, timestamp_key):
    samples = pd.DataFrame({
        'case': eventlog[case_id_key].to_numpy(),
        'time': to_seconds(eventlog[timestamp_key]).to_numpy(),
        'value': values,
    })
    return samples[samples['case'].notna() & samples['time'].notna()]


def resolve_attribute(source, eventlog, attribute, case_id_key=None, timestamp_key=None):
    """
    Returns the raw (case, time, value) samples of a value source, with time
    in float seconds.
    """
    keys = CONFIG['keys']
    case_id_key = case_id_key or keys['case_id_key']
    timestamp_key = timestamp_key or keys['timestamp_key']

    if isinstance(source, Constant):
        return _event_samples(eventlog, [source.value] * len(eventlog), case_id_key, timestamp_key)

    if isinstance(source, ColumnRef):
        if source.name not in eventlog.columns:
            raise ConfigurationError(f"Token {attribute} column {source.name!r} does not exist in the event log.")
        return _event_samples(eventlog, eventlog[source.name].to_numpy(), case_id_key, timestamp_key)

    if isinstance(source, ExternalTable):
        frame = source.frame
        value_column = 'value' if 'value' in frame.columns else attribute
        missing = [c for c in ('case', 'time', value_column) if c not in frame.columns]
        if missing:
            raise ConfigurationError(
                f"Token {attribute} table is missing columns {missing}; expected (case, time, value)."
            )
        samples = pd.DataFrame({
            'case': frame['case'].to_numpy(),
            'time': to_seconds(frame['time']).to_numpy(),
            'value': frame[value_column].to_numpy(),
        })
        return samples[samples['case'].notna() & samples['time'].notna()]

    raise ConfigurationError(f"Unsupported token {attribute} source {source!r}.")


def _is_missing(value):
    return value is None or (pd.api.types.is_scalar(value) and pd.isna(value))


def _same_value(a, b):
    if _is_missing(a) or _is_missing(b):
        return _is_missing(a) and _is_missing(b)
    return bool(a == b)


def compact_samples(samples):
    """
    Run-length compaction: within each case (ordered by time, stable), keep
    the first sample and every sample whose value differs from the last kept
    one. Two missing values count as equal.
    """
    if samples.empty:
        return samples[SAMPLE_COLUMNS].reset_index(drop=True)

    ordered = samples.reset_index(drop=True)
    ordered = ordered.assign(_pos=np.arange(len(ordered)))
    ordered = ordered.sort_values(['time', '_pos'], kind='mergesort')

    keep = []
    last_value = {}
    for pos, case, value in zip(ordered['_pos'], ordered['case'], ordered['value']):
        if case not in last_value or not _same_value(last_value[case], value):
            keep.append(pos)
            last_value[case] = value

    kept = ordered[ordered['_pos'].isin(keep)]
    # Group by case (first appearance) while keeping time order inside each case.
    kept = kept.assign(_case_rank=kept.groupby('case', sort=False)['_pos'].transform('min'))
    kept = kept.sort_values(['_case_rank', 'time', '_pos'], kind='mergesort')
    return kept[SAMPLE_COLUMNS].reset_index(drop=True)


def rescale_samples(samples, cases, log_bounds, animation_mode, factor):
    """
    Moves sample times onto the animation clock. The origin is the log start
    ('absolute') or the case start ('relative'). Samples of cases without
    bounds are dropped.
    """
    joined = samples.merge(cases[['case', 'case_start']], on='case', how='inner', sort=False)
    if animation_mode == 'absolute':
        origin = log_bounds.log_start
    else:
        origin = joined['case_start'].to_numpy()
    joined['time'] = scale_to_clock(joined['time'], origin, factor)
    return joined[SAMPLE_COLUMNS].reset_index(drop=True)


def build_attribute_timeline(raw, eventlog, attribute, cases, log_bounds, animation_mode, factor,
                             case_id_key=None, timestamp_key=None, stats=None):
    """
    Resolves, compacts and rescales one token attribute. A `stats` dict, when
    given, receives the sample counts before and after compaction.
    """
    if attribute not in ATTRIBUTES:
        raise ConfigurationError(f"Unknown token attribute {attribute!r}. Expected one of {list(ATTRIBUTES)}.")
    source = as_attribute_source(raw, eventlog, attribute)
    samples = resolve_attribute(source, eventlog, attribute, case_id_key, timestamp_key)
    compacted = compact_samples(samples)
    if stats is not None:
        stats.update(samples=len(samples), kept=len(compacted))
    return rescale_samples(compacted, cases, log_bounds, animation_mode, factor)
