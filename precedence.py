# File: precedence.py
#
# Derives the precedence table (one row per consecutive pair of activity
# instances within a case) from a flattened event log. Activity instances
# are resolved in one of three ways:
#   - an explicit activity instance column,
#   - start/complete lifecycle pairing,
#   - one instance per event (start == end).
import numpy as np
import pandas as pd

# --- Import from project files ---
from config import CONFIG
from errors import ConfigurationError
from time_transf import to_seconds

PRECEDENCE_COLUMNS = [
    'case', 'from_id', 'to_id',
    'start_time', 'end_time', 'next_start_time', 'next_end_time',
    'min_order',
]
TIME_COLUMNS = ['start_time', 'end_time', 'next_start_time', 'next_end_time']


def _pair_lifecycle(df, case_id_key, activity_key, lifecycle_key):
    """
    Assigns an instance id to every event by matching each 'start' event with
    the next 'complete' event of the same activity in the same case (FIFO).
    Events without an open instance become an instance of their own.
    """
    start_value = CONFIG['lifecycle_start']
    complete_value = CONFIG['lifecycle_complete']

    instance = np.zeros(len(df), dtype=np.int64)
    ordered = df.sort_values(['_time', '_pos'], kind='mergesort', na_position='last')

    counter = 0
    open_instances = {}
    for pos, case, activity, transition in zip(ordered['_pos'], ordered[case_id_key],
                                               ordered[activity_key], ordered[lifecycle_key]):
        pending = open_instances.setdefault((case, activity), [])
        transition = str(transition).lower() if pd.notna(transition) else None

        if transition == start_value:
            counter += 1
            pending.append(counter)
            instance[pos] = counter
        elif pending:
            instance[pos] = pending[0]
            if transition == complete_value:
                pending.pop(0)
        else:
            counter += 1
            instance[pos] = counter
    return instance


def build_activity_instances(eventlog, case_id_key=None, activity_key=None, timestamp_key=None,
                             lifecycle_key=None, activity_instance_key=None):
    """
    Collapses events into activity instances with a start and end time in seconds.

    Returns a DataFrame with columns [case, activity, start_time, end_time, first_pos],
    in event log order of first appearance.
    """
    keys = CONFIG['keys']
    case_id_key = case_id_key or keys['case_id_key']
    activity_key = activity_key or keys['activity_key']
    timestamp_key = timestamp_key or keys['timestamp_key']
    lifecycle_key = lifecycle_key or keys['lifecycle_key']

    columns = [case_id_key, activity_key, timestamp_key]
    if activity_instance_key:
        columns.append(activity_instance_key)
    elif lifecycle_key in eventlog.columns:
        columns.append(lifecycle_key)

    df = eventlog[columns].copy()
    df = df[df[case_id_key].notna() & df[activity_key].notna()].reset_index(drop=True)
    if df.empty:
        return pd.DataFrame(columns=['case', 'activity', 'start_time', 'end_time', 'first_pos'])
    df['_time'] = to_seconds(df[timestamp_key]).to_numpy()
    df['_pos'] = np.arange(len(df))

    if activity_instance_key:
        df['_instance'] = df[activity_instance_key]
    elif lifecycle_key in df.columns:
        df['_instance'] = _pair_lifecycle(df, case_id_key, activity_key, lifecycle_key)
    else:
        df['_instance'] = df['_pos']

    instances = (
        df.groupby([case_id_key, activity_key, '_instance'], sort=False, dropna=False)
        .agg(start_time=('_time', 'min'), end_time=('_time', 'max'), first_pos=('_pos', 'min'))
        .reset_index()
        .rename(columns={case_id_key: 'case', activity_key: 'activity'})
        .sort_values('first_pos', kind='mergesort')
    )
    return instances[['case', 'activity', 'start_time', 'end_time', 'first_pos']].reset_index(drop=True)


def build_precedence(eventlog, case_id_key=None, activity_key=None, timestamp_key=None,
                     lifecycle_key=None, activity_instance_key=None, add_start_end=True):
    """
    Builds the precedence table of an event log.

    Instances are ordered within each case by start time, end time and then
    log order. With `add_start_end`, every case is framed by the artificial
    start and end activities from CONFIG so the token enters and leaves the
    process graph.

    Returns:
        pd.DataFrame: columns PRECEDENCE_COLUMNS, times in float seconds.
    """
    instances = build_activity_instances(eventlog, case_id_key, activity_key, timestamp_key,
                                         lifecycle_key, activity_instance_key)
    if instances.empty:
        return pd.DataFrame(columns=PRECEDENCE_COLUMNS)

    instances['_case_rank'] = instances.groupby('case', sort=False)['first_pos'].transform('min')
    instances['_slot'] = 1

    if add_start_end:
        frame = (
            instances.groupby('case', sort=False)
            .agg(_case_rank=('_case_rank', 'first'), first=('start_time', 'min'), last=('end_time', 'max'))
            .reset_index()
        )
        starts = pd.DataFrame({
            'case': frame['case'], 'activity': CONFIG['start_activity'],
            'start_time': frame['first'], 'end_time': frame['first'],
            'first_pos': -1, '_case_rank': frame['_case_rank'], '_slot': 0,
        })
        ends = pd.DataFrame({
            'case': frame['case'], 'activity': CONFIG['end_activity'],
            'start_time': frame['last'], 'end_time': frame['last'],
            'first_pos': -1, '_case_rank': frame['_case_rank'], '_slot': 2,
        })
        instances = pd.concat([starts, instances, ends], ignore_index=True)

    instances = instances.sort_values(
        ['_case_rank', '_slot', 'start_time', 'end_time', 'first_pos'],
        kind='mergesort', na_position='last',
    ).reset_index(drop=True)

    g = instances.groupby('_case_rank', sort=False)
    instances['to_id'] = g['activity'].shift(-1)
    instances['next_start_time'] = g['start_time'].shift(-1)
    instances['next_end_time'] = g['end_time'].shift(-1)
    instances['min_order'] = g.cumcount()

    # The last instance of a case has no successor.
    has_next = g.cumcount(ascending=False) > 0
    precedence = instances[has_next].rename(columns={'activity': 'from_id'})
    return precedence[PRECEDENCE_COLUMNS].reset_index(drop=True)


def normalize_precedence(precedence):
    """
    Validates an externally supplied precedence table and converts its time
    columns to float seconds. The caller's frame is not modified.
    """
    missing = [c for c in PRECEDENCE_COLUMNS if c not in precedence.columns]
    if missing:
        raise ConfigurationError(f"Precedence table is missing columns: {missing}")

    df = precedence[PRECEDENCE_COLUMNS].copy()
    for col in TIME_COLUMNS:
        df[col] = to_seconds(df[col])
    return df
