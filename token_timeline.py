# File: token_timeline.py
#
# Token scheduling: turns precedence rows into a per-case chain of segments
# (edge traversal followed by a dwell at the target activity) on the
# animation clock. Within a case the chain is strictly ordered and gap-free,
# and every dwell is at least EPSILON long.
from collections.abc import Mapping

import pandas as pd

# --- Import from project files ---
from config import CONFIG
from errors import ConfigurationError

TOKEN_COLUMNS = [
    'case', 'edge_id', 'from_id', 'to_id',
    'token_start', 'token_duration', 'activity_duration', 'case_duration',
]


def as_edge_table(edges):
    """
    Normalises the process graph edge set to columns [from_id, to_id, edge_id].

    Accepts the process map edge table (columns from, to, id) or a mapping
    {(from, to): edge_id}. Duplicate (from, to) pairs keep their first id.
    """
    if isinstance(edges, pd.DataFrame):
        missing = [c for c in ('from', 'to', 'id') if c not in edges.columns]
        if missing:
            raise ConfigurationError(f"Process graph edge table is missing columns {missing}; expected (from, to, id).")
        table = edges[['from', 'to', 'id']]
    elif isinstance(edges, Mapping):
        table = pd.DataFrame(
            [(source, target, edge_id) for (source, target), edge_id in edges.items()],
            columns=['from', 'to', 'id'],
        )
    else:
        raise ConfigurationError(f"Unsupported process graph edge set of type {type(edges).__name__}.")

    table = table.rename(columns={'from': 'from_id', 'to': 'to_id', 'id': 'edge_id'})
    table = table[table['edge_id'].notna()]
    return table.drop_duplicates(['from_id', 'to_id'], keep='first').reset_index(drop=True)


# --- Step 1: join & filter ---
def join_tokens(precedence, cases, edges):
    """Attaches case bounds and graph edge ids; rows missing either are dropped."""
    tokens = precedence.merge(cases, on='case', how='inner', sort=False)
    return tokens.merge(as_edge_table(edges), on=['from_id', 'to_id'], how='inner', sort=False)


# --- Step 2: raw timing ---
def compute_raw_timing(tokens, log_bounds, animation_mode, factor, epsilon=None):
    """
    token_start       = (end_time - origin) / factor
    token_duration    = (next_start_time - end_time) / factor
    activity_duration = epsilon + max(0, (next_end_time - next_start_time) / factor)

    The origin is the log start ('absolute') or the case start ('relative').
    An unknown next_end_time counts as a zero-length dwell.
    """
    epsilon = CONFIG['epsilon'] if epsilon is None else epsilon
    origin = log_bounds.log_start if animation_mode == 'absolute' else tokens['case_start']

    dwell = ((tokens['next_end_time'] - tokens['next_start_time']) / factor).fillna(0.0).clip(lower=0.0)
    return tokens.assign(
        token_start=(tokens['end_time'] - origin) / factor,
        token_duration=(tokens['next_start_time'] - tokens['end_time']) / factor,
        activity_duration=epsilon + dwell,
    )


# --- Step 3: drop parallel overlaps ---
def drop_parallel_overlaps(tokens):
    """
    Removes rows whose next activity started before the current one ended
    (negative travel time), along with rows whose travel time is unknown.
    """
    return tokens[tokens['token_duration'] >= 0]


# --- Step 4: tie-break ---
def break_ties(tokens, epsilon=None):
    """
    Orders each case by min_order and spreads rows that share a token_start
    by EPSILON steps, in arrival order:

        token_start += (rank by row order - min rank by token_start) * epsilon
    """
    epsilon = CONFIG['epsilon'] if epsilon is None else epsilon
    ordered = tokens.sort_values('min_order', kind='mergesort')
    starts = ordered.groupby('case', sort=False)['token_start']
    offset = (starts.rank(method='first') - starts.rank(method='min')) * epsilon
    return ordered.assign(token_start=ordered['token_start'] + offset)


# --- Step 5: re-sequence ---
def resequence(tokens, epsilon=None):
    """
    Chains the segments of every case back to back, in arrival order:

        token_end_i   = min(token_start) + cumsum(token_duration + activity_duration)_i + epsilon
        token_start_0 = min(token_start)
        token_start_i = token_end_(i-1)

    Expects rows already ordered by min_order within each case.
    """
    epsilon = CONFIG['epsilon'] if epsilon is None else epsilon
    by_case = tokens['case']

    first_start = tokens.groupby(by_case, sort=False)['token_start'].transform('min')
    elapsed = (tokens['token_duration'] + tokens['activity_duration']).groupby(by_case, sort=False).cumsum()
    token_end = first_start + elapsed + epsilon
    token_start = token_end.groupby(by_case, sort=False).shift(1).fillna(first_start)

    return tokens.assign(token_start=token_start, token_end=token_end)


# --- Step 6: finalize ---
def finalize_tokens(tokens):
    """Sets case_duration to the latest token_end of each case and selects the output columns."""
    tokens = tokens.assign(case_duration=tokens.groupby('case', sort=False)['token_end'].transform('max'))
    tokens = tokens.sort_values(['case', 'token_start'], kind='mergesort')
    return tokens[TOKEN_COLUMNS].reset_index(drop=True)


def generate_tokens(precedence, cases, log_bounds, edges, animation_mode, factor, epsilon=None, stats=None):
    """
    Builds the token schedule of every case.

    Rows without case bounds or without a graph edge, and rows of parallel
    branches, are left out. A case that loses all its rows has no segments.
    When a `stats` dict is given, it receives the row counts of each stage
    ('precedence', 'joined', 'sequential').

    Returns:
        pd.DataFrame: columns TOKEN_COLUMNS, ordered by case and token_start.
    """
    joined = join_tokens(precedence, cases, edges)
    tokens = drop_parallel_overlaps(compute_raw_timing(joined, log_bounds, animation_mode, factor, epsilon))
    if stats is not None:
        stats.update(precedence=len(precedence), joined=len(joined), sequential=len(tokens))
    if tokens.empty:
        return pd.DataFrame(columns=TOKEN_COLUMNS)

    tokens = break_ties(tokens, epsilon)
    tokens = resequence(tokens, epsilon)
    return finalize_tokens(tokens)
