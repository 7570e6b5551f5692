# File: animate.py
import argparse
import json
import os
import sys
import warnings
from contextlib import redirect_stdout

import pandas as pd
import pm4py

# --- Import from project files ---
from config import CONFIG, ATTRIBUTES
from errors import AnimationError
from precedence import build_precedence, normalize_precedence
from case_bounds import extract_case_bounds
from animation_factor import validate_animation_settings, compute_animation_factor
from attribute_timeline import (
    Constant, ColumnRef, ExternalTable, SAMPLE_COLUMNS, as_attribute_source, build_attribute_timeline,
)
from token_timeline import TOKEN_COLUMNS, generate_tokens

# Suppress pm4py warnings
warnings.filterwarnings("ignore", category=UserWarning, module='pm4py')


def assemble_payload(tokens, sizes, colors, images, width=None, height=None):
    """Packages the timelines the way the renderer expects them."""
    if tokens.empty:
        start_activity = end_activity = None
        cases = []
    else:
        start_activity = tokens['from_id'].iloc[0]
        end_activity = tokens['to_id'].iloc[-1]
        cases = tokens['case'].drop_duplicates().tolist()

    return {
        'tokens': tokens,
        'sizes': sizes,
        'colors': colors,
        'images': images,
        'cases': cases,
        'shape': CONFIG['shape'],
        'start_activity': start_activity,
        'end_activity': end_activity,
        'width': width,
        'height': height,
        'settings': {},
    }


def _empty_payload(width, height):
    empty_samples = pd.DataFrame(columns=SAMPLE_COLUMNS)
    return assemble_payload(pd.DataFrame(columns=TOKEN_COLUMNS), empty_samples, empty_samples.copy(),
                            empty_samples.copy(), width, height)


def animate_process(eventlog, edges, precedence=None,
                    animation_mode=None, animation_duration=None,
                    token_size=None, token_color=None, token_image=None,
                    width=None, height=None,
                    case_id_key=None, activity_key=None, timestamp_key=None,
                    lifecycle_key=None, activity_instance_key=None, epsilon=None):
    """
    Computes the token and attribute timelines of an event log on a process graph.

    Args:
        eventlog (pd.DataFrame): flattened event log (pm4py column layout by default).
        edges (pd.DataFrame or dict): process graph edges, columns (from, to, id)
            or {(from, to): edge_id}.
        precedence (pd.DataFrame, optional): precedence table. Derived from the
            event log (with artificial start/end activities) when omitted.
        animation_mode (str): 'absolute' or 'relative'.
        animation_duration (float): animation length in seconds.
        token_size, token_color, token_image: None (default constant), an event
            log column name, a (case, time, value) DataFrame, or a
            Constant/ColumnRef/ExternalTable.
        width, height: display dimensions passed through to the renderer.

    Returns:
        dict: tokens, sizes, colors, images, cases, shape, start_activity,
        end_activity, width, height, settings.
    """
    animation_mode = CONFIG['animation_mode'] if animation_mode is None else animation_mode
    animation_duration = CONFIG['animation_duration'] if animation_duration is None else animation_duration
    epsilon = CONFIG['epsilon'] if epsilon is None else epsilon

    # --- Validate configuration before touching the data ---
    animation_duration = validate_animation_settings(animation_mode, animation_duration)
    sources = {
        attribute: as_attribute_source(raw, eventlog, attribute)
        for attribute, raw in zip(ATTRIBUTES, (token_size, token_color, token_image))
    }

    if precedence is None:
        precedence = build_precedence(eventlog, case_id_key, activity_key, timestamp_key,
                                      lifecycle_key, activity_instance_key)
    else:
        precedence = normalize_precedence(precedence)

    cases, log_bounds = extract_case_bounds(precedence)
    num_known_cases = precedence['case'].dropna().nunique()
    if log_bounds is None:
        print(f"⚠️ None of the {num_known_cases} cases has valid timestamps; nothing to animate.")
        return _empty_payload(width, height)

    factor = compute_animation_factor(cases, log_bounds, animation_mode, animation_duration)
    print(f"Animating {len(cases)} cases in '{animation_mode}' mode over {animation_duration:g}s "
          f"(factor {factor:.6g} real seconds per animation second)...")
    if num_known_cases > len(cases):
        print(f"  - Excluded {num_known_cases - len(cases)} cases without valid timestamps.")

    # --- Token attributes ---
    timelines = {}
    for attribute, source in sources.items():
        counts = {}
        timelines[attribute] = build_attribute_timeline(source, eventlog, attribute, cases, log_bounds,
                                                        animation_mode, factor, case_id_key, timestamp_key,
                                                        stats=counts)
        print(f"  - {attribute}: kept {counts['kept']} of {counts['samples']} samples after compaction.")

    # --- Token schedule ---
    counts = {}
    tokens = generate_tokens(precedence, cases, log_bounds, edges, animation_mode, factor, epsilon, stats=counts)
    if counts['joined'] < counts['precedence']:
        print(f"  - Dropped {counts['precedence'] - counts['joined']} precedence rows without case bounds or graph edge.")
    if counts['sequential'] < counts['joined']:
        print(f"  - Dropped {counts['joined'] - counts['sequential']} precedence rows of parallel branches.")

    num_animated = tokens['case'].nunique()
    if num_animated < len(cases):
        print(f"  - {len(cases) - num_animated} cases have no segment left and are not animated.")
    print(f"✅ Scheduled {len(tokens)} token segments for {num_animated} cases.")

    return assemble_payload(tokens, timelines['size'], timelines['color'], timelines['image'], width, height)


# --- Command line helpers ---
def read_event_log(path):
    """Reads an XES (via pm4py) or CSV event log into a flattened DataFrame."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"Event log not found at {path}.")
    if path.endswith('.xes') or path.endswith('.xes.gz'):
        return pm4py.convert_to_dataframe(pm4py.read_xes(path))
    return pd.read_csv(path)


def parse_attribute_argument(value, eventlog):
    """
    Interprets a --token_* argument: a CSV path becomes an external table, an
    event log column a column reference, anything else a constant.
    """
    if value is None:
        return None
    if value.endswith('.csv') and os.path.exists(value):
        return ExternalTable(pd.read_csv(value))
    if value in eventlog.columns:
        return ColumnRef(value)
    try:
        return Constant(float(value))
    except ValueError:
        return Constant(value)


def payload_to_json(payload):
    serializable = {}
    for key, value in payload.items():
        if isinstance(value, pd.DataFrame):
            serializable[key] = json.loads(value.to_json(orient='records'))
        else:
            serializable[key] = value
    return json.dumps(serializable, default=str, indent=2)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Compute the token animation timeline of an event log on a process graph.")
    default_config = CONFIG

    parser.add_argument('--log', type=str, required=True,
                        help="Event log (.xes, .xes.gz or .csv).")
    parser.add_argument('--edges', type=str, required=True,
                        help="CSV with the process graph edges (columns: from, to, id).")
    parser.add_argument('--precedence', type=str, default=None,
                        help="Optional CSV precedence table. Derived from the log when omitted.")
    parser.add_argument('--animation_mode', type=str, default=default_config['animation_mode'],
                        help=f"'absolute' or 'relative'. (default: {default_config['animation_mode']})")
    parser.add_argument('--animation_duration', type=float, default=default_config['animation_duration'],
                        help=f"Animation length in seconds. (default: {default_config['animation_duration']})")
    parser.add_argument('--token_size', type=str, default=None,
                        help="Event attribute, CSV (case, time, value) or constant for the token size.")
    parser.add_argument('--token_color', type=str, default=None,
                        help="Event attribute, CSV (case, time, value) or constant for the token color.")
    parser.add_argument('--token_image', type=str, default=None,
                        help="Event attribute, CSV (case, time, value) or constant for the token image.")
    parser.add_argument('--activity_instance_key', type=str, default=None,
                        help="Event attribute identifying activity instances.")
    parser.add_argument('--width', type=int, default=None)
    parser.add_argument('--height', type=int, default=None)
    parser.add_argument('--json', action='store_true',
                        help="Print the full payload as JSON on stdout (progress goes to stderr).")
    args = parser.parse_args(argv)

    # With --json, stdout carries the payload only.
    progress = sys.stderr if args.json else sys.stdout
    with redirect_stdout(progress):
        log_df = read_event_log(args.log)
        edges_df = pd.read_csv(args.edges)
        precedence_df = pd.read_csv(args.precedence) if args.precedence else None

        try:
            result = animate_process(
                log_df, edges_df, precedence=precedence_df,
                animation_mode=args.animation_mode, animation_duration=args.animation_duration,
                token_size=parse_attribute_argument(args.token_size, log_df),
                token_color=parse_attribute_argument(args.token_color, log_df),
                token_image=parse_attribute_argument(args.token_image, log_df),
                width=args.width, height=args.height,
                activity_instance_key=args.activity_instance_key,
            )
        except AnimationError as e:
            raise SystemExit(f"❌ {type(e).__name__}: {e}")

        print(f"  - Start activity: {result['start_activity']}")
        print(f"  - End activity: {result['end_activity']}")

    if args.json:
        print(payload_to_json(result))
    return result


if __name__ == '__main__':
    main()
