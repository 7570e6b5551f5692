# File: config.py
from pm4py.util import constants, xes_constants

# --- Configuration ---
CONFIG = {
    # --- Event log keys (pm4py flattened dataframe layout) ---
    'keys': {
        'case_id_key': constants.CASE_CONCEPT_NAME,          # 'case:concept:name'
        'activity_key': xes_constants.DEFAULT_NAME_KEY,      # 'concept:name'
        'timestamp_key': xes_constants.DEFAULT_TIMESTAMP_KEY,  # 'time:timestamp'
        'lifecycle_key': xes_constants.DEFAULT_TRANSITION_KEY,  # 'lifecycle:transition'
    },

    # --- Animation clock ---
    # 'absolute': all cases share one clock starting at the first event of the log.
    # 'relative': every case starts at zero.
    'animation_mode': 'absolute',
    'animation_duration': 60,  # seconds

    # SMIL players reject zero-length segments and simultaneous starts.
    'epsilon': 1e-5,

    # --- Token attributes ---
    'attribute_defaults': {
        'size': 6,
        'color': 'white',
        'image': None,  # renderer falls back to its SVG shape
    },
    'shape': 'circle',

    # --- Artificial start/end nodes of the process graph ---
    'start_activity': 'Start',
    'end_activity': 'End',
    'lifecycle_start': 'start',
    'lifecycle_complete': 'complete',
}

ANIMATION_MODES = ('absolute', 'relative')
ATTRIBUTES = ('size', 'color', 'image')
