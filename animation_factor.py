# File: animation_factor.py
import math

# --- Import from project files ---
from config import ANIMATION_MODES
from errors import ConfigurationError, DegenerateInputError, InvalidDurationError


def validate_animation_settings(animation_mode, animation_duration):
    """Rejects unknown modes and non-positive durations before any data is touched."""
    if animation_mode not in ANIMATION_MODES:
        raise ConfigurationError(
            f"Unknown animation_mode {animation_mode!r}. Expected one of {list(ANIMATION_MODES)}."
        )
    try:
        duration = float(animation_duration)
    except (TypeError, ValueError):
        raise ConfigurationError(f"animation_duration must be a number, got {animation_duration!r}.")
    if not math.isfinite(duration) or duration <= 0:
        raise InvalidDurationError(f"animation_duration must be a positive number of seconds, got {animation_duration!r}.")
    return duration


def compute_animation_factor(cases, log_bounds, animation_mode, animation_duration):
    """
    Returns the ratio of real seconds to animation seconds.

    'absolute' scales the whole log onto the animation, 'relative' scales the
    longest case onto it.
    """
    duration = validate_animation_settings(animation_mode, animation_duration)

    if log_bounds is None or cases.empty:
        raise DegenerateInputError("Cannot derive an animation factor from a log without cases.")

    if animation_mode == 'absolute':
        numerator = log_bounds.log_duration
        label = 'log_duration'
    else:
        numerator = float(cases['case_duration'].max())
        label = 'maximum case_duration'

    if not numerator > 0:
        # Every case is instantaneous here; name some of them.
        offending = cases['case'].tolist()
        shown = offending[:5] + (['...'] if len(offending) > 5 else [])
        raise DegenerateInputError(
            f"{label} is {numerator} in {animation_mode!r} mode for {len(offending)} case(s) {shown}; "
            f"the animation factor would be undefined."
        )
    return numerator / duration
