# File: errors.py


class AnimationError(ValueError):
    """Base class for errors that abort a timeline computation."""


class ConfigurationError(AnimationError):
    """Invalid animation mode, duration or token attribute source."""


class DegenerateInputError(AnimationError):
    """A zero case or log duration would be used as a scaling denominator."""


class InvalidDurationError(ConfigurationError, DegenerateInputError):
    # A zero animation_duration is both a bad setting and a zero denominator.
    pass
