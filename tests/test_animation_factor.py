import pandas as pd
import pytest

from animation_factor import compute_animation_factor, validate_animation_settings
from case_bounds import LogBounds
from errors import ConfigurationError, DegenerateInputError, InvalidDurationError


@pytest.fixture
def bounds():
    cases = pd.DataFrame({
        'case': ['c1', 'c2'],
        'case_start': [0.0, 50.0],
        'case_end': [20.0, 120.0],
        'case_duration': [20.0, 70.0],
    })
    return cases, LogBounds(log_start=0.0, log_end=120.0, log_duration=120.0)


def test_absolute_factor_scales_log_duration(bounds):
    cases, log_bounds = bounds
    factor = compute_animation_factor(cases, log_bounds, 'absolute', 60)
    assert factor == pytest.approx(2.0)
    assert factor * 60 == pytest.approx(log_bounds.log_duration)


def test_relative_factor_scales_longest_case(bounds):
    cases, log_bounds = bounds
    factor = compute_animation_factor(cases, log_bounds, 'relative', 35)
    assert factor == pytest.approx(2.0)
    assert factor * 35 == pytest.approx(cases['case_duration'].max())


def test_unknown_mode_is_a_configuration_error(bounds):
    cases, log_bounds = bounds
    with pytest.raises(ConfigurationError, match="sideways"):
        compute_animation_factor(cases, log_bounds, 'sideways', 60)


@pytest.mark.parametrize('duration', [0, -5, float('nan'), float('inf')])
def test_non_positive_duration_is_rejected(bounds, duration):
    cases, log_bounds = bounds
    with pytest.raises(InvalidDurationError) as excinfo:
        compute_animation_factor(cases, log_bounds, 'absolute', duration)
    assert isinstance(excinfo.value, ConfigurationError)
    assert isinstance(excinfo.value, DegenerateInputError)


def test_non_numeric_duration_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        validate_animation_settings('absolute', 'long')


def test_zero_log_duration_is_degenerate():
    cases = pd.DataFrame({'case': ['c1'], 'case_start': [7.0], 'case_end': [7.0], 'case_duration': [0.0]})
    log_bounds = LogBounds(log_start=7.0, log_end=7.0, log_duration=0.0)
    with pytest.raises(DegenerateInputError, match="log_duration"):
        compute_animation_factor(cases, log_bounds, 'absolute', 60)
    with pytest.raises(DegenerateInputError, match="case_duration"):
        compute_animation_factor(cases, log_bounds, 'relative', 60)


def test_empty_bounds_are_degenerate():
    cases = pd.DataFrame(columns=['case', 'case_start', 'case_end', 'case_duration'])
    with pytest.raises(DegenerateInputError):
        compute_animation_factor(cases, None, 'absolute', 60)


@pytest.mark.parametrize('animation_mode', ['absolute', 'relative'])
def test_degenerate_message_names_the_cases(animation_mode):
    cases = pd.DataFrame({
        'case': ['order-17', 'order-42'],
        'case_start': [7.0, 7.0], 'case_end': [7.0, 7.0], 'case_duration': [0.0, 0.0],
    })
    log_bounds = LogBounds(log_start=7.0, log_end=7.0, log_duration=0.0)
    with pytest.raises(DegenerateInputError) as excinfo:
        compute_animation_factor(cases, log_bounds, animation_mode, 60)
    message = str(excinfo.value)
    assert "order-17" in message
    assert "order-42" in message
    assert "2 case(s)" in message
