import pandas as pd
import pytest

from attribute_timeline import (
    ColumnRef, Constant, ExternalTable,
    as_attribute_source, build_attribute_timeline, compact_samples, rescale_samples, resolve_attribute,
)
from case_bounds import LogBounds
from errors import ConfigurationError

T0 = pd.Timestamp('2024-03-01 08:00:00')
CASE, ACT, TS = 'case:concept:name', 'concept:name', 'time:timestamp'


def _log(rows):
    return pd.DataFrame([
        {CASE: case, ACT: activity, TS: T0 + pd.Timedelta(seconds=offset), **attrs}
        for case, activity, offset, attrs in rows
    ])


@pytest.fixture
def eventlog():
    return _log([
        ('c1', 'A', 0, {'load': 5, 'team': 'red'}),
        ('c1', 'B', 10, {'load': 5, 'team': 'red'}),
        ('c1', 'C', 20, {'load': 7, 'team': 'blue'}),
        ('c1', 'D', 30, {'load': 7, 'team': 'blue'}),
        ('c1', 'E', 40, {'load': 5, 'team': 'red'}),
    ])


def test_source_resolution(eventlog):
    assert as_attribute_source(None, eventlog, 'size') == Constant(6)
    assert as_attribute_source(None, eventlog, 'color') == Constant('white')
    assert as_attribute_source('load', eventlog, 'size') == ColumnRef('load')
    table = pd.DataFrame({'case': ['c1'], 'time': [T0], 'value': [3]})
    assert isinstance(as_attribute_source(table, eventlog, 'size'), ExternalTable)
    assert as_attribute_source(Constant('red'), eventlog, 'color') == Constant('red')


@pytest.mark.parametrize('raw', ['no_such_column', 4, ['load']])
def test_unknown_source_is_a_configuration_error(eventlog, raw):
    with pytest.raises(ConfigurationError, match="size"):
        as_attribute_source(raw, eventlog, 'size')


def test_column_values_are_run_length_compacted(eventlog):
    samples = resolve_attribute(ColumnRef('load'), eventlog, 'size')
    compacted = compact_samples(samples)

    assert compacted['value'].tolist() == [5, 7, 5]
    times = (compacted['time'] - compacted['time'].iloc[0]).tolist()
    assert times == [0.0, 20.0, 40.0]


def test_compaction_sorts_by_time_within_each_case():
    samples = pd.DataFrame({
        'case': ['c1', 'c2', 'c1', 'c1', 'c2'],
        'time': [30.0, 0.0, 10.0, 20.0, 5.0],
        'value': ['b', 'x', 'a', 'a', 'x'],
    })
    compacted = compact_samples(samples)
    assert compacted.values.tolist() == [
        ['c1', 10.0, 'a'],
        ['c1', 30.0, 'b'],
        ['c2', 0.0, 'x'],
    ]


def test_same_time_with_changed_value_is_kept():
    samples = pd.DataFrame({'case': ['c1'] * 3, 'time': [0.0, 0.0, 0.0], 'value': [1, 1, 2]})
    assert compact_samples(samples)['value'].tolist() == [1, 2]


def test_missing_values_form_one_run():
    samples = pd.DataFrame({'case': ['c1'] * 4, 'time': [0.0, 1.0, 2.0, 3.0],
                            'value': [None, None, 'img.png', None]})
    compacted = compact_samples(samples)
    assert compacted['time'].tolist() == [0.0, 2.0, 3.0]


def test_external_table_accepts_attribute_named_column(eventlog):
    table = pd.DataFrame({'case': ['c1', 'c1'], 'time': [T0, T0 + pd.Timedelta(seconds=5)], 'color': ['red', 'blue']})
    samples = resolve_attribute(ExternalTable(table), eventlog, 'color')
    assert samples['value'].tolist() == ['red', 'blue']


def test_external_table_missing_columns(eventlog):
    table = pd.DataFrame({'case': ['c1'], 'value': [1]})
    with pytest.raises(ConfigurationError, match="time"):
        resolve_attribute(ExternalTable(table), eventlog, 'size')


def test_rescaling_uses_log_or_case_origin():
    samples = pd.DataFrame({'case': ['c1', 'c2', 'c3'], 'time': [100.0, 160.0, 500.0], 'value': [1, 2, 3]})
    cases = pd.DataFrame({'case': ['c1', 'c2'], 'case_start': [100.0, 140.0],
                          'case_end': [200.0, 300.0], 'case_duration': [100.0, 160.0]})
    log_bounds = LogBounds(log_start=100.0, log_end=300.0, log_duration=200.0)

    absolute = rescale_samples(samples, cases, log_bounds, 'absolute', 2.0)
    assert absolute['case'].tolist() == ['c1', 'c2']
    assert absolute['time'].tolist() == [0.0, 30.0]

    relative = rescale_samples(samples, cases, log_bounds, 'relative', 2.0)
    assert relative['time'].tolist() == [0.0, 10.0]


def test_default_constant_timeline(eventlog):
    cases = pd.DataFrame({'case': ['c1'], 'case_start': [T0.timestamp()],
                          'case_end': [T0.timestamp() + 40], 'case_duration': [40.0]})
    log_bounds = LogBounds(log_start=T0.timestamp(), log_end=T0.timestamp() + 40, log_duration=40.0)
    sizes = build_attribute_timeline(None, eventlog, 'size', cases, log_bounds, 'absolute', 40 / 60)
    assert sizes.values.tolist() == [['c1', 0.0, 6]]

    images = build_attribute_timeline(None, eventlog, 'image', cases, log_bounds, 'absolute', 40 / 60)
    assert len(images) == 1
    assert images['value'].isna().all()


def test_unknown_attribute(eventlog):
    with pytest.raises(ConfigurationError):
        build_attribute_timeline(None, eventlog, 'opacity', pd.DataFrame(), None, 'absolute', 1.0)


def test_event_log_is_not_modified(eventlog):
    before = eventlog.copy()
    compact_samples(resolve_attribute(ColumnRef('team'), eventlog, 'color'))
    pd.testing.assert_frame_equal(eventlog, before)


def test_compaction_counts_are_reported(eventlog):
    cases = pd.DataFrame({'case': ['c1'], 'case_start': [T0.timestamp()],
                          'case_end': [T0.timestamp() + 40], 'case_duration': [40.0]})
    log_bounds = LogBounds(log_start=T0.timestamp(), log_end=T0.timestamp() + 40, log_duration=40.0)
    counts = {}
    sizes = build_attribute_timeline('load', eventlog, 'size', cases, log_bounds, 'absolute', 40 / 60,
                                     stats=counts)

    assert counts == {'samples': 5, 'kept': 3}
    assert sizes['value'].tolist() == [5, 7, 5]
