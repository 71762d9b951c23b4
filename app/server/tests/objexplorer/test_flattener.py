import pytest
from collections import namedtuple
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from types import SimpleNamespace
from typing import List

import numpy as np
import pandas as pd

from objexplorer.default_properties import default_registry
from objexplorer.errors import InvalidArgumentError
from objexplorer.flattener import FlattenConfig, flatten, flatten_all
from objexplorer.recursion_rules import RecursionRule, null_sync_root


@dataclass
class Book:
    title: str
    author: str
    price: float


@dataclass
class Catalog:
    name: str
    book: List[Book] = field(default_factory=list)


class Moment(datetime):
    """Datetime whose property returns another Moment."""

    @property
    def start_of_day(self):
        return Moment(self.year, self.month, self.day)


class Flaky:
    def __init__(self):
        self.ok = 1

    @property
    def broken(self):
        raise RuntimeError("boom")


class UnprintableKey:
    def __str__(self):
        raise RuntimeError("no text")


class DeniedMap(Mapping):
    def __getitem__(self, key):
        raise KeyError(key)

    def __iter__(self):
        raise RuntimeError("access denied")

    def __len__(self):
        return 1


@pytest.fixture
def catalog():
    return Catalog("XML Books", [
        Book("XML Developer's Guide", "Gambardella, Matthew", 44.95),
        Book("Midnight Rain", "Ralls, Kim", 5.95),
    ])


class TestFlattenScenarios:

    def test_flat_record(self):
        data = SimpleNamespace(a=1, b=SimpleNamespace(c=2))
        result = flatten(data)
        assert result['root.a'] == 1
        assert result['root.b.c'] == 2
        # Composites are emitted as their own entry too
        assert result['root.b'] is data.b
        assert list(result) == ['root.a', 'root.b', 'root.b.c']

    def test_sequence_expansion(self):
        result = flatten(SimpleNamespace(items=[10, 20]))
        assert result['root.items[0]'] == 10
        assert result['root.items[1]'] == 20

    def test_special_characters_are_quoted(self):
        data = SimpleNamespace(**{'owner-link': 'shelf-1', 'plain_name1': 'x'})
        result = flatten(data)
        assert result["root.'owner-link'"] == 'shelf-1'
        assert result['root.plain_name1'] == 'x'

    def test_nested_map(self):
        result = flatten(SimpleNamespace(data={'k1': 'v1'}))
        assert result["root.data['k1']"] == 'v1'

    def test_dict_root_uses_key_segments(self):
        result = flatten({'a': 1, 'b': {'c': 2}})
        assert list(result) == ["root['a']", "root['b']", "root['b']['c']"]
        assert result["root['b']['c']"] == 2

    def test_pre_order(self, catalog):
        result = flatten(catalog)
        assert list(result) == [
            'root.name',
            'root.book',
            'root.book[0]',
            'root.book[0].title',
            'root.book[0].author',
            'root.book[0].price',
            'root.book[1]',
            'root.book[1].title',
            'root.book[1].author',
            'root.book[1].price',
        ]

    def test_scalar_root_is_empty(self):
        assert flatten(5) == {}
        assert flatten('text') == {}
        assert flatten(None) == {}

    def test_sequence_root(self):
        assert flatten([1, 2]) == {'root[0]': 1, 'root[1]': 2}

    def test_custom_root_name(self):
        assert flatten([1], root_name='obj') == {'obj[0]': 1}

    def test_non_string_map_keys(self):
        assert flatten({1: 'a'}) == {"root['1']": 'a'}

    def test_underscore_fields_are_data(self):
        result = flatten(SimpleNamespace(_id=7, name='x'))
        assert result == {'root._id': 7, 'root.name': 'x'}

    def test_quotes_in_keys_are_escaped(self):
        result = flatten({"it's": 1})
        assert result == {r"root['it\'s']": 1}

    def test_key_cannot_spell_a_nested_path(self):
        result = flatten({"a']['b": 2, "a": {"b": 3}})
        assert len(result) == 4
        assert result["root['a']['b']"] == 3
        assert result[r"root['a\'][\'b']"] == 2

    def test_namedtuple_is_enumerated(self):
        Point = namedtuple('Point', 'x y')
        result = flatten(SimpleNamespace(p=Point(1, 2)))
        assert result['root.p[0]'] == 1
        assert result['root.p[1]'] == 2

    def test_set_is_enumerated(self):
        result = flatten(SimpleNamespace(tags={'a'}))
        assert result['root.tags[0]'] == 'a'

    def test_numpy_array(self):
        result = flatten(SimpleNamespace(arr=np.array([1, 2])))
        assert result['root.arr[0]'] == 1
        assert result['root.arr[1]'] == 2

    def test_dataframe_columns_are_keys(self):
        result = flatten(SimpleNamespace(df=pd.DataFrame({'x': [1, 2]})))
        assert "root.df['x']" in result
        assert result["root.df['x']['0']"] == 1
        assert result["root.df['x']['1']"] == 2


class TestFilters:

    def test_include_only_emits_matching_names(self, catalog):
        result = flatten(catalog, include=['title'])
        assert list(result) == ['root.book[0].title', 'root.book[1].title']

    def test_include_is_case_sensitive_by_default(self, catalog):
        assert flatten(catalog, include=['Title']) == {}
        result = flatten(catalog, include=['Title'], ignore_case=True)
        assert len(result) == 2

    def test_include_glob(self, catalog):
        result = flatten(catalog, include=['a*'])
        assert set(result) == {'root.book[0].author', 'root.book[1].author'}

    def test_include_on_map_keys(self):
        result = flatten(SimpleNamespace(data={'k1': 'v1', 'k2': 'v2'}), include=['k1'])
        assert result == {"root.data['k1']": 'v1'}

    def test_value_filter(self, catalog):
        result = flatten(catalog, value=['XML*'])
        assert result == {
            'root.name': 'XML Books',
            'root.book[0].title': "XML Developer's Guide",
        }
        assert all(str(v).startswith('XML') for v in result.values())

    def test_value_filter_on_numbers(self, catalog):
        result = flatten(catalog, value=['5.9?'])
        assert result == {'root.book[1].price': 5.95}

    def test_exclude_drops_field_everywhere(self, catalog):
        result = flatten(catalog, exclude=['price'])
        assert not any(path.endswith('.price') for path in result)
        assert 'root.book[0].title' in result

    def test_exclude_wins_over_include_and_value(self, catalog):
        assert flatten(catalog, exclude=['price'], include=['price']) == {}
        assert flatten(catalog, exclude=['price'], include=['price'], value=['*']) == {}

    def test_exclude_glob_and_case(self, catalog):
        result = flatten(catalog, exclude=['PRI*'], ignore_case=True)
        assert not any(path.endswith('.price') for path in result)

    def test_exclude_map_key(self):
        result = flatten({'price': 1, 'name': 'x'}, exclude=['price'])
        assert result == {"root['name']": 'x'}

    def test_exclude_stops_descent(self, catalog):
        result = flatten(catalog, exclude=['book'])
        assert result == {'root.name': 'XML Books'}

    def test_exclude_never_matches_indices(self):
        assert flatten([1, 2], exclude=['0', '*']) == {'root[0]': 1, 'root[1]': 2}

    def test_default_exclude_only_drops_empty_names(self):
        result = flatten({'': 1, 'a': 2})
        assert result == {"root['a']": 2}

    def test_include_does_not_gate_recursion(self):
        data = SimpleNamespace(outer=SimpleNamespace(inner=SimpleNamespace(Title='deep')))
        assert flatten(data, include=['Title']) == {'root.outer.inner.Title': 'deep'}


class TestDepth:

    def test_max_depth_one(self, catalog):
        result = flatten(catalog, max_depth=1)
        assert list(result) == ['root.name', 'root.book']

    def test_max_depth_two(self, catalog):
        result = flatten(catalog, max_depth=2)
        assert list(result) == ['root.name', 'root.book', 'root.book[0]', 'root.book[1]']

    def test_depth_bound_on_deep_chain(self):
        node = SimpleNamespace(value='bottom')
        for _ in range(20):
            node = SimpleNamespace(n=node)
        result = flatten(node, max_depth=5)
        assert len(result) == 5
        assert max(path.count('.') for path in result) == 5

    def test_leaves_stop_regardless_of_depth(self):
        result = flatten(SimpleNamespace(a=1), max_depth=10)
        assert result == {'root.a': 1}


class TestCycles:

    def test_direct_self_reference(self):
        node = SimpleNamespace(name='loop')
        node.me = node
        result = flatten(node)
        assert result == {'root.name': 'loop', 'root.me': node}

    def test_indirect_cycle(self):
        a = SimpleNamespace(label='a')
        b = SimpleNamespace(label='b', a=a)
        a.b = b
        result = flatten(a)
        assert list(result) == ['root.label', 'root.b', 'root.b.label', 'root.b.a']

    def test_shared_non_ancestor_is_visited_twice(self):
        shared = SimpleNamespace(v=1)
        result = flatten(SimpleNamespace(x=shared, y=shared))
        assert result['root.x.v'] == 1
        assert result['root.y.v'] == 1

    def test_same_temporal_type_is_not_descended(self):
        result = flatten(SimpleNamespace(at=Moment(2024, 5, 6, 7, 8)))
        assert 'root.at.start_of_day' in result
        assert 'root.at.start_of_day.start_of_day' not in result

    def test_without_skip_rules_temporal_chain_runs_to_max_depth(self):
        result = flatten(SimpleNamespace(at=Moment(2024, 5, 6, 7, 8)), skip_rules=())
        assert 'root.at.start_of_day.start_of_day' in result
        assert max(path.count('.') for path in result) <= 10

    def test_custom_skip_rule(self):
        rule = RecursionRule('no-secrets', lambda name, value, parent: name == 'secret')
        data = SimpleNamespace(secret=SimpleNamespace(key='x'), public=SimpleNamespace(key='y'))
        result = flatten(data, skip_rules=[rule])
        assert 'root.secret' in result
        assert 'root.secret.key' not in result
        assert result['root.public.key'] == 'y'

    def test_null_sync_root_rule(self):
        assert null_sync_root('SyncRoot', None, object())
        assert not null_sync_root('SyncRoot', object(), object())
        assert not null_sync_root('Other', None, object())


class TestDefaultProperties:

    def test_datetime_fields_excluded_by_default(self):
        when = datetime(2024, 1, 2, 3, 4, 5)
        assert flatten(SimpleNamespace(when=when)) == {'root.when': when}

    def test_datetime_fields_shown_when_disabled(self):
        result = flatten(SimpleNamespace(when=datetime(2024, 1, 2, 3, 4, 5)), exclude_default=False)
        assert result['root.when.year'] == 2024
        assert result['root.when.hour'] == 3
        assert 'root.when.tzinfo' in result

    def test_user_fields_on_builtin_subclass_survive(self):
        result = flatten(SimpleNamespace(at=Moment(2024, 5, 6)))
        assert 'root.at.start_of_day' in result
        assert 'root.at.year' not in result

    def test_registry_entries(self):
        for registered in (date, datetime, time, timedelta, pd.Timestamp, pd.Timedelta, pd.Period):
            assert registered in default_registry
        assert default_registry.names_for(datetime(2024, 1, 1)) >= {'year', 'hour', 'tzinfo'}
        assert default_registry.names_for(pd.Timestamp('2024-01-01')) >= {'year', 'nanosecond'}
        assert default_registry.names_for(SimpleNamespace()) == frozenset()
        assert default_registry.names_for(1 + 2j) == frozenset()


class TestRobustness:

    def test_failing_property_is_skipped(self):
        result = flatten(SimpleNamespace(f=Flaky()))
        assert result['root.f.ok'] == 1
        assert 'root.f.broken' not in result

    def test_enumeration_failure_treated_as_leaf(self):
        bad = DeniedMap()
        result = flatten(SimpleNamespace(bad=bad, good=1))
        assert list(result) == ['root.bad', 'root.good']
        assert result['root.bad'] is bad

    def test_unprintable_map_key_treated_as_leaf(self):
        result = flatten(SimpleNamespace(bad={UnprintableKey(): 1}, good=1))
        assert list(result) == ['root.bad', 'root.good']

    def test_determinism(self, catalog):
        first = flatten(catalog, include=['t*', 'p*'])
        second = flatten(catalog, include=['t*', 'p*'])
        assert first == second
        assert list(first) == list(second)


class TestConfig:

    @pytest.mark.parametrize('max_depth', [0, -1, '3', 2.5, True])
    def test_invalid_max_depth(self, max_depth):
        with pytest.raises(InvalidArgumentError):
            flatten({}, max_depth=max_depth)

    def test_invalid_pattern_type(self):
        with pytest.raises(InvalidArgumentError):
            flatten({}, include=[1])

    def test_invalid_argument_is_value_error(self):
        with pytest.raises(ValueError):
            FlattenConfig(max_depth=0)

    def test_config_and_options_conflict(self):
        with pytest.raises(InvalidArgumentError):
            flatten({}, FlattenConfig(), max_depth=3)

    def test_unknown_option(self):
        with pytest.raises(InvalidArgumentError):
            flatten({}, depth=3)

    def test_single_string_pattern(self):
        config = FlattenConfig(include='title')
        assert config.include == ('title',)

    def test_empty_include_means_no_filter(self, catalog):
        assert flatten(catalog, include=[]) == flatten(catalog)

    def test_config_is_immutable(self):
        config = FlattenConfig()
        with pytest.raises(AttributeError):
            config.max_depth = 3


class TestFlattenAll:

    def test_each_root_gets_its_own_result(self):
        results = flatten_all([SimpleNamespace(a=1), SimpleNamespace(a=2, b=3)])
        assert results == [{'root.a': 1}, {'root.a': 2, 'root.b': 3}]
        assert results[0] is not results[1]

    def test_shared_config(self):
        config = FlattenConfig(exclude=['b'])
        results = flatten_all([{'a': 1, 'b': 2}, {'b': 3}], config)
        assert results == [{"root['a']": 1}, {}]
