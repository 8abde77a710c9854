"""
Tests for MockHarbor Header Manager

Tests the ordered multi-valued header store including:
- set/add/add_all semantics
- Dropping of empty keys and values
- Immutable snapshots
- Case-insensitive lookups
"""

import pytest

from mockharbor.mock.headers import HeaderManager


class TestHeaderSet:
    """Test HeaderManager.set()."""

    def test_set_then_get(self):
        """Test a set value is returned by get."""
        headers = HeaderManager()
        headers.set('Content-Type', 'application/json')

        assert headers.get('Content-Type') == 'application/json'
        assert headers.as_map() == {'Content-Type': ('application/json',)}

    def test_set_replaces_all_values(self):
        """Test set replaces every existing value for the key."""
        headers = HeaderManager()
        headers.add('Accept', ['text/html', 'application/json'])
        headers.set('Accept', 'text/plain')

        assert headers.get_all('Accept') == ['text/plain']

    @pytest.mark.parametrize('key,value', [
        ('', 'value'),
        (None, 'value'),
        ('X-Key', ''),
        ('X-Key', None),
    ])
    def test_set_empty_is_noop(self, key, value):
        """Test empty keys or values leave the manager unchanged."""
        headers = HeaderManager({'Existing': 'yes'})
        headers.set(key, value)

        assert headers.as_map() == {'Existing': ('yes',)}


class TestHeaderAdd:
    """Test HeaderManager.add() and add_all()."""

    def test_add_appends_in_order(self):
        """Test values accumulate in insertion order."""
        headers = HeaderManager()
        headers.add('Set-Cookie', 'a=1')
        headers.add('Set-Cookie', ['b=2', 'c=3'])

        assert headers.get_all('Set-Cookie') == ['a=1', 'b=2', 'c=3']

    def test_add_skips_empty_values(self):
        """Test empty values in a list are dropped."""
        headers = HeaderManager()
        headers.add('X-List', ['', 'one', None, 'two'])

        assert headers.get_all('X-List') == ['one', 'two']

    def test_add_only_empty_values_creates_no_key(self):
        """Test a key is never stored with an empty list."""
        headers = HeaderManager()
        headers.add('X-Empty', ['', None])
        headers.add('X-Empty', [])

        assert headers.key_count() == 0
        assert 'X-Empty' not in headers.as_map()

    def test_add_all_merges_mapping(self):
        """Test add_all adds every entry of a mapping."""
        headers = HeaderManager({'A': '1'})
        headers.add_all({'A': ['2'], 'B': 'x', 'C': []})

        assert headers.as_map() == {'A': ('1', '2'), 'B': ('x',)}

    def test_scalar_values_stored_as_text(self):
        """Test numbers and booleans are stored in their text form."""
        headers = HeaderManager()
        headers.add('X-Count', 5)
        headers.add('X-Flags', [True, 0])
        headers.set('X-Retry', 3)

        assert headers.as_map() == {'X-Count': ('5',), 'X-Flags': ('true', '0'), 'X-Retry': ('3',)}

    def test_add_all_none_is_noop(self):
        """Test add_all accepts None and empty mappings."""
        headers = HeaderManager()
        headers.add_all(None)
        headers.add_all({})

        assert len(headers) == 0


class TestHeaderViews:
    """Test snapshots, lookups and equality."""

    def test_as_map_is_immutable(self):
        """Test the snapshot can't be mutated."""
        headers = HeaderManager({'A': '1'})
        snapshot = headers.as_map()

        with pytest.raises(TypeError):
            snapshot['B'] = ('2',)

    def test_as_map_is_a_snapshot(self):
        """Test later changes don't leak into an earlier snapshot."""
        headers = HeaderManager({'A': '1'})
        snapshot = headers.as_map()
        headers.add('A', '2')

        assert snapshot['A'] == ('1',)

    def test_key_case_preserved(self):
        """Test names keep the case they were given with."""
        headers = HeaderManager({'x-CUSTOM': 'v'})

        assert headers.keys() == ['x-CUSTOM']

    def test_lookup_is_case_insensitive(self):
        """Test get/contains ignore name case."""
        headers = HeaderManager({'Content-Type': 'text/plain'})

        assert headers.get('content-type') == 'text/plain'
        assert headers.contains('CONTENT-TYPE')
        assert headers.contains('content-type', 'text/plain')
        assert not headers.contains('content-type', 'text/html')
        assert headers.get('Missing') is None

    def test_items_flattens_values(self):
        """Test items yields one pair per value."""
        headers = HeaderManager({'A': ['1', '2'], 'B': '3'})

        assert headers.items() == [('A', '1'), ('A', '2'), ('B', '3')]

    def test_copy_is_independent(self):
        """Test a copy doesn't share state with its source."""
        headers = HeaderManager({'A': '1'})
        clone = headers.copy()
        clone.add('A', '2')

        assert headers.get_all('A') == ['1']
        assert clone == HeaderManager({'A': ['1', '2']})
