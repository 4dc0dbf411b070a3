# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Tests for ConfTree."""

import pytest

from genro_conftree import (
    BadArgumentError,
    ConfTree,
    DescendantError,
    InvalidPathError,
    LabelError,
    MultipleMatchesError,
    NoMatchError,
    NoSpanInfoError,
)


@pytest.fixture
def abc(tree):
    """/a/b[1]=1, /a/b[2]=2, /a/c/b=3."""
    tree.set('/a/b', '1')
    tree.set('/a/b[last()+1]', '2')
    tree.set('/a/c/b', '3')
    return tree


class TestGetSet:
    """Tests for get and set."""

    @pytest.mark.parametrize('path', [
        '/x',
        '/x/y/z',
        '/files/etc/hosts/1/ipaddr',
        '/with\\ space/a',
        '/a/b[1]',
        'relative/node',
    ])
    def test_set_then_get(self, tree, path):
        """set followed by get returns the value."""
        tree.set(path, 'v')
        assert tree.get(path) == 'v'

    def test_overwrite(self, tree):
        tree.set('/a', 'old')
        tree.set('/a', 'new')
        assert tree.get('/a') == 'new'
        assert tree.match('/a') == ['/a']

    def test_set_none(self, tree):
        """A node can exist without a value."""
        tree.set('/a', None)
        assert tree.exists('/a')
        assert tree.get('/a') is None

    def test_get_no_match(self, tree):
        with pytest.raises(NoMatchError) as exc:
            tree.get('/missing')
        assert exc.value.details == '/missing'

    def test_get_multiple(self, abc):
        with pytest.raises(MultipleMatchesError):
            abc.get('/a/b')

    def test_set_multiple(self, abc):
        """An ambiguous target is not overwritten."""
        with pytest.raises(MultipleMatchesError):
            abc.set('/a/b', 'x')

    def test_set_ambiguous_anchor(self, abc):
        """Nodes are not created under an ambiguous prefix."""
        with pytest.raises(MultipleMatchesError):
            abc.set('/a/b/new', 'x')

    def test_set_wildcard_cannot_create(self, tree):
        with pytest.raises(InvalidPathError):
            tree.set('/x/*/y', 'v')
        assert not tree.exists('/x')

    def test_set_descendant_cannot_create(self, tree):
        with pytest.raises(InvalidPathError):
            tree.set('/x//y', 'v')

    def test_set_rejects_non_string(self, tree):
        with pytest.raises(TypeError):
            tree.set('/a', 42)

    def test_append(self, tree):
        """Two appends produce two nodes in order."""
        tree.set('/a/b[last()+1]', 'v1')
        tree.set('/a/b[last()+1]', 'v2')
        assert tree.match('/a/b') == ['/a/b[1]', '/a/b[2]']
        assert [tree.get('/a/b[1]'), tree.get('/a/b[2]')] == ['v1', 'v2']

    def test_set_position_past_end(self, abc):
        """An ordinal past the last sibling appends."""
        abc.set('/a/c/b[2]', '4')
        assert abc.match('/a/c/b') == ['/a/c/b[1]', '/a/c/b[2]']

    def test_exists(self, abc):
        assert abc.exists('/a/c')
        assert not abc.exists('/a/d')
        assert '/a/c/b' in abc

    def test_setm(self, tree):
        """setm sets a relative path below every base node."""
        tree.set('/h/1/ip', 'a')
        tree.set('/h/2/ip', 'b')
        assert tree.setm('/h/*', 'alias', 'x') == 2
        assert tree.get('/h/1/alias') == 'x'
        assert tree.get('/h/2/alias') == 'x'

    def test_setm_without_sub(self, tree):
        tree.set('/h/1', None)
        tree.set('/h/2', None)
        assert tree.setm('/h/*', None, 'v') == 2
        assert tree.get('/h/2') == 'v'

    def test_setm_no_base(self, tree):
        assert tree.setm('/nothing/*', 'x', 'v') == 0


class TestRmMatch:
    """Tests for rm and match."""

    def test_rm_counts_subtree(self, abc):
        """rm returns the number of nodes removed, descendants included."""
        assert abc.rm('/a') == 5
        assert abc.match('/a') == []

    def test_rm_then_match_empty(self, abc):
        assert abc.rm('/a/b') == 2
        assert abc.match('/a/b') == []
        assert abc.get('/a/c/b') == '3'

    def test_rm_nothing(self, tree):
        assert tree.rm('/nothing') == 0

    def test_rm_nested_matches(self, tree):
        """Nodes already removed with an ancestor are not counted twice."""
        tree.set('/x/b/b', 'inner')
        assert tree.rm('//b') == 2
        assert tree.match('/x/*') == []

    def test_match_paths(self, abc):
        assert abc.match('//b') == ['/a/b[1]', '/a/b[2]', '/a/c/b']

    def test_match_no_result(self, abc):
        """Zero matches is not an error."""
        assert abc.match('/a/zzz[3]') == []

    def test_match_invalid(self, abc):
        with pytest.raises(InvalidPathError):
            abc.match('/a[')


class TestStructuralEdits:
    """Tests for insert, mv, rename and label."""

    def test_insert_after(self, abc):
        abc.insert('/a/b[1]', 'e')
        assert [n.label for n in abc.select('/a/*')] == ['b', 'e', 'b', 'c']

    def test_insert_before(self, abc):
        abc.insert('/a/c', 'd', before=True)
        assert [n.label for n in abc.select('/a/*')] == ['b', 'b', 'd', 'c']

    def test_insert_bad_label(self, abc):
        with pytest.raises(LabelError):
            abc.insert('/a/c', 'x/y')

    def test_insert_next_to_root(self, abc):
        with pytest.raises(BadArgumentError):
            abc.insert('/', 'x')

    def test_insert_needs_single_match(self, abc):
        with pytest.raises(MultipleMatchesError):
            abc.insert('/a/b', 'x')

    def test_mv_to_new_path(self, abc):
        """The moved subtree is created at the destination."""
        abc.mv('/a/c', '/z')
        assert abc.get('/z/b') == '3'
        assert not abc.exists('/a/c')

    def test_mv_replaces_target(self, tree):
        tree.set('/p', 'old')
        tree.set('/p/kid', 'k')
        tree.set('/q', 'new')
        tree.mv('/q', '/p')
        assert tree.get('/p') == 'new'
        assert not tree.exists('/p/kid')
        assert not tree.exists('/q')

    def test_mv_into_descendant(self, abc):
        with pytest.raises(DescendantError):
            abc.mv('/a', '/a/c/new')
        with pytest.raises(DescendantError):
            abc.mv('/a', '/a/c')
        assert abc.exists('/a/c/b')

    def test_rename(self, abc):
        assert abc.rename('/a/b', 'x') == 2
        assert abc.match('/a/x') == ['/a/x[1]', '/a/x[2]']

    @pytest.mark.parametrize('label', ['', 'a/b'])
    def test_rename_bad_label(self, abc, label):
        with pytest.raises(LabelError):
            abc.rename('/a/c', label)

    def test_label(self, abc):
        assert abc.label('/a/*[last()]') == 'c'

    def test_path_of(self, abc):
        node = abc.node('/a/c/b')
        assert abc.path_of(node) == '/a/c/b'
        assert abc.path_of(abc.root) == '/'

    def test_span_missing(self, abc):
        with pytest.raises(NoSpanInfoError):
            abc.span('/a/c')


class TestContextAndProtection:
    """Tests for relative paths and read-only subtrees."""

    def test_context(self, abc):
        """Relative paths start at the node named by /augeas/context."""
        abc.set('/augeas/context', '/a/c')
        assert abc.get('b') == '3'
        abc.set('d', 'v')
        assert abc.get('/a/c/d') == 'v'

    def test_context_trailing_slash(self, abc):
        abc.set('/augeas/context', '/a/c/')
        assert abc.get('b') == '3'

    def test_bad_context_falls_back_to_root(self, abc):
        abc.set('/augeas/context', '/a/b')
        assert abc.get('a/c/b') == '3'

    def test_protected_subtree(self, tree):
        guarded = tree.ensure('/augeas/load')
        tree.protect(guarded)
        with pytest.raises(BadArgumentError):
            tree.set('/augeas/load/x', '1')
        with pytest.raises(BadArgumentError):
            tree.rm('/augeas')
        with pytest.raises(BadArgumentError):
            tree.rename('/augeas', 'meta')
        tree.set('/augeas/context', '/')

    def test_ensure_bypasses_protection(self, tree):
        tree.protect(tree.ensure('/augeas/files'))
        node = tree.ensure('/augeas/files/etc')
        assert node.path == '/augeas/files/etc'


class TestDirtyTracking:
    """Tests for modification flags."""

    def test_set_marks_ancestors(self, abc):
        abc.root.clean()
        abc.set('/a/c/b', '9')
        assert abc.node('/a/c/b').dirty
        assert abc.node('/a').dirty
        assert abc.root.dirty
        assert not abc.node('/a/b[1]').dirty

    def test_rm_marks_parent(self, abc):
        abc.root.clean()
        abc.rm('/a/c/b')
        assert abc.node('/a/c').dirty
        assert not abc.node('/a/b[2]').dirty

    def test_mv_onto_clean_target_marks_its_ancestors(self, abc):
        """Moving a leaf over an existing node dirties the destination branch."""
        abc.set('/x/y/leaf', 'old')
        abc.root.clean()
        abc.mv('/a/b[1]', '/x/y/leaf')
        assert abc.get('/x/y/leaf') == '1'
        assert abc.node('/x/y/leaf').dirty
        assert abc.node('/x/y').dirty
        assert abc.node('/x').dirty
        assert abc.node('/a').dirty
        assert not abc.node('/a/c').dirty

    def test_walk(self, abc):
        assert [path for path, _ in abc.walk('/a/c')] == ['/a/c', '/a/c/b']


def test_repr():
    tree = ConfTree()
    tree.set('/files', None)
    assert repr(tree) == "ConfTree(['files'])"
