# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Tests for path expression parsing and evaluation."""

import pytest

from genro_conftree import InvalidPathError, TreeNode
from genro_conftree.pathexpr import (
    Axis,
    Last,
    PathExpr,
    Position,
    Step,
    StepKind,
    ValueEquals,
    evaluate,
    parse_path,
)


@pytest.fixture
def root():
    """/a/b[1]=1, /a/b[2]=2, /a/c/b=3."""
    root = TreeNode('')
    a = root.add('a')
    a.add('b', '1')
    a.add('b', '2')
    a.add('c').add('b', '3')
    return root


def values(nodes):
    return [n.value for n in nodes]


class TestParsePath:
    """Tests for parse_path."""

    def test_root(self):
        """'/' is absolute with no steps."""
        assert parse_path('/') == PathExpr(True)

    def test_absolute(self):
        """Absolute paths keep their labels in order."""
        expr = parse_path('/files/etc/hosts')
        assert expr.absolute is True
        assert [s.label for s in expr.steps] == ['files', 'etc', 'hosts']
        assert all(s.axis == Axis.CHILD for s in expr.steps)

    def test_relative(self):
        """Paths without leading slash are relative."""
        expr = parse_path('a/b')
        assert expr.absolute is False
        assert len(expr.steps) == 2

    def test_numeric_label(self):
        """Digits are labels outside predicates."""
        expr = parse_path('/files/etc/hosts/1/ipaddr')
        assert expr.steps[3] == Step(StepKind.LABEL, '1')

    def test_descendant(self):
        """'//' marks the following step as a descendant step."""
        expr = parse_path('/augeas//error')
        assert expr.steps[0].axis == Axis.CHILD
        assert expr.steps[1].axis == Axis.DESCENDANT

    def test_leading_descendant(self):
        """A leading '//' searches the whole tree."""
        expr = parse_path('//error')
        assert expr.absolute is True
        assert expr.steps[0].axis == Axis.DESCENDANT

    def test_wildcard_self_parent(self):
        """'*', '.' and '..' are special steps."""
        expr = parse_path('*/./..')
        assert [s.kind for s in expr.steps] == [StepKind.ANY, StepKind.SELF, StepKind.PARENT]

    @pytest.mark.parametrize('text,predicate', [
        ('a[2]', Position(2)),
        ('a[last()]', Last(0)),
        ('a[last()+1]', Last(1)),
        ('a[last()-2]', Last(-2)),
        ('a[ last() + 3 ]', Last(3)),
    ])
    def test_positional_predicates(self, text, predicate):
        """Ordinal and last() predicates."""
        assert parse_path(text).steps[0].predicates == (predicate,)

    def test_value_predicate(self):
        """[path = 'value'] compares the value of a relative path."""
        step = parse_path("*[lens = 'Hosts.lns']").steps[0]
        assert step.predicates == (
            ValueEquals(PathExpr(False, (Step(StepKind.LABEL, 'lens'),)), 'Hosts.lns'),
        )

    def test_self_value_predicate(self):
        """[. = 'value'] tests the node's own value."""
        step = parse_path('error[. = "mxfm_load"]').steps[0]
        pred = step.predicates[0]
        assert pred.path.steps[0].kind == StepKind.SELF
        assert pred.value == 'mxfm_load'

    def test_escaped_label(self):
        """A backslash escapes special characters in labels."""
        expr = parse_path(r'/files/my\ file/a\[1\]')
        assert [s.label for s in expr.steps] == ['files', 'my file', 'a[1]']

    def test_str_roundtrip(self):
        """str() renders an equivalent expression."""
        text = "/augeas//error[. = 'x']/message[last()+1]"
        assert str(parse_path(text)) == text

    @pytest.mark.parametrize('text', [
        '',
        '   ',
        '/a[',
        '/a[1',
        '/a]',
        '/a//',
        '/a[foo()]',
        "/a[b = ]",
        '/a[last()*2]',
        '/.[1]',
        '/a/..[last()]',
    ])
    def test_invalid(self, text):
        """Grammar violations raise InvalidPathError."""
        with pytest.raises(InvalidPathError):
            parse_path(text)


class TestEvaluate:
    """Tests for evaluate."""

    def test_children_by_label(self, root):
        """A plain step selects every child with that label."""
        assert values(evaluate(root, '/a/b')) == ['1', '2']

    def test_root(self, root):
        assert evaluate(root, '/') == [root]

    def test_no_match(self, root):
        """Nothing matching gives an empty list."""
        assert evaluate(root, '/a/x/y') == []

    def test_position(self, root):
        assert values(evaluate(root, '/a/b[2]')) == ['2']
        assert evaluate(root, '/a/b[3]') == []

    def test_last(self, root):
        """last() counts the nodes selected at that step."""
        assert values(evaluate(root, '/a/b[last()]')) == ['2']
        assert values(evaluate(root, '/a/b[last()-1]')) == ['1']
        assert evaluate(root, '/a/b[last()+1]') == []

    def test_wildcard(self, root):
        assert [n.label for n in evaluate(root, '/a/*')] == ['b', 'b', 'c']

    def test_descendant_document_order(self, root):
        """'//' results come back in document order without duplicates."""
        assert values(evaluate(root, '//b')) == ['1', '2', '3']
        assert values(evaluate(root, '/a//b')) == ['1', '2', '3']

    def test_predicates_apply_per_parent(self, root):
        """Positions count among the siblings under each context node."""
        assert values(evaluate(root, '//b[1]')) == ['1', '3']

    def test_self_and_parent(self, root):
        a = evaluate(root, '/a')[0]
        assert evaluate(root, '/a/c/..') == [a]
        assert evaluate(root, '/a/.') == [a]
        assert evaluate(root, '/..') == []

    def test_relative_context(self, root):
        """Relative expressions start at the context node."""
        c = evaluate(root, '/a/c')[0]
        assert values(evaluate(root, 'b', context=c)) == ['3']
        assert values(evaluate(root, '../b[1]', context=c)) == ['1']

    def test_value_predicate(self, root):
        assert values(evaluate(root, "/a/*[. = '2']")) == ['2']
        assert [n.label for n in evaluate(root, "/a[c/b = '3']")] == ['a']
        assert evaluate(root, "/a[c/b = 'x']") == []

    def test_parsed_expression(self, root):
        """An already parsed expression is accepted."""
        assert values(evaluate(root, parse_path('/a/c/b'))) == ['3']


class TestNodePath:
    """Tests for rendered node paths."""

    def test_unique_labels(self, root):
        node = evaluate(root, '/a/c/b')[0]
        assert node.path == '/a/c/b'

    def test_same_labelled_siblings(self, root):
        """Siblings sharing a label get a 1-based position."""
        assert [n.path for n in evaluate(root, '/a/b')] == ['/a/b[1]', '/a/b[2]']

    def test_root_path(self, root):
        assert root.path == '/'

    def test_escaping(self):
        """Special characters are escaped so the path parses back."""
        root = TreeNode('')
        node = root.add('my file').add('x=y')
        assert node.path == r'/my\ file/x\=y'
        assert evaluate(root, node.path) == [node]
