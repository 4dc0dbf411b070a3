# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Shared fixtures: a fake filesystem root with a few configuration files."""

import pytest

from genro_conftree import ConfTree, Flags, Session

HOSTS = (
    "# static table\n"
    "127.0.0.1\tlocalhost localhost.localdomain\n"
    "\n"
    "192.168.0.1 router gw # lan\n"
)

LOCALE = 'LANG="en_US.UTF-8"\nexport LC_ALL=C\n'

# A lens module as users drop it on the load path.
KV_LENS = '''
from genro_conftree.lenses import LineLens
from genro_conftree.node import TreeNode


class KvLens(LineLens):
    name = 'Kv.lns'

    def parse_line(self, line, lineno, seq):
        key, _, value = line.partition(':')
        return TreeNode(key.strip(), value.strip())

    def render(self, node):
        return f"{node.label}: {node.value or ''}"


lns = KvLens()
'''


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the caller's environment out of session configuration."""
    monkeypatch.delenv('AUGEAS_ROOT', raising=False)
    monkeypatch.delenv('AUGEAS_LENS_LIB', raising=False)


@pytest.fixture
def root(tmp_path):
    """A root directory holding etc/hosts and etc/default/locale."""
    etc = tmp_path / 'etc'
    (etc / 'default').mkdir(parents=True)
    (etc / 'hosts').write_text(HOSTS)
    (etc / 'default' / 'locale').write_text(LOCALE)
    return tmp_path


@pytest.fixture
def aug(root):
    """A session on ``root`` with only the Hosts transform, loaded."""
    session = Session.open(root=root, flags=Flags.NO_MODL_AUTOLOAD | Flags.NO_LOAD)
    session.transform('Hosts.lns', '/etc/hosts')
    session.load()
    yield session
    session.close()


@pytest.fixture
def tree():
    return ConfTree()
