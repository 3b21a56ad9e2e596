import datetime
import unittest
from unittest import mock

import pytest

from wikirpc.exceptions import MethodDiscoveryError
from wikirpc.plugins import (PluginManager, RemotePlugin, remote_method,
                             type_tag)
from wikirpc.registry import MethodDescriptor


class Pages(RemotePlugin):

    def getPage(self, page: str, revision: int = 0) -> str:
        """
        Return the raw text of a page.

        An old revision can be requested as well.
        """
        return 'text of %s@%d' % (page, revision)

    def getPageInfo(self, page) -> 'struct':
        return {'name': page}

    @remote_method(public=True, name='listPages', returns='array')
    def list_pages(self):
        return []

    @remote_method
    def modified(self, since: datetime.datetime) -> bytes:
        return b''

    def _helper(self):
        pass


class Explicit(RemotePlugin):

    def _get_methods(self):
        return {'count': MethodDescriptor('count', args=['string'],
                                          returns='int', name='count_pages')}

    def count_pages(self, namespace):
        return len(namespace)


class TypeTagTest(unittest.TestCase):

    def test_classes_map_to_tags(self):
        assert type_tag(str) == 'string'
        assert type_tag(bool) == 'bool'
        assert type_tag(float) == 'double'
        assert type_tag(dict) == 'struct'
        assert type_tag(datetime.datetime) == 'date'
        assert type_tag(bytes) == 'file'

    def test_string_annotations(self):
        assert type_tag('int') == 'int'
        assert type_tag('date') == 'date'
        assert type_tag('list') == 'array'

    def test_unknown_annotations_use_the_default(self):
        assert type_tag(object) == 'string'
        assert type_tag(object, None) is None


class DiscoveryTest(unittest.TestCase):

    def setUp(self):
        self.methods = Pages()._get_methods()

    def test_public_methods_are_discovered(self):
        assert sorted(self.methods) == ['getPage', 'getPageInfo', 'listPages',
                                        'modified']

    def test_argument_and_return_tags_come_from_annotations(self):
        assert self.methods['getPage'].args == ('string', 'int')
        assert self.methods['getPage'].returns == 'string'
        assert self.methods['getPageInfo'].args == ('string',)
        assert self.methods['getPageInfo'].returns == 'struct'
        assert self.methods['modified'].args == ('date',)
        assert self.methods['modified'].returns == 'file'

    def test_remote_method_metadata(self):
        descriptor = self.methods['listPages']
        assert descriptor.public is True
        assert descriptor.name == 'list_pages'
        assert descriptor.returns == 'array'
        assert self.methods['getPage'].public is False

    def test_doc_is_first_paragraph(self):
        assert self.methods['getPage'].doc == 'Return the raw text of a page.'
        assert self.methods['getPageInfo'].doc is None

    def test_handlers_are_bound(self):
        assert self.methods['getPage'].handler('start') == 'text of start@0'

    def test_explicit_methods_are_bound_by_name(self):
        plugin = Explicit()
        descriptor = plugin._get_methods()['count'].bind(plugin)
        assert descriptor.handler('abc') == 3

    def test_uninspectable_method_raises_discovery_error(self):
        class Broken(RemotePlugin):
            def method(self):
                pass
            method.__signature__ = 42

        with pytest.raises(MethodDiscoveryError):
            Broken()._get_methods()


class PluginManagerTest(unittest.TestCase):

    def setUp(self):
        self.plugins = PluginManager()
        self.plugins.register('remote', 'pages', Pages)
        self.plugins.register('remote', 'explicit', Explicit)

    def test_list_is_sorted_by_name(self):
        assert self.plugins.list('remote') == ['explicit', 'pages']
        assert self.plugins.list('syntax') == []

    def test_load_returns_a_cached_instance(self):
        plugin = self.plugins.load('remote', 'pages')
        assert isinstance(plugin, Pages)
        assert self.plugins.load('remote', 'pages') is plugin

    def test_load_unknown_plugin_returns_none(self):
        assert self.plugins.load('remote', 'nope') is None
        assert self.plugins.load('syntax', 'pages') is None

    def test_disabled_plugins_are_hidden(self):
        self.plugins.disable('pages')
        assert self.plugins.list('remote') == ['explicit']
        assert self.plugins.load('remote', 'pages') is None
        self.plugins.enable('pages')
        assert self.plugins.list('remote') == ['explicit', 'pages']

    def test_plugin_decorator_registers_class(self):
        @self.plugins.plugin('remote', 'clock')
        class Clock(RemotePlugin):
            pass
        assert isinstance(self.plugins.load('remote', 'clock'), Clock)

    def test_failing_constructor_loads_nothing(self):
        class Faulty(RemotePlugin):
            def __init__(self):
                raise RuntimeError("no database")
        self.plugins.register('remote', 'faulty', Faulty)
        assert self.plugins.load('remote', 'faulty') is None

    def test_entry_points_are_registered(self):
        entry_point = mock.Mock()
        entry_point.name = 'pages2'
        entry_point.value = 'somepkg.remote:Pages'
        entry_point.load.return_value = Pages
        with mock.patch('importlib.metadata.entry_points',
                        return_value=[entry_point]) as entry_points:
            self.plugins.load_entry_points()
        entry_points.assert_called_once_with(group='wikirpc.remote')
        assert isinstance(self.plugins.load('remote', 'pages2'), Pages)
