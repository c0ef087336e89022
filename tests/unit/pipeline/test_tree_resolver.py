"""Unit tests for pipeline.tree_resolver module."""

import logging
import threading

import pytest
from unittest.mock import Mock

from confluence_exporter.confluence_client.api import ConfluenceAPI
from confluence_exporter.confluence_client.errors import NetworkError, ResourceNotFoundError
from confluence_exporter.pipeline.tree_resolver import TreeResolver
from tests.fixtures.sample_pages import make_page


def _api_for(tree, titles=None):
    """ConfluenceAPI mock serving a parent → children id mapping."""
    titles = titles or {}
    api = Mock(spec=ConfluenceAPI)
    lock = threading.Lock()
    calls = []

    def get_page(page_id):
        return make_page(page_id, titles.get(page_id))

    def get_child_pages(page_id):
        with lock:
            calls.append(page_id)
        return [make_page(child, titles.get(child), parent_id=page_id) for child in tree.get(page_id, [])]

    api.get_page.side_effect = get_page
    api.get_child_pages.side_effect = get_child_pages
    api.child_calls = calls
    return api


TREE = {'1': ['2', '3'], '2': ['4'], '3': [], '4': []}
TITLES = {'1': 'R', '2': 'A', '3': 'B', '4': 'A1'}


class TestSequentialResolution:
    """Test cases for the sequential walk."""

    def test_pre_order(self):
        resolver = TreeResolver(_api_for(TREE, TITLES))

        pages = resolver.resolve_tree('1')

        assert [p.title for p in pages] == ['R', 'A', 'A1', 'B']

    def test_single_page_tree(self):
        resolver = TreeResolver(_api_for({}))

        pages = resolver.resolve_tree('9')

        assert [p.page_id for p in pages] == ['9']

    def test_each_page_fetched_once(self):
        api = _api_for(TREE, TITLES)

        TreeResolver(api).resolve_tree('1')

        assert sorted(api.child_calls) == ['1', '2', '3', '4']

    def test_cycle_terminates(self, caplog):
        """A child pointing back at the root is skipped with a warning."""
        api = _api_for({'1': ['2'], '2': ['1', '3'], '3': []})

        with caplog.at_level(logging.WARNING, logger="confluence_exporter.pipeline.tree_resolver"):
            pages = TreeResolver(api).resolve_tree('1')

        assert [p.page_id for p in pages] == ['1', '2', '3']
        assert "more than once" in caplog.text

    def test_duplicate_child_emitted_once(self):
        api = _api_for({'1': ['2', '3'], '2': ['3'], '3': []})

        pages = TreeResolver(api).resolve_tree('1')

        assert [p.page_id for p in pages] == ['1', '2', '3']

    def test_deep_tree_has_no_recursion_limit(self):
        depth = 3000
        tree = {str(i): [str(i + 1)] for i in range(1, depth)}

        pages = TreeResolver(_api_for(tree)).resolve_tree('1')

        assert len(pages) == depth

    def test_root_fetch_failure_propagates(self):
        api = Mock(spec=ConfluenceAPI)
        api.get_page.side_effect = ResourceNotFoundError("/rest/api/content/1")

        with pytest.raises(ResourceNotFoundError):
            TreeResolver(api).resolve_tree('1')

    def test_child_listing_failure_aborts(self):
        api = _api_for(TREE, TITLES)
        original = api.get_child_pages.side_effect

        def failing(page_id):
            if page_id == '2':
                raise NetworkError("/rest/api/content/2/child/page", "timed out")
            return original(page_id)

        api.get_child_pages.side_effect = failing

        with pytest.raises(NetworkError):
            TreeResolver(api).resolve_tree('1')


class TestConcurrentResolution:
    """Test cases for level-wise concurrent child fetching."""

    def test_same_order_as_sequential(self):
        tree = {
            '1': ['2', '3', '4'],
            '2': ['5', '6'],
            '3': ['7'],
            '5': ['8'],
        }

        sequential = TreeResolver(_api_for(tree)).resolve_tree('1')
        concurrent = TreeResolver(_api_for(tree), max_workers=4).resolve_tree('1')

        assert [p.page_id for p in concurrent] == [p.page_id for p in sequential]
        assert [p.page_id for p in concurrent] == ['1', '2', '5', '8', '6', '3', '7', '4']

    def test_cycle_terminates(self):
        api = _api_for({'1': ['2'], '2': ['1', '3'], '3': ['2']})

        pages = TreeResolver(api, max_workers=3).resolve_tree('1')

        assert [p.page_id for p in pages] == ['1', '2', '3']
        assert sorted(api.child_calls) == ['1', '2', '3']

    def test_failure_aborts(self):
        api = _api_for(TREE, TITLES)
        original = api.get_child_pages.side_effect

        def failing(page_id):
            if page_id == '3':
                raise NetworkError("/rest/api/content/3/child/page", "timed out")
            return original(page_id)

        api.get_child_pages.side_effect = failing

        with pytest.raises(NetworkError):
            TreeResolver(api, max_workers=2).resolve_tree('1')

    def test_invalid_worker_count(self):
        with pytest.raises(ValueError):
            TreeResolver(Mock(spec=ConfluenceAPI), max_workers=0)
