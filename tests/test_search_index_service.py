"""Unit tests for the search index service."""

from unittest.mock import MagicMock, patch

import pytest

from conftest import FakeIndexClient, ids, make_entries
from search_sync.services.diagnostics import NoticeSink
from search_sync.services.index_client import (
    IndexRef,
    MeilisearchIndexClient,
    SearchNotConfiguredError,
    SearchOperationError,
    TaskRef,
)
from search_sync.services.record_preparation_service import RecordPreparer
from search_sync.services.search_index_service import (
    SearchIndexService,
    create_index_client,
    get_search_index_service,
    search_index_service,
)


class TestServiceInit:
    """Tests for service construction and client management."""

    def test_service_instance_exists(self):
        assert isinstance(search_index_service, SearchIndexService)

    def test_get_search_index_service_dependency(self):
        assert get_search_index_service() is search_index_service

    @patch("search_sync.services.search_index_service.settings")
    def test_missing_credentials_raise(self, mock_settings):
        mock_settings.is_search_configured = False
        service = SearchIndexService()

        with pytest.raises(SearchNotConfiguredError) as exc_info:
            service.copy_synonyms("a", "b")

        assert "Operation copy_synonyms could not be performed" in str(exc_info.value)

    @patch("search_sync.services.search_index_service.settings")
    def test_create_index_client_without_credentials(self, mock_settings):
        mock_settings.is_search_configured = False

        assert create_index_client() is None

    @patch("search_sync.services.search_index_service.Client")
    @patch("search_sync.services.search_index_service.settings")
    def test_client_created_lazily_from_settings(self, mock_settings, mock_client_class):
        mock_settings.is_search_configured = True
        mock_settings.meilisearch_url = "http://localhost:7700"
        mock_settings.meilisearch_api_key = "master"
        mock_settings.meilisearch_timeout = 10

        service = SearchIndexService()
        client = service.client

        assert isinstance(client, MeilisearchIndexClient)
        mock_client_class.assert_called_once_with(
            url="http://localhost:7700",
            api_key="master",
            timeout=10,
        )

    @patch("search_sync.services.search_index_service.settings")
    def test_preparer_built_from_settings(self, mock_settings):
        mock_settings.max_record_size = 5000
        mock_settings.non_castable_attribute_list = ["ean"]

        preparer = SearchIndexService(client=FakeIndexClient()).preparer

        assert preparer.max_record_size == 5000
        assert "ean" in preparer.non_castable_attributes


class TestAddObjects:
    """Tests for indexing record batches."""

    def test_records_prepared_and_upserted(self, service, fake_client):
        batch, task = service.add_objects(
            [{"objectID": "1", "price": "9.99"}, {"objectID": "2", "price": "5"}],
            "products",
        )

        assert task == TaskRef("products", 1)
        assert service.last_task == task
        assert fake_client.calls[-1] == ("upsert", "products", 2, False)
        assert fake_client.records["products"]["2"]["price"] == 5

    def test_partial_updates(self, fake_client):
        service = SearchIndexService(
            client=fake_client,
            preparer=RecordPreparer(max_record_size=1000),
            partial_updates=True,
        )
        service.add_objects([{"objectID": "1"}], "products")

        assert fake_client.calls[-1] == ("upsert", "products", 1, True)

    def test_discarded_records_not_sent(self, service, fake_client):
        sink = NoticeSink()
        batch, task = service.add_objects(
            [{"objectID": "ok"}, {"objectID": "huge", "name": "n" * 2000}],
            "products",
            sink=sink,
        )

        assert list(fake_client.records["products"]) == ["ok"]
        assert [d.object_id for d in batch.discarded] == ["huge"]
        assert len(sink.messages) == 1

    def test_nothing_sent_when_all_discarded(self, service, fake_client):
        batch, task = service.add_objects(
            [{"objectID": "huge", "name": "n" * 2000}], "products", sink=NoticeSink()
        )

        assert task is None
        assert "upsert" not in fake_client.call_names()
        assert service.last_task is None

    def test_upsert_failure_propagates(self, service, fake_client):
        fake_client.upsert = MagicMock(side_effect=SearchOperationError("rejected"))

        with pytest.raises(SearchOperationError):
            service.add_objects([{"objectID": "1"}], "products")

    def test_index_ref_accepted(self, service, fake_client):
        service.add_objects([{"objectID": "1"}], IndexRef("products"))

        assert "products" in fake_client.records


class TestPublishSettings:
    """Tests for publishing settings."""

    def test_publish_without_merge(self, service, fake_client):
        fake_client.settings["products"] = {"stopWords": ["the"]}
        task = service.publish_settings("products", {"rankingRules": ["words"]}, forward_to_replicas=True)

        assert fake_client.calls[-1] == ("set_settings", "products", {"rankingRules": ["words"]}, True)
        assert "get_settings" not in fake_client.call_names()
        assert service.last_task == task

    def test_publish_with_merge(self, service, fake_client):
        fake_client.settings["products"] = {
            "attributesToIndex": ["title"],
            "replicas": ["products_price_asc"],
            "stopWords": ["the"],
        }
        service.publish_settings("products", {"stopWords": ["a"]}, merge_settings=True)

        assert fake_client.settings["products"] == {
            "searchableAttributes": ["title"],
            "stopWords": ["a"],
        }

    def test_merge_from_other_index(self, service, fake_client):
        fake_client.settings["products_tmp"] = {"distinctAttribute": "sku"}
        service.publish_settings(
            "products", {"stopWords": ["a"]}, merge_settings=True, merge_settings_from="products_tmp"
        )

        assert ("get_settings", "products_tmp") in fake_client.calls
        assert fake_client.settings["products"] == {"distinctAttribute": "sku", "stopWords": ["a"]}

    def test_merge_when_settings_unavailable(self, service, fake_client):
        fake_client.settings_unavailable = True
        service.publish_settings("products", {"attributesToIndex": ["name"]}, merge_settings=True)

        assert fake_client.settings["products"] == {"searchableAttributes": ["name"]}

    def test_get_settings(self, service, fake_client):
        fake_client.settings["products"] = {"stopWords": ["the"]}

        assert service.get_settings("products") == {"stopWords": ["the"]}
        assert service.get_settings("missing") is None


class TestSynonymsAndRules:
    """Tests for synonym and rule operations."""

    def test_copy_synonyms_tracks_destination(self, service, fake_client):
        fake_client.synonyms["products_en"] = make_entries(3)
        task = service.copy_synonyms("products_en", "products_fr")

        assert task.index_name == "products_fr"
        assert service.last_task == task
        assert ids(fake_client.synonyms["products_fr"]) == ids(make_entries(3))

    def test_copy_query_rules_tracks_destination(self, service, fake_client):
        fake_client.rules["products_en"] = make_entries(2, prefix="rule")
        task = service.copy_query_rules("products_en", "products_fr")

        assert task.index_name == "products_fr"
        assert len(fake_client.rules["products_fr"]) == 2

    def test_replace_synonyms(self, service, fake_client):
        fake_client.synonyms["products"] = make_entries(1, prefix="ph", entry_type="placeholder")
        task = service.replace_synonyms("products", make_entries(1, prefix="new"))

        assert service.last_task == task
        assert ids(fake_client.synonyms["products"]) == ["new-0", "ph-0"]

    def test_batch_rules_does_not_replace(self, service, fake_client):
        fake_client.rules["products"] = make_entries(1, prefix="old")
        service.batch_rules(make_entries(1, prefix="new"), "products")

        assert fake_client.calls[-1] == ("save_rules", "products", 1, False, False)
        assert ids(fake_client.rules["products"]) == ["old-0", "new-0"]

    def test_save_and_delete_rule(self, service, fake_client):
        service.save_rule({"objectID": "r1"}, "products", forward_to_replicas=True)
        service.delete_rule("products", "r1")

        assert fake_client.rules["products"] == []
        assert service.last_task.index_name == "products"

    def test_search_rules(self, service, fake_client):
        fake_client.rules["products"] = make_entries(3, prefix="rule")
        page = service.search_rules("products")

        assert page.total == 3


class TestIndexOperations:
    """Tests for index-level operations."""

    def test_delete_objects(self, service, fake_client):
        service.add_objects([{"objectID": "1"}, {"objectID": "2"}], "products")
        task = service.delete_objects(["1"], "products")

        assert list(fake_client.records["products"]) == ["2"]
        assert service.last_task == task

    def test_clear_and_delete_index(self, service, fake_client):
        service.add_objects([{"objectID": "1"}], "products")
        service.clear_index("products")
        assert fake_client.records["products"] == {}

        service.delete_index("products")
        assert "products" not in fake_client.records

    def test_move_index_tracks_destination(self, service, fake_client):
        service.add_objects([{"objectID": "1"}], "products_tmp")
        task = service.move_index("products_tmp", "products")

        assert task.index_name == "products"
        assert "1" in fake_client.records["products"]

    def test_query_and_get_objects(self, service, fake_client):
        service.add_objects([{"objectID": "1", "name": "Shoe"}], "products")

        assert service.query("products", "shoe")["query"] == "shoe"
        assert service.get_objects("products", ["1", "2"])[1] is None
        assert service.list_indexes() == ["products"]


class TestWaitLastTask:
    """Tests for waiting on tasks."""

    def test_noop_without_any_task(self, service, fake_client):
        assert service.wait_last_task() is None
        assert fake_client.waited == []

    def test_waits_on_tracked_task(self, service, fake_client):
        _, task = service.add_objects([{"objectID": "1"}], "products")

        assert service.wait_last_task() == task
        assert fake_client.waited == [("products", task.task_id)]

    def test_explicit_arguments_win(self, service, fake_client):
        service.add_objects([{"objectID": "1"}], "products")
        service.wait_last_task("pages", 42)

        assert fake_client.waited == [("pages", 42)]

    def test_explicit_task_id_with_tracked_index(self, service, fake_client):
        service.add_objects([{"objectID": "1"}], "products")
        service.wait_last_task(task_id=7)

        assert fake_client.waited == [("products", 7)]

    def test_index_name_alone_is_noop(self, service, fake_client):
        assert service.wait_last_task("products") is None
        assert fake_client.waited == []

    def test_noop_does_not_require_credentials(self):
        with patch("search_sync.services.search_index_service.settings") as mock_settings:
            mock_settings.is_search_configured = False

            assert SearchIndexService().wait_last_task() is None

    def test_services_track_independently(self, fake_client):
        first = SearchIndexService(client=fake_client, preparer=RecordPreparer(1000))
        second = SearchIndexService(client=fake_client, preparer=RecordPreparer(1000))
        first.add_objects([{"objectID": "1"}], "products")

        assert second.wait_last_task() is None


class TestScopedSearchKey:
    """Tests for scoped search keys."""

    def test_delegates_to_client(self, service):
        key = service.generate_scoped_search_key("parent", {"products": {"filter": "visible = 1"}})

        assert key == "scoped:parent:['products']"
