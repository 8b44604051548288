"""
Unit tests for the API client and the mapping store gateway

Tests:
- ScraperClient: URLs, methods, error messages
- Catalog: entity/source caches
- MappingGateway: list, save, edit, delete, toggle and local consistency
"""

from unittest.mock import Mock

import pytest
import requests

from config import ScraperApiConfig
from mapping_admin.api.catalog import Catalog
from mapping_admin.api.client import ScraperClient
from mapping_admin.api.gateway import MappingGateway
from mapping_admin.errors import DuplicateFieldError, NetworkError, ValidationError
from mapping_admin.schema.models import FieldRow


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def config():
    return ScraperApiConfig(base_url="http://backend.test/", timeout=5)


def make_response(payload, status=200):
    response = Mock()
    response.ok = 200 <= status < 400
    response.status_code = status
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def session():
    session = Mock()
    session.headers = {}
    return session


@pytest.fixture
def client(config, session):
    return ScraperClient(config, session=session)


@pytest.fixture
def mappings_payload():
    return [
        {
            "id": 1,
            "mapping_name": "acme_company",
            "entity_name": "company",
            "source_id": 10,
            "source_name": "Acme",
            "container_selector": None,
            "field_mappings": {"name": {"selector": "h3", "extract": "text"}},
            "enabled": True,
            "created_at": "2024-05-01T10:30:00",
        },
        {
            "id": 2,
            "mapping_name": "acme_people",
            "entity_name": "person",
            "source_id": 10,
            "source_name": "Acme",
            "field_mappings": {},
        },
    ]


@pytest.fixture
def api(mappings_payload):
    """Client double for gateway tests"""
    api = Mock(spec=ScraperClient)
    api.list_mappings.return_value = mappings_payload
    return api


@pytest.fixture
def gateway(api):
    gateway = MappingGateway(api)
    gateway.refresh()
    return gateway


# ============================================================================
# TEST: ScraperClient
# ============================================================================


class TestScraperClient:
    """HTTP client behaviour"""

    def test_base_url_is_configurable(self, client, session):
        session.request.return_value = make_response({"mappings": []})

        assert client.list_mappings() == []
        session.request.assert_called_once_with(
            "GET", "http://backend.test/mapping/mappings", json=None, timeout=5
        )

    def test_list_entities(self, client, session):
        entities = [{"name": "company", "columns": ["id", "name"]}]
        session.request.return_value = make_response({"entities": entities})
        assert client.list_entities() == entities

    def test_mapping_name_is_url_encoded(self, client, session):
        session.request.return_value = make_response({"enabled": False})

        assert client.toggle_mapping_status("acme/company x") is False
        method, url = session.request.call_args[0]
        assert method == "PUT"
        assert url == "http://backend.test/mapping/toggle-mapping-status/acme%2Fcompany%20x"

    def test_http_error_uses_detail(self, client, session):
        session.request.return_value = make_response({"detail": "Mapping not found"}, status=404)

        with pytest.raises(NetworkError) as exc:
            client.delete_mapping("missing")
        assert exc.value.message == "Mapping not found"
        assert exc.value.status_code == 404

    def test_http_error_without_body(self, client, session):
        session.request.return_value = make_response(ValueError("no json"), status=500)

        with pytest.raises(NetworkError) as exc:
            client.list_sources()
        assert "HTTP 500" in exc.value.message

    def test_transport_error(self, client, session):
        session.request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(NetworkError) as exc:
            client.list_mappings()
        assert "refused" in exc.value.message

    def test_save_failure_message_verbatim(self, client, session):
        session.request.return_value = make_response(
            {"success": False, "message": "x", "detail": "Source already mapped"}
        )
        with pytest.raises(NetworkError) as exc:
            client.save_entity_mappings({})
        assert exc.value.message == "Source already mapped"

    def test_preview_failure_message_unchanged(self, client, session):
        session.request.return_value = make_response(
            {"success": False, "message": "Selector matched nothing"}
        )
        with pytest.raises(NetworkError) as exc:
            client.preview_mapping({})
        assert exc.value.message == "Selector matched nothing"

    def test_toggle_requires_enabled(self, client, session):
        session.request.return_value = make_response({"status": "ok"})
        with pytest.raises(NetworkError):
            client.toggle_mapping_status("acme_company")


# ============================================================================
# TEST: Catalog
# ============================================================================


class TestCatalog:
    """Entity and source caches"""

    def test_refresh(self):
        api = Mock(spec=ScraperClient)
        api.list_entities.return_value = [{"name": "company", "columns": ["id", "name"]}]
        api.list_sources.return_value = [{"id": 1, "name": "Acme", "url": "https://acme.test"}]

        catalog = Catalog(api).refresh()

        assert catalog.get_entity("company").columns == ["id", "name"]
        assert catalog.get_source(1).url == "https://acme.test"
        assert catalog.find_source("ACME").id == 1
        assert catalog.get_source(99) is None

    def test_failed_refresh_keeps_previous_lists(self):
        api = Mock(spec=ScraperClient)
        api.list_entities.return_value = [{"name": "company", "columns": []}]
        api.list_sources.return_value = []
        catalog = Catalog(api).refresh()

        api.list_sources.side_effect = NetworkError("down")
        with pytest.raises(NetworkError):
            catalog.refresh()
        assert [e.name for e in catalog.entities] == ["company"]


# ============================================================================
# TEST: MappingGateway
# ============================================================================


class TestGatewayList:
    """Listing and client-side queries"""

    def test_refresh(self, gateway):
        assert [m.mapping_name for m in gateway.mappings] == ["acme_company", "acme_people"]
        assert gateway.mappings[1].enabled is True
        assert gateway.last_refreshed is not None

    def test_unreadable_record_does_not_hide_others(self, api, mappings_payload):
        mappings_payload[0]["field_mappings"]["name"]["extract"] = "innerHTML"
        gateway = MappingGateway(api)

        records = gateway.refresh()

        assert [m.mapping_name for m in records] == ["acme_people"]
        assert gateway.skipped == ["acme_company"]
        assert gateway.loaded

    def test_skipped_is_reset_on_refresh(self, api, mappings_payload):
        mappings_payload[0]["field_mappings"]["name"]["extract"] = "innerHTML"
        gateway = MappingGateway(api)
        gateway.refresh()

        mappings_payload[0]["field_mappings"]["name"]["extract"] = "text"
        gateway.refresh()

        assert gateway.skipped == []
        assert len(gateway.mappings) == 2

    def test_stats_and_search(self, gateway):
        assert gateway.stats() == {"Active": 1, "Disabled": 0, "Broken": 1, "total": 2}
        assert [m.mapping_name for m in gateway.search("PEOPLE")] == ["acme_people"]
        assert len(gateway.for_source(10)) == 2


class TestGatewaySave:
    """Save requests"""

    def test_save_payload_and_reload(self, gateway, api):
        api.save_entity_mappings.return_value = {"success": True, "message": "Saved 1 mapping(s)"}
        entries = [{"entity_name": "company", "container_selector": None,
                    "field_mappings": {}, "enabled": True}]

        assert gateway.save(" Acme ", "https://acme.test", entries) == "Saved 1 mapping(s)"
        api.save_entity_mappings.assert_called_once_with(
            {"source": "Acme", "url": "https://acme.test", "entity_mappings": entries}
        )
        assert api.list_mappings.call_count == 2

    def test_save_requires_source_and_url(self, gateway, api):
        with pytest.raises(ValidationError):
            gateway.save("Acme", "", [])
        api.save_entity_mappings.assert_not_called()

    def test_save_failure_leaves_list(self, gateway, api):
        api.save_entity_mappings.side_effect = NetworkError("Save failed")
        before = list(gateway.mappings)

        with pytest.raises(NetworkError):
            gateway.save("Acme", "https://acme.test", [])
        assert gateway.mappings == before
        assert api.list_mappings.call_count == 1


class TestGatewayEdit:
    """Edit requests"""

    def test_edit_sends_full_replacement(self, gateway, api):
        api.edit_mapping.return_value = {"success": True}
        rows = [FieldRow("r1", "name", "h2.name", "text"), FieldRow("r2", "site", "a", "href")]

        updated = gateway.edit("acme_company", rows, container_selector="div.card", enabled=False)

        api.edit_mapping.assert_called_once_with(
            "acme_company",
            {
                "mapping_name": "acme_company",
                "container_selector": "div.card",
                "field_mappings": {
                    "name": {"selector": "h2.name", "extract": "text"},
                    "site": {"selector": "a", "extract": "href"},
                },
                "source_id": 10,
                "enabled": False,
            },
        )
        assert updated.enabled is False
        assert gateway.get("acme_company") is updated
        assert gateway.get("acme_company").source_name == "Acme"

    def test_edit_rename(self, gateway, api):
        api.edit_mapping.return_value = {"success": True}
        rows = [FieldRow("r1", "name", "h3")]

        gateway.edit("acme_company", rows, None, True, mapping_name="acme_company_v2")

        assert api.edit_mapping.call_args[0][0] == "acme_company"
        assert gateway.get("acme_company") is None
        assert gateway.get("acme_company_v2").container_selector is None
        assert [m.mapping_name for m in gateway.mappings] == ["acme_company_v2", "acme_people"]

    def test_edit_adopts_returned_record(self, gateway, api):
        api.edit_mapping.return_value = {
            "success": True,
            "mapping": {"id": 1, "mapping_name": "acme_company", "entity_name": "company",
                        "field_mappings": {"name": {"selector": "h1"}}, "enabled": True},
        }
        updated = gateway.edit("acme_company", [FieldRow("r1", "name", "h3")], None, True)
        assert updated.field_mappings["name"].selector == "h1"

    def test_conversion_failure_blocks_request(self, gateway, api):
        rows = [FieldRow("r1", "name", "h3"), FieldRow("r2", "name", "h4")]
        before = list(gateway.mappings)

        with pytest.raises(DuplicateFieldError):
            gateway.edit("acme_company", rows, None, True)
        api.edit_mapping.assert_not_called()
        assert gateway.mappings == before

    def test_edit_failure_leaves_list(self, gateway, api):
        api.edit_mapping.side_effect = NetworkError("boom")
        before = list(gateway.mappings)

        with pytest.raises(NetworkError):
            gateway.edit("acme_company", [FieldRow("r1", "name", "h3")], None, False)
        assert gateway.mappings == before

    def test_edit_unknown_mapping(self, gateway, api):
        with pytest.raises(ValidationError):
            gateway.edit("nope", [], None, True)
        api.edit_mapping.assert_not_called()


class TestGatewayDeleteToggle:
    """Delete and toggle requests"""

    def test_delete_requires_confirmation(self, gateway, api):
        prompts = []

        def decline(prompt):
            prompts.append(prompt)
            return False

        assert gateway.delete("acme_people", decline) is False
        assert "acme_people" in prompts[0]
        api.delete_mapping.assert_not_called()
        assert len(gateway.mappings) == 2

    def test_delete(self, gateway, api):
        api.delete_mapping.return_value = {"success": True}

        assert gateway.delete("acme_people", lambda prompt: True) is True
        api.delete_mapping.assert_called_once_with("acme_people")
        assert [m.mapping_name for m in gateway.mappings] == ["acme_company"]

    def test_delete_failure_leaves_list(self, gateway, api):
        api.delete_mapping.side_effect = NetworkError("HTTP 500")
        with pytest.raises(NetworkError):
            gateway.delete("acme_people", lambda prompt: True)
        assert len(gateway.mappings) == 2

    def test_toggle_adopts_server_value(self, gateway, api):
        # The store may refuse to change the flag; the local copy follows it
        api.toggle_mapping_status.return_value = True

        assert gateway.toggle("acme_company") is True
        assert gateway.get("acme_company").enabled is True

    def test_toggle_twice_round_trips(self, gateway, api):
        persisted = {"enabled": True}

        def flip(name):
            persisted["enabled"] = not persisted["enabled"]
            return persisted["enabled"]

        api.toggle_mapping_status.side_effect = flip

        assert gateway.toggle("acme_company") is False
        assert gateway.get("acme_company").enabled is False
        assert gateway.toggle("acme_company") is True
        assert gateway.get("acme_company").enabled is True

    def test_toggle_failure_leaves_list(self, gateway, api):
        api.toggle_mapping_status.side_effect = NetworkError("down")
        with pytest.raises(NetworkError):
            gateway.toggle("acme_company")
        assert gateway.get("acme_company").enabled is True
