"""Unit tests for aembit_provider/core/aembit/resources.py"""
import pytest

from aembit_provider.core.aembit.exceptions import AembitNotFoundError
from aembit_provider.core.aembit.resources import AgentControllerService, ResourceService


@pytest.fixture
def roles(mock_client):
    return ResourceService(mock_client, "/roles/")


def test_collection_url_strips_slashes(roles):
    assert roles.collection_url == "/api/v1/roles"


def test_create_posts_to_collection(roles, mock_client, make_response):
    mock_client.post.return_value = make_response({"externalId": "r1", "name": "Auditors"})
    created = roles.create({"name": "Auditors"})
    mock_client.post.assert_called_once_with("/api/v1/roles", json={"name": "Auditors"})
    assert created["externalId"] == "r1"


def test_get_fetches_entity(roles, mock_client, make_response):
    mock_client.get.return_value = make_response({"externalId": "r1"})
    assert roles.get("r1") == {"externalId": "r1"}
    mock_client.get.assert_called_once_with("/api/v1/roles/r1")


def test_get_propagates_not_found(roles, mock_client):
    mock_client.get.side_effect = AembitNotFoundError(404, "gone", "/api/v1/roles/r1")
    with pytest.raises(AembitNotFoundError):
        roles.get("r1")


def test_update_puts_to_collection(roles, mock_client, make_response):
    mock_client.put.return_value = make_response({"externalId": "r1", "name": "Renamed"})
    updated = roles.update({"externalId": "r1", "name": "Renamed"})
    mock_client.put.assert_called_once_with("/api/v1/roles", json={"externalId": "r1", "name": "Renamed"})
    assert updated["name"] == "Renamed"


def test_update_tolerates_empty_body(roles, mock_client):
    assert roles.update({"externalId": "r1"}) == {}


def test_delete_and_disable_paths(roles, mock_client):
    roles.disable("r1")
    roles.delete("r1")
    mock_client.patch.assert_called_once_with("/api/v1/roles/r1/disable")
    mock_client.delete.assert_called_once_with("/api/v1/roles/r1")


def test_list_accepts_bare_array(roles, mock_client, make_response):
    mock_client.get.return_value = make_response([{"externalId": "a"}, {"externalId": "b"}])
    assert [r["externalId"] for r in roles.list()] == ["a", "b"]


def test_list_unwraps_paged_response(roles, mock_client, make_response):
    mock_client.get.return_value = make_response({"page": 1, "items": [{"externalId": "a"}]})
    assert roles.list() == [{"externalId": "a"}]


def test_list_empty(roles, mock_client):
    assert roles.list() == []


def test_device_code(mock_client, make_response):
    service = AgentControllerService(mock_client)
    mock_client.post.return_value = make_response({"device_code": "ABCD-1234"})
    assert service.get_device_code("ac1") == "ABCD-1234"
    mock_client.post.assert_called_once_with("/api/v1/agent-controllers/ac1/device-code")
