"""Tests for the REST API.

Requests go through FastAPI's TestClient against the in-memory test
database; bodies and responses are camelCase JSON.
"""

from unittest.mock import patch

import pytest

from src.services import dashboard_tab_service, tab_group_service, tab_input_service


class TestDashboardTabsState:
    """GET/POST /api/user-configs/dashboard-tabs."""

    URL = "/api/user-configs/dashboard-tabs"

    def test_get_empty(self, api_client):
        response = api_client.get(self.URL)
        assert response.status_code == 200
        assert response.json() == {"tabs": [], "groups": []}

    def test_save_and_load_camel_case(self, api_client):
        payload = {
            "tabs": [
                {
                    "id": "sales",
                    "name": "Sales",
                    "createdAt": "2024-05-01T10:00:00Z",
                    "isPublic": True,
                    "groupId": "g1",
                },
                {"id": "ops", "name": "Ops", "createdAt": "2024-05-02T10:00:00Z"},
            ],
            "groups": [
                {"id": "g1", "name": "Reports", "order": 0},
                {"id": "g2", "name": "Nested", "order": 0, "parentId": "g1"},
            ],
        }

        response = api_client.post(self.URL, json=payload)
        assert response.status_code == 200
        assert response.json() == {"success": True}

        state = api_client.get(self.URL).json()
        sales = next(t for t in state["tabs"] if t["id"] == "sales")
        assert sales["groupId"] == "g1"
        assert sales["isPublic"] is True
        assert sales["createdAt"] == "2024-05-01T10:00:00Z"
        nested = next(g for g in state["groups"] if g["id"] == "g2")
        assert nested["parentId"] == "g1"

    def test_invalid_payload_returns_400(self, api_client):
        response = api_client.post(self.URL, json={"tabs": [{"id": "a"}]})
        assert response.status_code == 400
        body = response.json()
        assert "name is required" in body["error"]
        assert body["errors"] == ["tabs[0]: name is required"]

    def test_non_string_name_returns_400(self, api_client):
        response = api_client.post(self.URL, json={"tabs": [{"id": "a", "name": 5}]})
        assert response.status_code == 400
        assert response.json()["errors"] == ["tabs[0]: name must be a string"]

    def test_missing_tabs_returns_400(self, api_client):
        response = api_client.post(self.URL, json={})
        assert response.status_code == 400
        assert response.json()["error"] == "tabs must be an array"

    def test_cycle_returns_409(self, api_client):
        response = api_client.post(
            self.URL,
            json={
                "tabs": [],
                "groups": [
                    {"id": "a", "name": "A", "parentId": "b"},
                    {"id": "b", "name": "B", "parentId": "a"},
                ],
            },
        )
        assert response.status_code == 409


class TestTabInputsState:
    """GET/POST /api/user-configs/tab-inputs."""

    URL = "/api/user-configs/tab-inputs"

    def test_get_requires_tab_id(self, api_client):
        response = api_client.get(self.URL)
        assert response.status_code == 400
        assert response.json()["error"] == "tabId is required"

    def test_get_unknown_tab_is_empty(self, api_client):
        response = api_client.get(self.URL, params={"tabId": "nope"})
        assert response.status_code == 200
        assert response.json() == {"tabId": "nope", "inputs": []}

    def test_post_requires_tab_id(self, api_client):
        response = api_client.post(self.URL, json={"inputs": []})
        assert response.status_code == 400
        assert response.json()["error"] == "tabId is required"

    def test_post_requires_inputs_array(self, api_client, sample_tab):
        response = api_client.post(self.URL, json={"tabId": sample_tab.slug, "inputs": "x"})
        assert response.status_code == 400
        assert response.json()["error"] == "inputs must be an array"

    @pytest.mark.parametrize(
        "entry",
        [
            {"key": "d", "type": "date", "value": 20240101},
            {"key": 123},
            {"label": 5},
        ],
    )
    def test_post_non_string_fields_returns_400(self, api_client, sample_tab, entry):
        response = api_client.post(self.URL, json={"tabId": sample_tab.slug, "inputs": [entry]})
        assert response.status_code == 400
        assert "must be a string" in response.json()["error"]

    def test_post_unknown_tab_returns_404(self, api_client):
        response = api_client.post(self.URL, json={"tabId": "nope", "inputs": []})
        assert response.status_code == 404

    def test_round_trip(self, api_client, sample_tab):
        response = api_client.post(
            self.URL,
            json={
                "tabId": sample_tab.slug,
                "inputs": [
                    {
                        "id": "tab_input_1",
                        "key": "Start Date",
                        "label": "Start",
                        "type": "date",
                        "defaultValue": "2024-01-01",
                        "options": None,
                    }
                ],
            },
        )
        assert response.status_code == 200

        body = api_client.get(self.URL, params={"tabId": sample_tab.slug}).json()
        saved = body["inputs"][0]
        assert saved["key"] == "start_date"
        assert saved["defaultValue"] == "2024-01-01"
        assert saved["tabId"] == sample_tab.slug
        assert saved["order"] == 0
        assert "updatedAt" in saved


class TestTabRoutes:
    """Tab CRUD routes."""

    def test_create_tab(self, api_client):
        response = api_client.post("/api/tabs", json={"name": "Sales Overview"})
        assert response.status_code == 201
        body = response.json()
        assert body["id"] == "sales-overview"
        assert body["isPublic"] is False

    def test_create_tab_empty_name(self, api_client):
        response = api_client.post("/api/tabs", json={"name": " "})
        assert response.status_code == 400

    def test_create_tab_missing_body_field(self, api_client):
        response = api_client.post("/api/tabs", json={})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request body"

    def test_patch_tab(self, api_client, sample_tab):
        response = api_client.patch(
            f"/api/tabs/{sample_tab.slug}",
            json={"name": "Revenue", "isPublic": True, "icon": "IconChart"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Revenue"
        assert body["isPublic"] is True
        assert body["icon"] == "IconChart"
        assert body["id"] == sample_tab.slug

    def test_patch_null_is_public_returns_400(self, api_client, sample_tab):
        api_client.patch(f"/api/tabs/{sample_tab.slug}", json={"isPublic": True})

        response = api_client.patch(f"/api/tabs/{sample_tab.slug}", json={"isPublic": None})

        assert response.status_code == 400
        assert dashboard_tab_service.get_tab(sample_tab.slug).is_public is True

    def test_patch_missing_tab(self, api_client):
        response = api_client.patch("/api/tabs/nope", json={"name": "X"})
        assert response.status_code == 404
        assert response.json() == {"error": "Tab 'nope' not found"}

    def test_delete_tab(self, api_client, sample_tab):
        response = api_client.delete(f"/api/tabs/{sample_tab.slug}")
        assert response.status_code == 200
        assert dashboard_tab_service.list_tabs() == []

    def test_duplicate_tab(self, api_client, sample_tab):
        response = api_client.post(f"/api/tabs/{sample_tab.slug}/duplicate")
        assert response.status_code == 201
        assert response.json()["name"] == "Sales Overview (Copy)"

        named = api_client.post(
            f"/api/tabs/{sample_tab.slug}/duplicate", json={"name": "Copy Two"}
        )
        assert named.json()["id"] == "copy-two"

    def test_move_and_reorder(self, api_client, sample_group):
        api_client.post("/api/tabs", json={"name": "A"})
        api_client.post("/api/tabs", json={"name": "B"})

        moved = api_client.post("/api/tabs/a/move", json={"groupId": sample_group.public_id})
        assert moved.json()["groupId"] == sample_group.public_id

        api_client.post("/api/tabs", json={"name": "C"})
        response = api_client.post("/api/tabs/reorder", json={"fromIndex": 1, "toIndex": 0})
        assert [t["id"] for t in response.json()["tabs"]] == ["c", "b"]

    def test_reorder_out_of_range(self, api_client, sample_tab):
        response = api_client.post("/api/tabs/reorder", json={"fromIndex": 0, "toIndex": 4})
        assert response.status_code == 400


class TestGroupRoutes:
    """Group routes."""

    def test_create_rename_and_tree(self, api_client):
        parent = api_client.post("/api/groups", json={"name": "Reports"}).json()
        child = api_client.post(
            "/api/groups", json={"name": "Finance", "parentId": parent["id"]}
        ).json()
        assert child["parentId"] == parent["id"]

        renamed = api_client.patch(f"/api/groups/{child['id']}", json={"name": "Money"})
        assert renamed.json()["name"] == "Money"

        api_client.post("/api/tabs", json={"name": "Q1", "groupId": child["id"]})
        tree = api_client.get("/api/groups/tree").json()
        assert tree["groups"][0]["children"][0]["tabs"][0]["id"] == "q1"
        assert tree["uncategorized"] == []

    def test_move_into_descendant_returns_409(self, api_client):
        parent = tab_group_service.add_group("Reports")
        child = tab_group_service.add_group("Finance", parent.public_id)

        response = api_client.post(
            f"/api/groups/{parent.public_id}/move", json={"parentId": child.public_id}
        )
        assert response.status_code == 409
        assert "circular reference" in response.json()["error"]

    def test_move_to_root(self, api_client):
        parent = tab_group_service.add_group("Reports")
        child = tab_group_service.add_group("Finance", parent.public_id)

        response = api_client.post(f"/api/groups/{child.public_id}/move", json={"parentId": None})
        assert response.status_code == 200
        assert response.json()["parentId"] is None

    def test_delete_group_lifts_tabs(self, api_client, sample_group):
        dashboard_tab_service.add_tab("Inside", sample_group.public_id)

        response = api_client.delete(f"/api/groups/{sample_group.public_id}")
        assert response.status_code == 200
        assert dashboard_tab_service.get_tab("inside").group_id is None

    def test_reorder_groups(self, api_client):
        for name in ("A", "B"):
            tab_group_service.add_group(name)
        response = api_client.post("/api/groups/reorder", json={"fromIndex": 0, "toIndex": 1})
        assert [g["name"] for g in response.json()["groups"]] == ["B", "A"]

    def test_unknown_group_returns_404(self, api_client):
        response = api_client.delete("/api/groups/group_missing")
        assert response.status_code == 404


class TestInputRoutes:
    """Tab input routes."""

    def test_create_update_value_delete(self, api_client, sample_tab):
        created = api_client.post(
            f"/api/tabs/{sample_tab.slug}/inputs",
            json={
                "key": "Region",
                "label": "Region",
                "options": [{"label": "North", "value": "n"}, {"label": "South", "value": "s"}],
            },
        )
        assert created.status_code == 201
        input_id = created.json()["id"]
        assert created.json()["key"] == "region"

        updated = api_client.patch(
            f"/api/inputs/{input_id}", json={"description": "Sales region", "defaultValue": "n"}
        )
        assert updated.status_code == 200
        assert updated.json()["defaultValue"] == "n"
        assert updated.json()["description"] == "Sales region"

        bad_value = api_client.put(f"/api/inputs/{input_id}/value", json={"value": "east"})
        assert bad_value.status_code == 400

        good_value = api_client.put(f"/api/inputs/{input_id}/value", json={"value": "s"})
        assert good_value.json()["value"] == "s"

        deleted = api_client.delete(f"/api/inputs/{input_id}")
        assert deleted.status_code == 200
        assert tab_input_service.list_inputs(sample_tab.slug) == []

    def test_unknown_update_field_returns_400(self, api_client, sample_tab):
        tab_input = tab_input_service.add_input(sample_tab.slug)
        response = api_client.patch(f"/api/inputs/{tab_input.public_id}", json={"tabId": "x"})
        assert response.status_code == 400

    def test_reorder_inputs(self, api_client, sample_tab):
        for key in ("a", "b", "c"):
            tab_input_service.add_input(sample_tab.slug, key=key)

        response = api_client.post(
            f"/api/tabs/{sample_tab.slug}/inputs/reorder", json={"fromIndex": 2, "toIndex": 0}
        )
        assert [i["key"] for i in response.json()["inputs"]] == ["c", "a", "b"]

    def test_input_for_unknown_tab_returns_404(self, api_client):
        response = api_client.post("/api/tabs/nope/inputs", json={})
        assert response.status_code == 404


class TestErrorsAndHealth:
    """Unexpected failures and health check."""

    def test_unexpected_error_returns_500(self, api_client):
        with patch(
            "src.services.dashboard_state_service.get_tabs_state",
            side_effect=RuntimeError("disk on fire"),
        ):
            response = api_client.get("/api/user-configs/dashboard-tabs")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch dashboard tabs"}

    def test_health(self, api_client):
        response = api_client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] is True

    @pytest.mark.parametrize(
        "path", ["/api/tabs/nope/move", "/api/tabs/nope/duplicate"]
    )
    def test_missing_tab_routes_return_404(self, api_client, path):
        response = api_client.post(path, json={})
        assert response.status_code == 404
