"""
tests/test_organizations_routes.py -- Integration tests for /api/v1/admin/organizations.

Coverage:
  - create with and without parent; unknown parent 404; duplicate abbreviation 400
  - list (optionally children of one parent), get, 404
  - patch: rename, re-parent, detach with explicit null, self/descendant parent 422
  - delete detaches children
"""

from __future__ import annotations

from conftest import ApiEnv

ORGS = "/api/v1/admin/organizations"


def _create(api: ApiEnv, name: str, **fields) -> dict:
    resp = api.client.post(ORGS, json={"name": name, "type": "MINISTRY", **fields}, headers=api.admin_headers)
    assert resp.status_code == 201, f"Expected 201, got {resp.status_code}: {resp.text}"
    return resp.json()


class TestCreateOrganization:
    def test_create(self, api: ApiEnv) -> None:
        org = _create(api, "Ministry of Finance", abbreviation="MOF")
        assert org["abbreviation"] == "MOF"
        assert org["type"] == "MINISTRY"
        assert org["parent_id"] is None

    def test_create_child(self, api: ApiEnv) -> None:
        parent = _create(api, "Ministry of Health")
        child = _create(api, "Health Agency", type="AGENCY", parent_id=parent["id"])
        assert child["parent_id"] == parent["id"]

    def test_unknown_parent(self, api: ApiEnv) -> None:
        resp = api.client.post(
            ORGS, json={"name": "Orphan", "type": "OTHER", "parent_id": 99999}, headers=api.admin_headers
        )
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    def test_duplicate_abbreviation(self, api: ApiEnv) -> None:
        _create(api, "First", abbreviation="DUPE")
        resp = api.client.post(
            ORGS, json={"name": "Second", "type": "AGENCY", "abbreviation": "DUPE"}, headers=api.admin_headers
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "conflict"

    def test_invalid_type(self, api: ApiEnv) -> None:
        resp = api.client.post(ORGS, json={"name": "Club", "type": "CLUB"}, headers=api.admin_headers)
        assert resp.status_code == 422


class TestReadOrganizations:
    def test_get_and_404(self, api: ApiEnv) -> None:
        org = _create(api, "Ministry of Trade")
        assert api.client.get(f"{ORGS}/{org['id']}", headers=api.admin_headers).json()["name"] == "Ministry of Trade"
        assert api.client.get(f"{ORGS}/99999", headers=api.admin_headers).status_code == 404

    def test_list_children_only(self, api: ApiEnv) -> None:
        parent = _create(api, "Ministry of Youth")
        _create(api, "Youth Agency B", type="AGENCY", parent_id=parent["id"])
        _create(api, "Youth Agency A", type="AGENCY", parent_id=parent["id"])
        resp = api.client.get(ORGS, params={"parent_id": parent["id"]}, headers=api.admin_headers)
        assert resp.status_code == 200
        assert [o["name"] for o in resp.json()] == ["Youth Agency A", "Youth Agency B"]


class TestUpdateOrganization:
    def test_rename(self, api: ApiEnv) -> None:
        org = _create(api, "Old Name")
        resp = api.client.patch(f"{ORGS}/{org['id']}", json={"name": "New Name"}, headers=api.admin_headers)
        assert resp.status_code == 200, f"Expected 200, got {resp.status_code}: {resp.text}"
        assert resp.json()["name"] == "New Name"

    def test_reparent_and_detach(self, api: ApiEnv) -> None:
        parent = _create(api, "Parent P")
        org = _create(api, "Child P")
        resp = api.client.patch(f"{ORGS}/{org['id']}", json={"parent_id": parent["id"]}, headers=api.admin_headers)
        assert resp.json()["parent_id"] == parent["id"]

        resp = api.client.patch(f"{ORGS}/{org['id']}", json={"parent_id": None}, headers=api.admin_headers)
        assert resp.status_code == 200
        assert resp.json()["parent_id"] is None

    def test_self_parent_rejected(self, api: ApiEnv) -> None:
        org = _create(api, "Narcissus")
        resp = api.client.patch(f"{ORGS}/{org['id']}", json={"parent_id": org["id"]}, headers=api.admin_headers)
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "invalid_parent"

    def test_descendant_parent_rejected(self, api: ApiEnv) -> None:
        root = _create(api, "Root Q")
        child = _create(api, "Child Q", parent_id=root["id"])
        grandchild = _create(api, "Grandchild Q", parent_id=child["id"])
        resp = api.client.patch(
            f"{ORGS}/{root['id']}", json={"parent_id": grandchild["id"]}, headers=api.admin_headers
        )
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "invalid_parent"
        assert api.client.get(f"{ORGS}/{root['id']}", headers=api.admin_headers).json()["parent_id"] is None

    def test_unknown_parent(self, api: ApiEnv) -> None:
        org = _create(api, "Lonely")
        resp = api.client.patch(f"{ORGS}/{org['id']}", json={"parent_id": 99999}, headers=api.admin_headers)
        assert resp.status_code == 404

    def test_empty_patch(self, api: ApiEnv) -> None:
        org = _create(api, "Unchanged")
        resp = api.client.patch(f"{ORGS}/{org['id']}", json={}, headers=api.admin_headers)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "no_changes"

    def test_unknown_organization(self, api: ApiEnv) -> None:
        resp = api.client.patch(f"{ORGS}/99999", json={"name": "Ghost"}, headers=api.admin_headers)
        assert resp.status_code == 404


class TestDeleteOrganization:
    def test_delete_detaches_children(self, api: ApiEnv) -> None:
        parent = _create(api, "Parent R")
        child = _create(api, "Child R", parent_id=parent["id"])
        resp = api.client.delete(f"{ORGS}/{parent['id']}", headers=api.admin_headers)
        assert resp.status_code == 200
        assert api.client.get(f"{ORGS}/{parent['id']}", headers=api.admin_headers).status_code == 404
        assert api.client.get(f"{ORGS}/{child['id']}", headers=api.admin_headers).json()["parent_id"] is None

    def test_delete_unknown(self, api: ApiEnv) -> None:
        assert api.client.delete(f"{ORGS}/99999", headers=api.admin_headers).status_code == 404
