"""
Integration tests for the branches router.

Tests branch listing and management at /api/v1/branches.
"""

from noxera.models import AuditEntry

from tests.fixtures.factories import create_role, create_user, get_role


class TestListBranches:
    """Test GET /api/v1/branches endpoint."""

    def test_requires_credential(self, client):
        assert client.get("/api/v1/branches").status_code == 401

    def test_lists_active_branches(self, client, owner, main_branch, east_branch, headers_for):
        response = client.get("/api/v1/branches", headers=headers_for(owner))

        assert response.status_code == 200
        assert [b["name"] for b in response.json()["data"]] == ["East Campus", "Main Campus"]

    def test_excludes_other_tenants(self, client, owner, main_branch, other_branch, headers_for):
        response = client.get("/api/v1/branches", headers=headers_for(owner))
        assert other_branch.id not in [b["id"] for b in response.json()["data"]]

    def test_viewer_can_list(self, client, test_db, tenant, owner, main_branch, headers_for):
        viewer = create_user(test_db, tenant, "choir@grace.test", role_name="Viewer")
        assert client.get("/api/v1/branches", headers=headers_for(viewer)).status_code == 200


class TestManageBranches:
    """Test branch mutations."""

    def test_create(self, client, test_db, owner, main_branch, headers_for):
        response = client.post(
            "/api/v1/branches", headers=headers_for(owner), json={"name": "North Campus", "location": "Kumasi"}
        )

        assert response.status_code == 201
        assert response.json()["data"]["is_active"] is True
        assert test_db.query(AuditEntry).filter(AuditEntry.action == "BRANCH_CREATED").count() == 1

    def test_create_requires_permission(self, client, test_db, tenant, owner, main_branch, headers_for):
        staff = create_user(test_db, tenant, "usher@grace.test", role_name="Staff")

        response = client.post("/api/v1/branches", headers=headers_for(staff), json={"name": "North"})

        assert response.status_code == 403
        assert "branches.manage" in response.json()["error"]

    def test_duplicate_name(self, client, owner, main_branch, headers_for):
        response = client.post("/api/v1/branches", headers=headers_for(owner), json={"name": "MAIN campus"})
        assert response.status_code == 400
        assert response.json()["error"] == "An active branch with this name already exists."

    def test_patch_clears_location_only_when_sent(self, client, owner, main_branch, headers_for):
        headers = headers_for(owner)

        renamed = client.patch(f"/api/v1/branches/{main_branch.id}", headers=headers, json={"name": "Central"})
        assert renamed.json()["data"]["location"] == "Accra"

        cleared = client.patch(f"/api/v1/branches/{main_branch.id}", headers=headers, json={"location": None})
        assert cleared.json()["data"]["location"] is None
        assert cleared.json()["data"]["name"] == "Central"

    def test_archive_and_unarchive(self, client, owner, main_branch, east_branch, headers_for):
        headers = headers_for(owner)

        archived = client.post(f"/api/v1/branches/{east_branch.id}/archive", headers=headers)
        assert archived.status_code == 200
        assert archived.json()["data"]["is_active"] is False

        listed = client.get("/api/v1/branches?include_archived=true", headers=headers)
        assert len(listed.json()["data"]) == 2

        restored = client.post(f"/api/v1/branches/{east_branch.id}/unarchive", headers=headers)
        assert restored.json()["data"]["is_active"] is True

    def test_archive_last_branch(self, client, owner, main_branch, headers_for):
        response = client.post(f"/api/v1/branches/{main_branch.id}/archive", headers=headers_for(owner))
        assert response.status_code == 400
        assert response.json()["error"] == "Cannot archive the last active branch."

    def test_other_tenant_branch(self, client, owner, other_branch, headers_for):
        response = client.post(f"/api/v1/branches/{other_branch.id}/archive", headers=headers_for(owner))
        assert response.status_code == 404

    def test_custom_role_with_permission(self, client, test_db, tenant, owner, main_branch, headers_for):
        role = create_role(test_db, tenant, name="Campus Lead", permissions=["branches.manage"])
        lead = create_user(test_db, tenant, "lead@grace.test", role=role)

        response = client.post("/api/v1/branches", headers=headers_for(lead), json={"name": "West Campus"})
        assert response.status_code == 201

    def test_admin_role_can_manage(self, client, test_db, tenant, owner, main_branch, headers_for):
        admin = create_user(test_db, tenant, "admin@grace.test", role=get_role(test_db, tenant, "Admin"))
        response = client.post("/api/v1/branches", headers=headers_for(admin), json={"name": "South Campus"})
        assert response.status_code == 201
