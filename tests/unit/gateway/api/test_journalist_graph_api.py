"""Journalist graph REST API tests.

Acceptance: pytest tests/unit/gateway/api/test_journalist_graph_api.py -v
"""

from __future__ import annotations

from uuid import uuid4

import pytest

BASE = "/api/v1/journalist-graph/profiles"

_ADA = {
    "fullName": "Ada Lane",
    "primaryEmail": "ada@wire.test",
    "primaryOutlet": "Wire",
    "beat": "tech",
}


@pytest.fixture
async def ada(client, auth_headers) -> dict:
    resp = await client.post(BASE, headers=auth_headers, json=_ADA)
    assert resp.status_code == 201
    return resp.json()["data"]


class TestCreateProfile:
    async def test_created_envelope(self, client, auth_headers, org_id: str) -> None:
        resp = await client.post(BASE, headers=auth_headers, json=_ADA)
        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        data = body["data"]
        assert data["fullName"] == "Ada Lane"
        assert data["orgId"] == org_id
        assert data["engagementScore"] == 0.0
        assert "full_name" not in data

    async def test_missing_fields_is_400(self, client, auth_headers) -> None:
        resp = await client.post(BASE, headers=auth_headers, json={"beat": "tech"})
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        paths = [d["path"] for d in error["details"]]
        assert ["fullName"] in paths
        assert ["primaryEmail"] in paths

    async def test_bad_email_is_400(self, client, auth_headers) -> None:
        resp = await client.post(BASE, headers=auth_headers, json={**_ADA, "primaryEmail": "nope"})
        assert resp.status_code == 400

    async def test_malformed_json_is_400(self, client, auth_headers) -> None:
        resp = await client.post(
            BASE,
            headers={**auth_headers, "Content-Type": "application/json"},
            content=b"{broken",
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Malformed JSON body"


class TestListProfiles:
    async def test_empty_list_for_new_org(self, client, auth_headers) -> None:
        """An org with no profiles gets an empty page, not an error."""
        resp = await client.get(BASE, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["data"] == {"profiles": [], "total": 0, "limit": 20, "offset": 0}

    async def test_no_org_is_403(self, client, orgless_auth_headers) -> None:
        resp = await client.get(BASE, headers=orgless_auth_headers)
        assert resp.status_code == 403
        assert resp.json() == {
            "success": False,
            "error": {"code": "NO_ORG", "message": "User has no organization"},
        }

    async def test_filters_and_paging(self, client, auth_headers, ada) -> None:
        await client.post(
            BASE,
            headers=auth_headers,
            json={"fullName": "Ben Ortiz", "primaryEmail": "ben@daily.test", "beat": "health"},
        )
        resp = await client.get(BASE, headers=auth_headers, params={"beat": "tech", "limit": "5"})
        data = resp.json()["data"]
        assert data["total"] == 1
        assert data["limit"] == 5
        assert data["profiles"][0]["id"] == ada["id"]

    async def test_bad_query_is_400(self, client, auth_headers) -> None:
        resp = await client.get(BASE, headers=auth_headers, params={"limit": "0"})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_other_org_profiles_invisible(self, client, other_auth_headers, ada) -> None:
        resp = await client.get(BASE, headers=other_auth_headers)
        assert resp.json()["data"]["total"] == 0


class TestProfileById:
    async def test_get(self, client, auth_headers, ada) -> None:
        resp = await client.get(f"{BASE}/{ada['id']}", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["primaryEmail"] == "ada@wire.test"

    async def test_invalid_id_is_400(self, client, auth_headers) -> None:
        resp = await client.get(f"{BASE}/not-a-uuid", headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_unknown_id_is_404(self, client, auth_headers) -> None:
        resp = await client.get(f"{BASE}/{uuid4()}", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["error"] == {
            "code": "NOT_FOUND",
            "message": "Journalist profile not found",
        }

    async def test_other_org_get_is_404(self, client, other_auth_headers, ada) -> None:
        resp = await client.get(f"{BASE}/{ada['id']}", headers=other_auth_headers)
        assert resp.status_code == 404

    async def test_patch_partial(self, client, auth_headers, ada) -> None:
        resp = await client.patch(
            f"{BASE}/{ada['id']}",
            headers=auth_headers,
            json={"beat": "science", "primaryOutlet": None},
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["beat"] == "science"
        assert data["primaryOutlet"] == "Wire"
        assert data["fullName"] == "Ada Lane"

    async def test_other_org_patch_is_404(
        self,
        client,
        auth_headers,
        other_auth_headers,
        ada,
    ) -> None:
        resp = await client.patch(
            f"{BASE}/{ada['id']}",
            headers=other_auth_headers,
            json={"beat": "x"},
        )
        assert resp.status_code == 404
        check = await client.get(f"{BASE}/{ada['id']}", headers=auth_headers)
        assert check.json()["data"]["beat"] == "tech"

    async def test_delete_is_204_without_body(self, client, auth_headers, ada) -> None:
        resp = await client.delete(f"{BASE}/{ada['id']}", headers=auth_headers)
        assert resp.status_code == 204
        assert resp.content == b""
        gone = await client.get(f"{BASE}/{ada['id']}", headers=auth_headers)
        assert gone.status_code == 404

    async def test_other_org_delete_is_404(
        self,
        client,
        auth_headers,
        other_auth_headers,
        ada,
    ) -> None:
        resp = await client.delete(f"{BASE}/{ada['id']}", headers=other_auth_headers)
        assert resp.status_code == 404
        still = await client.get(f"{BASE}/{ada['id']}", headers=auth_headers)
        assert still.status_code == 200
