"""PR outreach REST API tests.

Acceptance: pytest tests/unit/gateway/api/test_pr_outreach_api.py -v
"""

from __future__ import annotations

from uuid import uuid4

import pytest

BASE = "/api/v1/pr-outreach"


def _seq(sequence: dict, suffix: str = "") -> str:
    return f"{BASE}/sequences/{sequence['id']}{suffix}"


def _run(run: dict, suffix: str = "") -> str:
    return f"{BASE}/runs/{run['id']}{suffix}"


@pytest.fixture
async def journalist_id(client, auth_headers) -> str:
    resp = await client.post(
        "/api/v1/journalist-graph/profiles",
        headers=auth_headers,
        json={"fullName": "Ada Lane", "primaryEmail": "ada@wire.test", "primaryOutlet": "Wire"},
    )
    return resp.json()["data"]["id"]


@pytest.fixture
async def sequence(client, auth_headers, journalist_id: str) -> dict:
    resp = await client.post(
        f"{BASE}/sequences",
        headers=auth_headers,
        json={"name": "Launch pitch", "journalistIds": [journalist_id]},
    )
    assert resp.status_code == 201
    seq = resp.json()["data"]
    for number, delay in ((1, 0), (2, 48)):
        step = await client.post(
            _seq(seq, "/steps"),
            headers=auth_headers,
            json={
                "stepNumber": number,
                "delayHours": delay,
                "subjectTemplate": f"Pitch {number} for {{{{journalist_name}}}}",
                "bodyTemplate": "Hi {{journalist_name}}",
            },
        )
        assert step.status_code == 201
    return seq


@pytest.fixture
async def started_run(client, auth_headers, sequence: dict) -> dict:
    resp = await client.post(_seq(sequence, "/start"), headers=auth_headers, json={})
    assert resp.status_code == 200
    return resp.json()["data"]["runs"][0]


class TestSequences:
    async def test_create_defaults(self, client, auth_headers, org_id: str) -> None:
        resp = await client.post(f"{BASE}/sequences", headers=auth_headers, json={"name": "Quiet"})
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["orgId"] == org_id
        assert data["maxRunsPerDay"] == 50
        assert data["stopOnReply"] is True
        assert data["isActive"] is True
        assert data["totalRuns"] == 0

    async def test_invalid_body_lists_failing_fields(self, client, auth_headers) -> None:
        resp = await client.post(
            f"{BASE}/sequences",
            headers=auth_headers,
            json={"description": "no name", "maxRunsPerDay": 5000},
        )
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        paths = [d["path"] for d in error["details"]]
        assert ["name"] in paths
        assert ["maxRunsPerDay"] in paths

    async def test_list(self, client, auth_headers, other_auth_headers, sequence: dict) -> None:
        mine = await client.get(f"{BASE}/sequences", headers=auth_headers)
        theirs = await client.get(f"{BASE}/sequences", headers=other_auth_headers)
        assert mine.json()["data"]["total"] == 1
        assert theirs.json()["data"]["total"] == 0

    async def test_list_filters_is_active(self, client, auth_headers, sequence: dict) -> None:
        params = {"isActive": "false"}
        resp = await client.get(f"{BASE}/sequences", headers=auth_headers, params=params)
        assert resp.json()["data"]["total"] == 0

    async def test_with_steps(self, client, auth_headers, sequence: dict) -> None:
        resp = await client.get(_seq(sequence, "/with-steps"), headers=auth_headers)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["name"] == "Launch pitch"
        assert [s["stepNumber"] for s in data["steps"]] == [1, 2]

    async def test_preview_targeting(
        self,
        client,
        auth_headers,
        sequence: dict,
        journalist_id: str,
    ) -> None:
        resp = await client.get(_seq(sequence, "/preview-targeting"), headers=auth_headers)
        assert resp.json()["data"] == {"journalistIds": [journalist_id], "total": 1}

    async def test_beat_filter_targets_matching_profiles(self, client, auth_headers) -> None:
        outlet_id = str(uuid4())
        for name, beat in (("Tech Writer", "tech"), ("Health Writer", "health")):
            await client.post(
                "/api/v1/journalist-graph/profiles",
                headers=auth_headers,
                json={
                    "fullName": name,
                    "primaryEmail": f"{beat}@wire.test",
                    "beat": beat,
                    "outletId": outlet_id,
                },
            )
        created = await client.post(
            f"{BASE}/sequences",
            headers=auth_headers,
            json={"name": "Tech only", "beatFilter": ["tech"], "outletIds": [outlet_id]},
        )
        seq = created.json()["data"]
        await client.post(
            _seq(seq, "/steps"),
            headers=auth_headers,
            json={"stepNumber": 1, "delayHours": 0, "subjectTemplate": "s", "bodyTemplate": "b"},
        )

        preview = await client.get(_seq(seq, "/preview-targeting"), headers=auth_headers)
        assert preview.json()["data"]["total"] == 1

        started = await client.post(_seq(seq, "/start"), headers=auth_headers, json={})
        data = started.json()["data"]
        assert data["runsCreated"] == 1
        assert data["runs"][0]["journalistId"] == preview.json()["data"]["journalistIds"][0]

    async def test_patch(self, client, auth_headers, sequence: dict) -> None:
        resp = await client.patch(_seq(sequence), headers=auth_headers, json={"isActive": False})
        assert resp.status_code == 200
        assert resp.json()["data"]["isActive"] is False
        assert resp.json()["data"]["name"] == "Launch pitch"

    async def test_other_org_sequence_is_404(
        self,
        client,
        other_auth_headers,
        sequence: dict,
    ) -> None:
        for method, suffix in (("GET", ""), ("PATCH", ""), ("DELETE", ""), ("GET", "/with-steps")):
            resp = await client.request(
                method,
                _seq(sequence, suffix),
                headers=other_auth_headers,
                json={} if method == "PATCH" else None,
            )
            assert resp.status_code == 404, (method, suffix)
            assert resp.json()["error"]["message"] == "Sequence not found"

    async def test_delete_stops_runs(
        self,
        client,
        auth_headers,
        sequence: dict,
        started_run: dict,
    ) -> None:
        resp = await client.delete(_seq(sequence), headers=auth_headers)
        assert resp.status_code == 204
        run = await client.get(_run(started_run), headers=auth_headers)
        assert run.json()["data"]["status"] == "stopped"
        assert run.json()["data"]["stopReason"] == "sequence_deleted"


class TestSteps:
    async def _step_id(self, client, auth_headers, sequence: dict, index: int) -> str:
        with_steps = await client.get(_seq(sequence, "/with-steps"), headers=auth_headers)
        return with_steps.json()["data"]["steps"][index]["id"]

    async def test_duplicate_step_number_is_409(self, client, auth_headers, sequence: dict) -> None:
        resp = await client.post(
            _seq(sequence, "/steps"),
            headers=auth_headers,
            json={"stepNumber": 1, "delayHours": 0, "subjectTemplate": "s", "bodyTemplate": "b"},
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "STEP_NUMBER_EXISTS"

    async def test_step_number_range(self, client, auth_headers, sequence: dict) -> None:
        resp = await client.post(
            _seq(sequence, "/steps"),
            headers=auth_headers,
            json={"stepNumber": 21, "delayHours": 0, "subjectTemplate": "s", "bodyTemplate": "b"},
        )
        assert resp.status_code == 400

    async def test_update_and_delete(self, client, auth_headers, sequence: dict) -> None:
        step_id = await self._step_id(client, auth_headers, sequence, 1)

        patched = await client.patch(
            f"{BASE}/steps/{step_id}",
            headers=auth_headers,
            json={"delayHours": 72},
        )
        assert patched.json()["data"]["delayHours"] == 72

        deleted = await client.delete(f"{BASE}/steps/{step_id}", headers=auth_headers)
        assert deleted.status_code == 204

    async def test_other_org_step_is_404(
        self,
        client,
        auth_headers,
        other_auth_headers,
        sequence: dict,
    ) -> None:
        step_id = await self._step_id(client, auth_headers, sequence, 0)
        resp = await client.delete(f"{BASE}/steps/{step_id}", headers=other_auth_headers)
        assert resp.status_code == 404


class TestRuns:
    async def test_start_creates_runs(
        self,
        client,
        auth_headers,
        sequence: dict,
        journalist_id: str,
    ) -> None:
        resp = await client.post(_seq(sequence, "/start"), headers=auth_headers, json={})
        data = resp.json()["data"]
        assert data["runsCreated"] == 1
        assert data["skippedJournalists"] == []
        run = data["runs"][0]
        assert run["journalistId"] == journalist_id
        assert run["status"] == "running"
        assert run["currentStepNumber"] == 2
        assert run["totalStepsSent"] == 1

    async def test_dry_run(self, client, auth_headers, sequence: dict) -> None:
        resp = await client.post(
            _seq(sequence, "/start"),
            headers=auth_headers,
            json={"dryRun": True},
        )
        assert resp.json()["data"]["runsCreated"] == 1
        runs = await client.get(f"{BASE}/runs", headers=auth_headers)
        assert runs.json()["data"]["total"] == 0

    async def test_restart_skips_existing(
        self,
        client,
        auth_headers,
        sequence: dict,
        started_run: dict,
    ) -> None:
        resp = await client.post(_seq(sequence, "/start"), headers=auth_headers, json={})
        data = resp.json()["data"]
        assert data["runsCreated"] == 0
        assert data["skippedJournalists"] == [started_run["journalistId"]]

    async def test_inactive_sequence_is_409(self, client, auth_headers, sequence: dict) -> None:
        await client.patch(_seq(sequence), headers=auth_headers, json={"isActive": False})
        resp = await client.post(_seq(sequence, "/start"), headers=auth_headers, json={})
        assert resp.status_code == 409
        assert resp.json()["error"] == {
            "code": "SEQUENCE_INACTIVE",
            "message": "Cannot start runs for inactive sequence",
        }

    async def test_advance_not_due_is_409(self, client, auth_headers, started_run: dict) -> None:
        resp = await client.post(_run(started_run, "/advance"), headers=auth_headers, json={})
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "RUN_NOT_DUE"

    async def test_force_advance_completes(self, client, auth_headers, started_run: dict) -> None:
        resp = await client.post(
            _run(started_run, "/advance"),
            headers=auth_headers,
            json={"forceAdvance": True},
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "completed"

        again = await client.post(
            _run(started_run, "/advance"),
            headers=auth_headers,
            json={"forceAdvance": True},
        )
        assert again.status_code == 409
        assert again.json()["error"]["code"] == "INVALID_RUN_STATE"

    async def test_stop(self, client, auth_headers, started_run: dict) -> None:
        resp = await client.post(_run(started_run, "/stop"), headers=auth_headers)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["status"] == "stopped"
        assert data["stopReason"] == "manual_stop"

    async def test_invalid_stop_reason_is_400(
        self,
        client,
        auth_headers,
        started_run: dict,
    ) -> None:
        resp = await client.post(
            _run(started_run, "/stop"),
            headers=auth_headers,
            json={"reason": "bored"},
        )
        assert resp.status_code == 400

    async def test_other_org_run_is_404(
        self,
        client,
        other_auth_headers,
        started_run: dict,
    ) -> None:
        for method, suffix in (("GET", ""), ("POST", "/stop")):
            url = _run(started_run, suffix)
            resp = await client.request(method, url, headers=other_auth_headers)
            assert resp.status_code == 404

    async def test_list_filter_by_status(self, client, auth_headers, started_run: dict) -> None:
        running = await client.get(
            f"{BASE}/runs",
            headers=auth_headers,
            params={"status": "running"},
        )
        completed = await client.get(
            f"{BASE}/runs",
            headers=auth_headers,
            params={"status": "completed"},
        )
        assert running.json()["data"]["total"] == 1
        assert completed.json()["data"]["total"] == 0


class TestEvents:
    async def test_sent_event_listed(self, client, auth_headers, started_run: dict) -> None:
        params = {"runId": started_run["id"]}
        resp = await client.get(f"{BASE}/events", headers=auth_headers, params=params)
        events = resp.json()["data"]["events"]
        assert len(events) == 1
        assert events[0]["eventType"] == "sent"
        assert events[0]["recipientEmail"] == "ada@wire.test"
        assert events[0]["emailSubject"] == "Pitch 1 for Ada Lane"

    async def test_create_event(self, client, auth_headers, started_run: dict) -> None:
        resp = await client.post(
            f"{BASE}/events",
            headers=auth_headers,
            json={
                "runId": started_run["id"],
                "eventType": "clicked",
                "stepNumber": 1,
                "recipientEmail": "ada@wire.test",
            },
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["clickedAt"] is not None

    async def test_create_event_for_other_org_run_is_404(
        self,
        client,
        other_auth_headers,
        started_run: dict,
    ) -> None:
        resp = await client.post(
            f"{BASE}/events",
            headers=other_auth_headers,
            json={
                "runId": started_run["id"],
                "eventType": "opened",
                "stepNumber": 1,
                "recipientEmail": "x@y.test",
            },
        )
        assert resp.status_code == 404


class TestTrackingWebhook:
    async def _sent_event_id(self, client, auth_headers, run_id: str) -> str:
        resp = await client.get(f"{BASE}/events", headers=auth_headers, params={"runId": run_id})
        return resp.json()["data"]["events"][0]["id"]

    async def _track(self, client, event_id: str, event_type: str):
        return await client.post(
            f"{BASE}/webhooks/track",
            json={"eventId": event_id, "eventType": event_type},
        )

    async def test_missing_fields_is_400_without_auth(self, client) -> None:
        resp = await client.post(f"{BASE}/webhooks/track", json={"eventType": "opened"})
        assert resp.status_code == 400
        assert resp.json() == {
            "success": False,
            "error": {"code": "INVALID_INPUT", "message": "eventId and eventType are required"},
        }

    async def test_non_object_payload_is_400(self, client) -> None:
        resp = await client.post(f"{BASE}/webhooks/track", json=["eventId"])
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_INPUT"

    async def test_invalid_values_are_400(self, client) -> None:
        resp = await self._track(client, "not-a-uuid", "opened")
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Invalid eventId or eventType"

    async def test_unknown_event_is_404(self, client) -> None:
        resp = await self._track(client, str(uuid4()), "opened")
        assert resp.status_code == 404

    async def test_open_tracked(self, client, auth_headers, started_run: dict) -> None:
        event_id = await self._sent_event_id(client, auth_headers, started_run["id"])
        resp = await self._track(client, event_id, "opened")
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "data": None}

        stats = await client.get(f"{BASE}/stats", headers=auth_headers)
        assert stats.json()["data"]["totalOpens"] == 1

    async def test_reply_stops_run(self, client, auth_headers, started_run: dict) -> None:
        event_id = await self._sent_event_id(client, auth_headers, started_run["id"])
        await self._track(client, event_id, "replied")
        run = await client.get(_run(started_run), headers=auth_headers)
        data = run.json()["data"]
        assert data["status"] == "stopped"
        assert data["stopReason"] == "journalist_replied"
        assert data["replyStepNumber"] == 1


class TestStats:
    async def test_camel_case_counts(self, client, auth_headers, started_run: dict) -> None:
        resp = await client.get(f"{BASE}/stats", headers=auth_headers)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["totalSequences"] == 1
        assert data["activeRuns"] == 1
        assert data["totalEmailsSent"] == 1

    async def test_other_org_sees_zero(self, client, other_auth_headers, started_run: dict) -> None:
        resp = await client.get(f"{BASE}/stats", headers=other_auth_headers)
        assert resp.json()["data"]["totalRuns"] == 0
