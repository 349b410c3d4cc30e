"""Tests for the song queue API."""

import pytest

from conftest import deal_payload, queue_writer, submission_data


async def submit(client, writers, **extra):
    response = await client.post("/song-queue", json={
        "submitted_by": "client-user",
        "data": submission_data(writers, **extra),
    })
    assert response.status_code == 201, response.text
    return response.json()


async def advance(client, queue_id, *statuses, **extra):
    for target in statuses:
        response = await client.post(f"/song-queue/{queue_id}/transition", json={"status": target, **extra})
        assert response.status_code == 200, response.text
    return response.json()


class TestSubmissionApi:

    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        response = await client.get("/song-queue", headers={"X-Admin-Token": "wrong"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_submit(self, client):
        item = await submit(client, [queue_writer(name="Jane", split=50), queue_writer(name="John", split=50)])
        assert item["submission_number"] == 1
        assert item["status"] == "submitted"
        assert item["title"] == "Great Is Thy Mercy"
        assert item["allowed_transitions"] == ["in_review", "denied"]
        assert item["submitted_data"]["schema_version"] == 1

    @pytest.mark.asyncio
    async def test_bad_splits(self, client):
        response = await client.post("/song-queue", json={
            "data": submission_data([queue_writer(name="Jane", split=70)]),
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Writer splits must total 100% (got 70%)"

    @pytest.mark.asyncio
    async def test_missing_title(self, client):
        response = await client.post("/song-queue", json={
            "data": submission_data([queue_writer(name="Jane")], title="  "),
        })
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_list_and_search(self, client):
        await submit(client, [queue_writer(name="Jane")], title="Morning Song")
        await submit(client, [queue_writer(name="John")], title="Evening Hymn")

        response = await client.get("/song-queue")
        body = response.json()
        assert body["total"] == 2
        assert [i["title"] for i in body["items"]] == ["Morning Song", "Evening Hymn"]

        response = await client.get("/song-queue", params={"search": "#2"})
        assert [i["title"] for i in response.json()["items"]] == ["Evening Hymn"]

        response = await client.get("/song-queue", params={"search": "morning"})
        assert [i["title"] for i in response.json()["items"]] == ["Morning Song"]

        response = await client.get("/song-queue", params={"status": "in_review"})
        assert response.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_unknown_item(self, client):
        response = await client.get("/song-queue/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404


class TestReviewApi:

    @pytest.mark.asyncio
    async def test_edit_keeps_submitted_snapshot(self, client):
        item = await submit(client, [queue_writer(name="Jane")])
        response = await client.put(f"/song-queue/{item['id']}/data", json={
            "data": submission_data([queue_writer(name="Jane")], title="Edited"),
            "actor": "staff-1",
        })
        assert response.status_code == 200
        body = response.json()
        assert body["current_data"]["title"] == "Edited"
        assert body["submitted_data"]["title"] == "Great Is Thy Mercy"

    @pytest.mark.asyncio
    async def test_publishers_mismatch(self, client):
        item = await submit(client, [queue_writer(name="Jane")])
        response = await client.put(f"/song-queue/{item['id']}/publishers", json={
            "writers": [queue_writer(name="Jane", publishers=[{"name": "A", "share": 40}])],
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Publisher shares for Jane must equal 100% (got 40%)"

    @pytest.mark.asyncio
    async def test_invalid_transition(self, client):
        item = await submit(client, [queue_writer(name="Jane")])
        response = await client.post(f"/song-queue/{item['id']}/transition", json={"status": "approved"})
        assert response.status_code == 409
        assert response.json()["detail"] == "Cannot move submission #1 from submitted to approved"

    @pytest.mark.asyncio
    async def test_needs_info_round_trip(self, client):
        item = await submit(client, [queue_writer(name="Jane")])
        await advance(client, item["id"], "in_review")

        response = await client.post(f"/song-queue/{item['id']}/transition", json={"status": "needs_info"})
        assert response.status_code == 400

        body = await advance(client, item["id"], "needs_info", revision_request="Add lyrics")
        assert body["revision_request"] == "Add lyrics"
        assert body["allowed_transitions"] == ["submitted", "denied"]

        body = await advance(client, item["id"], "submitted")
        assert body["revision_submitted_at"] is not None

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, client):
        item = await submit(client, [queue_writer(name="Jane")])
        body = await advance(
            client, item["id"], "in_review", "approved", "awaiting_signature", "awaiting_payment", "done",
        )
        assert body["status"] == "done"
        assert body["allowed_transitions"] == []
        assert body["approved_song_id"] is not None

        response = await client.get(f"/song-queue/{item['id']}/history")
        actions = [e["action"] for e in response.json()]
        assert actions[0] == "submitted"
        assert actions.count("status_changed") == 5
        assert "song_published" in actions

        response = await client.put(f"/song-queue/{item['id']}/data", json={
            "data": submission_data([queue_writer(name="Jane")]),
        })
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_notes(self, client):
        item = await submit(client, [queue_writer(name="Jane")])
        response = await client.put(f"/song-queue/{item['id']}/notes", json={"admin_notes": "Check PRO"})
        assert response.json()["admin_notes"] == "Check PRO"

    @pytest.mark.asyncio
    async def test_stats(self, client):
        item = await submit(client, [queue_writer(name="Jane")])
        await submit(client, [queue_writer(name="John")])
        await advance(client, item["id"], "denied", rejection_reason="Duplicate")

        response = await client.get("/song-queue/stats")
        body = response.json()
        assert body["total"] == 2
        assert body["by_status"]["denied"] == 1
        assert body["by_status"]["submitted"] == 1


class TestDealAttachmentApi:

    @pytest.mark.asyncio
    async def test_attach_resolve_remove(self, client, writer_factory):
        jane = await writer_factory("Jane Doe")
        deal = (await client.post("/deals", json=deal_payload(jane.id))).json()
        item = await submit(client, [queue_writer(jane.id, name="Jane Doe")])

        response = await client.get(f"/song-queue/{item['id']}/candidate-deals")
        candidates = response.json()
        assert [d["deal_number"] for d in candidates[0]["deals"]] == [deal["deal_number"]]

        response = await client.post(f"/song-queue/{item['id']}/deals", json={
            "writer_id": str(jane.id), "deal_id": deal["id"],
        })
        assert response.status_code == 200
        body = response.json()
        assert body["deal_id"] == deal["id"]
        assert body["writer_deals"][0]["writer_id"] == str(jane.id)

        response = await client.get(f"/song-queue/{item['id']}/writers")
        view = response.json()
        assert view["writers"][0]["source"] == "deal"
        assert view["writers"][0]["publishers"][0]["name"] == "North Star Music"
        assert view["splits_reconciled"] is True
        assert view["label_copy"].startswith("© 2024 North Star Music (ASCAP)")

        response = await client.delete(f"/song-queue/{item['id']}/deals/{jane.id}")
        assert response.status_code == 200
        assert response.json()["deal_id"] is None

        response = await client.delete(f"/song-queue/{item['id']}/deals/{jane.id}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_attach_uncredited_writer(self, client, writer_factory):
        jane = await writer_factory("Jane Doe")
        john = await writer_factory("John Roe")
        deal = (await client.post("/deals", json=deal_payload(john.id))).json()
        item = await submit(client, [queue_writer(jane.id, name="Jane Doe")])

        response = await client.post(f"/song-queue/{item['id']}/deals", json={
            "writer_id": str(john.id), "deal_id": deal["id"],
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "This writer is not credited on the submission"


class TestMessagesApi:

    @pytest.mark.asyncio
    async def test_client_view_hides_internal_notes(self, client):
        item = await submit(client, [queue_writer(name="Jane")])
        url = f"/song-queue/{item['id']}/messages"

        response = await client.post(url, json={"message": "We need the lead sheet", "sender_name": "Staff"})
        assert response.status_code == 201
        await client.post(url, json={"message": "IPI looks wrong", "is_internal": True})
        await client.post(url, json={"message": "Uploaded!", "sender_role": "client"})

        staff = (await client.get(url)).json()
        client_view = (await client.get(url, params={"view": "client"})).json()
        assert len(staff) == 3
        assert [m["message"] for m in client_view] == ["We need the lead sheet", "Uploaded!"]

    @pytest.mark.asyncio
    async def test_client_internal_note_rejected(self, client):
        item = await submit(client, [queue_writer(name="Jane")])
        response = await client.post(f"/song-queue/{item['id']}/messages", json={
            "message": "hidden", "sender_role": "client", "is_internal": True,
        })
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_bad_view(self, client):
        item = await submit(client, [queue_writer(name="Jane")])
        response = await client.get(f"/song-queue/{item['id']}/messages", params={"view": "public"})
        assert response.status_code == 422


class TestChordChartApi:

    @pytest.mark.asyncio
    async def test_signed_url(self, client, monkeypatch):
        from tribes_admin.services import storage

        monkeypatch.setattr(storage, "create_signed_url", lambda path: f"https://files.example/{path}?sig=1")
        item = await submit(client, [queue_writer(name="Jane")], chord_chart_path="charts/song.pdf")

        response = await client.get(f"/song-queue/{item['id']}/chord-chart")
        assert response.status_code == 200
        body = response.json()
        assert body["url"] == "https://files.example/charts/song.pdf?sig=1"
        assert body["expires_in"] > 0

    @pytest.mark.asyncio
    async def test_storage_failure(self, client, monkeypatch):
        from tribes_admin.services import storage
        from tribes_admin.services.errors import ExternalServiceError

        def failing(path):
            raise ExternalServiceError("Could not create download link")

        monkeypatch.setattr(storage, "create_signed_url", failing)
        item = await submit(client, [queue_writer(name="Jane")], chord_chart_path="charts/song.pdf")
        response = await client.get(f"/song-queue/{item['id']}/chord-chart")
        assert response.status_code == 502


class FakeBucket:

    def __init__(self, response):
        self.response = response
        self.calls = []

    def create_signed_url(self, path, expires_in):
        self.calls.append((path, expires_in))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


class FakeStorageClient:

    def __init__(self, bucket):
        self.bucket = bucket
        self.buckets = []
        self.storage = self

    def from_(self, name):
        self.buckets.append(name)
        return self.bucket


class TestStorage:

    @pytest.mark.parametrize("response", [
        {"signedURL": "https://files.example/a.pdf?token=1"},
        {"signedUrl": "https://files.example/a.pdf?token=1"},
    ])
    def test_signed_url_keys(self, monkeypatch, response):
        from tribes_admin.core.config import settings
        from tribes_admin.services import storage

        fake = FakeStorageClient(FakeBucket(response))
        monkeypatch.setattr(storage, "get_supabase_admin_client", lambda: fake)

        assert storage.create_signed_url("a.pdf") == "https://files.example/a.pdf?token=1"
        assert fake.buckets == [settings.SONG_DOCUMENTS_BUCKET]
        assert fake.bucket.calls == [("a.pdf", settings.SIGNED_URL_TTL_SECONDS)]

    @pytest.mark.parametrize("response", [{}, RuntimeError("bucket not found")])
    def test_signing_failure(self, monkeypatch, response):
        from tribes_admin.services import storage
        from tribes_admin.services.errors import ExternalServiceError

        monkeypatch.setattr(storage, "get_supabase_admin_client", lambda: FakeStorageClient(FakeBucket(response)))
        with pytest.raises(ExternalServiceError):
            storage.create_signed_url("a.pdf")
