"""Tests for the song queue review workflow."""

import uuid
from decimal import Decimal

import pytest
from pydantic import ValidationError as SchemaError
from sqlalchemy import select

from tribes_admin.models import QueueStatus, Song, SongQueueEvent, SongWriter
from tribes_admin.schemas.deals import DealInput, DealPublisherInput
from tribes_admin.schemas.song_queue import (
    MessageCreate,
    QueueWriter,
    SongSubmissionData,
    SubmissionCreate,
    TransitionRequest,
)
from tribes_admin.services import allocation, queue_review
from tribes_admin.services.errors import ConflictError, NotFoundError, ValidationError

from conftest import queue_writer, submission_data

ALL_STATUSES = [s.value for s in QueueStatus]

ALLOWED = {
    ("submitted", "in_review"),
    ("submitted", "denied"),
    ("in_review", "needs_info"),
    ("in_review", "approved"),
    ("in_review", "denied"),
    ("needs_info", "submitted"),
    ("needs_info", "denied"),
    ("approved", "awaiting_signature"),
    ("awaiting_signature", "awaiting_payment"),
    ("awaiting_payment", "done"),
}


async def submit(db, writers, **extra):
    payload = SubmissionCreate(
        submitted_by="client-user",
        data=SongSubmissionData.model_validate(submission_data(writers, **extra)),
    )
    return await queue_review.submit(db, payload)


async def make_deal(db, writer, share=100, publishers=None, status="active"):
    return await allocation.create_deal(db, DealInput(
        writer_id=writer.id,
        writer_share=Decimal(str(share)),
        status=status,
        publishers=publishers or [
            DealPublisherInput(publisher_name="North Star Music", publisher_pro="ASCAP", share=Decimal(str(share))),
        ],
    ))


def full_request(status):
    return TransitionRequest(
        status=status,
        actor="staff-1",
        revision_request="Please attach a lead sheet",
        rejection_reason="Duplicate of an existing song",
    )


class TestSubmission:

    @pytest.mark.asyncio
    async def test_submit_stores_both_snapshots(self, db):
        item = await submit(db, [queue_writer(name="Jane", split=60), queue_writer(name="John", split=40)])
        assert item.submission_number == 1
        assert item.status == "submitted"
        assert item.submitted_data == item.current_data
        assert item.title == "Great Is Thy Mercy"

        events = await queue_review.list_events(db, item.id)
        assert [e.action for e in events] == ["submitted"]

    @pytest.mark.asyncio
    async def test_splits_must_total_100(self, db):
        with pytest.raises(ValidationError, match=r"Writer splits must total 100% \(got 90%\)"):
            await submit(db, [queue_writer(name="Jane", split=50), queue_writer(name="John", split=40)])

    @pytest.mark.asyncio
    async def test_splits_limited_to_two_decimals(self, db):
        writers = [
            queue_writer(name="Jane", split=33.333),
            queue_writer(name="John", split=33.333),
            queue_writer(name="Ann", split=33.334),
        ]
        with pytest.raises(ValidationError, match="Writer splits allow at most 2 decimals"):
            await submit(db, writers)

    @pytest.mark.asyncio
    async def test_embedded_publishers_must_match_split(self, db):
        writers = [queue_writer(name="Jane", split=100, publishers=[
            {"name": "North Star Music", "pro": "ASCAP", "share": 80},
        ])]
        with pytest.raises(ValidationError, match="Publisher shares for Jane must equal 100%"):
            await submit(db, writers)

    def test_legacy_id_alias(self):
        writer_id = uuid.uuid4()
        writer = QueueWriter.model_validate({"id": str(writer_id), "name": "Jane", "split": 100})
        assert writer.writer_id == writer_id
        assert writer.model_dump(mode="json")["writer_id"] == str(writer_id)

    def test_schema_rejects_unknown_version(self):
        with pytest.raises(SchemaError):
            SongSubmissionData.model_validate({**submission_data([queue_writer()]), "schema_version": 99})


class TestEdits:

    @pytest.mark.asyncio
    async def test_save_edits_keeps_original(self, db):
        item = await submit(db, [queue_writer(name="Jane")])
        data = SongSubmissionData.model_validate(submission_data([queue_writer(name="Jane")], title="New Title"))
        item = await queue_review.save_edits(db, item.id, data, actor="staff-1")
        assert item.current_data["title"] == "New Title"
        assert item.submitted_data["title"] == "Great Is Thy Mercy"

    @pytest.mark.asyncio
    async def test_save_publishers_names_the_writer(self, db):
        item = await submit(db, [queue_writer(name="Jane", split=50), queue_writer(name="John", split=50)])
        writers = [
            QueueWriter.model_validate(queue_writer(name="Jane", split=50, publishers=[
                {"name": "A", "share": 50},
            ])),
            QueueWriter.model_validate(queue_writer(name="John", split=50, publishers=[
                {"name": "B", "share": 30},
            ])),
        ]
        with pytest.raises(ValidationError, match="John"):
            await queue_review.save_publishers(db, item.id, writers)

    @pytest.mark.asyncio
    async def test_save_publishers_replaces_writers(self, db):
        item = await submit(db, [queue_writer(name="Jane")])
        writers = [QueueWriter.model_validate(queue_writer(name="Jane", publishers=[
            {"name": "A", "share": 60, "tribes_administered": True},
            {"name": "B", "share": 40, "tribes_administered": False},
        ]))]
        item = await queue_review.save_publishers(db, item.id, writers, actor="staff-1")
        assert [p["name"] for p in item.current_data["writers"][0]["publishers"]] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_denied_item_is_read_only(self, db):
        item = await submit(db, [queue_writer(name="Jane")])
        await queue_review.transition(db, item.id, full_request("denied"))
        data = SongSubmissionData.model_validate(submission_data([queue_writer(name="Jane")]))
        with pytest.raises(ConflictError):
            await queue_review.save_edits(db, item.id, data)


class TestTransitions:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("current", ALL_STATUSES)
    @pytest.mark.parametrize("target", ALL_STATUSES)
    async def test_transition_table(self, db, current, target):
        item = await submit(db, [queue_writer(name="Jane")])
        item.status = current
        await db.flush()

        if (current, target) in ALLOWED:
            item = await queue_review.transition(db, item.id, full_request(target))
            assert item.status == target
        else:
            with pytest.raises(ConflictError):
                await queue_review.transition(db, item.id, full_request(target))

    def test_terminal_statuses(self):
        assert queue_review.allowed_transitions("done") == []
        assert queue_review.allowed_transitions("denied") == []

    @pytest.mark.asyncio
    async def test_unknown_status(self, db):
        item = await submit(db, [queue_writer(name="Jane")])
        with pytest.raises(ValidationError):
            await queue_review.transition(db, item.id, TransitionRequest(status="archived"))

    @pytest.mark.asyncio
    async def test_needs_info_requires_request(self, db):
        item = await submit(db, [queue_writer(name="Jane")])
        await queue_review.transition(db, item.id, TransitionRequest(status="in_review", actor="staff-1"))
        with pytest.raises(ValidationError, match="revision request"):
            await queue_review.transition(db, item.id, TransitionRequest(status="needs_info", revision_request=" "))

        item = await queue_review.transition(db, item.id, TransitionRequest(
            status="needs_info", actor="staff-1", revision_request="Add the bridge lyrics",
        ))
        assert item.revision_request == "Add the bridge lyrics"
        assert item.revision_requested_by == "staff-1"
        assert item.revision_requested_at is not None

    @pytest.mark.asyncio
    async def test_denied_requires_reason(self, db):
        item = await submit(db, [queue_writer(name="Jane")])
        with pytest.raises(ValidationError, match="rejection reason"):
            await queue_review.transition(db, item.id, TransitionRequest(status="denied"))

        item = await queue_review.transition(db, item.id, TransitionRequest(
            status="denied", actor="staff-1", rejection_reason="Public domain work",
        ))
        assert item.rejection_reason == "Public domain work"
        assert item.reviewed_by == "staff-1"
        assert item.reviewed_at is not None

    @pytest.mark.asyncio
    async def test_resubmission_replaces_working_copy(self, db):
        item = await submit(db, [queue_writer(name="Jane")])
        await queue_review.transition(db, item.id, TransitionRequest(status="in_review"))
        await queue_review.transition(db, item.id, TransitionRequest(status="needs_info", revision_request="Fix title"))

        revised = SongSubmissionData.model_validate(submission_data([queue_writer(name="Jane")], title="Fixed"))
        item = await queue_review.transition(db, item.id, TransitionRequest(status="submitted", current_data=revised))
        assert item.status == "submitted"
        assert item.current_data["title"] == "Fixed"
        assert item.submitted_data["title"] == "Great Is Thy Mercy"
        assert item.revision_submitted_at is not None

    @pytest.mark.asyncio
    async def test_history_records_status_changes(self, db):
        item = await submit(db, [queue_writer(name="Jane")])
        await queue_review.transition(db, item.id, TransitionRequest(
            status="in_review", actor="staff-1", admin_notes="Checking split",
        ))
        events = await queue_review.list_events(db, item.id)
        change = [e for e in events if e.action == "status_changed"][0]
        assert (change.from_status, change.to_status, change.actor) == ("submitted", "in_review", "staff-1")

        item = await queue_review.get_item(db, item.id)
        assert item.admin_notes == "Checking split"

    @pytest.mark.asyncio
    async def test_approval_publishes_song(self, db, writer_factory):
        jane = await writer_factory("Jane Doe")
        john = await writer_factory("John Roe")
        deal = await make_deal(db, jane, share=60)
        item = await submit(db, [
            queue_writer(jane.id, name="Jane Doe", split=60, credit="writer"),
            queue_writer(john.id, name="John Roe", split=40, credit="composer", tribes_administered=False),
            queue_writer(None, name="Unregistered", split=0),
        ])
        await queue_review.attach_deal(db, item.id, jane.id, deal.id)
        await queue_review.transition(db, item.id, TransitionRequest(status="in_review"))
        item = await queue_review.transition(db, item.id, TransitionRequest(status="approved", actor="staff-1"))

        assert item.approved_song_id is not None
        song = await db.get(Song, item.approved_song_id)
        assert song.title == "Great Is Thy Mercy"
        assert song.source_queue_id == item.id
        assert song.song_metadata["publication_year"] == "2024"

        result = await db.execute(select(SongWriter).where(SongWriter.song_id == song.id))
        credits = {sw.writer_id: sw for sw in result.scalars().all()}
        assert set(credits) == {jane.id, john.id}
        assert credits[jane.id].deal_id == deal.id
        assert credits[jane.id].tribes_administered is True
        assert credits[john.id].deal_id is None
        assert credits[john.id].share == Decimal("40")

        result = await db.execute(
            select(SongQueueEvent).where(SongQueueEvent.queue_id == item.id, SongQueueEvent.action == "song_published")
        )
        assert result.scalar_one().details["song_number"] == song.song_number


class TestDealAttachment:

    @pytest.mark.asyncio
    async def test_attach_and_resolve(self, db, writer_factory):
        jane = await writer_factory("Jane Doe")
        deal = await make_deal(db, jane, share=100, publishers=[
            DealPublisherInput(publisher_name="North Star Music", publisher_pro="ASCAP", share=Decimal("70")),
            DealPublisherInput(publisher_name="Outside Co", publisher_pro="PRS", share=Decimal("30"),
                               tribes_administered=False),
        ])
        item = await submit(db, [queue_writer(jane.id, name="Jane Doe")])
        item = await queue_review.attach_deal(db, item.id, jane.id, deal.id, actor="staff-1")
        assert item.deal_id == deal.id
        assert item.current_data == item.submitted_data

        view = await queue_review.resolved_view(db, item.id)
        writer = view.writers[0]
        assert writer.source == "deal"
        assert writer.deal_number == deal.deal_number
        assert [p.name for p in writer.publishers] == ["North Star Music", "Outside Co"]
        assert writer.reconciled is True
        assert view.splits_reconciled is True
        assert view.label_copy == (
            "© 2024 North Star Music (ASCAP) (adm. at TribesRightsManagement.com). All rights reserved."
        )

    @pytest.mark.asyncio
    async def test_attach_allows_share_mismatch(self, db, writer_factory):
        jane = await writer_factory("Jane Doe")
        deal = await make_deal(db, jane, share=100)
        item = await submit(db, [
            queue_writer(jane.id, name="Jane Doe", split=50),
            queue_writer(None, name="John", split=50),
        ])
        item = await queue_review.attach_deal(db, item.id, jane.id, deal.id)
        view = await queue_review.resolved_view(db, item.id)
        assert view.writers[0].source == "deal"
        assert view.writers[0].reconciled is False

    @pytest.mark.asyncio
    async def test_attach_rejects_other_writers_deal(self, db, writer_factory):
        jane = await writer_factory("Jane Doe")
        john = await writer_factory("John Roe")
        johns_deal = await make_deal(db, john)
        item = await submit(db, [queue_writer(jane.id, name="Jane Doe")])
        with pytest.raises(ValidationError, match="belongs to another writer"):
            await queue_review.attach_deal(db, item.id, jane.id, johns_deal.id)

    @pytest.mark.asyncio
    async def test_attach_rejects_inactive_deal(self, db, writer_factory):
        jane = await writer_factory("Jane Doe")
        deal = await make_deal(db, jane, status="terminated")
        item = await submit(db, [queue_writer(jane.id, name="Jane Doe")])
        with pytest.raises(ValidationError, match="not active"):
            await queue_review.attach_deal(db, item.id, jane.id, deal.id)

    @pytest.mark.asyncio
    async def test_attach_rejects_uncredited_writer(self, db, writer_factory):
        jane = await writer_factory("Jane Doe")
        john = await writer_factory("John Roe")
        deal = await make_deal(db, john)
        item = await submit(db, [queue_writer(jane.id, name="Jane Doe")])
        with pytest.raises(ValidationError, match="not credited"):
            await queue_review.attach_deal(db, item.id, john.id, deal.id)

    @pytest.mark.asyncio
    async def test_remove_falls_back(self, db, writer_factory):
        jane = await writer_factory("Jane Doe")
        john = await writer_factory("John Roe")
        janes_deal = await make_deal(db, jane, share=50)
        johns_deal = await make_deal(db, john, share=50)
        item = await submit(db, [
            queue_writer(jane.id, name="Jane Doe", split=50, publishers=[
                {"name": "Jane Songs", "pro": "ASCAP", "share": 50},
            ]),
            queue_writer(john.id, name="John Roe", split=50),
        ])
        await queue_review.attach_deal(db, item.id, jane.id, janes_deal.id)
        item = await queue_review.attach_deal(db, item.id, john.id, johns_deal.id)
        assert item.deal_id == johns_deal.id

        item = await queue_review.remove_deal(db, item.id, john.id)
        assert item.deal_id == janes_deal.id

        view = await queue_review.resolved_view(db, item.id)
        assert [w.source for w in view.writers] == ["deal", "unassigned"]

        item = await queue_review.remove_deal(db, item.id, jane.id)
        assert item.deal_id is None
        view = await queue_review.resolved_view(db, item.id)
        assert [w.source for w in view.writers] == ["submission", "unassigned"]
        assert view.writers[0].publishers[0].name == "Jane Songs"

    @pytest.mark.asyncio
    async def test_remove_without_attachment(self, db, writer_factory):
        jane = await writer_factory("Jane Doe")
        item = await submit(db, [queue_writer(jane.id, name="Jane Doe")])
        with pytest.raises(NotFoundError):
            await queue_review.remove_deal(db, item.id, jane.id)

    @pytest.mark.asyncio
    async def test_candidate_deals(self, db, territories, writer_factory):
        jane = await writer_factory("Jane Doe")
        world = await make_deal(db, jane)
        await allocation.create_deal(db, DealInput(
            writer_id=jane.id, territory_mode="world_except", territories=["FR"],
            publishers=[DealPublisherInput(publisher_name="A", share=Decimal("100"))],
        ))
        await make_deal(db, jane, status="expired")
        item = await submit(db, [queue_writer(jane.id, name="Jane Doe")])

        candidates = await queue_review.candidate_deals(db, item.id)
        assert len(candidates[0].deals) == 2

        candidates = await queue_review.candidate_deals(db, item.id, territory="fr")
        assert [d.id for d in candidates[0].deals] == [world.id]


class TestMessagesAndStats:

    @pytest.mark.asyncio
    async def test_internal_notes_hidden_from_client(self, db):
        item = await submit(db, [queue_writer(name="Jane")])
        await queue_review.add_message(db, item.id, MessageCreate(message="Looks good", sender_role="staff"))
        await queue_review.add_message(db, item.id, MessageCreate(message="Check IPI", is_internal=True))
        await queue_review.add_message(db, item.id, MessageCreate(message="Thanks!", sender_role="client"))

        staff_view = await queue_review.list_messages(db, item.id)
        client_view = await queue_review.list_messages(db, item.id, include_internal=False)
        assert len(staff_view) == 3
        assert [m.message for m in client_view] == ["Looks good", "Thanks!"]

    @pytest.mark.asyncio
    async def test_client_cannot_post_internal(self, db):
        item = await submit(db, [queue_writer(name="Jane")])
        with pytest.raises(ValidationError):
            await queue_review.add_message(db, item.id, MessageCreate(
                message="secret", sender_role="client", is_internal=True,
            ))

    @pytest.mark.asyncio
    async def test_stats(self, db):
        first = await submit(db, [queue_writer(name="Jane")])
        await submit(db, [queue_writer(name="John")])
        await queue_review.transition(db, first.id, TransitionRequest(status="in_review"))

        stats = await queue_review.queue_stats(db)
        assert stats["total"] == 2
        assert stats["by_status"]["submitted"] == 1
        assert stats["by_status"]["in_review"] == 1
        assert stats["by_status"]["done"] == 0

    @pytest.mark.asyncio
    async def test_chord_chart_url(self, db, monkeypatch):
        from tribes_admin.services import storage

        calls = []

        def fake_sign(path, bucket=None, expires_in=None):
            calls.append(path)
            return f"https://files.example/{path}?token=abc"

        monkeypatch.setattr(storage, "create_signed_url", fake_sign)
        item = await submit(db, [queue_writer(name="Jane")], chord_chart_path="charts/mercy.pdf")
        url = await queue_review.chord_chart_url(db, item.id)
        assert url == "https://files.example/charts/mercy.pdf?token=abc"
        assert calls == ["charts/mercy.pdf"]

    @pytest.mark.asyncio
    async def test_chord_chart_missing(self, db):
        item = await submit(db, [queue_writer(name="Jane")])
        with pytest.raises(NotFoundError):
            await queue_review.chord_chart_url(db, item.id)
