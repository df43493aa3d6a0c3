from __future__ import annotations

import pytest
from sqlalchemy import func, select

from lawnation.core.exceptions import (
    AssigneeNotFoundError,
    CitationRequiredError,
    DuplicateCitationError,
    InvalidCitationError,
    InvalidPayloadError,
    InvalidTransitionError,
    NotAssignedError,
    TransitionConflictError,
)
from lawnation.domain.workflow.state_machine import WorkflowAction, allowed_actions
from lawnation.models import ActionAuditLog, ArticleStatus, DocumentFormat, VersionRole
from lawnation.repositories import article_repository, change_log_repository, document_version_store
from lawnation.services import notification_service as events
from lawnation.services import workflow_service as workflow_module
from lawnation.services.assignment_history_service import AssignmentStage, assignment_history_service
from lawnation.services.audit_service import audit_service
from lawnation.services.job_queue_service import JOB_CHANGE_DIFF, JOB_DOCUMENT_CONVERT, JOB_ORIGINAL_CONVERT
from lawnation.services.verification_service import VerificationService

CITATION = "2026 LN(53)A1234"
ARTICLE_STATES = [status for status in ArticleStatus if status != ArticleStatus.PENDING_VERIFICATION]


async def _status(db, article_id):
    article = await article_repository.get(db, article_id)
    return article.status


# ── Submission ──

@pytest.mark.asyncio
async def test_submit_creates_article_with_original_revision(db, team, workflow, make_payload, notifier):
    result = await workflow.submit(db, payload=make_payload(), actor=team.author)

    article = result.article
    assert result.new_status == ArticleStatus.PENDING_ADMIN_REVIEW
    assert article.slug == "judicial-review-of-administrative-action"
    assert article.author_email == "asha.raman@example.org"
    assert article.author_user_id == team.author.id
    assert article.current_pdf_url == "https://files.example/original.pdf"
    assert article.current_word_url == "https://files.example/original.docx"

    versions = await document_version_store.list_for(db, article.id)
    assert [(v.role, v.format, v.revision) for v in versions] == [
        (VersionRole.ORIGINAL, DocumentFormat.PDF, 1),
        (VersionRole.ORIGINAL, DocumentFormat.DOCX, 1),
    ]
    assert notifier.last(events.ARTICLE_SUBMITTED)[1] == ["asha.raman@example.org"]


@pytest.mark.asyncio
async def test_submit_without_docx_queues_original_conversion(db, team, workflow, make_payload, dispatcher):
    result = await workflow.submit(db, payload=make_payload(docx_url=None), actor=team.author)

    assert result.article.current_word_url is None
    jobs = dispatcher.of_type(JOB_ORIGINAL_CONVERT)
    assert len(jobs) == 1
    assert jobs[0]["payload"]["target_format"] == "DOCX"


@pytest.mark.asyncio
async def test_duplicate_titles_get_distinct_slugs(db, team, workflow, make_payload):
    first = await workflow.submit(db, payload=make_payload(), actor=team.author)
    second = await workflow.submit(db, payload=make_payload(), actor=team.author)
    assert second.article.slug == f"{first.article.slug}-2"


@pytest.mark.asyncio
async def test_invalid_submission_payload_is_refused(db, team, workflow, make_payload):
    with pytest.raises(InvalidPayloadError):
        await workflow.submit(db, payload=make_payload(author_email="not-an-email"), actor=team.author)

    count = await db.execute(select(func.count(ActionAuditLog.id)))
    assert count.scalar() == 0


# ── Full pipeline ──

@pytest.mark.asyncio
async def test_full_pipeline_to_published(db, team, driver, dispatcher, notifier):
    article_id = await driver.reviewer_approved()
    assert await _status(db, article_id) == ArticleStatus.REVIEWER_APPROVED

    await driver.apply("set_citation_number", article_id, team.admin, citation_number=f"  {CITATION} ")
    result = await driver.apply("publish", article_id, team.admin)

    article = result.article
    assert result.new_status == ArticleStatus.PUBLISHED
    assert article.citation_number == CITATION
    assert article.published_by == team.admin.id
    assert article.published_at is not None
    assert article.current_word_url == f"https://files.example/{article_id}/reviewer.docx"

    for stage in AssignmentStage:
        assert await assignment_history_service.count_open(db, article_id, stage) == 0

    published = notifier.last(events.ARTICLE_PUBLISHED)
    assert published[2]["citation_number"] == CITATION

    timeline = await audit_service.timeline(db, entity_type="article", entity_id=article_id)
    assert [row.action for row in timeline] == [
        "SUBMIT",
        "ASSIGN_EDITOR",
        "UPLOAD_EDITOR_CORRECTION",
        "EDITOR_APPROVE",
        "ASSIGN_REVIEWER",
        "UPLOAD_REVIEWER_CORRECTION",
        "REVIEWER_APPROVE",
        "SET_CITATION_NUMBER",
        "PUBLISH",
    ]
    assert timeline[-1].from_state == "REVIEWER_APPROVED"
    assert timeline[-1].to_state == "PUBLISHED"


@pytest.mark.asyncio
async def test_uploads_form_a_lineage_with_change_log(db, team, driver, dispatcher):
    article_id = await driver.reviewer_approved()

    history = await change_log_repository.history_for(db, article_id)
    assert [entry.role for entry in history] == [VersionRole.EDITOR, VersionRole.REVIEWER]
    assert history[0].edited_at < history[1].edited_at

    editor_entry, reviewer_entry = history
    assert editor_entry.old_file_url == "https://files.example/original.docx"
    assert editor_entry.new_file_url == f"https://files.example/{article_id}/editor.docx"
    assert editor_entry.status_from == ArticleStatus.ASSIGNED_TO_EDITOR
    assert editor_entry.status_to == ArticleStatus.EDITOR_IN_PROGRESS
    assert editor_entry.comments == "Fixed citations"
    assert reviewer_entry.old_file_url == editor_entry.new_file_url
    assert reviewer_entry.old_version_id == editor_entry.new_version_id

    tip = await document_version_store.lineage_tip(db, article_id)
    assert tip.role == VersionRole.REVIEWER
    assert tip.revision == 3
    assert tip.change_log_id == reviewer_entry.id

    article = await article_repository.get(db, article_id)
    assert article.current_word_url == tip.url
    # The reviewer uploaded DOCX only; the PDF of that revision is still being converted.
    assert article.current_pdf_url is None

    convert_jobs = dispatcher.of_type(JOB_DOCUMENT_CONVERT)
    assert convert_jobs[-1]["payload"] == {"article_id": article_id, "version_id": tip.id, "target_format": "PDF"}
    diff_entities = [job["entity_id"] for job in dispatcher.of_type(JOB_CHANGE_DIFF)]
    assert diff_entities == [f"change_log:{editor_entry.id}", f"change_log:{reviewer_entry.id}"]


@pytest.mark.asyncio
async def test_publish_with_final_files_records_admin_revision(db, team, driver):
    article_id = await driver.reviewer_approved()
    await driver.apply("set_citation_number", article_id, team.admin, citation_number=CITATION)

    result = await driver.apply(
        "publish",
        article_id,
        team.admin,
        pdf_url="https://files.example/final.pdf",
        docx_url="https://files.example/final.docx",
    )

    assert result.change_log_entry is not None
    assert result.change_log_entry.role == VersionRole.ADMIN
    assert result.change_log_entry.status_to == ArticleStatus.PUBLISHED
    assert result.article.current_pdf_url == "https://files.example/final.pdf"
    assert result.article.current_word_url == "https://files.example/final.docx"


# ── Guards ──

@pytest.mark.asyncio
async def test_illegal_transition_leaves_article_untouched(db, team, driver):
    article_id = await driver.submitted()

    with pytest.raises(InvalidTransitionError) as exc_info:
        await driver.apply("publish", article_id, team.admin)

    assert exc_info.value.details["current_status"] == "PENDING_ADMIN_REVIEW"
    assert await _status(db, article_id) == ArticleStatus.PENDING_ADMIN_REVIEW


@pytest.mark.asyncio
async def test_submit_and_verify_do_not_apply_to_existing_articles(db, team, driver):
    article_id = await driver.submitted()
    for action in ("submit", "verify"):
        with pytest.raises(InvalidTransitionError):
            await driver.apply(action, article_id, team.admin)


@pytest.mark.asyncio
async def test_only_the_assigned_editor_may_upload(db, team, driver):
    article_id = await driver.submitted()
    await driver.apply("assign_editor", article_id, team.admin, editor_id=team.editor.id)

    with pytest.raises(NotAssignedError):
        await driver.apply(
            "upload_editor_correction", article_id, team.editor2, docx_url="https://files.example/x.docx"
        )

    assert await _status(db, article_id) == ArticleStatus.ASSIGNED_TO_EDITOR
    assert await change_log_repository.history_for(db, article_id) == []


@pytest.mark.asyncio
async def test_non_admin_cannot_assign(db, team, driver):
    article_id = await driver.submitted()
    with pytest.raises(NotAssignedError):
        await driver.apply("assign_editor", article_id, team.editor, editor_id=team.editor.id)


@pytest.mark.asyncio
async def test_assignee_must_hold_the_stage_role(db, team, driver):
    article_id = await driver.submitted()
    with pytest.raises(AssigneeNotFoundError):
        await driver.apply("assign_editor", article_id, team.admin, editor_id=team.reviewer.id)
    with pytest.raises(AssigneeNotFoundError):
        await driver.apply("assign_editor", article_id, team.admin, editor_id=999999)
    assert await _status(db, article_id) == ArticleStatus.PENDING_ADMIN_REVIEW


@pytest.mark.asyncio
async def test_reviewer_upload_requires_docx(db, team, driver):
    article_id = await driver.editor_approved()
    await driver.apply("assign_reviewer", article_id, team.admin, reviewer_id=team.reviewer.id)

    with pytest.raises(InvalidPayloadError):
        await driver.apply(
            "upload_reviewer_correction", article_id, team.reviewer, pdf_url="https://files.example/r.pdf"
        )
    assert await _status(db, article_id) == ArticleStatus.ASSIGNED_TO_REVIEWER


@pytest.mark.asyncio
async def test_admin_may_stand_in_for_the_editor(db, team, driver):
    article_id = await driver.submitted()
    await driver.apply("assign_editor", article_id, team.admin, editor_id=team.editor.id)

    upload = await driver.apply(
        "upload_editor_correction", article_id, team.admin, docx_url="https://files.example/admin.docx"
    )
    assert upload.change_log_entry.role == VersionRole.ADMIN

    approved = await driver.apply("editor_approve", article_id, team.admin)
    assert approved.new_status == ArticleStatus.EDITOR_APPROVED


@pytest.mark.asyncio
async def test_publish_requires_citation(db, team, driver):
    article_id = await driver.reviewer_approved()

    with pytest.raises(InvalidTransitionError) as exc_info:
        await driver.apply("publish", article_id, team.admin)

    assert isinstance(exc_info.value, CitationRequiredError)
    assert exc_info.value.http_status == 409
    assert exc_info.value.details["missing"] == "citation_number"
    assert exc_info.value.details["current_status"] == "REVIEWER_APPROVED"
    assert "set_citation_number" in exc_info.value.details["allowed_actions"]
    assert await _status(db, article_id) == ArticleStatus.REVIEWER_APPROVED


@pytest.mark.asyncio
async def test_malformed_citation_is_refused(db, team, driver):
    article_id = await driver.reviewer_approved()
    with pytest.raises(InvalidCitationError):
        await driver.apply("set_citation_number", article_id, team.admin, citation_number="2026-53-1234")


@pytest.mark.asyncio
async def test_citation_numbers_are_unique(db, team, driver):
    first = await driver.reviewer_approved(title="On Federalism")
    second = await driver.reviewer_approved(title="On Separation of Powers")
    await driver.apply("set_citation_number", first, team.admin, citation_number=CITATION)

    with pytest.raises(DuplicateCitationError) as exc_info:
        await driver.apply("set_citation_number", second, team.admin, citation_number=CITATION)

    assert exc_info.value.conflicting_article_id == first
    assert exc_info.value.conflicting_title == "On Federalism"
    assert (await article_repository.get(db, second)).citation_number is None


@pytest.mark.asyncio
async def test_citation_can_be_corrected_before_publishing(db, team, driver):
    article_id = await driver.reviewer_approved()
    await driver.apply("set_citation_number", article_id, team.admin, citation_number=CITATION)
    result = await driver.apply("set_citation_number", article_id, team.admin, citation_number="2026 LN(53)A1235")
    assert result.article.citation_number == "2026 LN(53)A1235"


@pytest.mark.asyncio
async def test_published_articles_are_frozen(db, team, driver):
    article_id = await driver.reviewer_approved()
    await driver.apply("set_citation_number", article_id, team.admin, citation_number=CITATION)
    await driver.apply("publish", article_id, team.admin)

    for action, payload in (
        ("upload_editor_correction", {"docx_url": "https://files.example/late.docx"}),
        ("reassign_editor", {"editor_id": team.editor2.id}),
        ("reject", {"reason": "too late"}),
        ("delete", {}),
    ):
        with pytest.raises(InvalidTransitionError):
            await driver.apply(action, article_id, team.admin, **payload)

    versions = await document_version_store.list_for(db, article_id)
    assert max(v.revision for v in versions) == 3


async def _drive_to(driver, team, status: ArticleStatus) -> int:
    if status in {ArticleStatus.PENDING_ADMIN_REVIEW, ArticleStatus.REJECTED, ArticleStatus.DELETED}:
        article_id = await driver.submitted()
        if status == ArticleStatus.REJECTED:
            await driver.apply("reject", article_id, team.admin, reason="Out of scope")
        elif status == ArticleStatus.DELETED:
            await driver.apply("delete", article_id, team.admin, reason="duplicate")
        return article_id
    if status in {ArticleStatus.ASSIGNED_TO_EDITOR, ArticleStatus.EDITOR_IN_PROGRESS}:
        article_id = await driver.submitted()
        await driver.apply("assign_editor", article_id, team.admin, editor_id=team.editor.id)
        if status == ArticleStatus.EDITOR_IN_PROGRESS:
            await driver.apply(
                "upload_editor_correction", article_id, team.editor, docx_url="https://files.example/editor.docx"
            )
        return article_id
    if status in {ArticleStatus.EDITOR_APPROVED, ArticleStatus.ASSIGNED_TO_REVIEWER, ArticleStatus.REVIEWER_IN_PROGRESS}:
        article_id = await driver.editor_approved()
        if status != ArticleStatus.EDITOR_APPROVED:
            await driver.apply("assign_reviewer", article_id, team.admin, reviewer_id=team.reviewer.id)
        if status == ArticleStatus.REVIEWER_IN_PROGRESS:
            await driver.apply(
                "upload_reviewer_correction", article_id, team.reviewer, docx_url="https://files.example/reviewer.docx"
            )
        return article_id
    article_id = await driver.reviewer_approved()
    if status == ArticleStatus.PUBLISHED:
        await driver.apply("set_citation_number", article_id, team.admin, citation_number=CITATION)
        await driver.apply("publish", article_id, team.admin)
    return article_id


_ILLEGAL_PAYLOAD = {
    "docx_url": "https://files.example/late.docx",
    "pdf_url": "https://files.example/late.pdf",
    "reason": "not now",
    "citation_number": "2026 LN(53)A9999",
}


@pytest.mark.asyncio
@pytest.mark.parametrize("status", sorted(ARTICLE_STATES, key=lambda item: item.value), ids=lambda item: item.value)
async def test_illegal_actions_write_nothing(db, team, driver, dispatcher, status):
    article_id = await _drive_to(driver, team, status)
    before = await article_repository.get(db, article_id)
    snapshot = (before.status, before.current_pdf_url, before.current_word_url, before.citation_number)
    versions = len(await document_version_store.list_for(db, article_id))
    entries = len(await change_log_repository.history_for(db, article_id))
    jobs = len(dispatcher.jobs)
    illegal = [action for action in WorkflowAction if action not in allowed_actions(status)]
    assert illegal

    for action in illegal:
        payload = dict(_ILLEGAL_PAYLOAD, editor_id=team.editor2.id, reviewer_id=team.reviewer2.id)
        with pytest.raises(InvalidTransitionError) as exc_info:
            await driver.apply(action.value, article_id, team.admin, **payload)
        assert exc_info.value.details["current_status"] == status.value

        after = await article_repository.get(db, article_id)
        assert (after.status, after.current_pdf_url, after.current_word_url, after.citation_number) == snapshot
        assert len(await document_version_store.list_for(db, article_id)) == versions
        assert len(await change_log_repository.history_for(db, article_id)) == entries
    assert len(dispatcher.jobs) == jobs


# ── Atomicity ──

@pytest.mark.asyncio
async def test_failure_inside_the_unit_rolls_everything_back(db, team, driver, dispatcher, notifier, monkeypatch):
    article_id = await driver.submitted()
    await driver.apply("assign_editor", article_id, team.admin, editor_id=team.editor.id)
    jobs_before = len(dispatcher.jobs)
    events_before = len(notifier.events)

    async def broken_audit(*args, **kwargs):
        raise RuntimeError("audit store unavailable")

    monkeypatch.setattr(audit_service, "log_action", broken_audit)

    with pytest.raises(RuntimeError):
        await driver.apply(
            "upload_editor_correction",
            article_id,
            team.editor,
            docx_url="https://files.example/editor.docx",
        )

    assert await _status(db, article_id) == ArticleStatus.ASSIGNED_TO_EDITOR
    assert await change_log_repository.history_for(db, article_id) == []
    versions = await document_version_store.list_for(db, article_id)
    assert {v.revision for v in versions} == {1}
    assert len(dispatcher.jobs) == jobs_before
    assert len(notifier.events) == events_before


@pytest.mark.asyncio
async def test_rejected_audit_row_rolls_back_the_transition(db, team, driver, dispatcher, monkeypatch):
    article_id = await driver.submitted()
    await driver.apply("assign_editor", article_id, team.admin, editor_id=team.editor.id)
    audit_before = len(await audit_service.timeline(db, entity_type="article", entity_id=article_id))
    jobs_before = len(dispatcher.jobs)
    # action is NOT NULL, so the audit insert fails at flush time
    monkeypatch.setitem(workflow_module.AUDIT_ACTION_NAMES, WorkflowAction.UPLOAD_EDITOR_CORRECTION, None)

    with pytest.raises(TransitionConflictError):
        await driver.apply(
            "upload_editor_correction",
            article_id,
            team.editor,
            docx_url="https://files.example/editor.docx",
        )

    assert await _status(db, article_id) == ArticleStatus.ASSIGNED_TO_EDITOR
    assert await change_log_repository.history_for(db, article_id) == []
    assert {v.revision for v in await document_version_store.list_for(db, article_id)} == {1}
    assert len(await audit_service.timeline(db, entity_type="article", entity_id=article_id)) == audit_before
    assert len(dispatcher.jobs) == jobs_before

    monkeypatch.undo()
    retried = await driver.apply(
        "upload_editor_correction",
        article_id,
        team.editor,
        docx_url="https://files.example/editor.docx",
    )
    assert retried.new_status == ArticleStatus.EDITOR_IN_PROGRESS


@pytest.mark.asyncio
async def test_background_dispatch_failure_does_not_undo_the_transition(db, team, driver, dispatcher):
    article_id = await driver.submitted()
    await driver.apply("assign_editor", article_id, team.admin, editor_id=team.editor.id)

    async def broken_submit(*args, **kwargs):
        raise ConnectionError("broker down")

    dispatcher.submit = broken_submit

    result = await driver.apply(
        "upload_editor_correction", article_id, team.editor, pdf_url="https://files.example/editor.pdf"
    )
    assert result.new_status == ArticleStatus.EDITOR_IN_PROGRESS
    assert await _status(db, article_id) == ArticleStatus.EDITOR_IN_PROGRESS


# ── Assignments ──

@pytest.mark.asyncio
async def test_reassign_editor_keeps_one_open_assignment(db, team, driver):
    article_id = await driver.submitted()
    await driver.apply("assign_editor", article_id, team.admin, editor_id=team.editor.id)

    result = await driver.apply(
        "reassign_editor", article_id, team.admin, editor_id=team.editor2.id, reason="workload"
    )

    assert result.new_status == ArticleStatus.ASSIGNED_TO_EDITOR
    assert result.article.assigned_editor_id == team.editor2.id
    assert await assignment_history_service.count_open(db, article_id, AssignmentStage.EDITOR) == 1

    history = (await assignment_history_service.history(db, article_id))["editor"]
    assert [(row.user_id, row.status) for row in history] == [
        (team.editor.id, "reassigned"),
        (team.editor2.id, "active"),
    ]

    with pytest.raises(NotAssignedError):
        await driver.apply(
            "upload_editor_correction", article_id, team.editor, docx_url="https://files.example/old.docx"
        )

    timeline = await audit_service.timeline(db, entity_type="article", entity_id=article_id)
    assert timeline[-1].action == "EDITOR_REASSIGN"
    assert timeline[-1].reason == "workload"


@pytest.mark.asyncio
async def test_reassign_to_the_same_editor_is_refused(db, team, driver):
    article_id = await driver.submitted()
    await driver.apply("assign_editor", article_id, team.admin, editor_id=team.editor.id)
    with pytest.raises(InvalidPayloadError):
        await driver.apply("reassign_editor", article_id, team.admin, editor_id=team.editor.id)


@pytest.mark.asyncio
async def test_reassign_without_current_assignee_is_refused(db, team, driver):
    article_id = await driver.submitted()
    with pytest.raises(InvalidTransitionError):
        await driver.apply("reassign_editor", article_id, team.admin, editor_id=team.editor.id)


@pytest.mark.asyncio
async def test_reassign_reviewer_mid_review(db, team, driver):
    article_id = await driver.editor_approved()
    await driver.apply("assign_reviewer", article_id, team.admin, reviewer_id=team.reviewer.id)

    result = await driver.apply("reassign_reviewer", article_id, team.admin, reviewer_id=team.reviewer2.id)

    assert result.new_status == ArticleStatus.ASSIGNED_TO_REVIEWER
    assert result.article.assigned_reviewer_id == team.reviewer2.id
    stats = await assignment_history_service.reassignment_stats(db)
    assert stats["reviewer_reassignments"] == 1
    assert stats["most_reassigned"][0]["article_id"] == article_id


@pytest.mark.asyncio
async def test_release_assignments_returns_articles_to_admin(db, team, workflow, driver):
    first = await driver.submitted(title="First Article")
    second = await driver.submitted(title="Second Article")
    for article_id in (first, second):
        await driver.apply("assign_editor", article_id, team.admin, editor_id=team.editor.id)

    results = await workflow.release_assignments(
        db, user_id=team.editor.id, stage=AssignmentStage.EDITOR, actor=team.admin, reason="left the journal"
    )

    assert sorted(r.article.id for r in results) == sorted([first, second])
    for article_id in (first, second):
        article = await article_repository.get(db, article_id)
        assert article.status == ArticleStatus.PENDING_ADMIN_REVIEW
        assert article.assigned_editor_id is None
        history = (await assignment_history_service.history(db, article_id))["editor"]
        assert history[-1].status == "released"


@pytest.mark.asyncio
async def test_release_assignments_requires_admin(db, team, workflow):
    with pytest.raises(NotAssignedError):
        await workflow.release_assignments(db, user_id=team.editor.id, stage="editor", actor=team.editor)


# ── Terminal actions ──

@pytest.mark.asyncio
async def test_reject_requires_reason_and_closes_assignments(db, team, driver, notifier):
    article_id = await driver.submitted()
    await driver.apply("assign_editor", article_id, team.admin, editor_id=team.editor.id)

    with pytest.raises(InvalidPayloadError):
        await driver.apply("reject", article_id, team.admin)

    result = await driver.apply("reject", article_id, team.admin, reason="Out of scope")
    assert result.new_status == ArticleStatus.REJECTED
    assert result.article.rejection_reason == "Out of scope"
    assert await assignment_history_service.count_open(db, article_id, AssignmentStage.EDITOR) == 0
    assert notifier.last(events.ARTICLE_REJECTED)[2]["reason"] == "Out of scope"


@pytest.mark.asyncio
async def test_delete_is_a_tombstone(db, team, driver):
    article_id = await driver.submitted()
    result = await driver.apply("delete", article_id, team.admin, reason="duplicate")

    article = await article_repository.get(db, article_id)
    assert result.new_status == ArticleStatus.DELETED
    assert article is not None
    assert article.deleted_by == team.admin.id
    assert len(await document_version_store.list_for(db, article_id)) == 2


@pytest.mark.asyncio
async def test_change_log_append_failure_aborts_the_status_write(db, team, driver, monkeypatch):
    article_id = await driver.submitted()
    await driver.apply("assign_editor", article_id, team.admin, editor_id=team.editor.id)

    async def failing_append(*args, **kwargs):
        raise RuntimeError("change log unavailable")

    monkeypatch.setattr(change_log_repository, "append", failing_append)

    with pytest.raises(RuntimeError):
        await driver.apply(
            "upload_editor_correction", article_id, team.editor, docx_url="https://files.example/editor.docx"
        )

    article = await article_repository.get(db, article_id)
    assert article.status == ArticleStatus.ASSIGNED_TO_EDITOR
    assert article.current_word_url == "https://files.example/original.docx"
    assert len(await document_version_store.list_for(db, article_id)) == 2


@pytest.mark.asyncio
async def test_lineage_tip_follows_editor_then_reviewer_then_admin(db, team, driver):
    article_id = await driver.reviewer_approved()
    await driver.apply("set_citation_number", article_id, team.admin, citation_number=CITATION)
    await driver.apply("publish", article_id, team.admin, docx_url="https://files.example/admin.docx")

    tip = await document_version_store.lineage_tip(db, article_id)
    assert tip.role == VersionRole.ADMIN
    assert tip.url == "https://files.example/admin.docx"
    assert [v.role for v in await document_version_store.list_for(db, article_id)][-3:] == [
        VersionRole.EDITOR,
        VersionRole.REVIEWER,
        VersionRole.ADMIN,
    ]
    latest_editor = await document_version_store.latest_for(db, article_id, VersionRole.EDITOR, format=DocumentFormat.DOCX)
    assert latest_editor.url == f"https://files.example/{article_id}/editor.docx"


@pytest.mark.asyncio
async def test_guest_submission_end_to_end(db, team, workflow, notifier, driver, make_payload):
    verification = VerificationService(workflow=workflow, notifier=notifier)
    pending = await verification.start(db, payload=make_payload())
    assert pending.status == ArticleStatus.PENDING_VERIFICATION

    code = notifier.last(events.VERIFICATION_CODE_ISSUED)[2]["code"]
    created = await verification.verify_by_code(db, email=pending.email, code=code)
    article_id = created.article.id
    assert created.new_status == ArticleStatus.PENDING_ADMIN_REVIEW

    steps = [
        ("assign_editor", team.admin, {"editor_id": team.editor.id}, ArticleStatus.ASSIGNED_TO_EDITOR),
        ("upload_editor_correction", team.editor, {"docx_url": "https://files.example/g/editor.docx"},
         ArticleStatus.EDITOR_IN_PROGRESS),
        ("editor_approve", team.editor, {}, ArticleStatus.EDITOR_APPROVED),
        ("assign_reviewer", team.admin, {"reviewer_id": team.reviewer.id}, ArticleStatus.ASSIGNED_TO_REVIEWER),
        ("upload_reviewer_correction", team.reviewer, {"docx_url": "https://files.example/g/reviewer.docx"},
         ArticleStatus.REVIEWER_IN_PROGRESS),
        ("reviewer_approve", team.reviewer, {}, ArticleStatus.REVIEWER_APPROVED),
        ("set_citation_number", team.admin, {"citation_number": CITATION}, ArticleStatus.REVIEWER_APPROVED),
        ("publish", team.admin, {}, ArticleStatus.PUBLISHED),
    ]
    for action, actor, payload, expected in steps:
        result = await driver.apply(action, article_id, actor, **payload)
        assert result.new_status == expected, action

    article = await article_repository.get(db, article_id)
    assert article.assigned_editor_id == team.editor.id
    assert article.assigned_reviewer_id == team.reviewer.id
    assert article.citation_number == CITATION
    assert article.current_word_url == "https://files.example/g/reviewer.docx"

    editor_entry = (await change_log_repository.history_for(db, article_id))[0]
    assert editor_entry.old_file_url == "https://files.example/original.docx"
