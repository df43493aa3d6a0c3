from datetime import timedelta

import pytest
from sqlalchemy import select, update

import lawnation.scheduler as scheduler
from lawnation.models import JobRun
from lawnation.repositories import change_log_repository
from lawnation.services.dashboard_service import dashboard_service
from lawnation.services.job_queue_service import JOB_CHANGE_DIFF, JOB_DOCUMENT_CONVERT, job_queue_service
from lawnation.utils.text import utcnow


@pytest.mark.asyncio
async def test_submit_persists_job_when_queue_disabled(db):
    job = await job_queue_service.submit(
        db,
        job_type=JOB_DOCUMENT_CONVERT,
        payload={"article_id": 1, "version_id": 2, "target_format": "PDF"},
        entity_id="version:2",
        actor_user_id=5,
    )

    assert job is not None
    assert job.status == "queued"
    assert job.queue_name == "documents"
    assert job.actor_user_id == 5
    assert (await job_queue_service.get_job(db, str(job.id))).entity_id == "version:2"


@pytest.mark.asyncio
async def test_unknown_job_type_is_logged_not_raised(db):
    assert await job_queue_service.submit(db, job_type="reindex", payload={}) is None


@pytest.mark.asyncio
async def test_stale_jobs_are_failed(db):
    job = await job_queue_service.submit(db, job_type=JOB_CHANGE_DIFF, payload={"change_log_id": 1})
    await db.execute(update(JobRun).where(JobRun.id == job.id).values(queued_at=utcnow() - timedelta(hours=2)))
    await db.commit()

    result = await job_queue_service.mark_stale_jobs_failed(db, stale_minutes=30)

    assert result == {"running_failed": 0, "queued_failed": 1}
    refreshed = await job_queue_service.get_job(db, str(job.id))
    assert refreshed.status == "failed"
    assert refreshed.error_code == "stale_timeout"


@pytest.mark.asyncio
async def test_sweep_redispatches_lagging_work_once(db, driver, session_factory, monkeypatch):
    await driver.reviewer_approved()
    monkeypatch.setattr(scheduler, "async_session", session_factory)

    first = await scheduler.run_sweep()
    # Revision 3 (reviewer DOCX) still lacks its PDF; both uploads still lack a diff.
    assert first["conversions_dispatched"] == 1
    assert first["diffs_dispatched"] == 2

    second = await scheduler.run_sweep()
    assert second["conversions_dispatched"] == 0
    assert second["diffs_dispatched"] == 0



async def _queued_diff_jobs(session_factory) -> list[JobRun]:
    async with session_factory() as session:
        rows = await session.execute(
            select(JobRun).where(JobRun.job_type == JOB_CHANGE_DIFF, JobRun.status == "queued")
        )
        return list(rows.scalars().all())


async def _diff_entities(db, article_id: int) -> list[str]:
    entries = await change_log_repository.history_for(db, article_id)
    return [f"change_log:{entry.id}" for entry in entries if entry.old_file_url]


@pytest.mark.asyncio
async def test_sweep_skips_dead_lettered_diffs(db, driver, session_factory, monkeypatch):
    first_article = await driver.editor_approved()
    second_article = await driver.editor_approved(title="A Second Article")
    [first] = await _diff_entities(db, first_article)
    [second] = await _diff_entities(db, second_article)
    monkeypatch.setattr(scheduler, "async_session", session_factory)
    monkeypatch.setattr(scheduler, "SWEEP_BATCH", 1)

    dispatched = []
    for _ in range(4):
        await scheduler.run_sweep()
        for job in await _queued_diff_jobs(session_factory):
            dispatched.append(job.entity_id)
            async with session_factory() as session:
                stored = await job_queue_service.get_job(session, str(job.id))
                await job_queue_service.dead_letter(session, job=stored, error="source file missing")

    assert dispatched == [first, second]


@pytest.mark.asyncio
async def test_sweep_retries_least_recently_attempted_until_attempts_run_out(
    db, driver, session_factory, monkeypatch
):
    first_article = await driver.editor_approved()
    second_article = await driver.editor_approved(title="A Second Article")
    [first] = await _diff_entities(db, first_article)
    [second] = await _diff_entities(db, second_article)
    monkeypatch.setattr(scheduler, "async_session", session_factory)
    monkeypatch.setattr(scheduler, "SWEEP_BATCH", 1)

    dispatched = []
    for _ in range(8):
        await scheduler.run_sweep()
        for job in await _queued_diff_jobs(session_factory):
            dispatched.append(job.entity_id)
            async with session_factory() as session:
                stored = await job_queue_service.get_job(session, str(job.id))
                await job_queue_service.mark_failed(session, stored, "converter timed out")

    assert dispatched == [first, second] * scheduler.settings.job_max_attempts

@pytest.mark.asyncio
async def test_dashboard_overview(db, driver, team):
    article_id = await driver.submitted()
    await driver.apply("assign_editor", article_id, team.admin, editor_id=team.editor.id)
    await driver.apply("reassign_editor", article_id, team.admin, editor_id=team.editor2.id)
    await driver.submitted(title="A Second Article")

    overview = await dashboard_service.overview(db)

    assert overview["articles_total"] == 2
    assert overview["articles_by_status"]["ASSIGNED_TO_EDITOR"] == 1
    assert overview["articles_by_status"]["PENDING_ADMIN_REVIEW"] == 1
    assert overview["articles_by_status"]["PUBLISHED"] == 0
    assert "PENDING_VERIFICATION" not in overview["articles_by_status"]
    assert overview["reassignments"]["editor_reassignments"] == 1
    assert overview["pending_diffs"] == 0
    assert overview["jobs_by_status"] == {}
