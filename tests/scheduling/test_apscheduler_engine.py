"""
Tests for the APScheduler engine adapter.

The BackgroundScheduler is started paused so jobs get next run times but
never fire.
"""

from datetime import datetime, timedelta, timezone

import pytest

from jobkeeper.scheduling import (
    APSchedulerEngine,
    EngineError,
    InvalidJobDefinitionError,
    JobDescriptor,
    JobDetail,
    JobKey,
    SchedulerJobService,
    Trigger,
    TriggerDescriptor,
    TriggerState,
    match_any_group,
    match_group,
)
from jobkeeper.scheduling.apscheduler_engine import JOB_FUNC_REF, job_id_for


KEY = JobKey("reports", "weekly")


@pytest.fixture
def aps_engine():
    engine = APSchedulerEngine(timezone="UTC")
    engine.start(paused=True)
    yield engine
    engine.shutdown(wait=False)


def detail(key=KEY, **kwargs):
    return JobDetail(
        key=key,
        job_type="email",
        data=kwargs.pop("data", {"subject": "Hi", "to": ["a@example.com"]}),
        **kwargs,
    )


def cron_trigger(name="daily", key=KEY, cron="0 9 * * *"):
    return Trigger(name=name, group=key.group, job_key=key, cron=cron)


class TestJobIds:
    """Tests for job_id_for()."""

    def test_dotted_groups_do_not_collide(self):
        assert job_id_for(JobKey("a.b", "c")) != job_id_for(JobKey("a", "b.c"))

    def test_plain_key(self):
        assert job_id_for(KEY) == "reports.weekly"


class TestScheduleAndRead:
    """schedule_job() followed by the query methods."""

    def test_round_trip(self, aps_engine):
        aps_engine.schedule_job(detail(description="digest"), [cron_trigger()])

        stored = aps_engine.get_job_detail(KEY)
        assert stored.key == KEY
        assert stored.job_type == "email"
        assert stored.data == {"subject": "Hi", "to": ["a@example.com"]}
        assert stored.description == "digest"

        (trigger,) = aps_engine.get_triggers_of_job(KEY)
        assert trigger.name == "daily"
        assert trigger.group == "reports"
        assert trigger.cron == "0 9 * * *"
        assert trigger.state == TriggerState.NORMAL
        assert trigger.next_fire_time is not None

    def test_registers_textual_job_reference(self, aps_engine):
        aps_engine.schedule_job(detail(), [cron_trigger()])

        job = aps_engine.scheduler.get_job(job_id_for(KEY))
        assert job.func_ref == JOB_FUNC_REF
        assert job.kwargs["group"] == "reports"
        assert job.kwargs["name"] == "weekly"
        assert job.kwargs["job_type"] == "email"

    def test_multiple_triggers(self, aps_engine):
        fire_time = datetime.now(timezone.utc) + timedelta(days=3)
        aps_engine.schedule_job(
            detail(),
            [
                cron_trigger("daily"),
                Trigger(name="once", group="reports", job_key=KEY, fire_time=fire_time),
            ],
        )

        triggers = {t.name: t for t in aps_engine.get_triggers_of_job(KEY)}

        assert set(triggers) == {"daily", "once"}
        assert triggers["once"].next_fire_time == fire_time
        assert triggers["daily"].next_fire_time is not None

    def test_passed_one_shot_reports_no_next_fire_time(self, aps_engine):
        past = datetime.now(timezone.utc) - timedelta(days=1)
        aps_engine.schedule_job(
            detail(),
            [
                cron_trigger("daily"),
                Trigger(name="once", group="reports", job_key=KEY, fire_time=past),
            ],
        )

        triggers = {t.name: t for t in aps_engine.get_triggers_of_job(KEY)}

        assert triggers["once"].next_fire_time is None
        assert triggers["daily"].next_fire_time > datetime.now(timezone.utc)

    def test_missing_job(self, aps_engine):
        assert aps_engine.get_job_detail(KEY) is None
        assert aps_engine.get_triggers_of_job(KEY) == []
        assert not aps_engine.check_exists(KEY)

    def test_get_job_keys_filters_by_group(self, aps_engine):
        a1, a2, b1 = JobKey("grpA", "job1"), JobKey("grpA", "job2"), JobKey("grpB", "job3")
        for key in (a1, a2, b1):
            aps_engine.schedule_job(detail(key), [cron_trigger(key=key)])

        assert aps_engine.get_job_keys(match_any_group()) == {a1, a2, b1}
        assert aps_engine.get_job_keys(match_group("grpA")) == {a1, a2}

    def test_foreign_jobs_are_ignored(self, aps_engine):
        aps_engine.scheduler.add_job(print, "interval", minutes=5, id="foreign")

        assert aps_engine.get_job_keys(match_any_group()) == set()

    def test_duplicate_without_replace(self, aps_engine):
        aps_engine.schedule_job(detail(), [cron_trigger()])

        with pytest.raises(EngineError):
            aps_engine.schedule_job(detail(), [cron_trigger()])

    def test_replace(self, aps_engine):
        aps_engine.schedule_job(detail(), [cron_trigger()])

        aps_engine.schedule_job(detail(data={"subject": "New"}), [cron_trigger("other")], replace=True)

        assert aps_engine.get_job_detail(KEY).data == {"subject": "New"}
        assert [t.name for t in aps_engine.get_triggers_of_job(KEY)] == ["other"]

    def test_job_needs_a_trigger(self, aps_engine):
        with pytest.raises(EngineError):
            aps_engine.schedule_job(detail(), [])

    def test_unknown_timezone_is_engine_error(self, aps_engine):
        trigger = Trigger(
            name="daily", group="reports", job_key=KEY, cron="0 9 * * *", timezone="Mars/Olympus"
        )

        with pytest.raises(EngineError):
            aps_engine.schedule_job(detail(), [trigger])
        assert aps_engine.get_job_detail(KEY) is None

    def test_invalid_cron_is_engine_error(self, aps_engine):
        with pytest.raises(EngineError):
            aps_engine.schedule_job(detail(), [cron_trigger(cron="not a cron")])


class TestStoreJob:
    """Tests for store_job()."""

    def test_replaces_definition_and_keeps_triggers(self, aps_engine):
        aps_engine.schedule_job(detail(), [cron_trigger()])

        aps_engine.store_job(detail(data={"subject": "Changed"}), replace=True)

        assert aps_engine.get_job_detail(KEY).data == {"subject": "Changed"}
        assert [t.name for t in aps_engine.get_triggers_of_job(KEY)] == ["daily"]

    def test_missing_job(self, aps_engine):
        with pytest.raises(EngineError):
            aps_engine.store_job(detail(), replace=True)

    def test_existing_job_without_replace(self, aps_engine):
        aps_engine.schedule_job(detail(), [cron_trigger()])

        with pytest.raises(EngineError):
            aps_engine.store_job(detail(), replace=False)


class TestDelete:
    """Tests for delete_job() / delete_jobs()."""

    def test_delete_job(self, aps_engine):
        aps_engine.schedule_job(detail(), [cron_trigger()])

        assert aps_engine.delete_job(KEY) is True
        assert aps_engine.get_job_detail(KEY) is None

    def test_delete_missing_job_returns_false(self, aps_engine):
        assert aps_engine.delete_job(KEY) is False

    def test_delete_jobs_reports_missing(self, aps_engine):
        aps_engine.schedule_job(detail(), [cron_trigger()])

        assert aps_engine.delete_jobs([KEY, JobKey("reports", "ghost")]) is False
        assert aps_engine.get_job_keys(match_any_group()) == set()


class TestPauseResume:
    """Tests for pause_job() / resume_job()."""

    def test_pause_then_resume(self, aps_engine):
        aps_engine.schedule_job(detail(), [cron_trigger()])

        aps_engine.pause_job(KEY)
        (paused,) = aps_engine.get_triggers_of_job(KEY)
        aps_engine.resume_job(KEY)
        (resumed,) = aps_engine.get_triggers_of_job(KEY)

        assert paused.state == TriggerState.PAUSED
        assert paused.next_fire_time is None
        assert resumed.state == TriggerState.NORMAL
        assert resumed.next_fire_time is not None

    def test_pause_missing_job_is_engine_error(self, aps_engine):
        with pytest.raises(EngineError):
            aps_engine.pause_job(KEY)

    def test_resume_missing_job_is_engine_error(self, aps_engine):
        with pytest.raises(EngineError):
            aps_engine.resume_job(KEY)


class TestServiceOverAPScheduler:
    """SchedulerJobService end to end on a real APScheduler."""

    @pytest.fixture
    def aps_service(self, aps_engine):
        return SchedulerJobService(aps_engine)

    def test_lifecycle(self, aps_service):
        descriptor = JobDescriptor(
            group="reports",
            name="weekly",
            job_type="email",
            data={"subject": "Weekly", "to": ["ops@example.com"]},
            triggers=frozenset({TriggerDescriptor(name="monday", cron="0 9 * * MON")}),
        )

        created = aps_service.create_job("reports", descriptor)
        (trigger,) = created.triggers
        assert trigger.state == TriggerState.NORMAL
        assert trigger.next_fire_time is not None

        aps_service.pause_job("reports", "weekly")
        (trigger,) = aps_service.find_job("reports", "weekly").triggers
        assert trigger.state == TriggerState.PAUSED

        aps_service.resume_job("reports", "weekly")
        (trigger,) = aps_service.find_job("reports", "weekly").triggers
        assert trigger.state == TriggerState.NORMAL

        aps_service.delete_all_jobs()
        assert aps_service.find_jobs() == set()

    def test_unknown_timezone_is_invalid_definition(self, aps_service, aps_engine):
        descriptor = JobDescriptor(
            group="reports",
            name="weekly",
            job_type="email",
            data={"subject": "Weekly", "to": ["ops@example.com"]},
            triggers=frozenset({TriggerDescriptor(cron="0 9 * * *", timezone="Mars/Olympus")}),
        )

        with pytest.raises(InvalidJobDefinitionError):
            aps_service.create_job("reports", descriptor)
        assert aps_engine.get_job_keys(match_any_group()) == set()
