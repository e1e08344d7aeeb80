"""Tests for high-level notification actions and the reaper."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from breakroom.enums import ResponseKind, SessionStatus

A, B, C = 100, 200, 300
SESSION = {
    "session_id": 7,
    "initiator_id": A,
    "status": SessionStatus.active,
    "created_at": datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc),
}


def _participant(participant_id, username, **overrides):
    participant = {
        "participant_id": participant_id,
        "username": username,
        "first_name": "",
        "is_remote_today": False,
        "is_hidden": False,
    }
    participant.update(overrides)
    return participant


PARTICIPANTS = {
    A: _participant(A, "alice"),
    B: _participant(B, "bob"),
    C: _participant(C, "carol"),
}


def _get_participant():
    return AsyncMock(side_effect=lambda pid: PARTICIPANTS.get(pid))


class TestAnnounceLaunch:
    @pytest.mark.asyncio
    async def test_invitations_dispatched_confirmation_returned(self):
        from breakroom.notifications.actions import announce_launch
        from breakroom.sessions import LaunchResult

        result = LaunchResult(session=SESSION, invitees=[PARTICIPANTS[B], PARTICIPANTS[C]])
        mock_dispatch = AsyncMock(return_value={"sent": 2, "failed": 0})

        with patch(
            "breakroom.notifications.actions.get_participant", _get_participant()
        ), patch("breakroom.notifications.actions.dispatch", mock_dispatch):
            direct = await announce_launch(result, A)

        assert [o.recipient_id for o in direct] == [A]
        assert direct[0].message_type == "session_started"
        sent = mock_dispatch.await_args.args[0]
        assert [o.recipient_id for o in sent] == [B, C]
        assert all(o.message_type == "session_invitation" for o in sent)

    @pytest.mark.asyncio
    async def test_nobody_to_invite(self):
        """Only the initiator hears about it, and nothing is dispatched."""
        from breakroom.notifications.actions import announce_launch
        from breakroom.sessions import LaunchResult

        result = LaunchResult(
            session={**SESSION, "status": SessionStatus.cancelled}, cancelled=True
        )
        mock_dispatch = AsyncMock()

        with patch(
            "breakroom.notifications.actions.get_participant", _get_participant()
        ), patch("breakroom.notifications.actions.dispatch", mock_dispatch):
            direct = await announce_launch(result, A)

        assert [o.message_type for o in direct] == ["session_no_invitees"]
        mock_dispatch.assert_not_awaited()


class TestAnnounceResponse:
    @pytest.mark.asyncio
    async def test_initiator_is_notified(self):
        from breakroom.notifications.actions import announce_response

        responses = [
            {"participant_id": B, "username": "bob", "response": ResponseKind.accepted, "is_hidden": False},
        ]
        mock_dispatch = AsyncMock(return_value={"sent": 1, "failed": 0})

        with patch(
            "breakroom.notifications.actions.get_session", AsyncMock(return_value=SESSION)
        ), patch(
            "breakroom.notifications.actions.get_participant", _get_participant()
        ), patch(
            "breakroom.notifications.actions.get_session_responses",
            AsyncMock(return_value=responses),
        ), patch("breakroom.notifications.actions.dispatch", mock_dispatch):
            direct = await announce_response(7, B, ResponseKind.accepted, actor_id=B)

        assert direct == []
        sent = mock_dispatch.await_args.args[0]
        assert [o.recipient_id for o in sent] == [A]
        assert "bob" in sent[0].body


class TestAnnounceCancelled:
    @pytest.mark.asyncio
    async def test_respondents_except_canceller(self):
        from breakroom.notifications.actions import announce_cancelled

        responses = [
            {"participant_id": B, "username": "bob", "response": ResponseKind.accepted, "is_hidden": False},
            {"participant_id": C, "username": "carol", "response": ResponseKind.denied, "is_hidden": False},
        ]
        mock_dispatch = AsyncMock(return_value={"sent": 2, "failed": 0})

        with patch(
            "breakroom.notifications.actions.get_session_responses",
            AsyncMock(return_value=responses),
        ), patch("breakroom.notifications.actions.dispatch", mock_dispatch):
            await announce_cancelled(SESSION, A)

        sent = mock_dispatch.await_args.args[0]
        assert [o.recipient_id for o in sent] == [B, C]


class TestAnnounceAutoCompleted:
    @pytest.mark.asyncio
    async def test_summary_goes_to_initiator_and_attendees(self):
        from breakroom.notifications.actions import announce_auto_completed

        closed = {**SESSION, "status": SessionStatus.completed}
        responses = [
            {"participant_id": B, "username": "bob", "response": ResponseKind.accepted_delayed, "is_hidden": False},
            {"participant_id": C, "username": "carol", "response": ResponseKind.denied, "is_hidden": False},
        ]
        mock_dispatch = AsyncMock(return_value={"sent": 2, "failed": 0})

        with patch(
            "breakroom.notifications.actions.get_participant", _get_participant()
        ), patch(
            "breakroom.notifications.actions.get_session_responses",
            AsyncMock(return_value=responses),
        ), patch("breakroom.notifications.actions.dispatch", mock_dispatch):
            result = await announce_auto_completed(closed, timedelta(minutes=15))

        assert result == {"sent": 2, "failed": 0}
        sent = mock_dispatch.await_args.args[0]
        assert [o.recipient_id for o in sent] == [A, B]
        assert all(o.message_type == "session_completed" for o in sent)
        assert all(o.actions == [] for o in sent)


class TestReapStaleSessions:
    @pytest.mark.asyncio
    async def test_completes_and_announces_once(self):
        """B accepted; after 15+ minutes A and B get the past-tense summary."""
        from breakroom.notifications.scheduler import reap_stale_sessions

        closed = {**SESSION, "status": SessionStatus.completed}
        responses = [
            {"participant_id": B, "username": "bob", "response": ResponseKind.accepted, "is_hidden": False},
        ]
        mock_dispatch = AsyncMock(return_value={"sent": 2, "failed": 0})

        with patch(
            "breakroom.sessions.auto_complete_stale",
            AsyncMock(side_effect=[closed, None]),
        ), patch(
            "breakroom.notifications.actions.get_participant", _get_participant()
        ), patch(
            "breakroom.notifications.actions.get_session_responses",
            AsyncMock(return_value=responses),
        ), patch("breakroom.notifications.actions.dispatch", mock_dispatch):
            first = await reap_stale_sessions(timedelta(minutes=15))
            second = await reap_stale_sessions(timedelta(minutes=15))

        assert first == {"sent": 2, "failed": 0}
        assert second is None
        mock_dispatch.assert_awaited_once()
        sent = mock_dispatch.await_args.args[0]
        assert [o.recipient_id for o in sent] == [A, B]
        assert all("15 minutes" in o.body for o in sent)

    @pytest.mark.asyncio
    async def test_errors_are_swallowed_and_reported(self):
        from breakroom.notifications.scheduler import reap_stale_sessions

        error = RuntimeError("db down")

        with patch(
            "breakroom.sessions.auto_complete_stale", AsyncMock(side_effect=error)
        ), patch(
            "breakroom.notifications.scheduler.sentry_sdk.capture_exception"
        ) as mock_capture:
            assert await reap_stale_sessions(timedelta(minutes=15)) is None

        mock_capture.assert_called_once_with(error)

    @pytest.mark.asyncio
    async def test_uses_configured_threshold(self, monkeypatch):
        from breakroom.notifications.scheduler import reap_stale_sessions

        monkeypatch.setenv("STALE_SESSION_MINUTES", "20")
        mock_auto = AsyncMock(return_value=None)

        with patch("breakroom.sessions.auto_complete_stale", mock_auto):
            await reap_stale_sessions()

        mock_auto.assert_awaited_once_with(timedelta(minutes=20))


class TestRecoverStaleSession:
    @pytest.mark.asyncio
    async def test_recovery_uses_longer_threshold_and_stays_silent(self, monkeypatch):
        from breakroom.notifications.scheduler import recover_stale_session

        monkeypatch.delenv("RECOVERY_SESSION_MINUTES", raising=False)
        closed = {**SESSION, "status": SessionStatus.completed}
        mock_auto = AsyncMock(return_value=closed)
        mock_dispatch = AsyncMock()

        with patch("breakroom.sessions.auto_complete_stale", mock_auto), patch(
            "breakroom.notifications.actions.dispatch", mock_dispatch
        ):
            result = await recover_stale_session()

        assert result == closed
        mock_auto.assert_awaited_once_with(timedelta(hours=1))
        mock_dispatch.assert_not_awaited()


class TestSchedulerLifecycle:
    def test_registers_single_reaper_job(self):
        from breakroom.notifications import scheduler

        mock_scheduler = MagicMock()

        with patch.object(scheduler, "_scheduler", None), patch(
            "breakroom.notifications.scheduler.AsyncIOScheduler",
            return_value=mock_scheduler,
        ):
            result = scheduler.init_scheduler(interval_seconds=30)
            scheduler.shutdown_scheduler()

        assert result is mock_scheduler
        mock_scheduler.add_job.assert_called_once()
        call_kwargs = mock_scheduler.add_job.call_args.kwargs
        assert call_kwargs["id"] == "break_session_reaper"
        assert call_kwargs["trigger"] == "interval"
        assert call_kwargs["seconds"] == 30
        mock_scheduler.start.assert_called_once()
        mock_scheduler.shutdown.assert_called_once()
