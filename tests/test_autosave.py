"""
Tests for the debounced autosave scheduler.
"""

import asyncio

import pytest

from drainsketch.core.autosave import AutoSaveScheduler

DEBOUNCE = 0.05


class SaveRecorder:
    """Save callable that records calls and optionally takes time."""

    def __init__(self, duration: float = 0.0) -> None:
        self.duration = duration
        self.calls = 0
        self.active = 0
        self.max_active = 0

    async def __call__(self) -> int:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.duration:
                await asyncio.sleep(self.duration)
            self.calls += 1
            return self.calls
        finally:
            self.active -= 1


@pytest.mark.asyncio
class TestAutoSaveScheduler:
    """Tests for AutoSaveScheduler."""

    async def test_save_fires_after_quiet_period(self) -> None:
        save = SaveRecorder()
        scheduler = AutoSaveScheduler(save, debounce_seconds=DEBOUNCE)

        scheduler.notify_change()
        assert scheduler.pending is True
        assert save.calls == 0

        await asyncio.sleep(DEBOUNCE * 4)
        assert save.calls == 1
        assert scheduler.pending is False

    async def test_burst_of_changes_coalesces(self) -> None:
        save = SaveRecorder()
        scheduler = AutoSaveScheduler(save, debounce_seconds=DEBOUNCE * 2)

        for _ in range(5):
            scheduler.notify_change()
            await asyncio.sleep(DEBOUNCE / 5)

        assert save.calls == 0
        await asyncio.sleep(DEBOUNCE * 6)
        assert save.calls == 1

    async def test_run_now_cancels_pending(self) -> None:
        save = SaveRecorder()
        scheduler = AutoSaveScheduler(save, debounce_seconds=DEBOUNCE)

        scheduler.notify_change()
        result = await scheduler.run_now()

        assert result == 1
        assert scheduler.pending is False
        await asyncio.sleep(DEBOUNCE * 4)
        assert save.calls == 1

    async def test_run_now_with_alternate_save(self) -> None:
        save = SaveRecorder()
        other = SaveRecorder()
        scheduler = AutoSaveScheduler(save, debounce_seconds=DEBOUNCE)

        await scheduler.run_now(other)
        assert other.calls == 1
        assert save.calls == 0

    async def test_saves_never_overlap(self) -> None:
        save = SaveRecorder(duration=DEBOUNCE)
        scheduler = AutoSaveScheduler(save, debounce_seconds=DEBOUNCE)

        await asyncio.gather(scheduler.flush(), scheduler.flush(), scheduler.flush())
        assert save.calls == 3
        assert save.max_active == 1

    async def test_edit_during_save_schedules_another(self) -> None:
        save = SaveRecorder(duration=DEBOUNCE * 2)
        scheduler = AutoSaveScheduler(save, debounce_seconds=DEBOUNCE)

        scheduler.notify_change()
        await asyncio.sleep(DEBOUNCE * 1.5)  # first save is now in flight
        scheduler.notify_change()

        await asyncio.sleep(DEBOUNCE * 8)
        assert save.calls == 2
        assert save.max_active == 1

    async def test_failed_save_is_logged_not_raised(self, caplog) -> None:
        async def broken() -> None:
            raise RuntimeError("disk full")

        scheduler = AutoSaveScheduler(broken, debounce_seconds=DEBOUNCE)
        scheduler.notify_change()
        await asyncio.sleep(DEBOUNCE * 4)

        assert "Automatic save failed" in caplog.text

    async def test_close_cancels_pending(self) -> None:
        save = SaveRecorder()
        scheduler = AutoSaveScheduler(save, debounce_seconds=DEBOUNCE)

        scheduler.notify_change()
        await scheduler.close()
        scheduler.notify_change()
        await asyncio.sleep(DEBOUNCE * 4)

        assert save.calls == 0
        assert scheduler.pending is False


class TestAutoSaveWithoutLoop:
    """Tests for use outside an event loop."""

    def test_notify_without_loop_does_nothing(self) -> None:
        scheduler = AutoSaveScheduler(SaveRecorder(), debounce_seconds=DEBOUNCE)
        scheduler.notify_change()
        assert scheduler.pending is False

    def test_debounce_defaults_to_settings(self) -> None:
        from drainsketch.core.config import settings

        scheduler = AutoSaveScheduler(SaveRecorder())
        assert scheduler.debounce_seconds == settings.autosave_debounce_seconds
