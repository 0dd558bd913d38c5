"""
Unit tests for the per-key debouncer.
"""

import asyncio
import logging

import pytest

from otel_trace_explorer.debounce import Debouncer

DELAY = 0.01


class TestDebouncer:

    @pytest.mark.asyncio
    async def test_runs_action_after_delay(self):
        debouncer = Debouncer(delay_seconds=DELAY)
        calls = []

        async def action():
            calls.append("ran")

        task = debouncer.trigger("a.log", action)
        assert debouncer.is_pending("a.log")
        await task

        assert calls == ["ran"]
        assert not debouncer.is_pending("a.log")

    @pytest.mark.asyncio
    async def test_burst_collapses_to_one_action(self):
        debouncer = Debouncer(delay_seconds=DELAY)
        calls = []

        async def action():
            calls.append("ran")

        first = debouncer.trigger("a.log", action)
        second = debouncer.trigger("a.log", action)
        third = debouncer.trigger("a.log", action)
        await third

        assert calls == ["ran"]
        assert first.cancelled()
        assert second.cancelled()

    @pytest.mark.asyncio
    async def test_keys_are_independent(self):
        debouncer = Debouncer(delay_seconds=DELAY)
        calls = []

        def action_for(key):
            async def action():
                calls.append(key)
            return action

        tasks = [
            debouncer.trigger("a.log", action_for("a.log")),
            debouncer.trigger("b.jsonl", action_for("b.jsonl")),
        ]
        await asyncio.gather(*tasks)

        assert sorted(calls) == ["a.log", "b.jsonl"]

    @pytest.mark.asyncio
    async def test_cancel_prevents_action(self):
        debouncer = Debouncer(delay_seconds=DELAY)
        calls = []

        async def action():
            calls.append("ran")

        task = debouncer.trigger("a.log", action)

        assert debouncer.cancel("a.log") is True
        assert debouncer.cancel("a.log") is False
        with pytest.raises(asyncio.CancelledError):
            await task
        assert calls == []

    @pytest.mark.asyncio
    async def test_failing_action_is_logged(self, caplog):
        debouncer = Debouncer(delay_seconds=DELAY)

        async def action():
            raise RuntimeError("boom")

        with caplog.at_level(logging.ERROR):
            await debouncer.trigger("a.log", action)

        assert "Debounced action for 'a.log' failed: boom" in caplog.text

    @pytest.mark.asyncio
    async def test_aclose_cancels_everything(self):
        debouncer = Debouncer(delay_seconds=1.0)
        calls = []

        async def action():
            calls.append("ran")

        first = debouncer.trigger("a.log", action)
        second = debouncer.trigger("b.log", action)
        await debouncer.aclose()

        assert first.cancelled()
        assert second.cancelled()
        assert not debouncer.is_pending("a.log")
        assert calls == []
