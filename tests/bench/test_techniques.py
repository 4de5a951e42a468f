"""Tests for the built-in sequencing techniques."""

from __future__ import annotations

import asyncio

import pytest

from seqrun.bench.techniques import TECHNIQUES, Technique, get_technique
from seqrun.core.errors import ItemError, MisuseError

ALL = sorted(TECHNIQUES)


class TestRegistry:
    def test_builtin_names(self):
        assert set(TECHNIQUES) == {
            "runner",
            "index_advance",
            "queue_drain",
            "deferred_await",
            "chained_futures",
        }

    def test_get_technique(self):
        technique = get_technique("queue_drain")
        assert isinstance(technique, Technique)
        assert technique.name == "queue_drain"
        assert technique.description

    def test_unknown_technique(self):
        with pytest.raises(MisuseError, match="unknown technique 'bogus'"):
            get_technique("bogus")


class TestTechniqueBehaviour:
    """Every technique runs items in order, once each."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ALL)
    async def test_runs_in_order(self, name, recorder):
        tasks = [recorder.later_item(i, 0.001 * (4 - i)) for i in range(5)]
        await TECHNIQUES[name](tasks)
        assert recorder.invoked == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ALL)
    async def test_synchronous_items(self, name, recorder):
        await TECHNIQUES[name]([recorder.sync_item(i) for i in range(50)])
        assert recorder.invoked == list(range(50))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ALL)
    async def test_empty_list(self, name):
        await TECHNIQUES[name]([])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ALL)
    async def test_error_stops_and_raises(self, name, recorder):
        tasks = [
            recorder.soon_item(0),
            recorder.soon_item(1, error=ValueError("broken")),
            recorder.soon_item(2),
        ]
        with pytest.raises((ValueError, ItemError)):
            await TECHNIQUES[name](tasks)
        assert recorder.invoked == [0, 1]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ALL)
    async def test_raising_item(self, name, recorder):
        def explode(done):
            raise RuntimeError("nope")

        with pytest.raises(ItemError):
            await TECHNIQUES[name]([recorder.sync_item(0), explode, recorder.sync_item(2)])
        assert recorder.invoked == [0]


class TestContinuationValues:
    """Techniques agree with the runner on what a continuation reports."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ALL)
    async def test_double_fire_does_not_start_next_item_early(self, name):
        in_flight: list[int] = []
        overlaps: list[int] = []
        started: list[int] = []

        def twice(index):
            def item(done):
                if in_flight:
                    overlaps.append(index)
                in_flight.append(index)
                started.append(index)

                def finish():
                    in_flight.remove(index)
                    done()
                    done()

                asyncio.get_running_loop().call_later(0.001, finish)

            return item

        await TECHNIQUES[name]([twice(i) for i in range(4)])
        await asyncio.sleep(0.01)

        assert overlaps == []
        assert started == [0, 1, 2, 3]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ALL)
    async def test_non_exception_error_raises_item_error(self, name, recorder):
        tasks = [recorder.soon_item(0, error="bad"), recorder.soon_item(1)]
        with pytest.raises(ItemError, match="'bad'"):
            await TECHNIQUES[name](tasks)
        assert recorder.invoked == [0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ALL)
    @pytest.mark.parametrize("value", [0, False, ""])
    async def test_falsy_values_are_success(self, name, value, recorder):
        await TECHNIQUES[name]([recorder.soon_item(0, error=value), recorder.soon_item(1)])
        assert recorder.invoked == [0, 1]
