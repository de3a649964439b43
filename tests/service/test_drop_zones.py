"""
End-to-end tests for the drop zones.

A hub is started on a running loop with real watchdog observers; files are
written into its input and api-bridge folders and the tests wait for the
results to show up on the bus or in the store.
"""

import asyncio
import json
import time

import pytest

from domains.hub import IntegrationHub


async def _wait_for(condition, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not condition() and time.monotonic() < deadline:
        await asyncio.sleep(0.05)
    return condition()


@pytest.fixture
def hub(settings):
    return IntegrationHub(settings)


def test_csv_dropped_into_input_is_transformed(settings, hub):
    topic = settings.file_transforms_topic

    async def scenario():
        hub.start_watchers(asyncio.get_running_loop())
        try:
            assert all(hub.watcher_status().values())
            await asyncio.sleep(0.1)
            (settings.input_path() / "batch.csv").write_text("id,amount\n1,100\n2,200\n")

            assert await _wait_for(lambda: hub.bus.topics().get(topic))
            await asyncio.sleep(settings.debounce_window)
        finally:
            hub.stop_watchers()

    asyncio.run(scenario())

    output = settings.output_path()
    assert json.loads((output / "batch.json").read_text()) == [
        {"id": "1", "amount": "100"},
        {"id": "2", "amount": "200"},
    ]
    assert (output / "batch.xml").read_text().count("<transaction>") == 2

    messages = hub.bus.snapshot(topic)
    assert len(messages) == 1
    assert messages[0].data["recordCount"] == 2
    assert hub.watchers == []


def test_json_dropped_into_api_bridge_reaches_store(settings, hub):
    hub.bridge.submit = hub.store.submit

    async def scenario():
        hub.start_watchers(asyncio.get_running_loop())
        try:
            await asyncio.sleep(0.1)
            records = [{"txn_id": "T1", "amount": "5"}, {"txn_id": "T2", "amount": "6"}]
            (settings.api_bridge_path() / "batch.json").write_text(json.dumps(records))

            assert await _wait_for(lambda: len(hub.store) == 2)
        finally:
            hub.stop_watchers()

    asyncio.run(scenario())

    assert [(t["id"], t["txn_id"]) for t in hub.store.list()] == [(1, "T1"), (2, "T2")]
