from __future__ import annotations

import json
import time

import anyio

from poto.api.events_routes import stream_scan_events


class _FakeClient:
    """Stands in for the Request; runs ``on_connect`` at the first disconnect poll."""

    def __init__(self, on_connect=None, timeout: float = 30.0) -> None:
        self._on_connect = on_connect
        self._deadline = time.monotonic() + timeout
        self.polls = 0
        self.gone = False

    async def is_disconnected(self) -> bool:
        self.polls += 1
        if self.polls == 1 and self._on_connect is not None:
            self._on_connect()
        return self.gone or time.monotonic() > self._deadline


def _parse(frame: str):
    lines = dict(line.split(": ", 1) for line in frame.strip().splitlines())
    return lines["event"], json.loads(lines["data"])


def test_scan_events_stream_media_then_final_progress(client, tmp_path, make_image, wait_idle):
    lib = tmp_path / "lib"
    make_image(lib / "beach.jpg")
    make_image(lib / "trip" / "city.png")
    manager = client.app.state.scan_manager
    hub = client.app.state.event_hub
    fake = _FakeClient(on_connect=lambda: manager.start_scan(str(lib)))

    async def collect():
        response = await stream_scan_events(fake, keepalive_s=300, hub=hub)
        assert response.media_type == "text/event-stream"
        assert response.headers["cache-control"] == "no-cache"
        frames = []
        body = response.body_iterator
        try:
            async for chunk in body:
                event, data = _parse(chunk)
                frames.append((event, data))
                if event == "scanProgress" and data["isComplete"]:
                    break
        finally:
            await body.aclose()
        return frames

    frames = anyio.run(collect)
    wait_idle(client)

    assert frames[0][0] == "mediaFound"
    found = [item for event, data in frames if event == "mediaFound" for item in data]
    assert sorted(item["name"] for item in found) == ["beach.jpg", "city.png"]
    city = next(item for item in found if item["name"] == "city.png")
    assert city["parentFolder"] == str(lib / "trip")
    assert city["thumbnail"].startswith("data:image/jpeg;base64,")
    assert "modifiedTime" in city

    last_event, last_data = frames[-1]
    assert last_event == "scanProgress"
    assert last_data["isComplete"] is True
    assert last_data["foundMedia"] == 2
    assert hub.subscriber_count == 0


def test_subscription_lives_only_while_body_is_iterated(client):
    hub = client.app.state.event_hub
    fake = _FakeClient(on_connect=lambda: hub.scan_error("disk unplugged"))

    async def connect_and_leave():
        response = await stream_scan_events(fake, keepalive_s=300, hub=hub)
        assert hub.subscriber_count == 0
        body = response.body_iterator
        first = await body.__anext__()
        assert hub.subscriber_count == 1
        fake.gone = True
        rest = [chunk async for chunk in body]
        return first, rest

    first, rest = anyio.run(connect_and_leave)

    assert _parse(first) == ("scanError", "disk unplugged")
    assert rest == []
    assert hub.subscriber_count == 0
