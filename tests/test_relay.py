import pytest

pytestmark = pytest.mark.anyio


async def test_p2p_signal_reaches_only_target_with_true_sender(relay, session, connect):
    a, a_transport = connect()
    b, b_transport = connect()
    c, c_transport = connect()
    for sid in (a, b, c):
        await session.join_room(sid, "x")
    for transport in (a_transport, b_transport, c_transport):
        transport.clear()
    offer = {"type": "offer", "sdp": "v=0"}

    await relay.p2p_signal(a, {"to": b, "signal": offer, "from": c})

    assert b_transport.events() == [("p2p_signal", {"signal": offer, "from": a})]
    assert a_transport.events() == []
    assert c_transport.events() == []


async def test_p2p_signal_to_unknown_target_is_dropped(relay, connect):
    a, a_transport = connect()
    await relay.p2p_signal(a, {"to": "gone", "signal": {"candidate": "..."}})
    assert a_transport.events() == []


async def test_p2p_signal_is_never_a_room_broadcast(relay, session, connect):
    a, a_transport = connect()
    b, b_transport = connect()
    await session.join_room(a, "x")
    await session.join_room(b, "x")
    a_transport.clear()
    b_transport.clear()

    await relay.p2p_signal(a, {"to": "x", "signal": {}})

    assert b_transport.events() == []


async def test_host_file_meta_attaches_host_id(relay, session, connect):
    a, a_transport = connect()
    b, b_transport = connect()
    await session.join_room(a, "x")
    await session.join_room(b, "x")
    a_transport.clear()
    b_transport.clear()

    await relay.host_file_meta(a, {"roomId": "x", "meta": {"name": "movie.mkv", "size": 1048576, "type": "video/x-matroska", "hostId": "spoofed"}})

    assert b_transport.events() == [
        ("host_file_meta", {"name": "movie.mkv", "size": 1048576, "type": "video/x-matroska", "hostId": a}),
    ]
    assert a_transport.events() == []


async def test_agent_events_relayed_verbatim(relay, session, connect):
    a, _ = connect()
    b, b_transport = connect()
    await session.join_room(a, "x")
    await session.join_room(b, "x")
    b_transport.clear()
    announce = {"roomId": "x", "name": "notes.pdf", "size": 2048, "from": "whoever"}
    progress = {"roomId": "x", "fileName": "notes.pdf", "progress": 50, "downloaded": 1024, "total": 2048, "speed": 512.0}

    await relay.agent_file_announce(a, announce)
    await relay.agent_download_progress(a, progress)

    assert b_transport.events() == [
        ("agent_file_announce", announce),
        ("agent_download_progress", progress),
    ]
