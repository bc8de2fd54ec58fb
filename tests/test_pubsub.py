from respkit.connection import FakeConn
from respkit.parser import parse_one
from respkit.protocol import ArgNumErrReply, IntReply, MultiBulkReply, NoReply
from respkit.pubsub import Hub, make_msg, publish, subscribe, unsubscribe, unsubscribe_all
from respkit.utils import to_cmd_line


def test_publish_subscribe_unsubscribe():
    hub = Hub()
    channel = "qwert"
    msg = "yuiop"
    conn = FakeConn()
    subscribe(hub, conn, to_cmd_line(channel))
    conn.clean()
    publish(hub, to_cmd_line(channel, msg))
    ret = parse_one(conn.getvalue())
    assert isinstance(ret, MultiBulkReply)
    assert ret.args == [b"message", channel.encode(), msg.encode()]

    unsubscribe(hub, conn, to_cmd_line(channel))
    conn.clean()
    publish(hub, to_cmd_line(channel, msg))
    assert conn.getvalue() == b""

    subscribe(hub, conn, to_cmd_line(channel))
    unsubscribe(hub, conn, to_cmd_line())
    conn.clean()
    publish(hub, to_cmd_line(channel, msg))
    assert conn.getvalue() == b""


def test_make_msg_encoding():
    assert make_msg("subscribe", "ch", 1) == b"*3\r\n$9\r\nsubscribe\r\n$2\r\nch\r\n:1\r\n"


def test_subscribe_writes_confirmations():
    hub = Hub()
    conn = FakeConn()
    reply = subscribe(hub, conn, to_cmd_line("a", "bc"))
    assert reply.to_bytes() == b""
    assert conn.getvalue() == (
        b"*3\r\n$9\r\nsubscribe\r\n$1\r\na\r\n:1\r\n"
        b"*3\r\n$9\r\nsubscribe\r\n$2\r\nbc\r\n:2\r\n"
    )
    assert sorted(conn.get_channels()) == ["a", "bc"]


def test_subscribe_twice_confirms_once():
    hub = Hub()
    conn = FakeConn()
    subscribe(hub, conn, to_cmd_line("a"))
    conn.clean()
    subscribe(hub, conn, to_cmd_line("a"))
    assert conn.getvalue() == b""
    assert publish(hub, to_cmd_line("a", "x")) == IntReply(1)


def test_unsubscribe_confirmation():
    hub = Hub()
    conn = FakeConn()
    subscribe(hub, conn, to_cmd_line("a"))
    conn.clean()
    reply = unsubscribe(hub, conn, to_cmd_line("a"))
    assert isinstance(reply, NoReply)
    assert conn.getvalue() == b"*3\r\n$11\r\nunsubscribe\r\n$1\r\na\r\n:0\r\n"


def test_unsubscribe_without_channels():
    hub = Hub()
    conn = FakeConn()
    unsubscribe(hub, conn, [])
    assert conn.getvalue() == b"*3\r\n$11\r\nunsubscribe\r\n$-1\n:0\r\n"


def test_publish_counts_subscribers():
    hub = Hub()
    first, second = FakeConn(), FakeConn()
    subscribe(hub, first, to_cmd_line("news"))
    subscribe(hub, second, to_cmd_line("news"))
    assert publish(hub, to_cmd_line("news", "hi")) == IntReply(2)
    assert publish(hub, to_cmd_line("other", "hi")) == IntReply(0)


def test_publish_wrong_arg_count():
    hub = Hub()
    reply = publish(hub, to_cmd_line("news"))
    assert reply == ArgNumErrReply("publish")
    assert reply.to_bytes() == b"-ERR wrong number of arguments for 'publish' command\r\n"


def test_unsubscribe_all():
    hub = Hub()
    conn = FakeConn()
    subscribe(hub, conn, to_cmd_line("a", "b"))
    unsubscribe_all(hub, conn)
    assert conn.get_channels() == []
    assert publish(hub, to_cmd_line("a", "x")) == IntReply(0)
    assert publish(hub, to_cmd_line("b", "x")) == IntReply(0)


def test_publish_to_closed_connection_still_counts():
    hub = Hub()
    conn = FakeConn()
    subscribe(hub, conn, to_cmd_line("a"))
    conn.close()
    assert publish(hub, to_cmd_line("a", "x")) == IntReply(1)