import pytest

from respkit.protocol import (
    ArgNumErrReply,
    BulkReply,
    EmptyMultiBulkReply,
    IntReply,
    MultiBulkReply,
    MultiRawReply,
    NoReply,
    NullBulkReply,
    OkReply,
    PongReply,
    ProtocolErrReply,
    QueuedReply,
    StandardErrReply,
    StatusReply,
    SyntaxErrReply,
    UnknownErrReply,
    WrongTypeErrReply,
    is_error_reply,
    is_ok_reply,
)


@pytest.mark.parametrize(
    "reply, expected",
    [
        (PongReply(), b"+PONG\r\n"),
        (OkReply(), b"+OK\r\n"),
        (NullBulkReply(), b"$-1\r\n"),
        (EmptyMultiBulkReply(), b"*0\r\n"),
        (NoReply(), b""),
        (QueuedReply(), b"+QUEUED\r\n"),
        (UnknownErrReply(), b"-Err unknown\r\n"),
        (SyntaxErrReply(), b"-Err syntax error\r\n"),
        (
            WrongTypeErrReply(),
            b"-WRONGTYPE Operation against a key holding the wrong kind of value\r\n",
        ),
    ],
)
def test_constant_replies(reply, expected):
    assert reply.to_bytes() == expected
    assert bytes(reply) == expected


def test_arg_num_error():
    reply = ArgNumErrReply("publish")
    assert reply.error() == "ERR wrong number of arguments for 'publish' command"
    assert reply.to_bytes() == b"-ERR wrong number of arguments for 'publish' command\r\n"


def test_protocol_error_message_and_bytes_differ():
    reply = ProtocolErrReply("x")
    assert reply.error() == "ERR Protocol error 'x' command"
    assert reply.to_bytes() == b"-ERR Protocol error: 'x'\r\n"


def test_standard_error():
    reply = StandardErrReply("client closed")
    assert reply.error() == "client closed"
    assert reply.to_bytes() == b"-client closed\r\n"
    assert is_error_reply(reply)


def test_bulk_is_binary_safe():
    assert BulkReply(b"a\r\nb").to_bytes() == b"$4\r\na\r\nb\r\n"


def test_bulk_none_is_null():
    assert BulkReply(None).to_bytes() == NullBulkReply().to_bytes()


def test_multi_bulk_with_nil():
    assert MultiBulkReply([b"a", None]).to_bytes() == b"*2\r\n$1\r\na\r\n$-1\r\n"


def test_empty_arrays_match_constant():
    assert MultiBulkReply([]).to_bytes() == EmptyMultiBulkReply().to_bytes()
    assert MultiRawReply([]).to_bytes() == EmptyMultiBulkReply().to_bytes()


def test_multi_raw_concatenates_children():
    children = [IntReply(1), NullBulkReply(), BulkReply(b"x")]
    data = MultiRawReply(children).to_bytes()
    assert data.endswith(b"".join(c.to_bytes() for c in children))
    assert data.startswith(b"*3")


def test_int_reply():
    assert IntReply(5).to_bytes() == b":5\r\n"
    assert IntReply(-3).to_bytes().startswith(b":-3")


def test_status_ok_equals_ok_reply():
    assert StatusReply("OK").to_bytes() == OkReply().to_bytes()


def test_is_ok_reply():
    assert is_ok_reply(OkReply())
    assert is_ok_reply(StatusReply("OK"))
    assert not is_ok_reply(StatusReply("PONG"))
    assert not is_ok_reply(IntReply(1))


def test_is_error_reply():
    assert is_error_reply(UnknownErrReply())
    assert is_error_reply(ArgNumErrReply("get"))
    assert not is_error_reply(OkReply())
    assert not is_error_reply(NoReply())


def test_equality():
    assert BulkReply(b"a") == BulkReply(b"a")
    assert MultiBulkReply([b"a"]) == MultiBulkReply([b"a"])
    assert OkReply() == OkReply()
    assert IntReply(1) != IntReply(2)