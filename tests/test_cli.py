from fluxlab.api.cli import save_reply
from fluxlab.core.engine import CommandReply


def _reply(content=b"jpeg-bytes"):
    return CommandReply(text="https://cdn.test/y.jpg", filename="a fox.jpg", content=content)


def test_save_reply_writes_attachment(tmp_path):
    path = save_reply(_reply(), str(tmp_path / "out"))

    assert path == tmp_path / "out" / "a fox.jpg"
    assert path.read_bytes() == b"jpeg-bytes"


def test_save_reply_does_not_overwrite(tmp_path):
    first = save_reply(_reply(b"one"), str(tmp_path))
    second = save_reply(_reply(b"two"), str(tmp_path))

    assert first.name == "a fox.jpg"
    assert second.name == "a fox_1.jpg"
    assert first.read_bytes() == b"one"
