import threading

import pytest

from focusforge.domain.errors import StorageError
from focusforge.services.file_service import FileService


def test_file_service_read_write_atomic_success(tmp_path):
    fs = FileService()
    p = tmp_path / "state" / "a.json"
    fs.write_text_atomic(p, "hello")
    assert p.read_text(encoding="utf-8") == "hello"
    fs.write_text_atomic(p, "replaced")
    assert fs.read_text(p) == "replaced"


def test_file_service_read_text_missing(tmp_path):
    fs = FileService()
    p = tmp_path / "missing.json"
    with pytest.raises(FileNotFoundError):
        fs.read_text(p)


def test_file_service_write_atomic_open_fail(monkeypatch, tmp_path):
    class FakeQSaveFile:
        def __init__(self, *_):
            pass

        def open(self, *_):
            return False

    fs = FileService()
    p = tmp_path / "x.json"
    p.write_text("previous", encoding="utf-8")
    monkeypatch.setattr(
        "focusforge.services.file_service.QSaveFile", FakeQSaveFile, raising=True
    )
    with pytest.raises(StorageError):
        fs.write_text_atomic(p, "data")
    assert p.read_text(encoding="utf-8") == "previous"


def test_file_service_write_atomic_commit_fail(monkeypatch, tmp_path):
    class FakeQSaveFile:
        def __init__(self, *_):
            self._data = b""

        def open(self, *_):
            return True

        def write(self, b):
            self._data += b

        def commit(self):
            return False

    fs = FileService()
    p = tmp_path / "x.json"
    monkeypatch.setattr(
        "focusforge.services.file_service.QSaveFile", FakeQSaveFile, raising=True
    )
    # StorageError is also an OSError
    with pytest.raises(IOError):
        fs.write_text_atomic(p, "data")
    assert not p.exists()


def test_create_exclusive_refuses_existing_target(tmp_path):
    fs = FileService()
    p = tmp_path / "claim.json"
    fs.create_exclusive(p, "first")
    with pytest.raises(FileExistsError):
        fs.create_exclusive(p, "second")
    assert p.read_text(encoding="utf-8") == "first"
    # no temp files left behind
    assert sorted(x.name for x in tmp_path.iterdir()) == ["claim.json"]


def test_create_exclusive_has_a_single_winner_under_contention(tmp_path):
    fs = FileService()
    p = tmp_path / "claim.json"
    barrier = threading.Barrier(8)
    winners: list[int] = []
    losers: list[int] = []

    def attempt(i: int) -> None:
        barrier.wait()
        try:
            fs.create_exclusive(p, str(i))
            winners.append(i)
        except FileExistsError:
            losers.append(i)

    threads = [threading.Thread(target=attempt, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(winners) == 1
    assert len(losers) == 7
    assert p.read_text(encoding="utf-8") == str(winners[0])


def test_append_line_and_remove(tmp_path):
    fs = FileService()
    p = tmp_path / "log.jsonl"
    fs.append_line(p, "one")
    fs.append_line(p, "two\n")
    assert p.read_text(encoding="utf-8") == "one\ntwo\n"
    fs.remove(p)
    assert not p.exists()
    fs.remove(p)  # missing file is fine
