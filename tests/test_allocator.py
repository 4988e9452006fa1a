# tests/test_allocator.py
from pathlib import Path

import pytest

from appendlog.allocator import allocate, suffix_insertion_point, with_collision_suffix
from appendlog.errors import AllocationError, InvalidPathError


def _allocate(path, **kwargs) -> Path:
    allocation = allocate(path, **kwargs)
    allocation.handle.close()
    return allocation.path


def test_suffix_insertion_point_uses_first_dot_after_start():
    assert suffix_insertion_point("app.txt") == 3
    assert suffix_insertion_point("archive.tar.txt") == 7
    assert suffix_insertion_point(".hidden.txt") == 7
    assert suffix_insertion_point(".txt") == 4
    assert suffix_insertion_point("README") == 6


def test_with_collision_suffix_fits_any_counter_width():
    assert with_collision_suffix("app.txt", 0) == "app.txt"
    assert with_collision_suffix("app.txt", 1) == "app(1).txt"
    assert with_collision_suffix("app.txt", 10) == "app(10).txt"
    assert with_collision_suffix("app.txt", 100) == "app(100).txt"
    assert with_collision_suffix(".hidden.txt", 2) == ".hidden(2).txt"


def test_allocate_creates_directories_and_empty_file(tmp_path: Path):
    target = tmp_path / "logs" / "nested" / "app.txt"
    allocation = allocate(target)
    allocation.handle.close()
    assert allocation.path == target
    assert target.is_file()
    assert target.read_bytes() == b""


def test_allocate_returns_writable_handle(tmp_path: Path):
    allocation = allocate(tmp_path / "app.txt")
    with allocation.handle as f:
        f.write(b"first")
    assert allocation.path.read_bytes() == b"first"


def test_allocate_skips_taken_names_without_leaving_files(tmp_path: Path):
    (tmp_path / "stem.txt").write_text("x")
    for n in range(1, 10):
        (tmp_path / f"stem({n}).txt").write_text("x")
    before = set(tmp_path.iterdir())

    resolved = _allocate(tmp_path / "stem.txt")

    assert resolved == tmp_path / "stem(10).txt"
    assert set(tmp_path.iterdir()) - before == {tmp_path / "stem(10).txt"}


def test_allocate_twice_yields_distinct_paths(tmp_path: Path):
    first = _allocate(tmp_path / "stem.txt")
    second = _allocate(tmp_path / "stem.txt")
    assert first == tmp_path / "stem.txt"
    assert second == tmp_path / "stem(1).txt"


def test_allocate_handles_three_digit_counters(tmp_path: Path):
    (tmp_path / "stem.txt").write_text("x")
    for n in range(1, 100):
        (tmp_path / f"stem({n}).txt").write_text("x")
    assert _allocate(tmp_path / "stem.txt") == tmp_path / "stem(100).txt"


def test_dotted_directory_does_not_move_suffix(tmp_path: Path):
    target = tmp_path / "v1.2" / "app.txt"
    _allocate(target)
    assert _allocate(target) == tmp_path / "v1.2" / "app(1).txt"
    assert not (tmp_path / "v1(1).2").exists()


def test_bare_filename_uses_current_directory(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert _allocate("app.txt") == Path("app.txt")
    assert (tmp_path / "app.txt").is_file()


def test_empty_path_is_rejected():
    with pytest.raises(InvalidPathError):
        allocate("")


def test_directory_creation_failure_raises(tmp_path: Path):
    (tmp_path / "blocker").write_text("i am a file")
    with pytest.raises(AllocationError) as excinfo:
        allocate(tmp_path / "blocker" / "app.txt")
    assert isinstance(excinfo.value.__cause__, OSError)


def test_lost_creation_race_surfaces_as_error(tmp_path: Path, monkeypatch):
    target = tmp_path / "app.txt"
    target.write_text("created by someone else")
    real_exists = Path.exists

    # the existence check misses the file, the exclusive create does not
    def fake_exists(self, *args, **kwargs):
        if self == target:
            return False
        return real_exists(self, *args, **kwargs)

    monkeypatch.setattr(Path, "exists", fake_exists)
    with pytest.raises(AllocationError) as excinfo:
        allocate(target)
    assert isinstance(excinfo.value.__cause__, FileExistsError)
    assert target.read_text() == "created by someone else"


def test_allocate_gives_up_after_max_attempts(tmp_path: Path):
    for name in ("app.txt", "app(1).txt", "app(2).txt"):
        (tmp_path / name).write_text("x")
    with pytest.raises(AllocationError):
        allocate(tmp_path / "app.txt", max_attempts=2)
    assert not (tmp_path / "app(3).txt").exists()


def test_observers_receive_collision_then_created(tmp_path: Path):
    (tmp_path / "app.txt").write_text("x")
    events = []
    resolved = _allocate(tmp_path / "app.txt", observers=[events.append])
    assert [e.kind for e in events] == ["collision", "created"]
    assert events[0].path == tmp_path / "app.txt"
    assert events[1].path == resolved
    assert events[1].attempt == 1


def test_directory_creation_failure_notifies_observers(tmp_path: Path):
    (tmp_path / "blocker").write_text("i am a file")
    events = []
    with pytest.raises(AllocationError):
        allocate(tmp_path / "blocker" / "app.txt", observers=[events.append])
    assert [e.kind for e in events] == ["failed"]
    assert events[0].path == tmp_path / "blocker"
    assert events[0].detail


def test_dangling_symlink_counts_as_collision(tmp_path: Path):
    (tmp_path / "app.txt").symlink_to(tmp_path / "missing.txt")
    events = []
    resolved = _allocate(tmp_path / "app.txt", observers=[events.append])
    assert resolved == tmp_path / "app(1).txt"
    assert [e.kind for e in events] == ["collision", "created"]
    assert not (tmp_path / "missing.txt").exists()
