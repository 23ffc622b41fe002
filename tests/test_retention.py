from pathlib import Path
from unittest.mock import patch

from logship.core.retention import sweep


class _RecordingDiagnostics:
    def __init__(self) -> None:
        self.errors: list[tuple[str, object]] = []
        self.actions: list[tuple[str, Path]] = []

    def error(self, message: str, payload: object = None) -> None:
        self.errors.append((message, payload))

    def debug(self, message: str, payload: object = None) -> None:
        pass

    def debug_overflow(self, path: Path, offset: int, size_bytes: int, limit: int) -> None:
        pass

    def debug_file_action(self, action: str, path: Path, counters: dict[str, int]) -> None:
        self.actions.append((action, path))


def _files(tmp_path, count: int) -> tuple[Path, ...]:
    paths = []
    for i in range(count):
        path = tmp_path / f"a-{i:04d}.json"
        path.write_text("x\n")
        paths.append(path)
    return tuple(paths)


def test_deletes_oldest_when_over_limit(tmp_path):
    file_set = _files(tmp_path, 3)
    diagnostics = _RecordingDiagnostics()
    deleted = sweep(file_set, file_set[2], 2, diagnostics)
    assert deleted == file_set[0]
    assert not file_set[0].exists()
    assert file_set[1].exists()
    assert diagnostics.actions == [("delete", file_set[0])]


def test_deletes_at_most_one_file(tmp_path):
    file_set = _files(tmp_path, 5)
    sweep(file_set, file_set[4], 1, _RecordingDiagnostics())
    assert [p.exists() for p in file_set] == [False, True, True, True, True]


def test_keeps_files_within_limit(tmp_path):
    file_set = _files(tmp_path, 3)
    assert sweep(file_set, file_set[2], 3, _RecordingDiagnostics()) is None
    assert all(p.exists() for p in file_set)


def test_never_deletes_current_file(tmp_path):
    file_set = _files(tmp_path, 4)
    assert sweep(file_set, file_set[0], 1, _RecordingDiagnostics()) is None
    assert file_set[0].exists()


def test_single_file_is_kept(tmp_path):
    file_set = _files(tmp_path, 1)
    assert sweep(file_set, None, 1, _RecordingDiagnostics()) is None
    assert file_set[0].exists()


def test_disabled_retention(tmp_path):
    file_set = _files(tmp_path, 10)
    assert sweep(file_set, file_set[9], None, _RecordingDiagnostics()) is None
    assert all(p.exists() for p in file_set)


def test_already_deleted_file_is_ignored(tmp_path):
    file_set = _files(tmp_path, 3)
    file_set[0].unlink()
    diagnostics = _RecordingDiagnostics()
    assert sweep(file_set, file_set[2], 1, diagnostics) is None
    assert diagnostics.errors == []


def test_delete_failure_is_reported_not_raised(tmp_path):
    file_set = _files(tmp_path, 3)
    diagnostics = _RecordingDiagnostics()
    with patch.object(Path, "unlink", side_effect=PermissionError("read-only")):
        assert sweep(file_set, file_set[2], 1, diagnostics) is None
    assert len(diagnostics.errors) == 1
    assert isinstance(diagnostics.errors[0][1], PermissionError)
    assert file_set[0].exists()
