from pathlib import Path

import pytest

from afilia.core.exceptions import AppError, CustomErrorKind
from afilia.core.locking import creation_lock, lock_path_for


def test_lock_path_is_beside_repository(tmp_path: Path) -> None:
    assert lock_path_for(tmp_path / "repoX") == tmp_path.resolve() / ".repoX.afilia.lock"


def test_lock_does_not_touch_repository(tmp_path: Path) -> None:
    repo = tmp_path / "repoX"
    with creation_lock(repo, timeout=1) as lock_file:
        assert lock_file.exists()
        assert not repo.exists()


@pytest.mark.serial
def test_second_lock_times_out(tmp_path: Path) -> None:
    repo = tmp_path / "repoX"
    with creation_lock(repo, timeout=1):
        with pytest.raises(AppError) as exc_info:
            with creation_lock(repo, timeout=0.1):
                pass
    assert exc_info.value.custom_kind is CustomErrorKind.REPOSITORY_STRUCTURE


def test_lock_is_released(tmp_path: Path) -> None:
    repo = tmp_path / "repoX"
    with creation_lock(repo, timeout=1):
        pass
    with creation_lock(repo, timeout=0.1):
        pass


def test_failed_block_removes_directories_made_for_lock(tmp_path: Path) -> None:
    repo = tmp_path / "a" / "b" / "repoX"
    with pytest.raises(RuntimeError):
        with creation_lock(repo, timeout=1):
            raise RuntimeError("boom")
    assert list(tmp_path.iterdir()) == []


def test_successful_block_keeps_lock_directories(tmp_path: Path) -> None:
    repo = tmp_path / "a" / "b" / "repoX"
    with creation_lock(repo, timeout=1) as lock_file:
        pass
    assert lock_file.parent.is_dir()


def test_failed_block_keeps_existing_directory(tmp_path: Path) -> None:
    repo = tmp_path / "repoX"
    with pytest.raises(RuntimeError):
        with creation_lock(repo, timeout=1) as lock_file:
            raise RuntimeError("boom")
    assert tmp_path.is_dir()
    assert lock_file.exists()
