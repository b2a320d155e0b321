from __future__ import annotations

from pathlib import Path

from rootfs_bootstrap.lib.repos import RepositoryList, write_extra_repos


def _repo_list(tmp_path: Path, extras, *, ignore: bool) -> RepositoryList:
    etc = tmp_path / "apk"
    (etc / "repositories.d").mkdir(parents=True, exist_ok=True)
    (etc / "repositories").write_text("sys-main\n\nsys-community\n", encoding="utf-8")
    (etc / "repositories.d" / "b.list").write_text("dir-b\n", encoding="utf-8")
    (etc / "repositories.d" / "a.list").write_text("dir-a\n", encoding="utf-8")

    extra = tmp_path / "extra"
    write_extra_repos(str(extra), extras)
    return RepositoryList(
        extra_repos_file=str(extra),
        system_file=str(etc / "repositories"),
        system_dir=str(etc / "repositories.d"),
        ignore_system=ignore,
    )


def test_ignore_without_extras_is_empty(tmp_path, temp_dir):
    repos = _repo_list(tmp_path, [], ignore=True)
    assert repos.entries() == []
    path = repos.build()
    assert Path(path).read_text(encoding="utf-8") == ""


def test_ignore_with_extras_keeps_only_extras_in_order(tmp_path, temp_dir):
    repos = _repo_list(tmp_path, ["X", "Y"], ignore=True)
    path = repos.build()
    assert Path(path).read_text(encoding="utf-8").splitlines() == ["X", "Y"]


def test_system_file_then_directory_then_extras(tmp_path, temp_dir):
    repos = _repo_list(tmp_path, ["extra-1"], ignore=False)
    assert repos.entries() == ["sys-main", "sys-community", "dir-a", "dir-b", "extra-1"]


def test_missing_system_sources_are_skipped(tmp_path, temp_dir):
    extra = tmp_path / "extra"
    write_extra_repos(str(extra), ["only"])
    repos = RepositoryList(
        extra_repos_file=str(extra),
        system_file=str(tmp_path / "nope"),
        system_dir=str(tmp_path / "nope.d"),
    )
    assert repos.entries() == ["only"]


def test_build_is_memoized(tmp_path, temp_dir):
    repos = _repo_list(tmp_path, ["first"], ignore=True)
    path = repos.build()

    write_extra_repos(repos.extra_repos_file, ["second"])
    assert repos.build() == path
    assert Path(path).read_text(encoding="utf-8") == "first\n"
    assert len(list(temp_dir.iterdir())) == 1
