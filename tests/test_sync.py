import git
import pytest

from iconsync.cancellation import CancellationToken, Cancelled
from iconsync.config import SyncConfig
from iconsync.sync import SyncResult, SyncRunner
from iconsync.utils import hash_directory

from conftest import LIBRARY, remote_file


@pytest.fixture
def config(upstream_repo):
    def make(bare, **kwargs):
        return SyncConfig(
            library=LIBRARY,
            package_repo_url=str(bare),
            upstream_repo_url=str(upstream_repo),
            **kwargs,
        )

    return make


def _remote_files(bare):
    return git.Repo(bare).git.ls_tree("-r", "--name-only", "HEAD").splitlines()


def test_first_run_publishes_and_records_hash(
    config, package_remote, upstream_repo, toolchain, credentials
):
    bare = package_remote()

    result = SyncRunner(config(bare), toolchain=toolchain).process()

    assert result == SyncResult.PUBLISHED
    assert toolchain.steps == ["restore", "build", "pack", "push"]
    assert remote_file(bare, "hash.txt") == hash_directory(upstream_repo / "icons")
    files = _remote_files(bare)
    assert "src/Resources/activity.svg" in files
    assert "src/Resources/airplay.svg" in files
    assert "src/Resources/old.svg" not in files
    assert "src/Resources/activity.json" not in files


def test_unchanged_icons_do_nothing(
    config, package_remote, upstream_repo, toolchain, credentials
):
    bare = package_remote(hash_marker=hash_directory(upstream_repo / "icons"))
    before = git.Repo(bare).head.commit.hexsha

    result = SyncRunner(config(bare), toolchain=toolchain).process()

    assert result == SyncResult.UP_TO_DATE
    assert toolchain.calls == []
    assert git.Repo(bare).head.commit.hexsha == before
    assert "src/Resources/old.svg" in _remote_files(bare)


def test_override_republishes(
    config, package_remote, upstream_repo, toolchain, credentials
):
    bare = package_remote(hash_marker=hash_directory(upstream_repo / "icons"))

    result = SyncRunner(config(bare, override_hash=True), toolchain=toolchain).process()

    assert result == SyncResult.PUBLISHED
    assert "push" in toolchain.steps
    # Resources changed, so there is still something to commit.
    assert "src/Resources/activity.svg" in _remote_files(bare)


def test_changed_icons_overwrite_marker(
    config, package_remote, upstream_repo, toolchain, credentials
):
    bare = package_remote(hash_marker="STALE")

    assert SyncRunner(config(bare), toolchain=toolchain).process() == SyncResult.PUBLISHED
    assert remote_file(bare, "hash.txt") == hash_directory(upstream_repo / "icons")


def test_build_failure_keeps_marker(
    config, package_remote, toolchain, credentials
):
    bare = package_remote(hash_marker="STALE")
    before = git.Repo(bare).head.commit.hexsha
    toolchain.build_ok = False

    result = SyncRunner(config(bare), toolchain=toolchain).process()

    assert result == SyncResult.BUILD_FAILED
    assert toolchain.steps == ["restore", "build"]
    assert git.Repo(bare).head.commit.hexsha == before
    assert remote_file(bare, "hash.txt") == "STALE"


def test_missing_version_is_fatal(
    config, package_remote, toolchain, credentials, monkeypatch
):
    monkeypatch.delenv("BUILD_VERSION")
    bare = package_remote(hash_marker="STALE")

    with pytest.raises(KeyError):
        SyncRunner(config(bare), toolchain=toolchain).process()
    assert toolchain.steps == ["restore", "build"]
    assert remote_file(bare, "hash.txt") == "STALE"


def test_cancelled_run(config, package_remote, toolchain):
    bare = package_remote()
    token = CancellationToken()
    token.cancel()

    with pytest.raises(Cancelled):
        SyncRunner(config(bare), cancellation=token, toolchain=toolchain).process()
    assert toolchain.calls == []


def test_process_directories_marker_equal(tmp_path, toolchain, monkeypatch):
    package = tmp_path / "package"
    upstream = tmp_path / "upstream"
    (package / "src" / "Resources").mkdir(parents=True)
    (package / "src" / "Resources" / "kept.svg").write_text("kept")
    (upstream / "icons").mkdir(parents=True)
    (package / "hash.txt").write_text("abc123")
    monkeypatch.setattr("iconsync.sync.detect.hash_directory", lambda _: "abc123")

    runner = SyncRunner(SyncConfig(library=LIBRARY), toolchain=toolchain)
    assert runner.process_directories(package, upstream) == SyncResult.UP_TO_DATE
    assert toolchain.calls == []
    assert (package / "src" / "Resources" / "kept.svg").exists()
