import os
from pathlib import Path

import git
import pytest

LIBRARY = "Test.Icons"

AUTHOR = git.Actor("Seed", "seed@example.com")

CREDENTIALS = {
    "BUILD_VERSION": "1.2.3",
    "NUGET__TOKEN": "nuget-secret",
    "GIT__NAME": "Sync Bot",
    "GIT__EMAIL": "bot@example.com",
    "GH__USERNAME": "bot",
    "GH__TOKEN": "gh-secret",
}


def write_files(root: Path, files):
    for rel_path, content in files.items():
        fp = root / rel_path
        os.makedirs(fp.parent, exist_ok=True)
        fp.write_text(content, encoding="utf-8")


def make_repo(path: Path, files) -> git.Repo:
    repo = git.Repo.init(path)
    write_files(path, files)
    repo.git.add(A=True)
    repo.index.commit("Initial commit", author=AUTHOR, committer=AUTHOR)
    return repo


class FakeToolchain:
    """Records calls instead of running dotnet. Pack drops an empty nupkg
    where dotnet would."""

    def __init__(self):
        self.calls = []
        self.build_ok = True
        self.create_package = True

    def restore(self, project_file):
        self.calls.append(("restore", Path(project_file).name))
        return True

    def build(self, project_file, configuration):
        self.calls.append(("build", configuration))
        return self.build_ok

    def pack(self, project_file, version, configuration, output_dir):
        self.calls.append(("pack", version))
        if self.create_package:
            library = Path(project_file).stem
            (Path(output_dir) / f"{library}.{version}.nupkg").write_bytes(b"")
        return True

    def push(self, package_path, api_key, source):
        self.calls.append(("push", Path(package_path).name, api_key))
        return True

    @property
    def steps(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def toolchain():
    return FakeToolchain()


@pytest.fixture
def credentials(monkeypatch):
    for name, value in CREDENTIALS.items():
        monkeypatch.setenv(name, value)
    return CREDENTIALS


@pytest.fixture
def upstream_repo(tmp_path):
    """A local stand-in for the upstream icon repository."""
    path = tmp_path / "upstream"
    make_repo(
        path,
        {
            "icons/activity.svg": "<svg>activity</svg>",
            "icons/airplay.svg": "<svg>airplay</svg>",
            "icons/activity.json": "{}",
            "README.md": "icons",
        },
    )
    return path


@pytest.fixture
def package_remote(tmp_path):
    """Bare repository playing the role of the package's GitHub repo."""

    def make(hash_marker=None):
        seed_files = {
            f"src/{LIBRARY}.csproj": "<Project />",
            "src/Resources/old.svg": "<svg>old</svg>",
            ".gitignore": "*.nupkg\n",
        }
        if hash_marker is not None:
            seed_files["hash.txt"] = hash_marker
        seed = make_repo(tmp_path / "package-seed", seed_files)
        bare = tmp_path / "package.git"
        seed.clone(bare, bare=True)
        return bare

    return make


@pytest.fixture
def package_clone(tmp_path, package_remote):
    """Working copy of the package repo, as the runner would clone it."""

    def make(hash_marker=None):
        bare = package_remote(hash_marker)
        work = tmp_path / "package-work"
        git.Repo.clone_from(str(bare), work)
        return work, bare

    return make


def remote_file(bare: Path, path: str) -> str:
    repo = git.Repo(bare)
    return repo.git.show(f"HEAD:{path}")
