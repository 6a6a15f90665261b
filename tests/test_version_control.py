"""Tests for VersionControlService."""

from __future__ import annotations

import asyncio
import shutil
import subprocess
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from kbcatalog.services.repository_config import RepositoryConfig
from kbcatalog.services.version_control import GitCommandResult, VersionControlService

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


class FakeGit:
    """Records git invocations and replays scripted results."""

    def __init__(self, results: dict[str, GitCommandResult] | None = None):
        self.calls: list[tuple[tuple[str, ...], str | None]] = []
        self.results = results or {}
        self.on_clone = None

    async def __call__(self, *args: str, cwd: str | None = None) -> GitCommandResult:
        self.calls.append((args, cwd))
        if args[0] == "clone" and self.on_clone is not None:
            return self.on_clone(*args)
        key = " ".join(args)
        for prefix, result in self.results.items():
            if key.startswith(prefix):
                return result
        return GitCommandResult(returncode=0)

    @property
    def commands(self) -> list[str]:
        return [" ".join(args) for args, _ in self.calls]


@pytest.fixture
def config(tmp_path: Path) -> RepositoryConfig:
    """Create a complete repository config."""
    return RepositoryConfig(
        user_name="Ada",
        user_email="ada@example.com",
        remote_address_https="https://github.com/ada/notes.git",
        remote_address_ssh="git@github.com:ada/notes.git",
        repository_directory=str(tmp_path / "notes"),
    )


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture
def git_service(fake_git: FakeGit) -> VersionControlService:
    """Create a service whose git calls go to a FakeGit."""
    service = VersionControlService()
    service._run_git = fake_git
    return service


# =============================================================================
# Clone Tests
# =============================================================================


class TestClone:
    """Tests for clone."""

    @pytest.mark.asyncio
    async def test_clone_prefers_ssh(self, git_service, fake_git, config):
        """Test SSH is tried first and its checkout lands in the target."""

        def clone(_, remote, dest):
            Path(dest).mkdir(parents=True)
            (Path(dest) / "README.md").write_text(remote)
            return GitCommandResult(returncode=0)

        fake_git.on_clone = clone

        assert await git_service.clone(config) is True

        target = Path(config.repository_directory)
        assert (target / "README.md").read_text() == config.remote_address_ssh
        assert len(fake_git.calls) == 1
        assert not list(target.parent.glob("notes.tmp_*"))

    @pytest.mark.asyncio
    async def test_clone_falls_back_to_https(self, git_service, fake_git, config):
        """Test HTTPS is tried when SSH fails."""

        def clone(_, remote, dest):
            if remote.startswith("git@"):
                return GitCommandResult(returncode=128, stderr="Permission denied (publickey)")
            Path(dest).mkdir(parents=True)
            (Path(dest) / "README.md").write_text(remote)
            return GitCommandResult(returncode=0)

        fake_git.on_clone = clone

        assert await git_service.clone(config) is True
        target = Path(config.repository_directory)
        assert (target / "README.md").read_text() == config.remote_address_https
        assert [args[1] for args, _ in fake_git.calls] == [
            config.remote_address_ssh,
            config.remote_address_https,
        ]

    @pytest.mark.asyncio
    async def test_clone_all_remotes_fail(self, git_service, fake_git, config):
        """Test a failed clone leaves nothing behind."""
        fake_git.on_clone = lambda *args: GitCommandResult(returncode=128)

        assert await git_service.clone(config) is False
        assert not Path(config.repository_directory).exists()

    @pytest.mark.asyncio
    async def test_clone_refuses_non_empty_target(self, git_service, fake_git, config):
        """Test an existing non-empty directory is never overwritten."""
        target = Path(config.repository_directory)
        target.mkdir()
        (target / "keep.txt").write_text("mine")

        assert await git_service.clone(config) is False
        assert fake_git.calls == []

    @pytest.mark.asyncio
    async def test_clone_into_empty_existing_directory(self, git_service, fake_git, config):
        """Test an empty target directory is accepted."""
        Path(config.repository_directory).mkdir()

        def clone(_, remote, dest):
            Path(dest).mkdir(parents=True)
            (Path(dest) / "a.txt").write_text("a")
            return GitCommandResult(returncode=0)

        fake_git.on_clone = clone

        assert await git_service.clone(config) is True

    @pytest.mark.asyncio
    async def test_clone_invalid_config(self, git_service, fake_git, config):
        """Test clone validates the remotes first."""
        config = config.model_copy(update={"remote_address_https": None, "remote_address_ssh": None})

        assert await git_service.clone(config) is False
        assert fake_git.calls == []


# =============================================================================
# Stage and Commit Tests
# =============================================================================


class TestStageAll:
    """Tests for stage_all."""

    @pytest.mark.asyncio
    async def test_stage_all(self, git_service, fake_git, config):
        """Test every change is staged in the repository directory."""
        assert await git_service.stage_all(config) is True
        assert fake_git.calls == [(("add", "-A"), config.repository_directory)]

    @pytest.mark.asyncio
    async def test_stage_all_failure(self, git_service, fake_git, config):
        """Test a git error is reported as failure."""
        fake_git.results["add"] = GitCommandResult(returncode=128, stderr="not a git repository")

        assert await git_service.stage_all(config) is False

    @pytest.mark.asyncio
    async def test_stage_all_without_directory(self, git_service, fake_git):
        """Test staging needs a repository directory."""
        assert await git_service.stage_all(RepositoryConfig()) is False
        assert fake_git.calls == []


class TestCommit:
    """Tests for commit."""

    @pytest.mark.asyncio
    async def test_commit_uses_configured_identity(self, git_service, fake_git, config):
        """Test the commit is authored as the configured user."""
        fake_git.results["status"] = GitCommandResult(returncode=0, stdout="A  a.txt\n")

        assert await git_service.commit(config, "  add notes ") is True
        assert fake_git.commands[-1] == (
            "-c user.name=Ada -c user.email=ada@example.com commit -m add notes"
        )

    @pytest.mark.asyncio
    async def test_commit_clean_tree_is_success(self, git_service, fake_git, config):
        """Test nothing to commit counts as success without committing."""
        fake_git.results["status"] = GitCommandResult(returncode=0, stdout="")

        assert await git_service.commit(config, "noop") is True
        assert fake_git.commands == ["status --porcelain"]

    @pytest.mark.asyncio
    async def test_commit_empty_message(self, git_service, fake_git, config):
        """Test a blank message is refused."""
        assert await git_service.commit(config, "   ") is False
        assert fake_git.calls == []

    @pytest.mark.asyncio
    async def test_commit_invalid_identity(self, git_service, fake_git, config):
        """Test commit validates the identity."""
        config = config.model_copy(update={"user_email": "bad"})

        assert await git_service.commit(config, "msg") is False
        assert fake_git.calls == []

    @pytest.mark.asyncio
    async def test_commit_failure(self, git_service, fake_git, config):
        """Test a failing commit is reported."""
        fake_git.results["status"] = GitCommandResult(returncode=0, stdout="M a.txt\n")
        fake_git.results["-c"] = GitCommandResult(returncode=1, stderr="hook failed")

        assert await git_service.commit(config, "msg") is False


# =============================================================================
# Push Tests
# =============================================================================


class TestPush:
    """Tests for push."""

    @pytest.mark.asyncio
    async def test_push_resets_origin_to_ssh(self, git_service, fake_git, config):
        """Test origin is re-pointed at the SSH remote before pushing."""
        fake_git.results["rev-parse"] = GitCommandResult(returncode=0, stdout="main\n")

        assert await git_service.push(config) is True
        assert fake_git.commands == [
            "rev-parse --abbrev-ref HEAD",
            "remote remove origin",
            f"remote add origin {config.remote_address_ssh}",
            "push origin refs/heads/main",
        ]

    @pytest.mark.asyncio
    async def test_push_detached_head(self, git_service, fake_git, config):
        """Test a detached HEAD cannot be pushed."""
        fake_git.results["rev-parse"] = GitCommandResult(returncode=0, stdout="HEAD\n")

        assert await git_service.push(config) is False
        assert len(fake_git.calls) == 1

    @pytest.mark.asyncio
    async def test_push_requires_ssh_remote(self, git_service, fake_git, config):
        """Test pushing needs the SSH address."""
        config = config.model_copy(update={"remote_address_ssh": None})

        assert await git_service.push(config) is False
        assert fake_git.calls == []

    @pytest.mark.asyncio
    async def test_push_rejected(self, git_service, fake_git, config):
        """Test a rejected push is reported."""
        fake_git.results["rev-parse"] = GitCommandResult(returncode=0, stdout="main\n")
        fake_git.results["push"] = GitCommandResult(returncode=1, stderr="rejected")

        assert await git_service.push(config) is False


# =============================================================================
# Subprocess Tests
# =============================================================================


class TestRunGit:
    """Tests for the git subprocess wrapper."""

    @pytest.mark.asyncio
    async def test_missing_executable(self):
        """Test a missing git binary becomes a failed result."""
        service = VersionControlService(git_executable="definitely-not-git-xyz")

        result = await service._run_git("--version")

        assert result.ok is False
        assert result.returncode == -1

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, monkeypatch):
        """Test a hung git is killed and reported as failed."""

        async def hang():
            await asyncio.sleep(10)

        proc = MagicMock()
        proc.communicate = hang
        proc.wait = AsyncMock(return_value=-9)
        monkeypatch.setattr(
            asyncio, "create_subprocess_exec", AsyncMock(return_value=proc)
        )
        service = VersionControlService(timeout=0.01)

        result = await service._run_git("fetch")

        proc.kill.assert_called_once()
        assert result.ok is False
        assert result.stderr == "timed out"

    @requires_git
    @pytest.mark.asyncio
    async def test_version(self):
        """Test output is captured from a real git."""
        result = await VersionControlService()._run_git("--version")

        assert result.ok
        assert result.stdout.startswith("git version")

    @requires_git
    @pytest.mark.asyncio
    async def test_stage_and_commit_real_repository(self, config):
        """Test staging and committing in a freshly initialized repository."""
        repo = Path(config.repository_directory)
        repo.mkdir()
        subprocess.run(["git", "init", "-q"], cwd=repo, check=True)
        (repo / "a.txt").write_text("hello")
        service = VersionControlService()

        assert await service.stage_all(config) is True
        assert await service.commit(config, "first") is True
        assert await service.commit(config, "nothing new") is True

        log = subprocess.run(
            ["git", "log", "--format=%an <%ae> %s"],
            cwd=repo, check=True, capture_output=True, text=True,
        )
        assert log.stdout.strip() == "Ada <ada@example.com> first"
