"""Git operations for the repository a catalog lives in.

Shells out to the ``git`` executable. Every public method reports success as a
bool and logs the reason for a failure; nothing here raises to the caller.
The catalog does not depend on these operations.
"""

from __future__ import annotations

import asyncio
import shutil
import uuid
from pathlib import Path

from kbcatalog.core.config import settings
from kbcatalog.core.logging import get_logger
from kbcatalog.services.repository_config import RepositoryConfig

logger = get_logger(__name__)


class GitCommandResult:
    """Exit code and output of one git invocation."""

    def __init__(self, returncode: int, stdout: str = "", stderr: str = ""):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

    @property
    def ok(self) -> bool:
        """Whether git exited with status 0."""
        return self.returncode == 0


class VersionControlService:
    """Clone, stage, commit and push through the git command line."""

    def __init__(self, git_executable: str | None = None, timeout: float | None = None):
        self.git_executable = git_executable or settings.git_executable
        self.timeout = timeout or settings.git_timeout

    async def clone(self, config: RepositoryConfig) -> bool:
        """Clone the configured remote into the repository directory.

        The SSH address is tried first, then HTTPS. Cloning goes to a sibling
        temporary directory whose contents are then copied into place, so a
        failed clone leaves the target untouched.
        """
        if not config.validate_clone_config():
            return False

        target = Path(config.repository_directory)
        if target.is_dir() and any(target.iterdir()):
            logger.warning("clone_target_not_empty", target=str(target))
            return False

        remotes = [r for r in (config.remote_address_ssh, config.remote_address_https) if r]
        for remote in remotes:
            temp_dir = target.with_name(f"{target.name}.tmp_{uuid.uuid4().hex[:8]}")
            try:
                result = await self._run_git("clone", remote, str(temp_dir))
                if not result.ok:
                    logger.warning("clone_failed", remote=remote, stderr=result.stderr.strip())
                    continue

                await asyncio.to_thread(
                    shutil.copytree, temp_dir, target, dirs_exist_ok=True
                )
                logger.info("clone_completed", remote=remote, target=str(target))
                return True
            except OSError as e:
                logger.error("clone_copy_failed", remote=remote, error=str(e), exc_info=True)
            finally:
                if temp_dir.exists():
                    await asyncio.to_thread(shutil.rmtree, temp_dir, ignore_errors=True)

        return False

    async def stage_all(self, config: RepositoryConfig) -> bool:
        """Stage every change in the repository (``git add -A``)."""
        if not config.repository_directory:
            logger.warning("git_missing_repository_directory")
            return False

        result = await self._run_git("add", "-A", cwd=config.repository_directory)
        if not result.ok:
            logger.warning("stage_failed", stderr=result.stderr.strip())
            return False

        logger.info("stage_completed", repository=config.repository_directory)
        return True

    async def commit(self, config: RepositoryConfig, message: str) -> bool:
        """Commit staged changes with the configured identity.

        A clean working tree counts as success.
        """
        if not config.validate_core_config():
            return False
        if not message or not message.strip():
            logger.warning("commit_message_empty")
            return False

        cwd = config.repository_directory
        status = await self._run_git("status", "--porcelain", cwd=cwd)
        if not status.ok:
            logger.warning("status_failed", stderr=status.stderr.strip())
            return False
        if not status.stdout.strip():
            logger.info("commit_skipped", reason="working directory clean")
            return True

        user_name = config.user_name
        user_email = config.user_email
        result = await self._run_git(
            "-c", f"user.name={user_name}",
            "-c", f"user.email={user_email}",
            "commit", "-m", message.strip(),
            cwd=cwd,
        )
        if not result.ok:
            logger.warning("commit_failed", stderr=result.stderr.strip())
            return False

        logger.info("commit_completed", author=f"{user_name} <{user_email}>")
        return True

    async def push(self, config: RepositoryConfig) -> bool:
        """Point ``origin`` at the SSH remote and push the current branch."""
        if not config.repository_directory:
            logger.warning("git_missing_repository_directory")
            return False
        if not config.remote_address_ssh:
            logger.warning("push_missing_ssh_remote")
            return False

        cwd = config.repository_directory
        branch = await self._run_git("rev-parse", "--abbrev-ref", "HEAD", cwd=cwd)
        if not branch.ok or branch.stdout.strip() in ("", "HEAD"):
            logger.warning("push_no_active_branch", stderr=branch.stderr.strip())
            return False
        branch_name = branch.stdout.strip()

        # Reset origin to the SSH address
        await self._run_git("remote", "remove", "origin", cwd=cwd)
        added = await self._run_git("remote", "add", "origin", config.remote_address_ssh, cwd=cwd)
        if not added.ok:
            logger.warning("push_remote_failed", stderr=added.stderr.strip())
            return False

        result = await self._run_git("push", "origin", f"refs/heads/{branch_name}", cwd=cwd)
        if not result.ok:
            logger.warning("push_failed", branch=branch_name, stderr=result.stderr.strip())
            return False

        logger.info("push_completed", branch=branch_name, remote="origin")
        return True

    async def _run_git(self, *args: str, cwd: str | None = None) -> GitCommandResult:
        """Run git with a timeout. Launch failures become a non-zero result."""
        try:
            proc = await asyncio.create_subprocess_exec(
                self.git_executable,
                *args,
                cwd=cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, NotADirectoryError, PermissionError) as e:
            logger.error("git_launch_failed", args=list(args), error=str(e))
            return GitCommandResult(returncode=-1, stderr=str(e))

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            logger.warning("git_timeout", args=list(args), timeout=self.timeout)
            return GitCommandResult(returncode=-1, stderr="timed out")

        return GitCommandResult(
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
