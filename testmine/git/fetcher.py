"""Shallow cloning of remote project locators."""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Iterable

from ..logging import ProjectLogAdapter, get_logger
from ..models import Project

CLONE_DEPTH = 1


class FetchError(RuntimeError):
    """Raised when a repository cannot be cloned."""


class GitFetcher:
    """Clones ``https://`` locators into ``<storage>/<author>/<name>``."""

    def __init__(self, repo_storage: Path, runner: Callable[..., str] | None = None) -> None:
        self.repo_storage = Path(repo_storage)
        self._runner = runner or self._default_runner
        self.logger = get_logger("git.fetcher")

    def destination(self, project: Project) -> Path:
        return self.repo_storage / project.author / project.name

    def fetch(self, locator: str, project: Project | None = None) -> Path:
        """Clone ``locator``, replacing any previous working copy, and return its path."""
        project = project or Project.from_locator(locator)
        if not project.name:
            raise FetchError(f"Cannot derive a project name from {locator!r}")
        log = ProjectLogAdapter(self.logger, f"{project.full_name}.downloader")
        dest = self.destination(project)
        if dest.exists():
            log.info("Removing previous working copy %s", dest)
            shutil.rmtree(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)

        log.info("Cloning %s into %s", locator, dest)
        env = os.environ.copy()
        env["GIT_TERMINAL_PROMPT"] = "0"
        args = ["git", "clone", "--depth", str(CLONE_DEPTH), "--progress", locator, str(dest)]
        try:
            self._runner(args, cwd=dest.parent, env=env, log=log)
        except FetchError:
            shutil.rmtree(dest, ignore_errors=True)
            raise
        except (OSError, subprocess.SubprocessError) as exc:
            shutil.rmtree(dest, ignore_errors=True)
            raise FetchError(f"Failed to clone {locator}: {exc}") from exc
        return dest

    def _default_runner(
        self,
        args: Iterable[str],
        *,
        cwd: Path,
        env: dict[str, str] | None = None,
        log: ProjectLogAdapter | None = None,
    ) -> str:
        command = list(args)
        logger = log or self.logger
        lines = []
        # Progress goes to stderr; fold it into stdout and forward it to the log.
        with subprocess.Popen(
            command,
            cwd=str(cwd),
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
        ) as process:
            assert process.stdout is not None
            for line in process.stdout:
                line = line.rstrip()
                if line:
                    lines.append(line)
                    logger.debug("git: %s", line)
            returncode = process.wait()
        if returncode != 0:
            tail = lines[-1] if lines else "no output"
            raise FetchError(f"{' '.join(command[:2])} exited with {returncode}: {tail}")
        return "\n".join(lines)


__all__ = ["CLONE_DEPTH", "FetchError", "GitFetcher"]
