"""
Sorald Executor
Runs the Sorald repair tool on a local clone.
"""

import subprocess
from pathlib import Path
from typing import List, Optional, Set

from soraldbot.core.config import Settings, settings as default_settings
from soraldbot.core.exceptions import RepairEngineFailure
from soraldbot.models import TargetCommit
from soraldbot.services.local_repository_service import LocalRepositoryService
from soraldbot.utils.logger import logger

SPOON_SNIPER_MODE = "SNIPER"


class SoraldAdapter:
    """
    Executes Sorald through its command line jar.
    The pretty-printing mode is passed to Sorald untouched.
    """

    def __init__(
        self,
        workspace: Optional[Path] = None,
        config: Optional[Settings] = None,
        repository_service: Optional[LocalRepositoryService] = None,
    ):
        self.settings = config or default_settings
        self.workspace = Path(workspace or self.settings.WORKSPACE_PATH)
        self.repository_service = repository_service or LocalRepositoryService(self.settings)

    def build_command(self, rule: str, working_dir: Path, mode: str) -> List[str]:
        return [
            self.settings.JAVA_EXECUTABLE,
            "-jar", self.settings.SORALD_JAR_PATH,
            "repair",
            "--source", str(working_dir),
            "--rule-key", rule,
            "--pretty-printing-strategy", mode,
        ]

    def repair(self, rule: str, working_dir: Path, mode: str = SPOON_SNIPER_MODE) -> None:
        """
        Repair every violation of ``rule`` in ``working_dir`` in place.

        Raises:
            RepairEngineFailure: Sorald could not be started, timed out or exited non-zero
        """
        command = self.build_command(rule, working_dir, mode)
        logger.info(f"[Sorald] Executing: {' '.join(command)}")

        try:
            result = subprocess.run(
                command,
                cwd=working_dir,
                capture_output=True,
                text=True,
                timeout=self.settings.SORALD_TIMEOUT,
            )
        except subprocess.TimeoutExpired as e:
            raise RepairEngineFailure(f"Sorald timed out after {e.timeout}s on rule {rule}") from e
        except OSError as e:
            raise RepairEngineFailure(f"Could not launch Sorald: {e}") from e

        if result.returncode != 0:
            # the end of the output usually holds the error
            tail = "\n".join((result.stdout + result.stderr).splitlines()[-50:])
            logger.error(f"[Sorald] Repair of rule {rule} failed with exit code {result.returncode}:\n{tail}")
            raise RepairEngineFailure(f"Sorald exited with code {result.returncode} on rule {rule}")

        logger.info(f"[Sorald] Rule {rule} repaired in {working_dir}")

    def repair_and_return_modified_files(
        self,
        target: TargetCommit,
        rule: str,
        repo_path_hint: str,
        mode: str = SPOON_SNIPER_MODE,
    ) -> Set[str]:
        """
        Repair ``rule`` on a scratch clone of the target commit and return the
        violation-introducing files: those Sorald modified that the target
        commit touched. The scratch clone is reverted before returning.
        """
        scratch_path = self.workspace / repo_path_hint
        self.repository_service.ensure_clone(target.repo_url, scratch_path)
        self.repository_service.checkout_commit(scratch_path, target.commit_id)

        try:
            self.repair(rule, scratch_path, mode)
            modified = self.repository_service.modified_files(scratch_path)
            touched = self.repository_service.touched_files(scratch_path, target.commit_id)
        finally:
            self.repository_service.revert_changes(scratch_path)

        introducing = modified & touched
        logger.info(
            f"[Sorald] Rule {rule}: {len(modified)} modified file(s), "
            f"{len(introducing)} touched by {target.short_id}"
        )
        return introducing
