"""
Pipeline Logger
Writes every stage of a repair run to its own folder for debugging
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from soraldbot.core.config import settings
from soraldbot.utils.logger import logger


class PipelineLogger:
    """Logs all stages of one repair run on one target commit"""

    def __init__(self, repo_name: str, base_log_path: Optional[str] = None):
        """
        Initialize pipeline logger for a repository

        Args:
            repo_name: Name of the repository being processed
            base_log_path: Base path for logs (default: from settings or ./logs/pipeline)
        """
        self.repo_name = repo_name
        self.session_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")

        if base_log_path is None:
            base_log_path = settings.PIPELINE_LOG_PATH or "logs/pipeline"

        self.log_dir = Path(base_log_path) / repo_name.replace("/", "_") / self.session_id
        self.rules_dir = self.log_dir / "rules"
        self.errors_dir = self.log_dir / "errors"

        for directory in [self.log_dir, self.rules_dir, self.errors_dir]:
            directory.mkdir(parents=True, exist_ok=True)

        self.session_info: Dict[str, Any] = {
            "repo_name": repo_name,
            "session_id": self.session_id,
            "start_time": datetime.now().isoformat(),
            "log_directory": str(self.log_dir),
            "stages": []
        }

        logger.info(f"[PIPELINE] Initialized logging for {repo_name} at {self.log_dir}")

    def _stage(self, stage: str, **extra: Any) -> None:
        self.session_info["stages"].append({
            "stage": stage,
            "timestamp": datetime.now().isoformat(),
            **extra
        })

    def _rule_dir(self, rule: str) -> Path:
        rule_dir = self.rules_dir / rule
        rule_dir.mkdir(exist_ok=True)
        return rule_dir

    def log_input(self, commit_id: str, commit_url: str, rules: List[str], repo_path: str):
        """Log the target commit and the rules of the run"""
        self._save_json(self.log_dir / "00_input.json", {
            "timestamp": datetime.now().isoformat(),
            "commit_id": commit_id,
            "commit_url": commit_url,
            "rules": rules,
            "repo_path": repo_path,
        })
        self._stage("input")

    def log_base_branch(self, branch: Optional[str], candidates: List[str]):
        self._save_json(self.log_dir / "01_base_branch.json", {
            "branch": branch,
            "candidates": candidates,
        })
        self._stage("base_branch", branch=branch)

    def log_rule_state(self, rule: str, state: str, history: List[str], files: Optional[List[str]] = None):
        self._save_json(self._rule_dir(rule) / "state.json", {
            "rule": rule,
            "state": state,
            "history": history,
            "files": sorted(files or []),
            "timestamp": datetime.now().isoformat(),
        })
        self._stage(f"rule_{rule}_{state}")

    def log_patch(self, rule: str, tool_name: str, description: str, diff: str):
        rule_dir = self._rule_dir(rule)
        self._save_text(rule_dir / "patch.diff", diff)
        self._save_json(rule_dir / "patch.json", {
            "tool_name": tool_name,
            "description": description,
            "diff_size": len(diff),
        })
        self._stage(f"rule_{rule}_patch", diff_size=len(diff))

    def log_pull_request(self, rule: str, branch_name: str, url: Optional[str]):
        self._save_json(self._rule_dir(rule) / "pull_request.json", {
            "branch_name": branch_name,
            "url": url,
        })
        self._stage(f"rule_{rule}_pull_request", url=url)

    def log_error(self, error_type: str, message: str):
        """Log an error that ended the run"""
        filename = f"{datetime.now().strftime('%H%M%S_%f')}_{error_type}.txt"
        self._save_text(self.errors_dir / filename, message)
        self._stage("error", error_type=error_type)
        logger.error(f"[PIPELINE] {error_type}: {message}")

    def save_session_summary(self, status: str, message: str = "") -> Path:
        """Write the session summary and return its path"""
        self.session_info["end_time"] = datetime.now().isoformat()
        self.session_info["status"] = status
        self.session_info["message"] = message
        summary_path = self.log_dir / "session_summary.json"
        self._save_json(summary_path, self.session_info)
        logger.info(f"[PIPELINE] Session summary written to {summary_path}")
        return summary_path

    def _save_json(self, path: Path, data: Dict[str, Any]):
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)

    def _save_text(self, path: Path, text: str):
        with open(path, 'w', encoding='utf-8') as f:
            f.write(text or "")
