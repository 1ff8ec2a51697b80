"""
Patch Callback - Notifies collaborators about produced patches
"""
from typing import List, Optional

from soraldbot.models import PatchRecord
from soraldbot.utils.logger import logger
from soraldbot.utils.pipeline_logger import PipelineLogger


class PatchCallback:
    """Callback that reports each rule's patches"""

    def __init__(self, pipeline_logger: Optional[PipelineLogger] = None):
        self.pipeline_logger = pipeline_logger
        self.notified: List[PatchRecord] = []

    def notify(self, patches: List[PatchRecord], rule: Optional[str] = None) -> None:
        for patch in patches:
            logger.info(f"[PatchCallback] {patch.tool_name} patch for rule {rule}, diff size: {len(patch.diff)} chars")
            if self.pipeline_logger:
                self.pipeline_logger.log_patch(rule or patch.tool_name, patch.tool_name, patch.description, patch.diff)
        self.notified.extend(patches)
