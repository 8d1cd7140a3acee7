"""
Resource Table

Default handling for ready notifications: show the resource, apply the
default placement and keep track of it.
"""

import logging
from typing import Callable, Dict, List, Optional

from .launcher.exceptions import StaleResourceError
from .launcher.interface import BaseResource

logger = logging.getLogger(__name__)


class ResourceTable:
    """
    Resources that went through default handling, keyed by pid.

    Entries whose resource has died are pruned whenever the table is listed.
    """

    def __init__(
        self,
        default_tags: Optional[List[str]] = None,
        liveness_check: Optional[Callable[[BaseResource], bool]] = None,
    ):
        """
        Initialize resource table.

        Args:
            default_tags: Placement tags given to resources without any
            liveness_check: Probe used when pruning (defaults to the handle's own)
        """
        self.default_tags = list(default_tags or [])
        self._liveness_check = liveness_check or (lambda resource: resource.is_alive())
        self._resources: Dict[int, BaseResource] = {}

    def manage(self, resource: BaseResource) -> None:
        """Make the resource visible and apply default placement"""
        resource.hidden = False
        if not resource.tags:
            resource.tags = list(self.default_tags)

        if resource.pid is not None:
            self._resources[resource.pid] = resource
        logger.debug(f"Managed resource pid {resource.pid} tags={resource.tags}")

    __call__ = manage

    def get(self, pid: int) -> Optional[BaseResource]:
        return self._resources.get(pid)

    def forget(self, pid: int) -> bool:
        return self._resources.pop(pid, None) is not None

    def prune(self) -> int:
        """
        Forget resources whose process is gone.

        Returns:
            Number of entries removed
        """
        removed = 0
        for pid, resource in list(self._resources.items()):
            try:
                alive = self._liveness_check(resource)
            except StaleResourceError:
                alive = False

            if not alive and self.forget(pid):
                removed += 1

        if removed:
            logger.debug(f"Pruned {removed} dead resources")
        return removed

    def resources(self) -> List[BaseResource]:
        """Live managed resources"""
        self.prune()
        return list(self._resources.values())

    def __len__(self) -> int:
        return len(self._resources)

    def __contains__(self, pid: object) -> bool:
        return pid in self._resources
