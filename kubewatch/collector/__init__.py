"""Collector package for kubewatch.

Submodules
----------
watcher    -- ResourceWatcher: empty-baseline priming, watch stream, back-off, 410 re-priming.
supervisor -- WatchSupervisor: all-or-nothing start-up of one loop per resource.
"""

from kubewatch.collector.supervisor import WatchSupervisor
from kubewatch.collector.watcher import ResourceWatcher

__all__ = ["ResourceWatcher", "WatchSupervisor"]
