"""Shared in-memory state guarded by a single reader/writer lock.

Every component (registry, ledger, workflow engine, optimizer) holds a
reference to one OrchestratorState. Reads take the shared side of the lock
only long enough to copy a snapshot; writes take the exclusive side only for
the in-memory update, never across an LLM call.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from agentloom.model.genome import AgentGenome
from agentloom.model.run import AgentRun
from agentloom.model.workflow import Workflow

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Writer-preferring reader/writer lock.

    Any number of readers may hold the lock together; a writer holds it
    alone. Once a writer is waiting, new readers queue behind it so a steady
    stream of reads cannot starve a write. Not reentrant.

    Example:
        >>> lock = ReadWriteLock()
        >>> with lock.read():
        ...     snapshot = dict(data)
        >>> with lock.write():
        ...     data[key] = value
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer_active = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        """Hold the shared side of the lock for the duration of the block."""
        with self._cond:
            while self._writer_active or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        """Hold the exclusive side of the lock for the duration of the block."""
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer_active or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer_active = True
        try:
            yield
        finally:
            with self._cond:
                self._writer_active = False
                self._cond.notify_all()


def _slug(name: str) -> str:
    return name.strip().replace(" ", "_")


@dataclass
class OrchestratorState:
    """Arena of genomes, runs and workflows keyed by ID.

    Dict fields must only be touched while holding ``lock``. ID generators
    are safe to call with or without the lock; they check for collisions
    against every ID ever issued, including IDs reserved for genomes that
    were never persisted.
    """

    genomes: dict[str, AgentGenome] = field(default_factory=dict)
    runs: dict[str, AgentRun] = field(default_factory=dict)
    workflows: dict[str, Workflow] = field(default_factory=dict)
    lock: ReadWriteLock = field(default_factory=ReadWriteLock)

    _issued_ids: set[str] = field(default_factory=set, repr=False)
    _id_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def _issue(self, prefix: str) -> str:
        with self._id_lock:
            while True:
                candidate = f"{prefix}_{uuid.uuid4().hex[:12]}"
                if candidate not in self._issued_ids:
                    self._issued_ids.add(candidate)
                    return candidate

    def new_genome_id(self, name: str) -> str:
        """Issue a unique genome ID of the form agent_<name>_<suffix>."""
        return self._issue(f"agent_{_slug(name)}")

    def new_run_id(self) -> str:
        """Issue a unique run ID of the form run_<suffix>."""
        return self._issue("run")

    def new_workflow_id(self, name: str) -> str:
        """Issue a unique workflow ID of the form wf_<name>_<suffix>."""
        return self._issue(f"wf_{_slug(name)}")
