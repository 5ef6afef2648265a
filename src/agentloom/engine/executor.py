"""Execution engine: runs genomes against the LLM abstraction.

run_agent executes one genome under a deadline; run_parallel fans a batch
out over worker threads (one per agent) and joins them. LLM failures and
deadline expiry never raise from either call: they come back as failed runs.
Only request problems (empty fields, unknown agent for run_agent, oversized
batches) raise OrchestratorError subclasses.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from agentloom.config import OrchestratorConfig, get_config
from agentloom.engine.ledger import RunLedger
from agentloom.engine.registry import GenomeRegistry
from agentloom.errors import CapacityExceededError, OrchestratorError, RequestValidationError
from agentloom.llm.client import GenerationRequest, LLMClient, LLMClientError
from agentloom.model.genome import AgentGenome
from agentloom.model.run import AgentRun, RunStatus

logger = logging.getLogger(__name__)


class DeadlineExceededError(LLMClientError):
    """Raised when an LLM call finishes (or would start) after the deadline."""


@dataclass
class ParallelResult:
    """Outcome of one slot in a parallel batch."""

    agent_id: str
    status: RunStatus
    run_id: str = ""
    output: str = ""
    error: str = ""

    @classmethod
    def from_run(cls, agent_id: str, run: AgentRun) -> ParallelResult:
        return cls(
            agent_id=agent_id,
            status=run.status,
            run_id=run.run_id,
            output=run.output,
            error=run.error,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "agent_id": self.agent_id,
            "run_id": self.run_id,
            "status": self.status.value,
        }
        if self.output:
            data["output"] = self.output
        if self.error:
            data["error"] = self.error
        return data


def deadline_after(timeout: float) -> float:
    """Absolute monotonic deadline ``timeout`` seconds from now."""
    return time.monotonic() + timeout


def simulated_output(genome: AgentGenome, input_text: str) -> str:
    """Deterministic placeholder used when no LLM client is configured."""
    return f"[Simulated] Agent '{genome.name}' would process: {input_text}"


class ExecutionEngine:
    """Runs agent genomes, singly or in bounded parallel batches.

    The LLM call is made with no lock held, so many runs can have calls in
    flight while registry and ledger bookkeeping stays serialized.

    Example:
        >>> engine = ExecutionEngine(registry, ledger, llm_client=client)
        >>> run = engine.run_agent(genome_id, "Summarize this paragraph ...")
        >>> run.status
        <RunStatus.COMPLETED: 'completed'>
        >>> results = engine.run_parallel([a, b, c], "Same question for all")
    """

    def __init__(
        self,
        registry: GenomeRegistry,
        ledger: RunLedger,
        llm_client: LLMClient | None = None,
        config: OrchestratorConfig | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            registry: Where genomes are resolved.
            ledger: Where runs are recorded.
            llm_client: Backend to generate with. None enables dry-run mode.
            config: Limits and defaults. Loads from environment if not provided.
        """
        self._registry = registry
        self._ledger = ledger
        self._llm_client = llm_client
        self._config = config or get_config()

    @property
    def max_parallel(self) -> int:
        return self._config.max_parallel

    @property
    def default_timeout(self) -> float:
        return self._config.default_timeout

    @property
    def dry_run(self) -> bool:
        return self._llm_client is None

    def resolve_timeout(self, timeout: float | None) -> float:
        """Return the explicit timeout, or the configured default when unset.

        Raises:
            RequestValidationError: If an explicit timeout is not positive.
        """
        if timeout is None:
            return self._config.default_timeout
        if timeout <= 0:
            raise RequestValidationError(f"timeout must be positive, got {timeout}")
        return float(timeout)

    def run_agent(
        self,
        agent_id: str,
        input_text: str,
        timeout: float | None = None,
        *,
        deadline: float | None = None,
    ) -> AgentRun:
        """Execute one genome against an input.

        Args:
            agent_id: ID of the genome to run.
            input_text: User prompt for the agent.
            timeout: Seconds allowed for the call. Defaults to DEFAULT_TIMEOUT.
            deadline: Absolute monotonic deadline inherited from a batch or
                workflow. Takes precedence over ``timeout``.

        Returns:
            Snapshot of the terminal run (completed or failed).

        Raises:
            RequestValidationError: If agent_id or input_text is empty.
            NotFoundError: If the genome is not registered.
        """
        if not agent_id or not input_text:
            missing = "agent_id" if not agent_id else "input"
            raise RequestValidationError(f"agent_id and input required: missing {missing}")
        if deadline is None:
            deadline = deadline_after(self.resolve_timeout(timeout))

        genome = self._registry.get(agent_id)
        run = self._ledger.start(genome.id, input_text)
        logger.info(
            "Run started for agent %s",
            genome.id,
            extra={"run_id": run.run_id, "agent_id": genome.id},
        )

        try:
            output = self._generate(genome, input_text, deadline)
        except Exception as e:
            if not isinstance(e, LLMClientError):
                logger.exception(
                    "LLM client raised an unexpected error", extra={"run_id": run.run_id}
                )
            finished = self._ledger.finish(run.run_id, error=str(e) or type(e).__name__)
            logger.warning(
                "Run failed: %s",
                finished.error,
                extra={"run_id": run.run_id, "agent_id": genome.id},
            )
            return finished

        finished = self._ledger.finish(run.run_id, output=output)
        logger.info("Run completed", extra={"run_id": run.run_id, "agent_id": genome.id})
        return finished

    def _generate(self, genome: AgentGenome, input_text: str, deadline: float) -> str:
        if self._llm_client is None:
            return simulated_output(genome, input_text)

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise DeadlineExceededError("deadline exceeded before the LLM call started")

        request = GenerationRequest(
            model=genome.model,
            system_prompt=genome.system_prompt,
            prompt=input_text,
            temperature=genome.effective_temperature(self._config.default_temperature),
            max_tokens=genome.effective_max_tokens(self._config.default_max_tokens),
            timeout=remaining,
        )
        output = self._llm_client.generate(request)
        if time.monotonic() > deadline:
            raise DeadlineExceededError(f"deadline exceeded ({remaining:.1f}s budget)")
        return output

    def check_capacity(self, count: int) -> None:
        """Reject a fan-out of ``count`` agents above the parallelism cap.

        Raises:
            CapacityExceededError: If count exceeds MAX_PARALLEL.
        """
        if count > self._config.max_parallel:
            raise CapacityExceededError(count, self._config.max_parallel)

    def run_parallel(
        self,
        agent_ids: list[str],
        input_text: str,
        timeout: float | None = None,
        *,
        deadline: float | None = None,
    ) -> list[ParallelResult]:
        """Run several genomes on the same input concurrently.

        The whole batch shares one deadline. Results are indexed by request
        position, whatever order the runs finish in. A failing slot (LLM
        error, timeout or unknown agent) never aborts the others.

        Raises:
            RequestValidationError: If agent_ids or input_text is empty.
            CapacityExceededError: If more agents than MAX_PARALLEL are
                requested. No run is created in that case.
        """
        if not agent_ids or not input_text:
            missing = "agent_ids" if not agent_ids else "input"
            raise RequestValidationError(f"agent_ids and input required: missing {missing}")
        self.check_capacity(len(agent_ids))
        if deadline is None:
            deadline = deadline_after(self.resolve_timeout(timeout))

        return self.fan_out([(agent_id, input_text) for agent_id in agent_ids], deadline)

    def fan_out(self, jobs: list[tuple[str, str]], deadline: float) -> list[ParallelResult]:
        """Run (agent_id, input) jobs on one thread each and join them.

        Callers are responsible for the capacity check.
        """
        results: list[ParallelResult | None] = [None] * len(jobs)

        def run_slot(index: int, agent_id: str, input_text: str) -> None:
            try:
                run = self.run_agent(agent_id, input_text, deadline=deadline)
            except OrchestratorError as e:
                results[index] = ParallelResult(
                    agent_id=agent_id, status=RunStatus.FAILED, error=str(e)
                )
            else:
                results[index] = ParallelResult.from_run(agent_id, run)

        with ThreadPoolExecutor(
            max_workers=len(jobs), thread_name_prefix="agent_run"
        ) as executor:
            futures = [
                executor.submit(run_slot, index, agent_id, input_text)
                for index, (agent_id, input_text) in enumerate(jobs)
            ]
            for future in futures:
                future.result()

        return [result for result in results if result is not None]
