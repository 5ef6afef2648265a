"""Workflow engine: stores workflows and chains genome runs step by step."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from agentloom.engine.executor import ExecutionEngine, ParallelResult, deadline_after
from agentloom.engine.state import OrchestratorState
from agentloom.errors import NotFoundError, OrchestratorError, RequestValidationError
from agentloom.model.run import RunStatus
from agentloom.model.workflow import INITIAL_INPUT_KEY, Workflow, WorkflowStep

logger = logging.getLogger(__name__)


@dataclass
class WorkflowResult:
    """Outcome of a workflow execution.

    On failure ``failed_step`` names the first failing step and ``results``
    holds the outputs produced before it.
    """

    workflow_id: str
    workflow_name: str
    status: RunStatus
    output: str = ""
    results: dict[str, str] = field(default_factory=dict)
    run_ids: dict[str, str] = field(default_factory=dict)
    failed_step: str | None = None
    error: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "status": self.status.value,
            "workflow": self.workflow_name,
            "results": dict(self.results),
            "run_ids": dict(self.run_ids),
        }
        if self.status is RunStatus.COMPLETED:
            data["output"] = self.output
        else:
            data["step"] = self.failed_step
            data["error"] = self.error
        return data


def substitute_placeholders(text: str, inputs: Mapping[str, str], outputs: dict[str, str]) -> str:
    """Replace each ``${name}`` with the output of the step it maps to.

    Placeholders whose source step has no output yet are left untouched.
    """
    for name, source_step in inputs.items():
        if source_step in outputs:
            text = text.replace("${" + name + "}", outputs[source_step])
    return text


class WorkflowEngine:
    """Creates, lists and executes workflows over the execution engine.

    Steps run in list order. A step flagged ``parallel`` runs together with
    the step after it: each such group fans out like run_parallel, sharing
    the input state from before the group, and is joined before the next
    group starts. The first failure aborts the workflow.

    Example:
        >>> wf = engine.create("review", [
        ...     WorkflowStep(step_id="draft", agent_id=writer_id),
        ...     WorkflowStep(step_id="critique", agent_id=critic_id,
        ...                  inputs={"draft": "draft"}),
        ... ])
        >>> result = engine.run(wf.id, "Write a haiku about rain")
        >>> result.results["draft"]
    """

    def __init__(self, state: OrchestratorState, executor: ExecutionEngine) -> None:
        self._state = state
        self._executor = executor

    def create(self, name: str, steps: Iterable[WorkflowStep]) -> Workflow:
        """Validate and store a new workflow.

        Raises:
            RequestValidationError: If the name or steps are missing, a step
                lacks step_id or agent_id, step IDs repeat, a step uses the
                reserved ``_initial`` ID, or a parallel group is larger than
                MAX_PARALLEL.
        """
        steps = tuple(steps)
        if not name or not steps:
            raise RequestValidationError("name and steps required")

        seen: set[str] = set()
        for index, step in enumerate(steps):
            if not step.step_id or not step.agent_id:
                raise RequestValidationError(f"step {index}: step_id and agent_id required")
            if step.step_id == INITIAL_INPUT_KEY:
                raise RequestValidationError(
                    f"step {index}: step_id '{INITIAL_INPUT_KEY}' is reserved"
                )
            if step.step_id in seen:
                raise RequestValidationError(f"duplicate step_id: {step.step_id}")
            seen.add(step.step_id)

        draft = Workflow(id="", name=name, steps=steps)
        for group in draft.groups():
            if len(group) > self._executor.max_parallel:
                raise RequestValidationError(
                    f"parallel group starting at step '{group[0].step_id}' has {len(group)} "
                    f"steps (max {self._executor.max_parallel})"
                )

        workflow = replace(draft, id=self._state.new_workflow_id(name))
        with self._state.lock.write():
            self._state.workflows[workflow.id] = workflow

        logger.info("Created workflow %s with %d steps", workflow.id, len(steps))
        return workflow

    def list(self) -> list[Workflow]:
        with self._state.lock.read():
            return list(self._state.workflows.values())

    def get(self, workflow_id: str) -> Workflow:
        with self._state.lock.read():
            workflow = self._state.workflows.get(workflow_id)
        if workflow is None:
            raise NotFoundError("workflow", workflow_id)
        return workflow

    def run(
        self,
        workflow_id: str,
        initial_input: str,
        timeout: float | None = None,
    ) -> WorkflowResult:
        """Execute a workflow.

        Args:
            workflow_id: Workflow to run.
            initial_input: Input for the first step, also available to
                placeholders as step ``_initial``.
            timeout: Seconds for the whole workflow. Defaults to
                DEFAULT_TIMEOUT * (number of steps + 1).

        Returns:
            WorkflowResult, completed or failed at the first failing step.

        Raises:
            RequestValidationError: If workflow_id or initial_input is empty.
            NotFoundError: If the workflow does not exist.
        """
        if not workflow_id or not initial_input:
            raise RequestValidationError("workflow_id and initial_input required")
        workflow = self.get(workflow_id)

        if timeout is None:
            timeout = self._executor.default_timeout * (len(workflow.steps) + 1)
        deadline = deadline_after(self._executor.resolve_timeout(timeout))

        result = WorkflowResult(
            workflow_id=workflow.id,
            workflow_name=workflow.name,
            status=RunStatus.RUNNING,
            results={INITIAL_INPUT_KEY: initial_input},
        )
        last_output = initial_input

        for group in workflow.groups():
            inputs = [self._step_input(step, result.results, last_output) for step in group]
            if len(group) == 1:
                slots = [self._run_step(group[0], inputs[0], deadline)]
            else:
                slots = self._executor.fan_out(
                    [(step.agent_id, text) for step, text in zip(group, inputs, strict=True)],
                    deadline,
                )

            for step, slot in zip(group, slots, strict=True):
                if slot.run_id:
                    result.run_ids[step.step_id] = slot.run_id
                if slot.status is RunStatus.COMPLETED:
                    result.results[step.step_id] = slot.output

            for step, slot in zip(group, slots, strict=True):
                if slot.status is not RunStatus.COMPLETED:
                    logger.warning(
                        "Workflow %s failed at step %s: %s", workflow.id, step.step_id, slot.error
                    )
                    result.status = RunStatus.FAILED
                    result.failed_step = step.step_id
                    result.error = slot.error
                    return result

            last_output = slots[-1].output

        result.status = RunStatus.COMPLETED
        result.output = last_output
        logger.info("Workflow %s completed %d steps", workflow.id, len(workflow.steps))
        return result

    def _step_input(self, step: WorkflowStep, outputs: dict[str, str], last_output: str) -> str:
        text = outputs.get(step.step_id) or last_output
        return substitute_placeholders(text, step.inputs, outputs)

    def _run_step(self, step: WorkflowStep, input_text: str, deadline: float) -> ParallelResult:
        try:
            run = self._executor.run_agent(step.agent_id, input_text, deadline=deadline)
        except OrchestratorError as e:
            return ParallelResult(agent_id=step.agent_id, status=RunStatus.FAILED, error=str(e))
        return ParallelResult.from_run(step.agent_id, run)
