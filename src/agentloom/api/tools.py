"""Tool dispatcher and the REST endpoints that expose it.

Every orchestrator operation is a named tool taking a JSON payload and
returning JSON. Tool names carry an ``orchestrator_`` prefix; a doubled
prefix (as added by gateways that namespace worker tools) is accepted too.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from fastapi import APIRouter, HTTPException, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from agentloom.engine.orchestrator import Orchestrator
from agentloom.errors import (
    CapacityExceededError,
    NotFoundError,
    OrchestratorError,
    RequestValidationError,
    UnknownToolError,
)
from agentloom.model.workflow import WorkflowStep

logger = logging.getLogger(__name__)

TOOL_PREFIX = "orchestrator_"

router = APIRouter(prefix="/api/v1/tools", tags=["tools"])


# Request models


class ToolRequest(BaseModel):
    """Base for tool payloads. Unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")


class RegisterAgentRequest(ToolRequest):
    name: str = ""
    model: str = ""
    provider: str = ""
    system_prompt: str = ""
    tools: list[str] = Field(default_factory=list)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, ge=0)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ListAgentsRequest(ToolRequest):
    limit: int | None = Field(default=None, ge=0)


class AgentIdRequest(ToolRequest):
    agent_id: str = Field(default="", validate_default=True)

    @field_validator("agent_id")
    @classmethod
    def agent_id_not_empty(cls, v: str) -> str:
        """Validate agent_id is present."""
        if not v or not v.strip():
            raise ValueError("agent_id required")
        return v.strip()


class RunAgentRequest(ToolRequest):
    agent_id: str = ""
    input: str = ""
    timeout: float | None = Field(default=None, gt=0, description="Seconds")


class RunParallelRequest(ToolRequest):
    agent_ids: list[str] = Field(default_factory=list)
    input: str = ""
    timeout: float | None = Field(default=None, gt=0, description="Seconds")


class RunWorkflowRequest(ToolRequest):
    workflow_id: str = ""
    initial_input: str = ""
    timeout: float | None = Field(default=None, gt=0, description="Seconds")


class EvaluateRequest(ToolRequest):
    run_id: str = ""
    fitness: float | None = Field(default=None, ge=0.0, le=1.0)
    feedback: str | None = None
    correctness: bool = False


class EvolveRequest(ToolRequest):
    task: str = ""
    parent_ids: list[str] = Field(default_factory=list)
    population_size: int | None = Field(default=None, ge=0)
    generations: int | None = Field(default=None, ge=0)
    mutation_rate: float | None = Field(default=None, ge=0.0, le=1.0)


class RunIdRequest(ToolRequest):
    run_id: str = Field(default="", validate_default=True)

    @field_validator("run_id")
    @classmethod
    def run_id_not_empty(cls, v: str) -> str:
        """Validate run_id is present."""
        if not v or not v.strip():
            raise ValueError("run_id required")
        return v.strip()


class ListRunsRequest(ToolRequest):
    genome_id: str | None = None
    limit: int | None = Field(default=None, ge=0)


class WorkflowStepModel(ToolRequest):
    step_id: str = ""
    agent_id: str = ""
    parallel: bool = False
    inputs: dict[str, str] = Field(default_factory=dict)


class CreateWorkflowRequest(ToolRequest):
    name: str = ""
    steps: list[WorkflowStepModel] = Field(default_factory=list)


class EmptyRequest(ToolRequest):
    pass


# Dispatcher


@dataclass(frozen=True)
class ToolDef:
    """A dispatchable tool: its name, description and payload model."""

    name: str
    description: str
    request_model: type[ToolRequest]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.request_model.model_json_schema(),
        }


TOOLS: tuple[ToolDef, ...] = (
    ToolDef("orchestrator_register_agent", "Register a new agent genome", RegisterAgentRequest),
    ToolDef("orchestrator_list_agents", "List all registered agents", ListAgentsRequest),
    ToolDef("orchestrator_get_agent", "Get agent by ID", AgentIdRequest),
    ToolDef("orchestrator_delete_agent", "Delete an agent", AgentIdRequest),
    ToolDef("orchestrator_run_agent", "Run a single agent", RunAgentRequest),
    ToolDef("orchestrator_run_parallel", "Run multiple agents in parallel", RunParallelRequest),
    ToolDef("orchestrator_run_workflow", "Execute a workflow", RunWorkflowRequest),
    ToolDef("orchestrator_evaluate", "Score agent output", EvaluateRequest),
    ToolDef("orchestrator_evolve", "Create new agents via evolution", EvolveRequest),
    ToolDef("orchestrator_get_result", "Get result of a run", RunIdRequest),
    ToolDef("orchestrator_list_runs", "List runs, optionally for one agent", ListRunsRequest),
    ToolDef("orchestrator_create_workflow", "Create a workflow", CreateWorkflowRequest),
    ToolDef("orchestrator_list_workflows", "List workflows", EmptyRequest),
)

_TOOLS_BY_NAME = {tool.name: tool for tool in TOOLS}


def canonical_tool_name(name: str) -> str:
    """Strip a doubled ``orchestrator_`` prefix."""
    if name.startswith(TOOL_PREFIX + TOOL_PREFIX):
        return name[len(TOOL_PREFIX) :]
    return name


def _parse_payload(payload: str | bytes | dict[str, Any] | None) -> dict[str, Any]:
    if payload is None:
        return {}
    if isinstance(payload, dict):
        return payload
    if isinstance(payload, bytes):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise RequestValidationError(f"failed to parse request: {e}") from e
    if not payload.strip():
        return {}
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise RequestValidationError(f"failed to parse request: {e}") from e
    if not isinstance(data, dict):
        raise RequestValidationError("failed to parse request: payload must be a JSON object")
    return data


def _describe_validation_error(e: ValidationError) -> str:
    problems = []
    for error in e.errors():
        field_name = ".".join(str(part) for part in error["loc"]) or "payload"
        problems.append(f"{field_name}: {error['msg']}")
    return "invalid request: " + "; ".join(problems)


class ToolDispatcher:
    """Routes tool calls to the orchestrator.

    Example:
        >>> dispatcher = ToolDispatcher(Orchestrator())
        >>> dispatcher.dispatch("orchestrator_register_agent",
        ...                     '{"name": "critic", "model": "llama3"}')
        '{"agent_id": "agent_critic_...", "agent": {...}}'
    """

    def __init__(self, orchestrator: Orchestrator) -> None:
        self.orchestrator = orchestrator
        self._handlers: dict[str, Callable[[Any], Any]] = {
            "orchestrator_register_agent": self._register_agent,
            "orchestrator_list_agents": self._list_agents,
            "orchestrator_get_agent": self._get_agent,
            "orchestrator_delete_agent": self._delete_agent,
            "orchestrator_run_agent": self._run_agent,
            "orchestrator_run_parallel": self._run_parallel,
            "orchestrator_run_workflow": self._run_workflow,
            "orchestrator_evaluate": self._evaluate,
            "orchestrator_evolve": self._evolve,
            "orchestrator_get_result": self._get_result,
            "orchestrator_list_runs": self._list_runs,
            "orchestrator_create_workflow": self._create_workflow,
            "orchestrator_list_workflows": self._list_workflows,
        }

    @staticmethod
    def tools() -> list[ToolDef]:
        return list(TOOLS)

    def execute(self, tool_name: str, payload: str | bytes | dict[str, Any] | None = None) -> Any:
        """Run a tool and return its JSON-ready result.

        Raises:
            UnknownToolError: If the tool name is not served.
            RequestValidationError: If the payload is malformed or invalid.
            NotFoundError: If a referenced ID does not resolve.
            CapacityExceededError: If a fan-out exceeds the parallelism cap.
        """
        name = canonical_tool_name(tool_name)
        tool = _TOOLS_BY_NAME.get(name)
        if tool is None:
            raise UnknownToolError(f"unknown tool: {tool_name}", context={"tool": tool_name})

        data = _parse_payload(payload)
        try:
            request = tool.request_model.model_validate(data)
        except ValidationError as e:
            raise RequestValidationError(_describe_validation_error(e)) from e

        logger.debug("Dispatching %s", name)
        return self._handlers[name](request)

    def dispatch(self, tool_name: str, payload: str | bytes | dict[str, Any] | None = None) -> str:
        """Run a tool and return its result encoded as JSON."""
        return json.dumps(self.execute(tool_name, payload))

    # Handlers

    def _register_agent(self, req: RegisterAgentRequest) -> dict[str, Any]:
        genome = self.orchestrator.register_agent(
            req.name,
            req.model,
            provider=req.provider,
            system_prompt=req.system_prompt,
            tools=req.tools,
            temperature=req.temperature,
            max_tokens=req.max_tokens,
            metadata=req.metadata,
        )
        return {"agent_id": genome.id, "agent": genome.to_dict()}

    def _list_agents(self, req: ListAgentsRequest) -> list[dict[str, Any]]:
        return [genome.to_dict() for genome in self.orchestrator.list_agents(req.limit)]

    def _get_agent(self, req: AgentIdRequest) -> dict[str, Any]:
        return self.orchestrator.get_agent(req.agent_id).to_dict()

    def _delete_agent(self, req: AgentIdRequest) -> dict[str, Any]:
        self.orchestrator.delete_agent(req.agent_id)
        return {"deleted": True, "agent_id": req.agent_id}

    def _run_agent(self, req: RunAgentRequest) -> dict[str, Any]:
        run = self.orchestrator.run_agent(req.agent_id, req.input, req.timeout)
        result: dict[str, Any] = {"run_id": run.run_id, "status": run.status.value}
        if run.error:
            result["error"] = run.error
        else:
            result["output"] = run.output
        return result

    def _run_parallel(self, req: RunParallelRequest) -> dict[str, Any]:
        results = self.orchestrator.run_parallel(req.agent_ids, req.input, req.timeout)
        return {"results": [r.to_dict() for r in results], "count": len(results)}

    def _run_workflow(self, req: RunWorkflowRequest) -> dict[str, Any]:
        result = self.orchestrator.run_workflow(req.workflow_id, req.initial_input, req.timeout)
        return result.to_dict()

    def _evaluate(self, req: EvaluateRequest) -> dict[str, Any]:
        run = self.orchestrator.evaluate(
            req.run_id,
            fitness=req.fitness,
            correctness=req.correctness,
            feedback=req.feedback,
        )
        return {"run_id": run.run_id, "fitness": run.fitness, "updated": True}

    def _evolve(self, req: EvolveRequest) -> dict[str, Any]:
        result = self.orchestrator.evolve(
            req.task,
            req.parent_ids,
            population_size=req.population_size,
            generations=req.generations,
            mutation_rate=req.mutation_rate,
        )
        return result.to_dict()

    def _get_result(self, req: RunIdRequest) -> dict[str, Any]:
        return self.orchestrator.get_result(req.run_id).to_dict()

    def _list_runs(self, req: ListRunsRequest) -> list[dict[str, Any]]:
        return [run.to_dict() for run in self.orchestrator.list_runs(req.genome_id, req.limit)]

    def _create_workflow(self, req: CreateWorkflowRequest) -> dict[str, Any]:
        steps = [
            WorkflowStep(
                step_id=step.step_id,
                agent_id=step.agent_id,
                parallel=step.parallel,
                inputs=dict(step.inputs),
            )
            for step in req.steps
        ]
        workflow = self.orchestrator.create_workflow(req.name, steps)
        return {"workflow_id": workflow.id, "workflow": workflow.to_dict()}

    def _list_workflows(self, req: EmptyRequest) -> list[dict[str, Any]]:
        return [workflow.to_dict() for workflow in self.orchestrator.list_workflows()]


# REST endpoints

_STATUS_CODES: dict[type[OrchestratorError], int] = {
    RequestValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    UnknownToolError: status.HTTP_404_NOT_FOUND,
    CapacityExceededError: status.HTTP_429_TOO_MANY_REQUESTS,
}

# Dispatcher instance cache for reuse
_dispatcher: ToolDispatcher | None = None


def get_dispatcher() -> ToolDispatcher:
    """Get or create the ToolDispatcher over a process-wide Orchestrator."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = ToolDispatcher(Orchestrator())
    return _dispatcher


def set_dispatcher(dispatcher: ToolDispatcher | None) -> None:
    """Replace the cached dispatcher (None drops it)."""
    global _dispatcher
    _dispatcher = dispatcher


def http_status_for(error: OrchestratorError) -> int:
    for error_type, code in _STATUS_CODES.items():
        if isinstance(error, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


@router.get("")
async def list_tools() -> list[dict[str, Any]]:
    """List the tools the dispatcher serves with their payload schemas."""
    return [tool.to_dict() for tool in ToolDispatcher.tools()]


@router.post(
    "/{tool_name}",
    responses={
        200: {"description": "Tool result as JSON"},
        400: {"description": "Invalid request - malformed or missing fields"},
        404: {"description": "Unknown tool, agent, run or workflow"},
        429: {"description": "Too many agents for one parallel batch"},
    },
)
async def call_tool(tool_name: str, request: Request) -> Response:
    """Invoke a tool with the request body as its JSON payload.

    The tool runs on a worker thread; LLM calls block until they finish or
    hit their deadline.

    Raises:
        HTTPException: 400/404/429 for request errors.
    """
    body = await request.body()
    dispatcher = get_dispatcher()
    try:
        result = await run_in_threadpool(dispatcher.dispatch, tool_name, body)
    except OrchestratorError as e:
        code = http_status_for(e)
        logger.warning("Tool %s rejected (%d): %s", tool_name, code, e)
        raise HTTPException(status_code=code, detail=str(e)) from e
    return Response(content=result, media_type="application/json")
