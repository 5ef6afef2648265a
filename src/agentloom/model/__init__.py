"""Domain model: AgentGenome, AgentRun, Workflow."""

from agentloom.model.genome import AgentGenome
from agentloom.model.run import AgentRun, RunStatus
from agentloom.model.workflow import INITIAL_INPUT_KEY, Workflow, WorkflowStep

__all__ = [
    "INITIAL_INPUT_KEY",
    "AgentGenome",
    "AgentRun",
    "RunStatus",
    "Workflow",
    "WorkflowStep",
]
