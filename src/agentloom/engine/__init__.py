"""Core engine: shared state, registry, run ledger, execution, workflows and evolution."""

from agentloom.engine.executor import DeadlineExceededError, ExecutionEngine, ParallelResult
from agentloom.engine.fitness import FitnessFunction, simulated_fitness, stored_fitness
from agentloom.engine.ga import GAEngine, GAStats
from agentloom.engine.ledger import RunLedger, RunStateError
from agentloom.engine.optimizer import EvolutionaryOptimizer, EvolutionResult
from agentloom.engine.orchestrator import Orchestrator
from agentloom.engine.registry import GenomeRegistry
from agentloom.engine.state import OrchestratorState, ReadWriteLock
from agentloom.engine.workflow import WorkflowEngine, WorkflowResult

__all__ = [
    "DeadlineExceededError",
    "EvolutionResult",
    "EvolutionaryOptimizer",
    "ExecutionEngine",
    "FitnessFunction",
    "GAEngine",
    "GAStats",
    "GenomeRegistry",
    "Orchestrator",
    "OrchestratorState",
    "ParallelResult",
    "ReadWriteLock",
    "RunLedger",
    "RunStateError",
    "WorkflowEngine",
    "WorkflowResult",
    "simulated_fitness",
    "stored_fitness",
]
