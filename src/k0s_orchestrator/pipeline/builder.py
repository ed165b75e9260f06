"""Pipeline builder for constructing lifecycle pipelines."""

from .base import Step
from .enums import HostScope, LifecycleVerb
from .pipeline import Pipeline


class PipelineBuilder:
    """Builder for constructing lifecycle pipelines with a fluent interface.

    Example:
        pipeline = (
            PipelineBuilder(LifecycleVerb.READ, host_scope=HostScope.LEADER)
            .step(Connect())
            .step(DetectOS())
            .steps([GatherRuntimeFacts(), FetchCredentials(), Disconnect()])
            .build()
        )
    """

    def __init__(self, verb: LifecycleVerb, host_scope: HostScope = HostScope.ALL):
        self.verb = verb
        self.host_scope = host_scope
        self._steps: list[Step] = []
        self._step_names: set[str] = set()

    def step(self, step: Step) -> "PipelineBuilder":
        """Append a step.

        Raises:
            ValueError: If a step with the same name was already added
        """
        if step.name in self._step_names:
            raise ValueError(f"Step '{step.name}' already exists")
        self._steps.append(step)
        self._step_names.add(step.name)
        return self

    def steps(self, steps: list[Step]) -> "PipelineBuilder":
        """Append several steps in order."""
        for step in steps:
            self.step(step)
        return self

    def build(self) -> Pipeline:
        """Build the final pipeline.

        Raises:
            ValueError: If lock acquisition and release are not paired
        """
        acquired = False
        for step in self._steps:
            if step.acquires_lock:
                if acquired:
                    raise ValueError(f"Step '{step.name}' acquires the cluster lock a second time")
                acquired = True
            if step.releases_lock:
                if not acquired:
                    raise ValueError(f"Step '{step.name}' releases a lock no earlier step acquires")
                if not step.always_run:
                    raise ValueError(f"Lock release step '{step.name}' must run even after a failure")
                acquired = False
        if acquired:
            raise ValueError("Cluster lock is acquired but never released")

        return Pipeline(self.verb, list(self._steps), self.host_scope)

    def __str__(self) -> str:
        return f"PipelineBuilder(verb={self.verb}, steps={len(self._steps)})"
