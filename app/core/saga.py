# app/core/saga.py
"""
Minimal saga runner for multi-step writes that span independent services.

A saga is an ordered list of steps. Each step has an action and an optional
compensation. Actions run in order and share a context dict. If an action
raises, the compensations of every step that already completed run in reverse
order and the original exception is re-raised. A failing compensation is
logged and skipped; it never replaces the original error.

    saga = Saga("provision-merchant")
    saga.add_step("create-identity", create_identity, compensate=delete_identity)
    saga.add_step("upsert-profile", upsert_profile)
    ctx = saga.run({"payload": payload})
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)

SagaContext = dict[str, Any]
Action = Callable[[SagaContext], Any]
Compensation = Callable[[SagaContext], None]


@dataclass
class SagaStep:
    name: str
    action: Action
    compensate: Compensation | None = None


@dataclass
class Saga:
    name: str
    steps: list[SagaStep] = field(default_factory=list)

    def add_step(
        self,
        name: str,
        action: Action,
        compensate: Compensation | None = None,
    ) -> "Saga":
        self.steps.append(SagaStep(name=name, action=action, compensate=compensate))
        return self

    def run(self, context: SagaContext | None = None) -> SagaContext:
        """
        Execute every step; the return value of each action is stored in the
        context under the step name.
        """
        ctx: SagaContext = context if context is not None else {}
        completed: list[SagaStep] = []

        for step in self.steps:
            try:
                ctx[step.name] = step.action(ctx)
            except Exception:
                logger.warning(
                    "Saga %s: step %s failed, compensating %d step(s)",
                    self.name,
                    step.name,
                    len(completed),
                )
                self._compensate(completed, ctx)
                raise
            completed.append(step)

        return ctx

    def _compensate(self, completed: list[SagaStep], ctx: SagaContext) -> None:
        for step in reversed(completed):
            if step.compensate is None:
                continue
            logger.info("Saga %s: compensating %s", self.name, step.name)
            try:
                step.compensate(ctx)
            except Exception:
                # Best-effort cleanup; the caller still sees the original error.
                logger.exception(
                    "Saga %s: compensation for %s failed", self.name, step.name
                )
