"""Use Case: Run Rules - evaluate the (type x rule) grid and sort the three result buckets."""

import logging
import threading
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from domain_conformance.domain.entities import (
    EvaluationStatus,
    RuleExecutionError,
    RunResult,
    TypeEvaluation,
    Violation,
)
from domain_conformance.domain.rules import Rule
from domain_conformance.domain.symbols import TypeSymbol, WorkspaceSnapshot

logger = logging.getLogger(__name__)


@dataclass
class _TypeOutcome:
    violations: list[Violation] = field(default_factory=list)
    errors: list[RuleExecutionError] = field(default_factory=list)
    evaluations: list[TypeEvaluation] = field(default_factory=list)


class RuleRunner:
    """
    Applies every registered rule to every type of a sealed snapshot.

    One task per type goes to a thread pool. Cells only read the frozen
    Symbol Models and index, so no locking is needed. A fault inside one
    (rule, type) cell becomes a RuleExecutionError and the rest of the grid
    still runs. Setting `cancel_event` stops new cells from starting; cells
    already running finish normally and unstarted ones are recorded SKIPPED.
    """

    def __init__(
        self,
        rules: Iterable[Rule],
        max_workers: int = 0,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.rules: tuple[Rule, ...] = tuple(rules)
        self.max_workers = max_workers
        self.cancel_event = cancel_event or threading.Event()

    def run(self, snapshot: WorkspaceSnapshot) -> RunResult:
        if not snapshot.index.sealed:
            raise RuntimeError("Workspace index must be sealed before rules run")
        types = snapshot.types
        if self.max_workers == 1 or len(types) <= 1:
            outcomes = [self._evaluate_type(model) for model in types]
        else:
            workers = self.max_workers if self.max_workers > 0 else None
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="conformance") as pool:
                outcomes = list(pool.map(self._evaluate_type, types))

        violations = [v for outcome in outcomes for v in outcome.violations]
        errors = [e for outcome in outcomes for e in outcome.errors]
        evaluations = [e for outcome in outcomes for e in outcome.evaluations]
        return RunResult(
            violations=tuple(sorted(violations, key=lambda v: v.sort_key)),
            errors=tuple(sorted(errors, key=lambda e: e.sort_key)),
            warnings=tuple(sorted(snapshot.warnings, key=lambda w: w.sort_key)),
            evaluations=tuple(
                sorted(evaluations, key=lambda e: (e.project, e.rule, e.full_name))
            ),
            types_analyzed=len(types),
            cancelled=self.cancel_event.is_set(),
            rule_names=tuple(sorted(rule.name for rule in self.rules)),
        )

    def _evaluate_type(self, model: TypeSymbol) -> _TypeOutcome:
        outcome = _TypeOutcome()
        for rule in self.rules:
            if self.cancel_event.is_set():
                outcome.evaluations.append(self._evaluation(rule, model, EvaluationStatus.SKIPPED))
                continue
            status = self._evaluate_cell(rule, model, outcome)
            outcome.evaluations.append(self._evaluation(rule, model, status))
        return outcome

    def _evaluate_cell(self, rule: Rule, model: TypeSymbol, outcome: _TypeOutcome) -> EvaluationStatus:
        try:
            if not rule.applies_to(model):
                return EvaluationStatus.NOT_APPLICABLE
            violation = rule.evaluate(model)
        except Exception as exc:
            logger.warning(
                "Rule %s failed on %s (%s:%s): %s: %s",
                rule.name,
                model.full_name,
                model.file,
                model.line,
                type(exc).__name__,
                exc,
            )
            outcome.errors.append(
                RuleExecutionError(
                    rule=rule.name,
                    type_name=model.full_name,
                    project=model.project,
                    file=model.file,
                    line=model.line,
                    exception_type=type(exc).__name__,
                    detail=str(exc),
                )
            )
            return EvaluationStatus.ERRORED
        if violation is None:
            return EvaluationStatus.PASSED
        outcome.violations.append(violation)
        return EvaluationStatus.FAILED

    @staticmethod
    def _evaluation(rule: Rule, model: TypeSymbol, status: EvaluationStatus) -> TypeEvaluation:
        return TypeEvaluation(
            rule=rule.name,
            project=model.project,
            type_name=model.name,
            full_name=model.full_name,
            file=model.file,
            line=model.line,
            status=status,
        )
