"""Unit tests for CheckConformanceUseCase."""

from unittest.mock import Mock

from domain_conformance.domain.config import ConfigurationLoader
from domain_conformance.domain.entities import ResolutionWarning, RunResult
from domain_conformance.domain.rules.structure import SealedClassRule
from domain_conformance.domain.symbols import WorkspaceIndex, WorkspaceSnapshot
from domain_conformance.use_cases.check_conformance import CheckConformanceUseCase
from domain_conformance.use_cases.run_rules import RuleRunner
from tests.unit.model_test_utils import snapshot_of


def _snapshot_with_warning() -> WorkspaceSnapshot:
    index = WorkspaceIndex()
    index.seal(())
    warning = ResolutionWarning(
        project="Domain.Entities", file="broken.py", line=3, subject="broken.py", reason="syntax error"
    )
    return WorkspaceSnapshot(types=(), index=index, warnings=(warning,))


class TestCheckConformanceUseCase:
    """Test CheckConformanceUseCase orchestration."""

    def _use_case(self, snapshot: WorkspaceSnapshot, runner: RuleRunner, sinks=()):
        symbol_source = Mock()
        symbol_source.load_workspace.return_value = snapshot
        telemetry = Mock()
        config_loader = Mock(spec=ConfigurationLoader)
        config_loader.exclude_paths = ["tests/fixtures"]
        use_case = CheckConformanceUseCase(
            symbol_source=symbol_source,
            runner=runner,
            telemetry=telemetry,
            config_loader=config_loader,
            sinks=sinks,
        )
        return use_case, symbol_source, telemetry

    def test_execute_runs_rules_and_feeds_every_sink(self) -> None:
        """The loaded snapshot goes through the runner and every sink sees the same result."""
        snapshot = snapshot_of(
            """
            class Order(EntityBase):
                def __init__(self) -> None:
                    pass
            """
        )
        json_sink, pending_sink = Mock(), Mock()
        use_case, symbol_source, telemetry = self._use_case(
            snapshot, RuleRunner([SealedClassRule()]), sinks=[json_sink, pending_sink]
        )

        result = use_case.execute("src")

        symbol_source.load_workspace.assert_called_once_with("src", exclude_paths=("tests/fixtures",))
        assert isinstance(result, RunResult)
        assert any(v.type_name == "subject.Order" for v in result.violations)
        json_sink.accept.assert_called_once_with(result)
        pending_sink.accept.assert_called_once_with(result)
        telemetry.error.assert_not_called()

    def test_resolution_warnings_are_surfaced(self) -> None:
        use_case, _, telemetry = self._use_case(_snapshot_with_warning(), RuleRunner([SealedClassRule()]))

        result = use_case.execute(".")

        assert len(result.warnings) == 1
        telemetry.warning.assert_called_once_with("broken.py:3 broken.py: syntax error")

    def test_rule_errors_reported_through_telemetry(self) -> None:
        runner = Mock(spec=RuleRunner)
        runner.rules = (SealedClassRule(),)
        runner.run.return_value = RunResult(errors=(Mock(),), cancelled=True)
        use_case, _, telemetry = self._use_case(_snapshot_with_warning(), runner)

        use_case.execute(".")

        telemetry.error.assert_called_once()
        assert "1 rule execution errors" in telemetry.error.call_args[0][0]
        assert any("cancelled" in call.args[0] for call in telemetry.warning.call_args_list)
