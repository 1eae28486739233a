"""Tests for the factory rules: register_new, create_from_existing_info and their inputs."""

import unittest

from domain_conformance.domain.rules.factories import (
    ExecutionContextFirstParameterRule,
    InputObjectsPatternRule,
    InvalidStateNeverExistsRule,
    ReconstitutionDoesNotValidateRule,
    RegisterNewAndCreateFromExistingInfoRule,
)
from tests.unit.model_test_utils import CONFORMING_ORDER, evaluate, line_of, order_with

REGISTER_NEW_SIGNATURE = (
    "    @classmethod\n"
    "    def register_new(cls, execution_context: ExecutionContext, "
    "input: RegisterNewOrderInput) -> \"Order | None\":"
)


class TestInvalidStateNeverExistsRule(unittest.TestCase):
    def setUp(self) -> None:
        self.rule = InvalidStateNeverExistsRule()

    def test_conforming_factory_passes(self) -> None:
        self.assertIsNone(evaluate(self.rule, CONFORMING_ORDER, "Order"))

    def test_missing_factory_reported_at_type(self) -> None:
        body = """
        @final
        class Order(EntityBase):
            @private
            def __init__(self) -> None:
                pass
        """
        violation = evaluate(self.rule, body, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("is missing", violation.message)
        self.assertEqual(violation.line, line_of(body, "class Order"))

    def test_instance_factory_has_wrong_shape(self) -> None:
        source = order_with(
            REGISTER_NEW_SIGNATURE,
            "    def register_new(self, execution_context: ExecutionContext, "
            "input: RegisterNewOrderInput) -> \"Order | None\":",
        )
        violation = evaluate(self.rule, source, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("has the wrong shape", violation.message)
        self.assertEqual(violation.line, line_of(source, "def register_new"))

    def test_non_optional_return_has_wrong_shape(self) -> None:
        source = order_with(
            "input: RegisterNewOrderInput) -> \"Order | None\":",
            "input: RegisterNewOrderInput) -> \"Order\":",
        )
        violation = evaluate(self.rule, source, "Order")
        self.assertIn("has the wrong shape", violation.message)


class TestRegisterNewAndCreateFromExistingInfoRule(unittest.TestCase):
    def setUp(self) -> None:
        self.rule = RegisterNewAndCreateFromExistingInfoRule()

    def test_conforming_factory_passes(self) -> None:
        self.assertIsNone(evaluate(self.rule, CONFORMING_ORDER, "Order"))

    def test_optional_return_has_wrong_shape(self) -> None:
        source = order_with(
            "input: ExistingOrderInput) -> \"Order\":",
            "input: ExistingOrderInput) -> \"Order | None\":",
        )
        violation = evaluate(self.rule, source, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("create_from_existing_info", violation.message)
        self.assertIn("has the wrong shape", violation.message)


class TestReconstitutionDoesNotValidateRule(unittest.TestCase):
    def test_validation_call_reported(self) -> None:
        source = order_with(
            "return cls(input.entity_info, input.name)",
            "cls.validate_name(None, input.name)\n        return cls(input.entity_info, input.name)",
        )
        violation = evaluate(ReconstitutionDoesNotValidateRule(), source, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("'validate_name'", violation.message)
        self.assertEqual(violation.line, line_of(source, "cls.validate_name(None, input.name)"))

    def test_plain_reconstitution_passes(self) -> None:
        self.assertIsNone(evaluate(ReconstitutionDoesNotValidateRule(), CONFORMING_ORDER, "Order"))


class TestInputObjectsPatternRule(unittest.TestCase):
    def setUp(self) -> None:
        self.rule = InputObjectsPatternRule()

    def test_frozen_inputs_pass(self) -> None:
        self.assertIsNone(evaluate(self.rule, CONFORMING_ORDER, "Order"))

    def test_primitive_parameter_reported(self) -> None:
        source = order_with("input: RegisterNewOrderInput)", "name: str)")
        source = source.replace("input.name", "name", 1)
        violation = evaluate(self.rule, source, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("'name: str'", violation.message)
        self.assertIn("class RegisterNewInput", violation.llm_hint)

    def test_mutable_dataclass_input_reported(self) -> None:
        source = order_with(
            "@dataclass(frozen=True)\nclass RegisterNewOrderInput:",
            "@dataclass\nclass RegisterNewOrderInput:",
        )
        violation = evaluate(self.rule, source, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("RegisterNewOrderInput", violation.message)

    def test_unresolved_annotation_skipped(self) -> None:
        source = order_with("input: RegisterNewOrderInput)", "input: ExternalInput)")
        self.assertIsNone(evaluate(self.rule, source, "Order"))


class TestExecutionContextFirstParameterRule(unittest.TestCase):
    def test_late_execution_context_reported(self) -> None:
        body = """
        @final
        class Order(EntityBase):
            @private
            def __init__(self) -> None:
                pass

            def change_name(self, name: str, execution_context: ExecutionContext) -> "Order | None":
                return self
        """
        violation = evaluate(ExecutionContextFirstParameterRule(), body, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("at position 2", violation.message)
        self.assertEqual(violation.line, line_of(body, "def change_name"))

    def test_leading_execution_context_passes(self) -> None:
        self.assertIsNone(evaluate(ExecutionContextFirstParameterRule(), CONFORMING_ORDER, "Order"))


if __name__ == "__main__":
    unittest.main()
