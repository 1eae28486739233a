"""Tests for validator rules."""

import unittest

from domain_conformance.domain.rules.validation import (
    MessageCodesWithCreateMessageCodeRule,
    ValidateMethodsPublicStaticRule,
    ValidateParametersNullableRule,
    ValidateUsesMetadataRule,
    ValidationUtilsForStandardValidationsRule,
)
from tests.unit.model_test_utils import CONFORMING_ORDER, evaluate, line_of, order_with

VALIDATOR_HEAD = (
    "    @staticmethod\n"
    "    def validate_name(execution_context: ExecutionContext, name: str | None) -> bool:"
)


class TestValidateMethodsPublicStaticRule(unittest.TestCase):
    def setUp(self) -> None:
        self.rule = ValidateMethodsPublicStaticRule()

    def test_instance_validator_reported(self) -> None:
        source = order_with(
            VALIDATOR_HEAD,
            "    def validate_name(self, execution_context: ExecutionContext, name: str | None) -> bool:",
        )
        violation = evaluate(self.rule, source, "Order")

        self.assertIsNotNone(violation)
        self.assertEqual(violation.line, line_of(source, "def validate_name"))

    def test_protected_static_validator_reported(self) -> None:
        source = order_with(
            VALIDATOR_HEAD,
            "    @staticmethod\n"
            "    def _validate_name(execution_context: ExecutionContext, name: str | None) -> bool:",
        )
        violation = evaluate(self.rule, source, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("Rename '_validate_name' to 'validate_name'", violation.llm_hint)

    def test_public_static_passes(self) -> None:
        self.assertIsNone(evaluate(self.rule, CONFORMING_ORDER, "Order"))


class TestValidationUtilsForStandardValidationsRule(unittest.TestCase):
    def test_hand_written_check_reported(self) -> None:
        body = """
        @final
        class Order(EntityBase):
            @private
            def __init__(self) -> None:
                pass

            @staticmethod
            def validate_name(execution_context: ExecutionContext, name: str | None) -> bool:
                return name is not None and len(name) < 10
        """
        violation = evaluate(ValidationUtilsForStandardValidationsRule(), body, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("'ValidationUtils'", violation.message)

    def test_helper_use_passes(self) -> None:
        self.assertIsNone(
            evaluate(ValidationUtilsForStandardValidationsRule(), CONFORMING_ORDER, "Order")
        )


class TestValidateParametersNullableRule(unittest.TestCase):
    def test_required_parameter_reported(self) -> None:
        source = order_with(
            VALIDATOR_HEAD,
            "    @staticmethod\n"
            "    def validate_name(execution_context: ExecutionContext, name: str) -> bool:",
        )
        violation = evaluate(ValidateParametersNullableRule(), source, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("Parameter 'name'", violation.message)
        self.assertIn("`str | None`", violation.llm_hint)

    def test_optional_parameters_pass(self) -> None:
        self.assertIsNone(evaluate(ValidateParametersNullableRule(), CONFORMING_ORDER, "Order"))


class TestValidateUsesMetadataRule(unittest.TestCase):
    def test_literal_limits_reported(self) -> None:
        source = CONFORMING_ORDER.replace(
            "Order.OrderMetadata.name_is_required", "True"
        ).replace("Order.OrderMetadata.name_max_length", "100")
        violation = evaluate(ValidateUsesMetadataRule(), source, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("'OrderMetadata'", violation.message)

    def test_metadata_reference_passes(self) -> None:
        self.assertIsNone(evaluate(ValidateUsesMetadataRule(), CONFORMING_ORDER, "Order"))

    def test_without_metadata_class_not_reported(self) -> None:
        body = """
        @final
        class Order(EntityBase):
            @private
            def __init__(self) -> None:
                pass

            @staticmethod
            def validate_name(execution_context: ExecutionContext, name: str | None) -> bool:
                return True
        """
        self.assertIsNone(evaluate(ValidateUsesMetadataRule(), body, "Order"))


class TestMessageCodesWithCreateMessageCodeRule(unittest.TestCase):
    def test_literal_code_reported(self) -> None:
        source = order_with('code = create_message_code("Order", "name")', 'code = "Order.name"')
        violation = evaluate(MessageCodesWithCreateMessageCodeRule(), source, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("without 'create_message_code'", violation.message)

    def test_create_message_code_passes(self) -> None:
        self.assertIsNone(evaluate(MessageCodesWithCreateMessageCodeRule(), CONFORMING_ORDER, "Order"))


if __name__ == "__main__":
    unittest.main()
