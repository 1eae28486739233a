"""Tests for nested-metadata and associated-aggregate-root rules."""

import unittest

from domain_conformance.domain.conventions import ConventionSet
from domain_conformance.domain.rules.associations import (
    AssociatedAggregateRootMetadataOnlyIsRequiredRule,
    ProcessValidateSetForAssociatedAggregateRootsRule,
)
from domain_conformance.domain.rules.detectors import MetadataDecomposer
from domain_conformance.domain.rules.metadata import (
    ChangeMetadataUsesLockRule,
    InlineMetadataInitializationRule,
    MetadataNamingConventionRule,
    StaticMetadataOverDataAnnotationsRule,
)
from tests.unit.model_test_utils import CONFORMING_ORDER, evaluate, line_of, order_with


class TestMetadataDecomposer(unittest.TestCase):
    def test_longest_suffix_wins(self) -> None:
        decomposer = MetadataDecomposer(("_min", "_min_age_in_years", "_is_required"))

        self.assertEqual(
            decomposer.decompose("birth_date_min_age_in_years"), ("birth_date", "_min_age_in_years")
        )
        self.assertEqual(decomposer.decompose("age_min"), ("age", "_min"))

    def test_bare_suffix_and_unknown_names(self) -> None:
        decomposer = MetadataDecomposer(("_is_required",))

        self.assertIsNone(decomposer.decompose("_is_required"))
        self.assertIsNone(decomposer.decompose("nonsense"))

    def test_vocabulary_lists_suffixes_longest_first(self) -> None:
        decomposer = MetadataDecomposer(("_max", "_max_length"))
        self.assertEqual(decomposer.vocabulary(), "_max_length, _max")


class TestStaticMetadataOverDataAnnotationsRule(unittest.TestCase):
    def setUp(self) -> None:
        self.rule = StaticMetadataOverDataAnnotationsRule()

    def test_annotated_constraint_reported(self) -> None:
        body = """
        from typing import Annotated
        from annotated_types import MaxLen

        @final
        class Order(EntityBase):
            name: Annotated[str, MaxLen(10)]

            @private
            def __init__(self) -> None:
                pass
        """
        violation = evaluate(self.rule, body, "Order")

        self.assertIsNotNone(violation)
        self.assertEqual(violation.line, line_of(body, "name: Annotated"))
        self.assertIn("name_max_length", violation.llm_hint)

    def test_field_factory_reported(self) -> None:
        body = """
        from pydantic import Field

        @final
        class Order(EntityBase):
            name: str = Field(max_length=10)

            @private
            def __init__(self) -> None:
                pass
        """
        self.assertIsNotNone(evaluate(self.rule, body, "Order"))

    def test_plain_fields_pass(self) -> None:
        self.assertIsNone(evaluate(self.rule, CONFORMING_ORDER, "Order"))


class TestMetadataNamingConventionRule(unittest.TestCase):
    def setUp(self) -> None:
        self.rule = MetadataNamingConventionRule()

    def test_conforming_names_pass(self) -> None:
        self.assertIsNone(evaluate(self.rule, CONFORMING_ORDER, "Order"))

    def test_unknown_suffix_lists_vocabulary(self) -> None:
        source = order_with("name_is_required: bool = True", "name_is_required: bool = True\n        nonsense: int = 3")
        violation = evaluate(self.rule, source, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("Valid suffixes:", violation.message)
        self.assertIn("_max_length", violation.message)
        self.assertEqual(violation.line, line_of(source, "nonsense: int = 3"))

    def test_unknown_property_reported(self) -> None:
        source = order_with("name_max_length: int = 100", "title_max_length: int = 100")
        violation = evaluate(self.rule, source, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("'title' is not a property of 'Order'", violation.message)

    def test_longest_suffix_decides_the_property(self) -> None:
        """`birth_date_min_age_in_years` names `birth_date`, not `birth_date_min_age_in`."""
        source = order_with(
            "name_is_required: bool = True",
            "name_is_required: bool = True\n        birth_date_min_age_in_years: int = 18",
        )
        source = source.replace(
            "        self._name = name\n\n    @property",
            "        self._name = name\n        self._birth_date = None\n\n    @property",
            1,
        )
        self.assertIsNone(evaluate(self.rule, source, "Order"))

    def test_inherited_property_accepted(self) -> None:
        body = """
        class Party(EntityBase):
            @protected
            def __init__(self) -> None:
                self._display_name = ""

            @abstractmethod
            def _is_valid_concrete_internal(self) -> bool: ...

        @final
        class Person(Party):
            class PersonMetadata:
                display_name_max_length: int = 80

            @private
            def __init__(self) -> None:
                super().__init__()
        """
        self.assertIsNone(evaluate(self.rule, body, "Person"))

    def test_metadata_methods_are_not_names_to_decompose(self) -> None:
        source = order_with(
            "name_is_required: bool = True",
            "name_is_required: bool = True\n\n"
            "        @classmethod\n"
            "        def reset(cls) -> None:\n"
            "            cls.name_max_length = 100",
        )
        self.assertIsNone(evaluate(self.rule, source, "Order"))

    def test_configured_suffix_extends_vocabulary(self) -> None:
        source = order_with("name_max_length: int = 100", "name_max_words: int = 3")
        self.assertIsNotNone(evaluate(self.rule, source, "Order"))

        widened = MetadataNamingConventionRule(ConventionSet.with_extra_suffixes(("max_words",)))
        self.assertIsNone(evaluate(widened, source, "Order"))


class TestInlineMetadataInitializationRule(unittest.TestCase):
    def test_class_body_code_reported(self) -> None:
        source = order_with(
            "name_is_required: bool = True",
            "name_is_required: bool = True\n        print(\"loading limits\")",
        )
        violation = evaluate(InlineMetadataInitializationRule(), source, "Order")

        self.assertIsNotNone(violation)
        self.assertEqual(violation.line, line_of(source, "class OrderMetadata"))

    def test_init_subclass_reported(self) -> None:
        source = order_with(
            "name_is_required: bool = True",
            "name_is_required: bool = True\n\n"
            "        def __init_subclass__(cls) -> None:\n"
            "            cls.name_max_length = 50",
        )
        self.assertIsNotNone(evaluate(InlineMetadataInitializationRule(), source, "Order"))

    def test_inline_values_pass(self) -> None:
        self.assertIsNone(evaluate(InlineMetadataInitializationRule(), CONFORMING_ORDER, "Order"))


class TestChangeMetadataUsesLockRule(unittest.TestCase):
    BODY = """
    import threading

    @final
    class Order(EntityBase):
        _lock = threading.Lock()

        class OrderMetadata:
            name_max_length: int = 100

        @private
        def __init__(self) -> None:
            self._name = ""

        @classmethod
        def change_name_metadata(cls, max_length: int) -> None:
            {statement}
    """

    def test_unlocked_change_reported(self) -> None:
        body = self.BODY.format(statement="cls.OrderMetadata.name_max_length = max_length")
        violation = evaluate(ChangeMetadataUsesLockRule(), body, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("without holding a lock", violation.message)
        self.assertEqual(violation.line, line_of(body, "def change_name_metadata"))

    def test_locked_change_passes(self) -> None:
        body = self.BODY.format(
            statement="with cls._lock:\n                cls.OrderMetadata.name_max_length = max_length"
        )
        self.assertIsNone(evaluate(ChangeMetadataUsesLockRule(), body, "Order"))


ASSOCIATION = """
@final
class Customer(EntityBase):
    @private
    def __init__(self) -> None:
        pass


@final
class Order(EntityBase):
    class OrderMetadata:
        customer_is_required: bool = True
        EXTRA_METADATA

    @private
    def __init__(self, customer: Customer) -> None:
        self._customer = customer

    @property
    def customer(self) -> Customer:
        return self._customer

    PROCESS_METHOD
"""

PROCESS_METHOD = (
    "def _process_customer_for_change_internal(\n"
    "        self, execution_context: ExecutionContext, customer: \"Customer | None\"\n"
    "    ) -> bool:\n"
    "        return True"
)


def association(extra: str = "pass", process: str = "pass") -> str:
    return ASSOCIATION.replace("EXTRA_METADATA", extra).replace("PROCESS_METHOD", process)


class TestAssociatedAggregateRootMetadataOnlyIsRequiredRule(unittest.TestCase):
    def setUp(self) -> None:
        self.rule = AssociatedAggregateRootMetadataOnlyIsRequiredRule()

    def test_is_required_only_passes(self) -> None:
        self.assertIsNone(evaluate(self.rule, association(), "Order"))

    def test_length_constraint_on_association_reported(self) -> None:
        source = association(extra="customer_max_length: int = 10")
        violation = evaluate(self.rule, source, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("with '_max_length'", violation.message)
        self.assertEqual(violation.line, line_of(source, "customer_max_length"))

    def test_no_associations_not_reported(self) -> None:
        self.assertIsNone(evaluate(self.rule, CONFORMING_ORDER, "Order"))


class TestProcessValidateSetForAssociatedAggregateRootsRule(unittest.TestCase):
    def setUp(self) -> None:
        self.rule = ProcessValidateSetForAssociatedAggregateRootsRule()

    def test_missing_process_method_reported(self) -> None:
        source = association()
        violation = evaluate(self.rule, source, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("'_process_customer_for_<operation>_internal'", violation.message)
        self.assertEqual(violation.line, line_of(source, "self._customer = customer"))

    def test_process_method_present(self) -> None:
        self.assertIsNone(evaluate(self.rule, association(process=PROCESS_METHOD), "Order"))


if __name__ == "__main__":
    unittest.main()
