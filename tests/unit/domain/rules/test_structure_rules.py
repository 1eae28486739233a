"""Tests for the type-shape rules (sealing, constructors, capabilities, entity info)."""

import unittest

from domain_conformance.domain.entities import Severity
from domain_conformance.domain.rules.structure import (
    AggregateRootInterfaceRule,
    DomainInterfaceMustDeclareAggregateRootRule,
    EntityInfoManagedByBaseRule,
    NestedMetadataClassRule,
    NoExternalDependenciesRule,
    NotReadonlyStructRule,
    OptimisticLockingViaEntityInfoRule,
    PrivateConstructorRule,
    SealedClassRule,
    TwoPrivateConstructorsRule,
)
from tests.unit.model_test_utils import (
    CONFORMING_ORDER,
    evaluate,
    line_of,
    model_of,
    order_with,
)


class TestSealedClassRule(unittest.TestCase):
    def setUp(self) -> None:
        self.rule = SealedClassRule()

    def test_unsealed_leaf_reported_at_declaration(self) -> None:
        """A concrete class with no subtypes and no @final is reported on its class line."""
        body = """
        class Order:
            def __init__(self) -> None:
                pass
        """
        violation = evaluate(self.rule, body, "Order")

        self.assertIsNotNone(violation)
        self.assertEqual(violation.rule, "DE001_SealedClass")
        self.assertEqual(violation.severity, Severity.ERROR)
        self.assertEqual(violation.line, line_of(body, "class Order"))
        self.assertEqual(violation.adr, "docs/adrs/domain-entities/DE-001-sealed-classes.md")

    def test_final_class_passes(self) -> None:
        self.assertIsNone(evaluate(self.rule, CONFORMING_ORDER, "Order"))

    def test_class_with_subtype_is_not_reported(self) -> None:
        body = """
        class Order:
            def __init__(self) -> None:
                pass

        @final
        class SpecialOrder(Order):
            pass
        """
        self.assertIsNone(evaluate(self.rule, body, "Order"))

    def test_static_and_abstract_types_not_applicable(self) -> None:
        body = """
        class Helpers:
            @staticmethod
            def tidy() -> None:
                pass

        class Shape(ABC):
            @abstractmethod
            def area(self) -> float: ...
        """
        self.assertFalse(self.rule.applies_to(model_of(body, "Helpers")))
        self.assertFalse(self.rule.applies_to(model_of(body, "Shape")))


class TestPrivateConstructorRule(unittest.TestCase):
    def setUp(self) -> None:
        self.rule = PrivateConstructorRule()

    def test_public_constructor_reported_at_constructor(self) -> None:
        body = """
        @final
        class Order(EntityBase):
            def __init__(self) -> None:
                pass
        """
        violation = evaluate(self.rule, body, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("public", violation.message)
        self.assertEqual(violation.line, line_of(body, "def __init__"))

    def test_private_overloads_pass(self) -> None:
        self.assertIsNone(evaluate(self.rule, CONFORMING_ORDER, "Order"))

    def test_protected_constructor_reported(self) -> None:
        body = """
        @final
        class Order(EntityBase):
            @protected
            def __init__(self) -> None:
                pass
        """
        violation = evaluate(self.rule, body, "Order")
        self.assertIn("protected", violation.message)


class TestAggregateRootInterfaceRule(unittest.TestCase):
    def setUp(self) -> None:
        self.rule = AggregateRootInterfaceRule()

    def test_named_aggregate_root_without_capability(self) -> None:
        body = """
        @final
        class OrderAggregateRoot(EntityBase):
            def __init__(self) -> None:
                pass
        """
        violation = evaluate(self.rule, body, "OrderAggregateRoot")
        self.assertIsNotNone(violation)
        self.assertIn("'AggregateRoot'", violation.message)

    def test_named_aggregate_root_with_capability(self) -> None:
        body = """
        class AggregateRoot(Protocol):
            pass

        @final
        class OrderAggregateRoot(EntityBase, AggregateRoot):
            def __init__(self) -> None:
                pass
        """
        self.assertIsNone(evaluate(self.rule, body, "OrderAggregateRoot"))

    def test_other_names_ignored(self) -> None:
        self.assertIsNone(evaluate(self.rule, CONFORMING_ORDER, "Order"))


class TestTwoPrivateConstructorsRule(unittest.TestCase):
    def setUp(self) -> None:
        self.rule = TwoPrivateConstructorsRule()

    def test_two_private_overloads_pass(self) -> None:
        self.assertIsNone(evaluate(self.rule, CONFORMING_ORDER, "Order"))

    def test_single_constructor_reported(self) -> None:
        body = """
        @final
        class Order(EntityBase):
            @private
            def __init__(self, entity_info: EntityInfo, name: str) -> None:
                self._name = name
        """
        violation = evaluate(self.rule, body, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("1 private constructor(s)", violation.message)
        self.assertIn("(0 parameterless, 1 with parameters)", violation.message)


class TestNoExternalDependenciesRule(unittest.TestCase):
    def setUp(self) -> None:
        self.rule = NoExternalDependenciesRule()

    def test_capability_typed_field_reported_at_assignment(self) -> None:
        body = """
        class OrderRepository(Protocol):
            def get(self, key: str) -> None: ...

        @final
        class Order(EntityBase):
            @private
            def __init__(self, repository: OrderRepository) -> None:
                self._repository = repository
        """
        violation = evaluate(self.rule, body, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("'OrderRepository'", violation.message)
        self.assertEqual(violation.line, line_of(body, "self._repository = repository"))

    def test_plain_state_passes(self) -> None:
        self.assertIsNone(evaluate(self.rule, CONFORMING_ORDER, "Order"))


class TestEntityInfoManagedByBaseRule(unittest.TestCase):
    def setUp(self) -> None:
        self.rule = EntityInfoManagedByBaseRule()

    def test_version_field_reported(self) -> None:
        source = order_with("self._name = name", "self._name = name\n        self._version = 0")
        violation = evaluate(self.rule, source, "Order")

        self.assertIsNotNone(violation)
        self.assertIn("'_version'", violation.message)
        self.assertIn("managed by the entity base", violation.message)
        self.assertEqual(violation.line, line_of(source, "self._version = 0"))

    def test_ordinary_state_passes(self) -> None:
        self.assertIsNone(evaluate(self.rule, CONFORMING_ORDER, "Order"))


class TestOptimisticLockingViaEntityInfoRule(unittest.TestCase):
    def setUp(self) -> None:
        self.rule = OptimisticLockingViaEntityInfoRule()

    def test_full_state_constructor_without_entity_info(self) -> None:
        source = order_with(
            "def __init__(self, entity_info: EntityInfo, name: str) -> None: ...",
            "def __init__(self, name: str) -> None: ...",
        )
        violation = evaluate(self.rule, source, "Order")

        self.assertIsNotNone(violation)
        self.assertEqual(violation.line, line_of(source, "def __init__(self, name: str)"))

    def test_entity_info_parameter_passes(self) -> None:
        self.assertIsNone(evaluate(self.rule, CONFORMING_ORDER, "Order"))


class TestNotReadonlyStructRule(unittest.TestCase):
    def setUp(self) -> None:
        self.rule = NotReadonlyStructRule()

    def test_frozen_dataclass_in_lineage_reported(self) -> None:
        body = """
        @dataclass(frozen=True)
        class Snapshot(EntityBase):
            amount: int
        """
        violation = evaluate(self.rule, body, "Snapshot")
        self.assertIsNotNone(violation)
        self.assertIn("frozen value aggregate", violation.message)

    def test_mutable_dataclass_passes(self) -> None:
        body = """
        @dataclass
        class Snapshot(EntityBase):
            amount: int
        """
        self.assertIsNone(evaluate(self.rule, body, "Snapshot"))

    def test_frozen_dataclass_outside_lineage_not_applicable(self) -> None:
        body = """
        @dataclass(frozen=True)
        class Money:
            amount: int
        """
        self.assertFalse(self.rule.applies_to(model_of(body, "Money")))


class TestNestedMetadataClassRule(unittest.TestCase):
    def setUp(self) -> None:
        self.rule = NestedMetadataClassRule()

    def test_module_level_metadata_reported_at_sibling(self) -> None:
        body = """
        class OrderMetadata:
            name_max_length: int = 10

        @final
        class Order(EntityBase):
            @private
            def __init__(self) -> None:
                pass
        """
        violation = evaluate(self.rule, body, "Order")

        self.assertIsNotNone(violation)
        self.assertEqual(violation.line, line_of(body, "class OrderMetadata"))

    def test_nested_metadata_passes(self) -> None:
        self.assertIsNone(evaluate(self.rule, CONFORMING_ORDER, "Order"))


class TestDomainInterfaceMustDeclareAggregateRootRule(unittest.TestCase):
    SOURCE = """
    class Entity(Protocol):
        pass

    class AggregateRoot(Entity, Protocol):
        pass

    class OrderCapability({base}, Protocol):
        pass

    @final
    class Order(EntityBase, AggregateRoot, OrderCapability):
        @private
        def __init__(self) -> None:
            pass
    """

    def setUp(self) -> None:
        self.rule = DomainInterfaceMustDeclareAggregateRootRule()

    def test_entity_derived_capability_reported(self) -> None:
        violation = evaluate(self.rule, self.SOURCE.format(base="Entity"), "Order")

        self.assertIsNotNone(violation)
        self.assertIn("'OrderCapability'", violation.message)
        self.assertIn("from 'Entity' to 'AggregateRoot'", violation.llm_hint)

    def test_aggregate_root_derived_capability_passes(self) -> None:
        self.assertIsNone(evaluate(self.rule, self.SOURCE.format(base="AggregateRoot"), "Order"))

    def test_non_aggregate_root_ignored(self) -> None:
        self.assertIsNone(evaluate(self.rule, CONFORMING_ORDER, "Order"))


if __name__ == "__main__":
    unittest.main()
