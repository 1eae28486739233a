"""Helpers for building Symbol Models from small in-memory sources."""

import textwrap

from domain_conformance.domain.entities import Violation
from domain_conformance.domain.rules import ConformanceRule
from domain_conformance.domain.symbols import TypeSymbol, WorkspaceSnapshot
from domain_conformance.infrastructure.gateways.astroid_gateway import AstroidGateway

# Lineage root and the collaborator types every entity source refers to.
PRELUDE = '''\
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import Protocol, final, overload

from domain_conformance.markers import private, protected


class EntityBase(ABC):
    pass


class ExecutionContext:
    pass


class EntityInfo:
    pass
'''


def source_of(body: str, prelude: bool = True) -> str:
    text = textwrap.dedent(body)
    return PRELUDE + "\n\n" + text if prelude else text


def snapshot_of(body: str, prelude: bool = True) -> WorkspaceSnapshot:
    return AstroidGateway().models_from_source(source_of(body, prelude))


def model_of(body: str, name: str, prelude: bool = True) -> TypeSymbol:
    return snapshot_of(body, prelude).named(name)


def line_of(body: str, marker: str, prelude: bool = True) -> int:
    """1-based line of the first line containing `marker` in the composed source."""
    for number, line in enumerate(source_of(body, prelude).splitlines(), start=1):
        if marker in line:
            return number
    raise AssertionError(f"marker {marker!r} not found")


def evaluate(rule: ConformanceRule, body: str, name: str) -> Violation | None:
    return rule.evaluate(model_of(body, name))


# An entity that satisfies every catalog rule; tests derive violations from it.
CONFORMING_ORDER = '''
def create_message_code(entity: str, prop: str) -> str:
    return f"{entity}.{prop}"


class ValidationUtils:
    @staticmethod
    def validate_is_required(execution_context, code, value, is_required) -> bool:
        return value is not None or not is_required

    @staticmethod
    def validate_max_length(execution_context, code, value, max_length) -> bool:
        return value is None or len(value) <= max_length


@dataclass(frozen=True)
class RegisterNewOrderInput:
    name: str | None


@dataclass(frozen=True)
class ExistingOrderInput:
    entity_info: EntityInfo
    name: str


@dataclass(frozen=True)
class ChangeNameInput:
    name: str | None


@final
class Order(EntityBase):
    class OrderMetadata:
        name_max_length: int = 100
        name_is_required: bool = True

    @overload
    @private
    def __init__(self) -> None: ...

    @overload
    @private
    def __init__(self, entity_info: EntityInfo, name: str) -> None: ...

    @private
    def __init__(self, entity_info=None, name=None):
        super().__init__()
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @classmethod
    def register_new(cls, execution_context: ExecutionContext, input: RegisterNewOrderInput) -> "Order | None":
        order = cls()
        if not order._change_name_internal(execution_context, input.name):
            return None
        return order

    @classmethod
    def create_from_existing_info(cls, input: ExistingOrderInput) -> "Order":
        return cls(input.entity_info, input.name)

    def change_name(self, execution_context: ExecutionContext, input: ChangeNameInput) -> "Order | None":
        clone = self._clone()
        if clone._change_name_internal(execution_context, input.name):
            return clone
        return None

    def _change_name_internal(self, execution_context: ExecutionContext, name: str | None) -> bool:
        is_valid = Order.validate_name(execution_context, name)
        if is_valid:
            self.__set_name(name)
        return is_valid

    def __set_name(self, name) -> None:
        self._name = name

    @staticmethod
    def validate_name(execution_context: ExecutionContext, name: str | None) -> bool:
        code = create_message_code("Order", "name")
        return ValidationUtils.validate_is_required(
            execution_context, code, name, Order.OrderMetadata.name_is_required
        ) & ValidationUtils.validate_max_length(
            execution_context, code, name, Order.OrderMetadata.name_max_length
        )
'''


def order_with(old: str, new: str) -> str:
    """CONFORMING_ORDER with one exact fragment replaced."""
    if old not in CONFORMING_ORDER:
        raise AssertionError(f"fragment {old!r} not in CONFORMING_ORDER")
    return CONFORMING_ORDER.replace(old, new, 1)
