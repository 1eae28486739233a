"""The fixed rule catalog assembled by the host application."""

import logging
from collections.abc import Iterable, Mapping

from domain_conformance.domain.conventions import ConventionSet
from domain_conformance.domain.entities import Severity
from domain_conformance.domain.rules import ConformanceRule
from domain_conformance.domain.rules.abstract_tier import (
    InternalMethodProtectedInAbstractClassesRule,
    IsValidHierarchyInAbstractClassesRule,
    MaxInheritanceDepthRule,
    MetadataInAbstractClassesRule,
    NoCreateFromExistingInfoInAbstractClassesRule,
    NoPublicBusinessMethodsInAbstractClassesRule,
    ProtectedConstructorsInAbstractClassesRule,
    RegisterNewBaseInAbstractClassesRule,
    SetMethodPrivateInAbstractClassesRule,
    ValidateMethodPublicInAbstractClassesRule,
)
from domain_conformance.domain.rules.associations import (
    AssociatedAggregateRootMetadataOnlyIsRequiredRule,
    ProcessValidateSetForAssociatedAggregateRootsRule,
)
from domain_conformance.domain.rules.child_collections import (
    ChildCollectionPrivateListFieldRule,
    ChildEntityLookupByIdRule,
    ChildEntityProcessedOneByOneRule,
    ChildModificationViaBusinessMethodRule,
    CollectionFieldAlwaysInitializedRule,
    DefensiveCopyCollectionInConstructorRule,
    DuplicateValidationIgnoresSelfRule,
    NoSetMethodForCollectionsRule,
    OperationSpecificChildValidationRule,
    PublicPropertyReadOnlyListRule,
)
from domain_conformance.domain.rules.enums import EnumConventionsRule
from domain_conformance.domain.rules.factories import (
    ExecutionContextFirstParameterRule,
    InputObjectsPatternRule,
    InvalidStateNeverExistsRule,
    ReconstitutionDoesNotValidateRule,
    RegisterNewAndCreateFromExistingInfoRule,
)
from domain_conformance.domain.rules.metadata import (
    ChangeMetadataUsesLockRule,
    InlineMetadataInitializationRule,
    MetadataNamingConventionRule,
    StaticMetadataOverDataAnnotationsRule,
)
from domain_conformance.domain.rules.mutation import (
    BitwiseAndForValidationRule,
    CloneModifyReturnRule,
    ConstructorDoesNotValidateRule,
    DerivedPropertiesStoredRule,
    ExceptionsVsNullableReturnRule,
    IntermediateVariablesInValidationRule,
    NoVoidMutationMethodsRule,
    NullableReturnOverResultPatternRule,
    PublicMethodNeverCallsPublicRule,
    PublicMethodsDelegateToInternalRule,
    RegisterInternalCalledOnceRule,
    SetMethodsPrivateRule,
    TimeProviderViaExecutionContextRule,
)
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
from domain_conformance.domain.rules.validation import (
    MessageCodesWithCreateMessageCodeRule,
    ValidateMethodsPublicStaticRule,
    ValidateParametersNullableRule,
    ValidateUsesMetadataRule,
    ValidationUtilsForStandardValidationsRule,
)

logger = logging.getLogger(__name__)

RULE_TYPES: tuple[type[ConformanceRule], ...] = (
    SealedClassRule,
    PrivateConstructorRule,
    CloneModifyReturnRule,
    InvalidStateNeverExistsRule,
    AggregateRootInterfaceRule,
    BitwiseAndForValidationRule,
    NullableReturnOverResultPatternRule,
    ExceptionsVsNullableReturnRule,
    ValidateMethodsPublicStaticRule,
    ValidationUtilsForStandardValidationsRule,
    ValidateParametersNullableRule,
    StaticMetadataOverDataAnnotationsRule,
    MetadataNamingConventionRule,
    InlineMetadataInitializationRule,
    ChangeMetadataUsesLockRule,
    ValidateUsesMetadataRule,
    RegisterNewAndCreateFromExistingInfoRule,
    ReconstitutionDoesNotValidateRule,
    InputObjectsPatternRule,
    TwoPrivateConstructorsRule,
    PublicMethodsDelegateToInternalRule,
    SetMethodsPrivateRule,
    RegisterInternalCalledOnceRule,
    PublicMethodNeverCallsPublicRule,
    IntermediateVariablesInValidationRule,
    DerivedPropertiesStoredRule,
    NoExternalDependenciesRule,
    ExecutionContextFirstParameterRule,
    TimeProviderViaExecutionContextRule,
    MessageCodesWithCreateMessageCodeRule,
    EntityInfoManagedByBaseRule,
    OptimisticLockingViaEntityInfoRule,
    NotReadonlyStructRule,
    NoVoidMutationMethodsRule,
    ConstructorDoesNotValidateRule,
    ChildCollectionPrivateListFieldRule,
    PublicPropertyReadOnlyListRule,
    CollectionFieldAlwaysInitializedRule,
    DefensiveCopyCollectionInConstructorRule,
    ChildEntityProcessedOneByOneRule,
    OperationSpecificChildValidationRule,
    ChildEntityLookupByIdRule,
    ChildModificationViaBusinessMethodRule,
    NoSetMethodForCollectionsRule,
    DuplicateValidationIgnoresSelfRule,
    EnumConventionsRule,
    SetMethodPrivateInAbstractClassesRule,
    ValidateMethodPublicInAbstractClassesRule,
    InternalMethodProtectedInAbstractClassesRule,
    NoPublicBusinessMethodsInAbstractClassesRule,
    IsValidHierarchyInAbstractClassesRule,
    ProtectedConstructorsInAbstractClassesRule,
    MetadataInAbstractClassesRule,
    MaxInheritanceDepthRule,
    RegisterNewBaseInAbstractClassesRule,
    NoCreateFromExistingInfoInAbstractClassesRule,
    AssociatedAggregateRootMetadataOnlyIsRequiredRule,
    ProcessValidateSetForAssociatedAggregateRootsRule,
    NestedMetadataClassRule,
    DomainInterfaceMustDeclareAggregateRootRule,
)


class RuleCatalog:
    """Builds configured rule instances. Rules are matched by full name or by code (`DE013`)."""

    @staticmethod
    def matches(rule_type: type[ConformanceRule], key: str) -> bool:
        key = key.strip()
        return key in (rule_type.code, f"{rule_type.code}_{rule_type.title}")

    @classmethod
    def default(
        cls,
        conventions: ConventionSet | None = None,
        severity_overrides: Mapping[str, Severity] | None = None,
        disabled: Iterable[str] = (),
        only: Iterable[str] = (),
    ) -> list[ConformanceRule]:
        """Every catalog rule, minus disabled ones, restricted to `only` when given."""
        conventions = conventions or ConventionSet()
        overrides = dict(severity_overrides or {})
        disabled_keys = list(disabled)
        only_keys = list(only)
        for key in disabled_keys + only_keys + list(overrides):
            if not any(cls.matches(rule_type, key) for rule_type in RULE_TYPES):
                logger.warning("Unknown rule '%s' in configuration; ignoring it", key)

        rules: list[ConformanceRule] = []
        for rule_type in RULE_TYPES:
            if any(cls.matches(rule_type, key) for key in disabled_keys):
                continue
            if only_keys and not any(cls.matches(rule_type, key) for key in only_keys):
                continue
            severity = next(
                (value for key, value in overrides.items() if cls.matches(rule_type, key)),
                None,
            )
            rules.append(rule_type(conventions=conventions, severity=severity))
        return rules

    @staticmethod
    def names() -> list[str]:
        return [f"{rule_type.code}_{rule_type.title}" for rule_type in RULE_TYPES]
