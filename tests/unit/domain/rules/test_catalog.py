"""Tests for the rule catalog."""

import unittest

from domain_conformance.domain.conventions import ConventionSet
from domain_conformance.domain.entities import Severity
from domain_conformance.domain.rules import Eligibility
from domain_conformance.domain.rules.catalog import RULE_TYPES, RuleCatalog
from domain_conformance.domain.rules.structure import SealedClassRule


class TestRuleCatalog(unittest.TestCase):
    def test_catalog_holds_sixty_uniquely_coded_rules(self) -> None:
        codes = [rule_type.code for rule_type in RULE_TYPES]

        self.assertEqual(len(codes), 60)
        self.assertEqual(len(set(codes)), 60)
        self.assertEqual(codes, [f"DE{n:03d}" for n in range(1, 61)])

    def test_every_rule_declares_identity(self) -> None:
        for rule_type in RULE_TYPES:
            with self.subTest(rule=rule_type.code):
                rule = rule_type()
                self.assertTrue(rule_type.title)
                self.assertTrue(rule_type.description)
                self.assertTrue(rule.adr.endswith(".md"))
                self.assertIsInstance(rule_type.eligibility, Eligibility)

    def test_names_are_code_and_title(self) -> None:
        names = RuleCatalog.names()

        self.assertEqual(names[0], "DE001_SealedClass")
        self.assertIn("DE013_MetadataNamingConvention", names)

    def test_default_shares_conventions(self) -> None:
        conventions = ConventionSet(lineage_roots=("AggregateBase",))
        rules = RuleCatalog.default(conventions=conventions)

        self.assertEqual(len(rules), 60)
        self.assertTrue(all(rule.conventions is conventions for rule in rules))

    def test_matches_by_code_or_full_name(self) -> None:
        self.assertTrue(RuleCatalog.matches(SealedClassRule, "DE001"))
        self.assertTrue(RuleCatalog.matches(SealedClassRule, " DE001_SealedClass "))
        self.assertFalse(RuleCatalog.matches(SealedClassRule, "SealedClass"))

    def test_disabled_and_only(self) -> None:
        without = RuleCatalog.default(disabled=["DE001", "DE002_PrivateConstructor"])
        only = RuleCatalog.default(only=["DE013", "DE046"])

        self.assertEqual(len(without), 58)
        self.assertNotIn("DE001_SealedClass", [r.name for r in without])
        self.assertEqual(
            [r.name for r in only], ["DE013_MetadataNamingConvention", "DE046_EnumConventions"]
        )

    def test_severity_overrides(self) -> None:
        rules = RuleCatalog.default(severity_overrides={"DE001": Severity.WARNING})
        by_name = {r.name: r for r in rules}

        self.assertEqual(by_name["DE001_SealedClass"].severity, Severity.WARNING)
        self.assertEqual(by_name["DE002_PrivateConstructor"].severity, Severity.ERROR)

    def test_unknown_keys_are_logged(self) -> None:
        with self.assertLogs("domain_conformance.domain.rules.catalog", level="WARNING") as logs:
            rules = RuleCatalog.default(disabled=["DE999"])

        self.assertEqual(len(rules), 60)
        self.assertIn("Unknown rule 'DE999'", logs.output[0])


if __name__ == "__main__":
    unittest.main()
