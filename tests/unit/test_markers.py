"""Tests for the constructor accessibility markers."""

from domain_conformance.markers import private, protected


def test_markers_record_level_and_return_function() -> None:
    def build(self) -> None:
        pass

    marked = private(build)

    assert marked is build
    assert build.__accessibility__ == "private"
    assert protected(lambda: None).__accessibility__ == "protected"


def test_marker_repr() -> None:
    assert repr(private) == "@private"
    assert repr(protected) == "@protected"


def test_marked_constructor_still_runs() -> None:
    class Order:
        @private
        def __init__(self, name: str) -> None:
            self.name = name

    assert Order("Widget").name == "Widget"
