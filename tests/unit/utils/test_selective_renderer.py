"""Tests for selective rendering of the cited text."""

from itertools import permutations

import pytest

from scholarcite.models.reference import Reference
from scholarcite.utils.selective_renderer import (
    CLEANUP_TRANSFORMS,
    SelectiveRenderer,
    clean_text,
    collapse_repeated_commas,
    collapse_whitespace,
    deselected_tags,
    drop_empty_groups,
    remove_tag,
    render_selected,
    strip_edges,
    tighten_punctuation,
    trim_commas_inside_parentheses,
)


def _ref(ref_id: int, tag: str | None, selected: bool = True) -> Reference:
    return Reference(
        id=ref_id, title=f"Paper {ref_id}", snippet="s", citation_tag=tag, is_selected=selected
    )


@pytest.fixture
def renderer() -> SelectiveRenderer:
    return SelectiveRenderer()


class TestRender:
    """Tag removal plus cleanup."""

    def test_deselected_tag_is_removed(self, renderer: SelectiveRenderer) -> None:
        refs = [_ref(1, "[1]", selected=False), _ref(2, "[2]")]

        assert renderer.render("AI improves outcomes [1] and [2].", refs) == (
            "AI improves outcomes and [2]."
        )

    def test_all_selected_equals_cleanup_alone(self, renderer: SelectiveRenderer) -> None:
        text = "  Some   text , here ."
        refs = [_ref(1, "[1]"), _ref(2, "[2]")]

        assert renderer.render(text, refs) == clean_text(text) == "Some text, here."

    def test_shared_tag_removes_every_occurrence(self, renderer: SelectiveRenderer) -> None:
        refs = [_ref(1, "[1]"), _ref(2, "[1]", selected=False), _ref(3, "[2]")]

        assert renderer.render("A [1] and B [1] and C [2].", refs) == "A and B and C [2]."

    def test_comma_separated_tags(self, renderer: SelectiveRenderer) -> None:
        text = "Growth was reported [1], [2], [3]."

        one = renderer.render(text, [_ref(1, "[1]"), _ref(2, "[2]", False), _ref(3, "[3]")])
        two = renderer.render(text, [_ref(1, "[1]", False), _ref(2, "[2]", False), _ref(3, "[3]")])

        assert one == "Growth was reported [1], [3]."
        assert two == "Growth was reported, [3]."

    def test_empty_group_is_dropped(self, renderer: SelectiveRenderer) -> None:
        refs = [_ref(1, "[1]", selected=False)]

        assert renderer.render("Evidence exists ([1]).", refs) == "Evidence exists."

    @pytest.mark.parametrize(
        ("deselected", "expected"),
        [
            ({"Kim 2020"}, "Evidence (Lee 2021) holds."),
            ({"Lee 2021"}, "Evidence (Kim 2020) holds."),
            ({"Kim 2020", "Lee 2021"}, "Evidence holds."),
        ],
    )
    def test_parenthetical_citations(
        self, renderer: SelectiveRenderer, deselected: set[str], expected: str
    ) -> None:
        refs = [
            _ref(1, "Kim 2020", selected="Kim 2020" not in deselected),
            _ref(2, "Lee 2021", selected="Lee 2021" not in deselected),
        ]

        assert renderer.render("Evidence (Kim 2020, Lee 2021) holds.", refs) == expected

    def test_regex_characters_in_tags_are_literal(self, renderer: SelectiveRenderer) -> None:
        refs = [_ref(1, "[a+b]", selected=False)]

        assert renderer.render("Value is high (p<.05)* [a+b].", refs) == "Value is high (p<.05)*."

    def test_untagged_reference_does_not_change_text(self, renderer: SelectiveRenderer) -> None:
        refs = [_ref(1, None, selected=False), _ref(2, "[2]")]

        assert renderer.render("Claim [2].", refs) == "Claim [2]."

    def test_render_selected_uses_default_pipeline(self) -> None:
        refs = [_ref(1, "[1]", selected=False)]

        assert render_selected("Claim [1].", refs) == "Claim."


class TestRenderProperties:
    """Idempotence and order independence."""

    SAMPLES = [
        "Evidence (Kim 2020, Lee 2021) holds [1], [2].",
        "A [1] , , [2] ( ) [ ] end .",
        "Lee (Lee, 2023) reports [1][2] gains.",
    ]

    @pytest.mark.parametrize("text", SAMPLES)
    def test_rendering_is_idempotent(self, renderer: SelectiveRenderer, text: str) -> None:
        refs = [
            _ref(1, "[1]", selected=False),
            _ref(2, "Kim 2020", selected=False),
            _ref(3, "(Lee, 2023)", selected=False),
            _ref(4, "[2]"),
        ]

        once = renderer.render(text, refs)

        assert renderer.render(once, refs) == once

    @pytest.mark.parametrize("text", SAMPLES)
    def test_reference_order_does_not_matter(self, renderer: SelectiveRenderer, text: str) -> None:
        refs = [
            _ref(1, "Lee", selected=False),
            _ref(2, "(Lee, 2023)", selected=False),
            _ref(3, "[1]", selected=False),
        ]

        outputs = {renderer.render(text, list(order)) for order in permutations(refs)}

        assert len(outputs) == 1

    def test_overlapping_tags_removed_longest_first(self) -> None:
        refs = [_ref(1, "Lee", selected=False), _ref(2, "(Lee, 2023)", selected=False)]

        assert deselected_tags(refs) == ["(Lee, 2023)", "Lee"]


class TestCleanupTransforms:
    """Each transform on its own."""

    def test_pipeline_order(self) -> None:
        assert [name for name, _ in CLEANUP_TRANSFORMS] == [
            "collapse_repeated_commas",
            "collapse_whitespace",
            "trim_commas_inside_parentheses",
            "drop_empty_groups",
            "tighten_punctuation",
            "strip_edges",
        ]

    def test_collapse_repeated_commas(self) -> None:
        assert collapse_repeated_commas("a,, ,b") == "a,b"

    def test_collapse_whitespace(self) -> None:
        assert collapse_whitespace("a \t\n b c") == "a b c"

    def test_trim_commas_inside_parentheses(self) -> None:
        assert trim_commas_inside_parentheses("( ,Lee)") == "(Lee)"
        assert trim_commas_inside_parentheses("(Kim, )") == "(Kim)"

    def test_drop_empty_groups(self) -> None:
        assert drop_empty_groups("x () y [ ] z") == "x  y  z"

    def test_tighten_punctuation(self) -> None:
        assert tighten_punctuation("a , b .") == "a, b."

    def test_strip_edges(self) -> None:
        assert strip_edges("  a  ") == "a"

    def test_remove_tag_repeats_until_gone(self) -> None:
        assert remove_tag("[[1]1]", "[1]") == ""

    def test_custom_pipeline(self) -> None:
        renderer = SelectiveRenderer(transforms=(("strip_edges", strip_edges),))

        assert renderer.render(" A  [1] . ", [_ref(1, "[1]", False)]) == "A   ."
