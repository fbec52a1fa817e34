"""Tests for epicflow.documents.prd module."""

import pytest

from epicflow.documents.prd import (
    SECTION_ORDER,
    Task,
    build_prd,
    parse_prd,
    set_status_line,
    slugify,
)
from epicflow.lib.errors import MissingInput
from epicflow.lib.validate import ValidationError

from conftest import ANSWERS


def headings(text):
    return [line[3:] for line in text.splitlines() if line.startswith("## ")]


class TestSlugify:
    """Tests for slugify."""

    def test_basic(self):
        assert slugify("Checkout Flow") == "checkout-flow"

    def test_punctuation_collapses(self):
        assert slugify("  User / Team: Invites!! ") == "user-team-invites"

    def test_truncates(self):
        slug = slugify("word " * 30)
        assert len(slug) <= 48
        assert not slug.endswith("-")

    def test_nothing_usable(self):
        with pytest.raises(MissingInput):
            slugify("!!!")


class TestBuildPRD:
    """Tests for build_prd."""

    def test_required_sections_in_order(self):
        answers = {"objective": "Ship it", "user_stories": "As a user...", "tasks": "Do it"}
        prd = build_prd(answers, number=1, slug="x", title="X", created="2026-10-18")

        assert headings(prd.render()) == ["Objective", "User Stories", "Tasks"]

    def test_all_sections_in_template_order(self):
        answers = dict(
            ANSWERS,
            data_model="orders.paid_at timestamp",
            open_questions=["Refunds?"],
        )
        prd = build_prd(answers, number=1, slug="x", title="X")

        assert headings(prd.render()) == SECTION_ORDER

    def test_header(self):
        prd = build_prd(ANSWERS, number=4, slug="checkout-flow", title="Checkout Flow",
                        branch="epic/004-checkout-flow", created="2026-10-18")
        lines = prd.render().splitlines()

        assert lines[0] == "# Epic 4: Checkout Flow"
        assert "**Status:** Draft" in lines
        assert "**Created:** 2026-10-18" in lines
        assert "**Branch:** epic/004-checkout-flow" in lines

    def test_tasks_render_unchecked(self):
        prd = build_prd(ANSWERS, number=1, slug="x", title="X")
        text = prd.render()

        assert "- [ ] Add checkout endpoint" in text
        assert "- [ ] Add payment form" in text

    def test_multiline_answers_become_items(self):
        answers = {
            "objective": "  Ship it  ",
            "user_stories": "- As a buyer, I pay\n\n* As a seller, I get paid\n",
            "tasks": "- [ ] one\n- [x] two",
        }
        prd = build_prd(answers, number=1, slug="x", title="X")

        assert prd.objective == "Ship it"
        assert prd.user_stories == ["As a buyer, I pay", "As a seller, I get paid"]
        assert prd.tasks == [Task("one"), Task("two")]

    def test_empty_dependencies_render_none_marker(self):
        prd = build_prd(dict(ANSWERS, dependencies=[]), number=1, slug="x", title="X")
        text = prd.render()

        assert "## Dependencies\n\n- None\n" in text

    def test_dependency_none_answers_filtered(self):
        prd = build_prd(dict(ANSWERS, dependencies="none\nn/a"), number=1, slug="x", title="X")
        assert prd.dependencies == []

    def test_absent_optional_sections_omitted(self):
        answers = {k: v for k, v in ANSWERS.items() if k != "dependencies"}
        prd = build_prd(dict(answers, data_model="  "), number=1, slug="x", title="X")
        text = prd.render()

        assert "## Dependencies" not in text
        assert "## Data Model" not in text
        assert "## Open Questions" not in text

    @pytest.mark.parametrize("key", ["objective", "user_stories", "tasks"])
    def test_required_answer_missing(self, key):
        answers = {k: v for k, v in ANSWERS.items() if k != key}
        with pytest.raises(MissingInput) as exc:
            build_prd(answers, number=1, slug="x", title="X")
        assert exc.value.field == key

    def test_blank_required_answer(self):
        with pytest.raises(MissingInput) as exc:
            build_prd(dict(ANSWERS, objective="   "), number=1, slug="x", title="X")
        assert exc.value.field == "objective"

    def test_unknown_answer_key(self):
        with pytest.raises(ValidationError):
            build_prd(dict(ANSWERS, budget="lots"), number=1, slug="x", title="X")

    def test_wrong_answer_type(self):
        with pytest.raises(ValidationError) as exc:
            build_prd(dict(ANSWERS, tasks={"a": 1}), number=1, slug="x", title="X")
        assert exc.value.path == "tasks"


class TestParsePRD:
    """Tests for parse_prd."""

    def test_reads_back_built_document(self):
        answers = dict(ANSWERS, data_model="orders.paid_at", open_questions=["Refunds?"])
        prd = build_prd(answers, number=3, slug="checkout-flow", title="Checkout Flow",
                        branch="epic/003-checkout-flow", created="2026-10-18")

        assert parse_prd(prd.render(), "checkout-flow") == prd

    def test_checked_tasks(self):
        text = "# Epic 2: Search\n\n**Status:** In Progress\n\n## Tasks\n\n- [x] index\n- [ ] query\n"
        prd = parse_prd(text, "search")

        assert prd.number == 2
        assert prd.status == "In Progress"
        assert prd.tasks == [Task("index", done=True), Task("query")]

    def test_file_number_wins(self):
        prd = parse_prd("# Epic 2: Search\n", "search", number=9)
        assert prd.number == 9

    def test_no_number(self):
        with pytest.raises(ValueError):
            parse_prd("Just notes\n", "notes")

    def test_hand_edited_sections_tolerated(self):
        text = (
            "# Epic 1: Auth\n\n**Status:** Draft\n\n"
            "## Objective\n\nLog in.\n\n"
            "## Notes\n\nscratch\n\n"
            "## Tasks\n\n- plain bullet task\n"
        )
        prd = parse_prd(text, "auth")

        assert prd.objective == "Log in."
        assert prd.tasks == [Task("plain bullet task")]
        assert prd.user_stories == []
        assert prd.dependencies is None


class TestSetStatusLine:
    """Tests for set_status_line."""

    def test_replaces_status(self):
        text = "# Epic 1: Auth\n\n**Status:** Draft\n**Created:** 2026-10-01\n\n## Tasks\n\n- [ ] a\n"
        result = set_status_line(text, "Complete")

        assert result == text.replace("Draft", "Complete")

    def test_ignores_status_text_in_sections(self):
        text = "# Epic 1: Auth\n\n## Objective\n\n**Status:** Draft is a word here\n"
        result = set_status_line(text, "Complete")

        assert "**Status:** Draft is a word here" in result
        assert result.startswith("# Epic 1: Auth\n\n**Status:** Complete\n")

    def test_adds_missing_status(self):
        result = set_status_line("# Epic 1: Auth\n", "In Progress")
        assert result == "# Epic 1: Auth\n\n**Status:** In Progress\n"
