"""Tests for the Org syntax tree parser."""

from org_reminders.org.enums import NodeType
from org_reminders.org.syntax import OrgParser, SyntaxTree


def _shape(node):
    """Nested (type, start, end, children) tuples for tree comparison."""
    return (
        node.type,
        node.start,
        node.end,
        tuple(_shape(child) for child in node.children),
    )


# ---------------------------------------------------------------------------
# Full parse
# ---------------------------------------------------------------------------


class TestParse:
    """Node shapes produced by OrgParser.parse()."""

    def test_headline_parts(self):
        source = "* TODO [#A] Title :x:y:\n"
        tree = OrgParser().parse(source)
        section = tree.root.children[0]
        headline = section.child(NodeType.HEADLINE)

        stars = headline.child(NodeType.STARS)
        assert stars.text(source) == "*"
        words = headline.child(NodeType.ITEM).children
        assert [w.text(source) for w in words] == ["TODO", "[#A]", "Title"]
        tags = headline.child(NodeType.TAG_LIST).children
        assert [t.text(source) for t in tags] == ["x", "y"]

    def test_plan_entries(self):
        source = (
            "* L\n"
            "** DONE T\n"
            "CLOSED: [2024-01-06 Sat 10:00] SCHEDULED: <2024-01-05 Fri 09:00>\n"
        )
        tree = OrgParser().parse(source)
        item = tree.root.children[0].children_of(NodeType.SECTION)[0]
        plan = item.child(NodeType.PLAN)
        entries = [
            (e.named_child(0).text(source), e.named_child(1).text(source))
            for e in plan.children
        ]
        assert entries == [
            ("CLOSED", "[2024-01-06 Sat 10:00]"),
            ("SCHEDULED", "<2024-01-05 Fri 09:00>"),
        ]

    def test_property_drawer(self):
        source = "* L\n:PROPERTIES:\n:LIST-ID: L1\n:EMPTY:\n:END:\n"
        tree = OrgParser().parse(source)
        drawer = tree.root.children[0].child(NodeType.PROPERTY_DRAWER)
        assert drawer.text(source) == ":PROPERTIES:\n:LIST-ID: L1\n:EMPTY:\n:END:"
        first, second = drawer.children
        assert first.named_child(0).text(source) == "LIST-ID"
        assert first.named_child(1).text(source) == "L1"
        # A property without value has no VALUE child
        assert second.named_child_count == 1

    def test_unterminated_drawer_becomes_body(self):
        source = "* L\n:PROPERTIES:\n:LIST-ID: L1\n"
        tree = OrgParser().parse(source)
        section = tree.root.children[0]
        assert section.child(NodeType.PROPERTY_DRAWER) is None
        assert section.child(NodeType.BODY).text(source) == (
            ":PROPERTIES:\n:LIST-ID: L1"
        )

    def test_nested_sections(self, sample_org):
        tree = OrgParser().parse(sample_org)
        top = tree.root.children
        assert len(top) == 2
        assert len(top[0].children_of(NodeType.SECTION)) == 2
        assert len(top[1].children_of(NodeType.SECTION)) == 1

    def test_section_end_excludes_trailing_blank_lines(self):
        source = "* A\nbody\n\n\n* B\n"
        tree = OrgParser().parse(source)
        first = tree.root.children[0]
        assert first.text(source) == "* A\nbody"

    def test_bold_text_is_not_a_headline(self):
        source = "* A\n**bold** text\n"
        tree = OrgParser().parse(source)
        assert len(tree.root.children) == 1
        body = tree.root.children[0].child(NodeType.BODY)
        assert body.text(source) == "**bold** text"

    def test_empty_source(self):
        tree = OrgParser().parse("")
        assert tree.root is not None
        assert tree.root.children == []


# ---------------------------------------------------------------------------
# Incremental reparse
# ---------------------------------------------------------------------------


class TestReparse:
    """OrgParser.reparse() reuses unchanged sections."""

    def test_append_reuses_prefix(self, sample_org):
        parser = OrgParser()
        previous = parser.parse(sample_org)
        source = sample_org + "** TODO New\n"

        tree = parser.reparse(previous, source)

        assert tree.root.children[0] is previous.root.children[0]
        assert _shape(tree.root) == _shape(parser.parse(source).root)

    def test_edit_in_first_section_matches_full_parse(self, sample_org):
        parser = OrgParser()
        previous = parser.parse(sample_org)
        source = sample_org.replace("Write report", "Write reports")

        tree = parser.reparse(previous, source)

        assert _shape(tree.root) == _shape(parser.parse(source).root)

    def test_shorter_text_forces_full_parse(self, sample_org):
        parser = OrgParser()
        previous = parser.parse(sample_org)
        source = sample_org.replace("Quarterly numbers\n", "")

        tree = parser.reparse(previous, source)

        assert tree.root.children[0] is not previous.root.children[0]
        assert _shape(tree.root) == _shape(parser.parse(source).root)

    def test_unchanged_text_keeps_tree(self, sample_org):
        parser = OrgParser()
        previous = parser.parse(sample_org)
        tree = parser.reparse(previous, sample_org)
        assert tree.root is previous.root

    def test_no_previous_tree(self):
        parser = OrgParser()
        tree = parser.reparse(SyntaxTree(root=None, source=""), "* A\n")
        assert len(tree.root.children) == 1
