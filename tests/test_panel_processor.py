from panel_processor import (
    MarkdownifyBackend,
    Panel,
    PanelSection,
    extract_sections,
    extract_sections_from_panel,
    normalize_checklists,
    process_panels,
    template_priority,
)


def panel(html, slug="meeting-notes"):
    return {"original_content": html, "template_slug": slug}


def test_agenda_and_notes_sections():
    html = "<h3>Agenda</h3><ul><li>Item A</li></ul><h3>Notes</h3><p>Text</p>"
    assert process_panels([panel(html)]) == "### Agenda\n- Item A\n\n### Notes\nText"


def test_empty_inputs():
    assert process_panels(None) == ""
    assert process_panels([]) == ""
    assert process_panels([panel("")]) == ""


def test_heading_without_content_is_dropped():
    html = "<h3>Empty</h3><h3>Notes</h3><p>Text</p><h3>Trailing</h3>"
    assert process_panels([panel(html)]) == "### Notes\nText"


def test_document_without_h3_contributes_nothing():
    html = "<h2>Overview</h2><p>Just a paragraph</p>"
    assert process_panels([panel(html)]) == ""


def test_content_before_first_heading_is_ignored():
    html = "<p>Preamble</p><h3>Notes</h3><p>Text</p>"
    assert process_panels([panel(html)]) == "### Notes\nText"


def test_checklist_items():
    html = (
        "<h3>Tasks</h3><ul>"
        '<li><input type="checkbox" checked> Done</li>'
        '<li><input type="checkbox"> Todo</li>'
        "</ul>"
    )
    assert process_panels([panel(html)]) == "### Tasks\n- [x] Done\n- [ ] Todo"


def test_checklist_item_strips_embedded_tags():
    html = '<h3>Tasks</h3><ul><li><input type="checkbox" checked> Ship <strong>v2</strong></li></ul>'
    assert process_panels([panel(html)]) == "### Tasks\n- [x] Ship v2"


def test_ordered_list_honours_start():
    html = '<h3>Steps</h3><ol start="3"><li>First</li><li>Second</li></ol>'
    assert process_panels([panel(html)]) == "### Steps\n3. First\n4. Second"


def test_ordered_list_defaults_to_one():
    html = "<h3>Steps</h3><ol><li>First</li><li>Second</li></ol>"
    assert process_panels([panel(html)]) == "### Steps\n1. First\n2. Second"


def test_bare_checkbox_is_suppressed():
    html = '<h3>Loose</h3><p><input type="checkbox"> loose text</p>'
    out = process_panels([panel(html)])
    assert out.startswith("### Loose\n")
    assert out.endswith("loose text")
    assert "[" not in out
    assert "input" not in out


def test_sections_flatten_in_panel_order():
    first = panel("<h3>A</h3><p>one</p><h3>B</h3><p>two</p>", slug="first")
    second = panel("<h3>C</h3><p>three</p>", slug="second")
    sections = extract_sections([first, second])
    assert [s.title for s in sections] == ["A", "B", "C"]


def test_template_priority_moves_template_first():
    other = panel("<h3>Other</h3><p>x</p>", slug="other")
    mine = panel("<h3>Mine</h3><p>y</p>", slug="josh-template")
    out = process_panels([other, mine], order_key=template_priority("josh-template"))
    assert out == "### Mine\ny\n\n### Other\nx"


def test_template_priority_keeps_order_when_slug_absent():
    a = panel("<h3>A</h3><p>x</p>", slug="a")
    b = panel("<h3>B</h3><p>y</p>", slug="b")
    out = process_panels([a, b], order_key=template_priority("missing"))
    assert out == "### A\nx\n\n### B\ny"


def test_panel_objects_and_bad_content():
    assert Panel.from_dict({"original_content": 5}).html_content == ""
    sections = extract_sections_from_panel(Panel("<h3>T</h3><p>body</p>", "s"))
    assert sections == [PanelSection(title="T", content="body")]


def test_malformed_html_does_not_raise():
    html = "<h3>Notes<p>Unclosed <b>bold</h3></div><h3>Next</h3><p>ok"
    out = process_panels([panel(html)])
    assert isinstance(out, str)


def test_custom_backend_is_used():
    class ShoutingBackend(MarkdownifyBackend):
        def render(self, html):
            return super().render(html).upper()

    out = process_panels([panel("<h3>Notes</h3><p>quiet</p>")], backend=ShoutingBackend())
    assert out == "### Notes\nQUIET"


def test_normalize_checklists():
    assert normalize_checklists("- \\[ \\] task") == "- [ ] task"
    assert normalize_checklists("- \\[x\\] task") == "- [x] task"
    assert normalize_checklists("-    item\n  -   nested") == "- item\n  - nested"
    assert normalize_checklists("- [x]    done\n- [ ]   todo") == "- [x] done\n- [ ] todo"
    assert normalize_checklists("a  -   not a bullet") == "a  -   not a bullet"


def test_comments_between_headings_are_not_section_text():
    html = "<h3>Notes</h3><!-- internal draft --><p>Text</p>"
    assert process_panels([panel(html)]) == "### Notes\nText"


def test_heading_followed_only_by_comment_is_dropped():
    html = "<h3>Empty</h3><!-- nothing here --><h3>Notes</h3><p>Text</p>"
    assert process_panels([panel(html)]) == "### Notes\nText"


def test_nested_unordered_list_is_indented():
    html = "<h3>Points</h3><ul><li>One<ul><li>sub</li></ul></li><li>Two</li></ul>"
    assert process_panels([panel(html)]) == "### Points\n- One\n  - sub\n- Two"


def test_nested_list_under_ordered_item_is_indented():
    html = "<h3>Steps</h3><ol><li>One<ul><li>sub</li></ul></li><li>Two</li></ol>"
    assert process_panels([panel(html)]) == "### Steps\n1. One\n   - sub\n2. Two"


def test_nested_checkbox_does_not_turn_parent_into_checkbox():
    html = '<h3>Tasks</h3><ul><li>Parent<ul><li><input type="checkbox"> child</li></ul></li></ul>'
    assert process_panels([panel(html)]) == "### Tasks\n- Parent\n  - [ ] child"
