from verseflow.patching import (
    append_table_rows,
    clear_checked,
    extract_checked_indices,
    parse_table_rows,
    patch_frontmatter,
    read_frontmatter,
)

HEADER = ["timestamp", "idx", "ref", "path"]
SEP = "|---|---:|---|---|"

# ---------------------------------------------------------------------------
# Frontmatter merge-patch
# ---------------------------------------------------------------------------

def test_patch_updates_fields_in_place():
    text = "---\ntitle: Progress\nlast_order: 3  # cursor\nverses_read: 2\n---\nbody last_order: 99\n"
    out = patch_frontmatter(text, {"last_order": 10, "verses_read": 7})
    assert out == "---\ntitle: Progress\nlast_order: 10  # cursor\nverses_read: 7\n---\nbody last_order: 99\n"


def test_patch_inserts_missing_fields_at_end_of_block():
    text = "---\ntitle: Progress\n---\n# Body\n"
    out = patch_frontmatter(text, {"last_order": 1, "verses_read": 1})
    assert out == "---\ntitle: Progress\nlast_order: 1\nverses_read: 1\n---\n# Body\n"


def test_patch_synthesizes_block_when_missing():
    out = patch_frontmatter("# Body\n", {"last_order": 0})
    assert out == "---\nlast_order: 0\n---\n# Body\n"


def test_patch_does_not_match_prefixed_keys():
    text = "---\nlast_order_note: keep\n---\n"
    out = patch_frontmatter(text, {"last_order": 5})
    assert "last_order_note: keep" in out
    assert "last_order: 5" in out


def test_patch_is_idempotent():
    text = "---\nlast_order: 1\n---\n"
    once = patch_frontmatter(text, {"last_order": 4})
    assert patch_frontmatter(once, {"last_order": 4}) == once


def test_read_frontmatter_parses_yaml():
    fm = read_frontmatter("---\nverses_read: 12\nstart_date: 2024-01-01\n---\ntext")
    assert fm["verses_read"] == 12
    assert str(fm["start_date"]) == "2024-01-01"


def test_read_frontmatter_malformed_is_empty():
    assert read_frontmatter("---\nkey: [unclosed\n---\n") == {}
    assert read_frontmatter("no frontmatter") == {}
    assert read_frontmatter("---\n- a\n- b\n---\n") == {}

# ---------------------------------------------------------------------------
# Append-only tables
# ---------------------------------------------------------------------------

def test_append_to_empty_writes_header():
    out = append_table_rows(None, HEADER, SEP, [["t1", "0", "A", "a.md"]])
    assert out == "| timestamp | idx | ref | path |\n|---|---:|---|---|\n| t1 | 0 | A | a.md |\n"


def test_append_never_duplicates_header():
    first = append_table_rows("", HEADER, SEP, [["t1", "0", "A", "a.md"]])
    second = append_table_rows(first, HEADER, SEP, [["t2", "1", "B", "b.md"]])
    assert second.count("| timestamp |") == 1
    assert second.endswith("| t1 | 0 | A | a.md |\n| t2 | 1 | B | b.md |\n")


def test_append_after_prose_keeps_prior_content():
    prior = "# Events\nSome notes"
    out = append_table_rows(prior, HEADER, SEP, [["t1", "0", "A", "a.md"]])
    assert out.startswith("# Events\nSome notes\n\n| timestamp |")
    assert out.count("| timestamp |") == 1


def test_parse_table_rows_skips_separator():
    text = "# Log\n| timestamp | idx | ref | path |\n|---|---:|---|---|\n| t1 | 3 | A | a.md |\n"
    assert parse_table_rows(text) == [["timestamp", "idx", "ref", "path"], ["t1", "3", "A", "a.md"]]

# ---------------------------------------------------------------------------
# Checklists
# ---------------------------------------------------------------------------

def test_extract_dedups_indices():
    text = "> - [x] [[a|A]] (idx:7)\n- [X] again (idx:7)\n- [ ] open (idx:8)\n"
    assert extract_checked_indices(text) == {7}


def test_extract_tolerates_decoration():
    text = "> > - [x] **bold** [[p#v|Gen 1:1]] - note (idx:12) trailing\n[x] no token here\n"
    assert extract_checked_indices(text) == {12}


def test_clear_only_touches_indexed_lines():
    text = "- [x] groceries\n> - [x] [[a|A]] (idx:1)\n> - [ X ] [[b|B]] (idx:2)\n"
    out = clear_checked(text)
    assert out == "- [x] groceries\n> - [ ] [[a|A]] (idx:1)\n> - [ ] [[b|B]] (idx:2)\n"
