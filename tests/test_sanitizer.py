"""Unit tests for text sanitization and fingerprinting."""
from extraction.sanitizer import compute_fingerprint, html_to_text, normalize_whitespace, sanitize


def test_unicode_spaces_become_plain_spaces():
    assert normalize_whitespace("a\u00a0b\u2003c\u3000d\u200be") == "a b c d e"


def test_line_endings_and_tabs_are_normalized():
    assert normalize_whitespace("one\r\ntwo\rthree\t\tfour") == "one\ntwo\nthree four"


def test_control_characters_are_removed():
    assert normalize_whitespace("a\x00b\x07c\x7f") == "abc"


def test_blank_line_runs_collapse_to_one_blank_line():
    assert normalize_whitespace("first\n\n\n\n\nsecond") == "first\n\nsecond"


def test_spaces_around_newlines_and_runs_are_collapsed():
    assert normalize_whitespace("  a   b  \n   c  ") == "a b\nc"


def test_sanitize_empty_input():
    assert sanitize("") == ""
    assert sanitize(None) == ""


def test_sanitize_hard_slices_to_max_length():
    text = "word " * 5000
    result = sanitize(text)
    assert len(result) == 12000
    assert sanitize("abcdef", max_length=4) == "abcd"


def test_html_to_text_keeps_paragraph_breaks():
    assert html_to_text("<p>First</p><p>Second</p>") == "First\n\nSecond"


def test_html_to_text_drops_script_style_and_head():
    markup = (
        "<html><head><title>Secret Title</title><style>body {color: red}</style></head>"
        "<body><script>var tracking = 1;</script><p>Hello &amp; welcome</p></body></html>"
    )
    text = html_to_text(markup)
    assert text == "Hello & welcome"
    assert "Secret Title" not in text
    assert "tracking" not in text


def test_html_to_text_renders_list_items_as_dashes():
    text = html_to_text("<ul><li>One</li><li class='x'>Two</li></ul>")
    lines = [line for line in text.split("\n") if line]
    assert lines == ["- One", "- Two"]


def test_html_to_text_line_breaks():
    assert html_to_text("a<br>b<br/>c") == "a\nb\nc"


def test_fingerprint_of_empty_text():
    assert compute_fingerprint("") == "0:0"


def test_fingerprint_is_rolling_hash_with_length():
    assert compute_fingerprint("a") == "97:1"
    assert compute_fingerprint("ab") == f"{97 * 31 + 98}:2"


def test_fingerprint_wraps_to_32_bits():
    value, length = compute_fingerprint("z" * 100).split(":")
    assert 0 <= int(value) < 2 ** 32
    assert length == "100"


def test_fingerprint_only_hashes_prefix():
    base = "x" * 4096
    assert compute_fingerprint(base + "a") == compute_fingerprint(base + "b")
    assert compute_fingerprint(base + "a") != compute_fingerprint(base + "ab")
