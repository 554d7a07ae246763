"""
Unit tests for ContentCleaner stages and the thread rule table.
"""
import pytest

from core.extractors.email.config import ACTION_SIGN_OFF, ACTION_STOP, THREAD_RULES
from core.extractors.email.content_cleaner import (
    DEFAULT_THREAD_RULES,
    ContentCleaner,
    compile_thread_rules,
)


def test_rule_table_keeps_declared_order():
    assert [r.marker for r in DEFAULT_THREAD_RULES] == [row[1] for row in THREAD_RULES]


def test_structural_rules_precede_sign_offs():
    actions = [r.action for r in DEFAULT_THREAD_RULES]
    last_stop = max(i for i, a in enumerate(actions) if a == ACTION_STOP)
    first_sign_off = min(i for i, a in enumerate(actions) if a == ACTION_SIGN_OFF)
    assert last_stop < first_sign_off


def test_unknown_action_rejected():
    with pytest.raises(ValueError):
        compile_thread_rules([(r"^x", "x", "explode", 1)])


def test_quote_marker_wins_over_sign_off():
    rule = ContentCleaner.match_thread_rule(["> Thanks,"], 0)
    assert rule.marker == "quote_marker"


@pytest.mark.parametrize(
    "line,marker",
    [
        ("Sent from my Galaxy", "sent_from_device"),
        ("Get Outlook for Android", "get_outlook"),
        ("Kind regards", "kind_regards"),
        ("best regards,", "best_regards"),
        ("Thank you,", "thank_you"),
        ("On 7 Oct 2025, at 11:49, Studio wrote:", "on_wrote_header"),
    ],
)
def test_rule_matching(line, marker):
    assert ContentCleaner.match_thread_rule([line], 0).marker == marker


@pytest.mark.parametrize("line", ["Thanks for booking!", "Regards to your mum", "Sent the form yesterday"])
def test_ordinary_lines_match_nothing(line):
    assert ContentCleaner.match_thread_rule([line], 0) is None


def test_outlook_rule_needs_all_three_lines():
    lines = ["From: Studio", "Subject: Booking", "To: Client"]
    assert ContentCleaner.match_thread_rule(lines, 0) is None


def test_truncate_meta_when_nothing_matches():
    text, meta = ContentCleaner.truncate_email_thread("Just one line")
    assert text == "Just one line"
    assert meta == {"truncated": False, "rule": None, "marker": None}


def test_truncate_meta_reports_line_index():
    text, meta = ContentCleaner.truncate_email_thread("\nHello\n\nThanks\n")
    assert text == "Hello\n"
    assert meta["truncated"] is True
    assert meta["rule"] == ACTION_SIGN_OFF
    assert meta["marker"] == "thanks"
    assert meta["line_index"] == 3


def test_sign_off_mid_message_continues_scan():
    body = "Thanks,\n" + "A much longer second paragraph that keeps going past the limit.\n> quoted"
    text, meta = ContentCleaner.truncate_email_thread(body)
    assert text.startswith("Thanks,\nA much longer")
    assert meta["marker"] == "quote_marker"


def test_strip_html_keeps_entities_for_later_stage():
    assert ContentCleaner.strip_html_to_text("<p>a &amp; b</p>") == " a &amp; b\n"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("a<script>x()</script>b<script src=1></script>c", "abc"),
        ("a<script>x</script>b<script>never closed", "ab<script>never closed"),
        ("a<script no end", "a<script no end"),
        ("<SCRIPT>x</Script>ok", "ok"),
    ],
)
def test_drop_element(text, expected):
    assert ContentCleaner.drop_element(text, "script") == expected


def test_drop_element_stops_at_first_close():
    assert ContentCleaner.drop_element("<style>a</style>keep</style>", "style") == "keep</style>"


def test_sign_off_default_threshold_is_52():
    kept, _ = ContentCleaner.truncate_email_thread("Body\nThanks,\n" + "y" * 52)
    dropped, meta = ContentCleaner.truncate_email_thread("Body\nThanks,\n" + "y" * 51)
    assert kept == "Body\nThanks,\n" + "y" * 52
    assert dropped == "Body"
    assert meta["marker"] == "thanks"


def test_strip_html_empty():
    assert ContentCleaner.strip_html_to_text("") == ""


def test_residual_artifacts_blank_lines():
    text = "Content-Disposition: inline\nkeep me\n>> nested quote\n--b1"
    assert ContentCleaner.remove_residual_artifacts(text) == "\nkeep me\n\n"


def test_normalize_whitespace_limits_blank_lines():
    assert ContentCleaner.normalize_whitespace(" a \n \n \n \n b ") == "a\n\nb"
