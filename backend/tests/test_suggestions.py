"""
Unit tests for splitting follow-up questions out of a finished answer.
"""
from app.client.suggestions import extract_suggestions, visible_while_streaming


class TestExtractSuggestions:

    def test_keeps_only_first_three(self):
        text = "Answer text.\n---SUGGESTIONS---\n1. First?\n2. Second?\n3. Third?\n4. Fourth?"
        display, suggestions = extract_suggestions(text)
        assert display == "Answer text."
        assert suggestions == ["First?", "Second?", "Third?"]

    def test_no_marker_leaves_text_untouched(self):
        text = "  Use the Oxford comma.\n\n1. Not a suggestion\n"
        display, suggestions = extract_suggestions(text)
        assert display == text
        assert suggestions == []

    def test_marker_without_numbered_lines_still_hides_tail(self):
        text = "Use FY, never SFY.\n\n---SUGGESTIONS---\nWould you like more examples?"
        display, suggestions = extract_suggestions(text)
        assert display == "Use FY, never SFY."
        assert suggestions == []

    def test_marker_at_very_end(self):
        display, suggestions = extract_suggestions("Spell out one through ten.\n---SUGGESTIONS---")
        assert display == "Spell out one through ten."
        assert suggestions == []

    def test_marker_not_followed_by_newline(self):
        display, suggestions = extract_suggestions("Answer ---SUGGESTIONS--- 1. Inline?")
        assert display == "Answer"
        assert suggestions == ["Inline?"]

    def test_non_numbered_lines_skipped(self):
        text = (
            "Answer.\n---SUGGESTIONS---\n"
            "Here are some ideas:\n"
            "1. How do I cite session laws?\n"
            "- a bullet\n"
            "  2.   What about dates?  \n"
        )
        _, suggestions = extract_suggestions(text)
        assert suggestions == ["How do I cite session laws?", "What about dates?"]

    def test_multi_digit_numbers(self):
        text = "A\n---SUGGESTIONS---\n10. Ten?\n11. Eleven?"
        assert extract_suggestions(text).suggestions == ["Ten?", "Eleven?"]

    def test_only_first_marker_splits(self):
        text = "A\n---SUGGESTIONS---\n1. One?\n---SUGGESTIONS---\n2. Two?"
        display, suggestions = extract_suggestions(text)
        assert display == "A"
        assert suggestions == ["One?", "Two?"]

    def test_display_text_trimmed(self):
        text = "\n\n  Answer with trailing space   \n\n---SUGGESTIONS---\n1. Q?"
        assert extract_suggestions(text).display_text == "Answer with trailing space"


class TestVisibleWhileStreaming:

    def test_plain_text_shown_whole(self):
        assert visible_while_streaming("Use the Oxford comma.") == "Use the Oxford comma."

    def test_cut_at_marker(self):
        text = "Yes.\n---SUGGESTIONS---\n1. And etc.?"
        assert visible_while_streaming(text) == "Yes.\n"

    def test_possible_marker_start_held_back(self):
        assert visible_while_streaming("Yes.\n---SUGG") == "Yes.\n"
        assert visible_while_streaming("Yes.\n-") == "Yes.\n"

    def test_held_back_tail_released_once_it_diverges(self):
        assert visible_while_streaming("a well-") == "a well"
        assert visible_while_streaming("a well-known") == "a well-known"

    def test_empty(self):
        assert visible_while_streaming("") == ""
