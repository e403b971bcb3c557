import unittest

from coach.display import (
    APPLYING_TEXT,
    clean_display_text,
    error_display_text,
    plain_text,
    response_display_text,
)
from coach.prompts import build_chat_turns, format_context_block


class DisplayCleaningTests(unittest.TestCase):
    def test_strips_fenced_payload_and_keeps_prose(self):
        raw = (
            "The photo is underexposed.\n\n"
            "```json\n{\"action\": \"apply_develop_settings\", \"params\": {\"exposure\": 0.5}}\n```\n\n"
            "Check the histogram afterwards."
        )
        self.assertEqual(
            clean_display_text(raw),
            "The photo is underexposed.\nCheck the histogram afterwards.",
        )

    def test_strips_nested_braces(self):
        raw = 'Done {"action": "x", "params": {"a": 1}} here'
        self.assertEqual(clean_display_text(raw), "Done  here")

    def test_unclosed_fence_runs_to_end(self):
        self.assertEqual(clean_display_text("Critique.\n```json\n{\"action\":"), "Critique.")

    def test_literal_newlines_expanded(self):
        self.assertEqual(clean_display_text("one\\ntwo"), "one\ntwo")

    def test_payload_only_falls_back_to_applying(self):
        raw = '{"action":"apply_develop_settings","params":{"exposure":0.5}}'
        self.assertEqual(response_display_text(raw, action_found=True), APPLYING_TEXT)

    def test_nothing_recognized_shows_raw(self):
        raw = "{weird}"
        self.assertEqual(
            response_display_text(raw, action_found=False),
            "Could not identify action. Raw response:\n{weird}",
        )

    def test_error_text(self):
        self.assertEqual(error_display_text("Network error."), "Error: Network error.")

    def test_plain_text(self):
        text = "### Tips\n**Bold** move\n- use `Auto`"
        self.assertEqual(plain_text(text), "TIPS\nBold move\n• use 'Auto'")


class PromptContextTests(unittest.TestCase):
    def test_context_only_on_latest_user_turn(self):
        history = [
            {"role": "user", "text": "first"},
            {"role": "assistant", "text": "answer"},
            {"role": "user", "text": "second"},
        ]
        context = {"active_module_name": "Develop", "selected_count": 3}
        turns = build_chat_turns(history, context)

        self.assertEqual(turns[0]["text"], "first")
        self.assertEqual(turns[2]["text"], "second\n\nCurrent Context:\n- Module: Develop\n- Selected Photos: 3")
        self.assertEqual(history[2]["text"], "second")

    def test_vision_context_includes_white_balance(self):
        block = format_context_block(
            {"active_module_name": "Develop", "selected_count": 1,
             "white_balance_mode": "kelvin", "current_temperature": 5500, "current_tint": 10},
            include_white_balance=True,
        )
        self.assertIn("- White Balance Mode: kelvin", block)
        self.assertIn("- Current Temperature: 5500", block)

    def test_missing_context_defaults(self):
        self.assertEqual(format_context_block({}), "\n\nCurrent Context:\n- Module: Unknown\n- Selected Photos: 0")


if __name__ == "__main__":
    unittest.main()
