# test_message_layout.py
import unittest

from message_layout import reference_text_from_blocks

LINK_TEXT = "View on Jira: <https://jira.example.net/browse/SBOX-61|SBOX-61>"


class TestReferenceTextFromBlocks(unittest.TestCase):
    def test_three_blocks_read_first_field_of_last_block(self):
        blocks = [
            {"type": "section", "text": {"type": "mrkdwn", "text": "header"}},
            {"type": "actions", "elements": [{"text": "not this"}]},
            {"type": "section", "fields": [{"text": LINK_TEXT}, {"text": "second field"}]},
        ]
        self.assertEqual(reference_text_from_blocks(blocks), LINK_TEXT)

    def test_five_blocks_read_first_element_of_fifth_block(self):
        blocks = [
            {"type": "header"},
            {"type": "section", "fields": [{"text": "not this"}]},
            {"type": "section", "fields": [{"text": "nor this"}]},
            {"type": "divider"},
            {"type": "context", "elements": [{"text": LINK_TEXT}, {"text": "later"}]},
        ]
        self.assertEqual(reference_text_from_blocks(blocks), LINK_TEXT)

    def test_text_is_returned_as_is(self):
        blocks = [{}, {}, {"fields": [{"text": "no ticket here"}]}]
        self.assertEqual(reference_text_from_blocks(blocks), "no ticket here")

    def test_short_unknown_layout_raises_index_error(self):
        for blocks in ([], [{}], [{}, {}], [{}, {}, {}, {}]):
            with self.subTest(size=len(blocks)):
                with self.assertRaises(IndexError):
                    reference_text_from_blocks(blocks)

    def test_missing_element_key_raises_key_error(self):
        with self.assertRaises(KeyError):
            reference_text_from_blocks([{}, {}, {"elements": [{"text": LINK_TEXT}]}])


if __name__ == "__main__":
    unittest.main()
