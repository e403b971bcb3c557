import unittest

from protocol.codec import MAX_DEPTH, decode, decode_strict, encode
from protocol.errors import CodecError


class CodecDecodeTests(unittest.TestCase):
    def test_decodes_action_payload(self):
        value = decode('{"action": "apply_develop_settings", "params": {"exposure": 0.5, "contrast": -10}}')
        self.assertEqual(value["action"], "apply_develop_settings")
        self.assertEqual(value["params"], {"exposure": 0.5, "contrast": -10})
        self.assertIsInstance(value["params"]["contrast"], int)

    def test_literals_and_arrays(self):
        self.assertEqual(decode('[true, false, null, 1e2, "x"]'), [True, False, None, 100.0, "x"])
        self.assertEqual(decode("[]"), [])
        self.assertEqual(decode("{}"), {})

    def test_trailing_text_is_ignored(self):
        self.assertEqual(decode('{"a": 1} and then some prose'), {"a": 1})

    def test_string_escapes_are_decoded(self):
        self.assertEqual(decode(r'{"a": "say \"hi\""}'), {"a": 'say "hi"'})
        self.assertEqual(decode(r'"C:\\x\ty\u00e9"'), "C:\\x\tyé")
        self.assertEqual(decode(r'"keep \q"'), "keep q")

    def test_bad_unicode_escape_is_malformed(self):
        self.assertIsNone(decode(r'"\u12"'))
        self.assertIsNone(decode(r'"\uzzzz"'))

    def test_malformed_returns_none(self):
        for text in ['{"a": 1', '{a: 1}', '{"a" 1}', '[1, 2', '"open', "tru", "", "hello"]:
            with self.subTest(text=text):
                self.assertIsNone(decode(text))

    def test_strict_reports_position(self):
        with self.assertRaises(CodecError) as ctx:
            decode_strict('{"a": 1 "b": 2}')
        self.assertEqual(ctx.exception.position, 8)
        self.assertIsInstance(ctx.exception, ValueError)

    def test_nesting_is_bounded(self):
        deep = "[" * (MAX_DEPTH + 1) + "]" * (MAX_DEPTH + 1)
        self.assertIsNone(decode(deep))
        ok = "[" * MAX_DEPTH + "]" * MAX_DEPTH
        self.assertIsNotNone(decode(ok))

    def test_non_text_input(self):
        self.assertIsNone(decode(None))
        self.assertIsNone(decode(b'{"a": 1}'))


class CodecEncodeTests(unittest.TestCase):
    def test_round_trip(self):
        value = {
            "action": "apply_develop_settings",
            "params": {"exposure": 0.5, "contrast": 12, "label": "warm look"},
            "flags": [True, False],
            "nested": {"list": [1, 2.5, "three"]},
        }
        self.assertEqual(decode(encode(value)), value)

    def test_round_trip_quotes_and_backslashes(self):
        value = {"label": 'say "hi"', "path": "C:\\x", "mixed": '\\"\\\\"'}
        self.assertEqual(decode(encode(value)), value)

    def test_dict_keyed_one_to_n_encodes_as_array(self):
        self.assertEqual(encode({2: "b", 1: "a"}), '["a","b"]')
        self.assertEqual(encode({0: "a", 1: "b"}), '{"0":"a","1":"b"}')

    def test_empty_containers(self):
        self.assertEqual(encode([]), "[]")
        self.assertEqual(encode({}), "{}")

    def test_bool_before_int(self):
        self.assertEqual(encode(True), "true")
        self.assertEqual(encode(1), "1")

    def test_control_characters_escaped(self):
        self.assertEqual(encode('a"b\\c\nd\te\x01'), '"a\\"b\\\\c\\nd\\te\\u0001"')

    def test_non_finite_and_unsupported(self):
        self.assertEqual(encode(float("nan")), "null")
        self.assertEqual(encode(float("inf")), "null")
        self.assertEqual(encode(object()), "null")
        self.assertEqual(encode(None), "null")


if __name__ == "__main__":
    unittest.main()
