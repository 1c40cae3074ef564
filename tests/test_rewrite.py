import unittest

from api.rewrite import rewrite_path


class TestRewritePath(unittest.TestCase):
    def test_translation_paths_are_rewritten(self):
        self.assertEqual(rewrite_path("/translate-text"), "/api/proxy/translate-text")
        self.assertEqual(
            rewrite_path("/translate-document/"), "/api/proxy/translate-document/"
        )

    def test_other_paths_are_left_alone(self):
        self.assertIsNone(rewrite_path("/api/proxy/translate-text"))
        self.assertIsNone(rewrite_path("/chat/sessions"))
        self.assertIsNone(rewrite_path("/supported-languages"))


if __name__ == "__main__":
    unittest.main()
