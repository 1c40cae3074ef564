import unittest

from relay.content_types import ResponseKind, classify_content_type, extract_filename


class TestContentTypes(unittest.TestCase):
    def test_classify_content_type(self):
        self.assertEqual(
            classify_content_type("application/json; charset=utf-8"), ResponseKind.JSON
        )
        self.assertEqual(
            classify_content_type("application/octet-stream"), ResponseKind.BINARY
        )
        self.assertEqual(
            classify_content_type(
                "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
            ),
            ResponseKind.BINARY,
        )
        self.assertEqual(classify_content_type("application/pdf"), ResponseKind.BINARY)
        self.assertEqual(classify_content_type("text/html"), ResponseKind.FALLBACK)
        self.assertEqual(classify_content_type(None), ResponseKind.FALLBACK)

    def test_extract_filename(self):
        self.assertEqual(
            extract_filename('attachment; filename="report_fr.pdf"'), "report_fr.pdf"
        )
        self.assertEqual(extract_filename("attachment; filename=notes.docx"), "notes.docx")
        self.assertEqual(extract_filename("attachment"), "translated-document")
        self.assertEqual(extract_filename(None, default="fallback.pdf"), "fallback.pdf")


if __name__ == "__main__":
    unittest.main()
