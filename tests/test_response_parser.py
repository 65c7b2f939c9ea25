import unittest

from sitegraph.enrichment import ResponseField, fallback_record, parse_completion
from sitegraph.enrichment.response_parser import classify_line

from tests.fakes import COMPLETION_TEXT


class ParseCompletionTests(unittest.TestCase):
    def test_parses_all_fields(self):
        record = parse_completion(COMPLETION_TEXT, '/docs', model="m", generated_at="2024-01-01T00:00:00+00:00")

        self.assertEqual(record.summary, "A page about things.")
        self.assertEqual(record.context_snippet, "It explains the things in detail.")
        self.assertEqual(record.keywords, ["things", "stuff", "details"])
        self.assertEqual(record.content_type, "docs")
        self.assertEqual(record.priority, "high")
        self.assertEqual(record.ai_usage_directive, "citation-only")
        self.assertEqual(record.to_dict()['aiUsageDirective'], "citation-only")
        self.assertEqual(record.to_dict()['generatedAt'], "2024-01-01T00:00:00+00:00")
        self.assertEqual(record.model, "m")

    def test_missing_usage_directive_defaults_to_allow(self):
        text = "SUMMARY: s\nCONTEXT: c\nKEYWORDS: a\nCONTENT_TYPE: blog\nPRIORITY: low"
        self.assertEqual(parse_completion(text, '/').ai_usage_directive, "allow")

    def test_missing_fields_use_defaults(self):
        record = parse_completion("nothing useful here", '/x')

        self.assertEqual(record.summary, "Summary generation failed")
        self.assertEqual(record.context_snippet, "Context snippet generation failed")
        self.assertEqual(record.keywords, [])
        self.assertEqual(record.content_type, "page")
        self.assertEqual(record.priority, "medium")
        self.assertTrue(record.generated_at)

    def test_out_of_range_values_are_coerced(self):
        text = "CONTENT_TYPE: landing\nPRIORITY: urgent\nAI_USAGE: maybe"
        record = parse_completion(text, '/')

        self.assertEqual(record.content_type, "page")
        self.assertEqual(record.priority, "medium")
        self.assertEqual(record.ai_usage_directive, "allow")

    def test_enumerations_are_case_insensitive(self):
        record = parse_completion("PRIORITY: High\nAI_USAGE: Disallow", '/')
        self.assertEqual(record.priority, "high")
        self.assertEqual(record.ai_usage_directive, "disallow")

    def test_keywords_trimmed_and_capped(self):
        text = "KEYWORDS: " + ", ".join(f"k{i}" for i in range(15)) + ", , "
        record = parse_completion(text, '/')
        self.assertEqual(record.keywords, [f"k{i}" for i in range(10)])

    def test_last_label_wins(self):
        record = parse_completion("SUMMARY: first\nSUMMARY: second", '/')
        self.assertEqual(record.summary, "second")

    def test_indented_labels_are_recognized(self):
        field, value = classify_line("   PRIORITY:   low  ")
        self.assertIs(field, ResponseField.PRIORITY)
        self.assertEqual(value, "low")
        self.assertIs(classify_line("Some prose")[0], ResponseField.UNRECOGNIZED)

    def test_fallback_record(self):
        record = fallback_record('/p', model="m")
        self.assertEqual(record.summary, "AI analysis failed")
        self.assertEqual(record.context_snippet, "Context analysis failed")
        self.assertEqual(record.ai_usage_directive, "allow")
        self.assertEqual(record.path, '/p')
