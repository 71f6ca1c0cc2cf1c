import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from vagas_ai.core.config.ats import get_ats_list, load_ats_lexicons, parse_ats_lexicons


class ATSConfigTests(unittest.TestCase):
    def test_repo_lexicons_are_flattened_by_dot_path(self):
        lexicons = load_ats_lexicons()
        self.assertIn("action_verbs.pt", lexicons)
        self.assertIn("action_verbs.en", lexicons)
        self.assertIn("desenvolver", get_ats_list("action_verbs.pt"))
        self.assertNotIn("action_verbs", lexicons)

    def test_lists_are_tuples_of_strings(self):
        standards = get_ats_list("safety_standards")
        self.assertIsInstance(standards, tuple)
        self.assertIn("HACCP", standards)
        self.assertIn("SP", get_ats_list("acronym_false_positives"))
        self.assertEqual(get_ats_list("does.not.exist"), ())
        self.assertEqual(get_ats_list("action_verbs.de"), ())

    def test_scalars_are_coerced_and_blanks_dropped(self):
        lexicons = parse_ats_lexicons("standards:\n  - NR-10\n  - 9001\n  - '  '\n")
        self.assertEqual(lexicons, {"standards": ("NR-10", "9001")})

    def test_rejects_non_list_leaf(self):
        with self.assertRaisesRegex(RuntimeError, "'verbs.pt' must be a list"):
            parse_ats_lexicons("verbs:\n  pt: desenvolver\n")

    def test_rejects_nested_term(self):
        with self.assertRaisesRegex(RuntimeError, "non-scalar term"):
            parse_ats_lexicons("tools:\n  - [a, b]\n")

    def test_rejects_non_mapping_document(self):
        with self.assertRaisesRegex(RuntimeError, "top-level mapping"):
            parse_ats_lexicons("- just\n- a list\n")


if __name__ == "__main__":
    unittest.main()
