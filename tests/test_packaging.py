import re
import tomllib
import unittest
from pathlib import Path

ROOT: Path = Path(__file__).parent.parent


class TestPythonRequirement(unittest.TestCase):

    def test_script_header_matches_pyproject(self) -> None:
        """
        Checks that `uv run` and `pip install` ask for the same python.
        """
        with (ROOT / 'pyproject.toml').open('rb') as fh:
            expected: str = tomllib.load(fh)['project']['requires-python']
        header: str = (ROOT / 'fetch_lore_books.py').read_text(encoding='utf-8')
        match = re.search(r'^# requires-python = "([^"]+)"$', header, re.MULTILINE)
        self.assertIsNotNone(match)
        computed: str = match.group(1)
        self.assertEqual(computed, expected)


if __name__ == '__main__':
    unittest.main()
