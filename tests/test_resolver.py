import unittest

from fetch_lore_books import (
    LANGUAGES,
    LanguageConfig,
    LiteralAuthor,
    NoAuthor,
    TranslatedAuthor,
    author_ref_from_json,
    resolve_author,
    resolve_title,
)


class TestLanguageConfig(unittest.TestCase):

    def test_supported_languages(self) -> None:
        self.assertEqual(LANGUAGES.codes, ('en_us', 'ru_ru', 'uk_ua'))
        self.assertEqual(LANGUAGES.default, 'en_us')

    def test_fallback_chain(self) -> None:
        self.assertEqual(LANGUAGES.fallback_chain('ru_ru'), ('ru_ru', 'en_us'))
        self.assertEqual(LANGUAGES.fallback_chain('en_us'), ('en_us',))

    def test_default_must_be_supported(self) -> None:
        with self.assertRaises(ValueError):
            LanguageConfig(codes=('ru_ru',), default='en_us')


class TestResolveTitle(unittest.TestCase):
    """
    Tests resolve_title() fallbacks.
    """

    def setUp(self) -> None:
        self.lang_titles: dict = {
            'en_us': {'vampire_book.vampirism.foo': 'Foo Title'},
            'ru_ru': {'vampire_book.vampirism.foo': 'Фу'},
        }

    def test_requested_language(self) -> None:
        self.assertEqual(resolve_title('foo', self.lang_titles, 'en_us'), 'Foo Title')
        self.assertEqual(resolve_title('foo', self.lang_titles, 'ru_ru'), 'Фу')

    def test_falls_back_to_default_language(self) -> None:
        self.assertEqual(resolve_title('foo', self.lang_titles, 'uk_ua'), 'Foo Title')
        self.assertEqual(resolve_title('foo', {'en_us': self.lang_titles['en_us']}, 'ru_ru'), 'Foo Title')

    def test_falls_back_to_book_id(self) -> None:
        self.assertEqual(resolve_title('bar_baz', self.lang_titles, 'en_us'), 'bar baz')
        self.assertEqual(resolve_title('bar_baz', {}, 'ru_ru'), 'bar baz')


class TestResolveAuthor(unittest.TestCase):
    """
    Tests resolve_author() for each author-reference shape.
    """

    def setUp(self) -> None:
        self.lang_titles: dict = {
            'en_us': {'vampire_book.vampirism.maids_diary.author': 'A Maid'},
            'ru_ru': {'vampire_book.vampirism.maids_diary.author': 'Горничная'},
        }
        self.book_authors: dict = {
            'dear_martha': 'Martin',
            'maids_diary': {'translate': 'vampire_book.vampirism.maids_diary.author'},
            'wanted': {'translate': 'vampire_book.vampirism.missing.author'},
            'odd': ['not', 'an', 'author'],
        }

    def test_no_reference(self) -> None:
        self.assertEqual(resolve_author('nocturnal', self.book_authors, self.lang_titles), 'Unknown')

    def test_literal_returned_verbatim(self) -> None:
        self.assertEqual(resolve_author('dear_martha', self.book_authors, self.lang_titles, 'ru_ru'), 'Martin')

    def test_translated_reference(self) -> None:
        self.assertEqual(resolve_author('maids_diary', self.book_authors, self.lang_titles, 'ru_ru'), 'Горничная')
        self.assertEqual(resolve_author('maids_diary', self.book_authors, self.lang_titles, 'uk_ua'), 'A Maid')

    def test_translated_reference_missing_everywhere(self) -> None:
        self.assertEqual(resolve_author('wanted', self.book_authors, self.lang_titles, 'ru_ru'), 'Unknown')

    def test_other_shapes(self) -> None:
        self.assertEqual(resolve_author('odd', self.book_authors, self.lang_titles), 'Unknown')

    def test_author_ref_from_json(self) -> None:
        self.assertEqual(author_ref_from_json('Martin'), LiteralAuthor('Martin'))
        self.assertEqual(author_ref_from_json({'translate': 'k'}), TranslatedAuthor('k'))
        self.assertEqual(author_ref_from_json(None), NoAuthor())
        self.assertEqual(author_ref_from_json(''), NoAuthor())
        self.assertEqual(author_ref_from_json({'text': 'x'}), NoAuthor())


if __name__ == '__main__':
    unittest.main()
