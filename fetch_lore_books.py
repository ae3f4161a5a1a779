# /// script
# requires-python = ">=3.12"
# dependencies = [
#   "httpx",
#   "tqdm",
#   "humanize"
# ]
# ///

"""
Fetches the Vampirism mod's lore-book text and metadata from GitHub and builds the
  static reader artifacts: `books.json` (everything fetched) and `books-full.html`
  (the full English text, for search engines and no-js readers).

All requests are made one at a time. A failed per-book or per-language fetch is logged
  and skipped; only a failure to list the book directories stops the run.

Usage:
  uv run ./fetch_lore_books.py --output-dir "./public" --test-limit 3

Args:
  --output-dir (optional) -- defaults to `public`
  --test-limit (optional) -- convenient for testing

Env:
  GITHUB_TOKEN (optional) -- sent as a bearer token; raises the GitHub API rate-limit
  LOG_LEVEL (optional) -- defaults to INFO
"""

import argparse
import json
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import httpx
import humanize
from tqdm import tqdm

## setup logging
log_level_name: str = os.getenv('LOG_LEVEL', 'INFO').upper()
log_level = getattr(
    logging, log_level_name, logging.INFO
)  # maps the string name to the corresponding logging level constant; defaults to INFO
logging.basicConfig(
    level=log_level,
    format='[%(asctime)s] %(levelname)s [%(module)s-%(funcName)s()::%(lineno)d] %(message)s',
    datefmt='%d/%b/%Y %H:%M:%S',
)
log = logging.getLogger(__name__)
## prevent httpx from logging
if log_level <= logging.INFO:
    for noisy in ('httpx', 'httpcore'):
        lg = logging.getLogger(noisy)
        lg.setLevel(logging.WARNING)
        lg.propagate = False


## constants
REPO = 'TeamLapen/Vampirism'
BRANCH = 'dev'
ASSETS_PATH = 'projects/vampirism/src/main/resources/assets/vampirism'
AUTHORS_PATH = 'projects/vampirism/src/generated/resources/data/vampirism/vampirism/vampire_book'
RAW_BASE = f'https://raw.githubusercontent.com/{REPO}/{BRANCH}/{ASSETS_PATH}'
AUTHOR_BASE = f'https://raw.githubusercontent.com/{REPO}/{BRANCH}/{AUTHORS_PATH}'
LISTING_URL = f'https://api.github.com/repos/{REPO}/contents/{ASSETS_PATH}/vampire_books?ref={BRANCH}'
LANG_URL_TPL = f'{RAW_BASE}/lang/{{lang}}.json'
BOOK_URL_TPL = f'{RAW_BASE}/vampire_books/{{book_id}}/{{lang}}.json'
AUTHOR_URL_TPL = f'{AUTHOR_BASE}/{{book_id}}.json'

SITE_URL = 'https://thegridexpert.github.io/vampirism-books'
USER_AGENT = f'vampirism-books-fetcher/1.0 (+{SITE_URL}/)'

LANG_KEY_PREFIX = 'vampire_book.'  # only these translation keys are kept in books.json
TITLE_KEY_PREFIX = 'vampire_book.vampirism.'
UNKNOWN_AUTHOR = 'Unknown'

JSON_FILENAME = 'books.json'
HTML_FILENAME = 'books-full.html'


class DiscoveryError(Exception):
    """
    Raised when the list of book directories can't be obtained; nothing else can proceed without it.
    """


class LanguageConfig:
    """
    Holds the ordered set of supported language codes and the default used for fallbacks.
    """

    def __init__(self, codes: tuple[str, ...], default: str) -> None:
        if default not in codes:
            raise ValueError(f'default language ``{default}`` not in ``{codes}``')
        self.codes: tuple[str, ...] = codes
        self.default: str = default

    def fallback_chain(self, language: str) -> tuple[str, ...]:
        """
        Returns the languages to try, in order, when resolving a display string.
        """
        if language == self.default:
            return (self.default,)
        return (language, self.default)


LANGUAGES = LanguageConfig(codes=('en_us', 'ru_ru', 'uk_ua'), default='en_us')


class Formatter:
    """
    Text helpers for turning fetched book text into display-ready html.
    - Strips Minecraft `§x` style codes.
    - Escapes the four html-special characters; ampersand first.
    """

    formatting_code_pattern: re.Pattern = re.compile(r'§.', re.DOTALL)

    @staticmethod
    def strip_formatting_codes(text: object) -> object:
        """
        Removes every `§` and the character following it. Non-strings are returned as-is.
        """
        if not isinstance(text, str):
            return text
        return Formatter.formatting_code_pattern.sub('', text)

    @staticmethod
    def escape_html(text: object) -> str:
        """
        Escapes `&`, `<`, `>`, `"`. Non-strings yield an empty string.

        Not idempotent: escaping already-escaped text escapes its ampersands again.
        Book text is plain text, so that's fine.
        """
        if not isinstance(text, str):
            return ''
        return text.replace('&', '&amp;').replace('<', '&lt;').replace('>', '&gt;').replace('"', '&quot;')


## author references ------------------------------------------------


@dataclass(frozen=True)
class LiteralAuthor:
    name: str


@dataclass(frozen=True)
class TranslatedAuthor:
    key: str


@dataclass(frozen=True)
class NoAuthor:
    pass


AuthorRef = LiteralAuthor | TranslatedAuthor | NoAuthor


def author_ref_from_json(raw: object) -> AuthorRef:
    """
    Maps the `author` field of a book's generated data file to an AuthorRef.
    Seen shapes: `"Some Name"` or `{"translate": "some.key"}`; anything else counts as no author.
    """
    if isinstance(raw, str) and raw:
        return LiteralAuthor(raw)
    if isinstance(raw, dict):
        key: object = raw.get('translate')
        if isinstance(key, str) and key:
            return TranslatedAuthor(key)
    return NoAuthor()


## resolution -------------------------------------------------------


def lookup_translation(
    key: str, lang_titles: dict[str, dict[str, str]], language: str, languages: LanguageConfig = LANGUAGES
) -> str | None:
    """
    Looks up `key` in the requested language's table, then the default language's table.
    """
    for lang in languages.fallback_chain(language):
        table: dict[str, str] = lang_titles.get(lang) or {}
        value: object = table.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def resolve_title(
    book_id: str, lang_titles: dict[str, dict[str, str]], language: str = LANGUAGES.default
) -> str:
    """
    Returns the display title for a book; falls back to the book-id with underscores as spaces.
    """
    title: str | None = lookup_translation(f'{TITLE_KEY_PREFIX}{book_id}', lang_titles, language)
    return title or book_id.replace('_', ' ')


def resolve_author(
    book_id: str,
    book_authors: dict[str, object],
    lang_titles: dict[str, dict[str, str]],
    language: str = LANGUAGES.default,
) -> str:
    """
    Returns the display author for a book, or `Unknown`.
    """
    match author_ref_from_json(book_authors.get(book_id)):
        case LiteralAuthor(name=name):
            return name
        case TranslatedAuthor(key=key):
            return lookup_translation(key, lang_titles, language) or UNKNOWN_AUTHOR
        case NoAuthor():
            return UNKNOWN_AUTHOR


## network ----------------------------------------------------------


def build_http_client(token: str | None = None, transport: httpx.BaseTransport | None = None) -> httpx.Client:
    """
    Builds the one httpx client used for the whole run.
    Called by: main()
    """
    headers: dict[str, str] = {
        'user-agent': USER_AGENT,
        'accept': 'application/vnd.github+json, application/json',
    }
    if token:
        headers['authorization'] = f'Bearer {token}'
    timeout: httpx.Timeout = httpx.Timeout(connect=30.0, read=60.0, write=60.0, pool=30.0)
    return httpx.Client(headers=headers, timeout=timeout, transport=transport, follow_redirects=True)


class ApiClient:
    """
    Wraps GitHub reads.
    - `fetch_json()` never raises for network, status, or parse problems; it logs a warning and returns None.
    - `discover_book_ids()` raises DiscoveryError, since a run without book-ids is pointless.
    """

    def __init__(self, client: httpx.Client) -> None:
        self.client: httpx.Client = client

    def fetch_json(self, url: str) -> object | None:
        log.debug(f'trying url, ``{url}``')
        try:
            resp: httpx.Response = self.client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as exc:
            log.warning(f'request failed for ``{url}``; {exc.__class__.__name__}: {exc}')
            return None
        if not resp.is_success:
            log.warning(f'request failed for ``{url}``; status ``{resp.status_code} {resp.reason_phrase}``')
            return None
        try:
            return resp.json()
        except ValueError as exc:
            log.warning(f'unparseable json from ``{url}``; {exc}')
            return None

    def discover_book_ids(self) -> list[str]:
        """
        Lists the book directories under `vampire_books/`, in listing order. Files are ignored.
        """
        listing: object = self.fetch_json(LISTING_URL)
        if not isinstance(listing, list):
            raise DiscoveryError(f'could not list book directories from ``{LISTING_URL}``')
        book_ids: list[str] = []
        for entry in listing:
            if not isinstance(entry, dict) or entry.get('type') != 'dir':
                continue
            name: object = entry.get('name')
            if isinstance(name, str) and name:
                book_ids.append(name)
        return book_ids


## aggregation ------------------------------------------------------


class AggregateDocument:
    """
    Everything fetched in one run; serialized once as `books.json`.
    `book_ids` keeps discovery order for rendering and isn't serialized.
    """

    def __init__(self, book_ids: list[str]) -> None:
        self.book_ids: list[str] = list(book_ids)
        self.generated_at: str = ''
        self.lang_titles: dict[str, dict[str, str]] = {}
        self.book_authors: dict[str, object] = {}
        self.books: dict[str, dict[str, dict[str, object]]] = {book_id: {} for book_id in self.book_ids}

    def stamp(self) -> None:
        self.generated_at = _now_iso()

    def to_dict(self) -> dict[str, object]:
        ## keys are camelCase because the interactive reader consumes this file
        return {
            'generatedAt': self.generated_at,
            'langTitles': self.lang_titles,
            'bookAuthors': self.book_authors,
            'books': self.books,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2)


class BookAggregator:
    """
    Drives the fetch sequence.
    - Discovers book-ids (fatal on failure).
    - Fetches each language's translation table, keeping only the `vampire_book.` keys.
    - Per book, in discovery order: author metadata first, then content for each language.
    - Every discovered book gets an entry in `books`, even if nothing was fetched for it.
    """

    def __init__(self, api: ApiClient, languages: LanguageConfig = LANGUAGES, test_limit: int | None = None) -> None:
        self.api: ApiClient = api
        self.languages: LanguageConfig = languages
        self.test_limit: int | None = test_limit

    def build(self) -> AggregateDocument:
        book_ids: list[str] = self.api.discover_book_ids()
        log.info(f'discovered {len(book_ids)} book(s)')
        if self.test_limit is not None:
            book_ids = book_ids[: max(0, self.test_limit)]
        document = AggregateDocument(book_ids)
        self.fetch_lang_titles(document)
        for book_id in tqdm(document.book_ids, desc='Fetching books'):
            self.fetch_book(document, book_id)
        return document

    def fetch_lang_titles(self, document: AggregateDocument) -> None:
        for lang in self.languages.codes:
            data: object = self.api.fetch_json(LANG_URL_TPL.format(lang=lang))
            if not isinstance(data, dict):
                log.warning(f'lang ``{lang}`` failed')
                continue
            document.lang_titles[lang] = {k: v for k, v in data.items() if k.startswith(LANG_KEY_PREFIX)}
            log.info(f'lang ``{lang}`` ok; kept {len(document.lang_titles[lang])} key(s)')

    def fetch_book(self, document: AggregateDocument, book_id: str) -> None:
        author_data: object = self.api.fetch_json(AUTHOR_URL_TPL.format(book_id=book_id))
        if isinstance(author_data, dict) and author_data.get('author'):
            document.book_authors[book_id] = author_data['author']

        contents: dict[str, dict[str, object]] = document.books.setdefault(book_id, {})
        for lang in self.languages.codes:
            data: object = self.api.fetch_json(BOOK_URL_TPL.format(book_id=book_id, lang=lang))
            if isinstance(data, dict):
                contents[lang] = data

        available: str = ', '.join(contents.keys()) or 'none'
        log.info(f'{book_id}: [{available}]')


## rendering --------------------------------------------------------


class HtmlRenderer:
    """
    Renders the English text of every book into one static page.
    Books without `en_us` content are skipped. No network or disk access.
    """

    def __init__(self, language: str = LANGUAGES.default) -> None:
        self.language: str = language

    def render(self, document: AggregateDocument) -> str:
        body: str = ''.join(self.render_article(document, book_id) for book_id in document.book_ids)
        return self.render_shell(body, document.generated_at)

    def render_article(self, document: AggregateDocument, book_id: str) -> str:
        content: dict[str, object] | None = document.books.get(book_id, {}).get(self.language)
        if content is None:
            return ''
        title: str = resolve_title(book_id, document.lang_titles, self.language)
        author: str = resolve_author(book_id, document.book_authors, document.lang_titles, self.language)

        html: str = '<article>\n'
        html += f'  <h2>{Formatter.escape_html(title)}</h2>\n'
        html += f'  <p><em>by {Formatter.escape_html(author)}</em></p>\n'

        pages: object = content.get('contents')
        if isinstance(pages, list):
            for page in pages:
                html += self.render_page(page)

        credit: str = self.clean_credit(content.get('credit'))
        if credit:
            html += f'  <footer>— {Formatter.escape_html(credit)}</footer>\n'

        html += '</article>\n\n'
        return html

    def render_page(self, page: object) -> str:
        if not isinstance(page, str):
            return ''
        text: str = Formatter.strip_formatting_codes(page).strip()  # type: ignore[union-attr]
        if not text:
            return ''
        escaped: str = Formatter.escape_html(text).replace('\n', '<br>')
        return f'  <section class="page">\n    <p>{escaped}</p>\n  </section>\n'

    @staticmethod
    def clean_credit(credit: object) -> str:
        """
        Strips style codes and any leading dash; the footer supplies its own em-dash.
        """
        cleaned: object = Formatter.strip_formatting_codes(credit)
        if not isinstance(cleaned, str):
            return ''
        return cleaned.strip().lstrip('-–—').strip()

    @staticmethod
    def render_shell(body: str, generated_at: str) -> str:
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Vampirism Mod Lore Books – Full Text</title>
  <meta name="description" content="Full text of all lore books from the Vampirism Minecraft mod. Last updated: {generated_at}">
  <link rel="canonical" href="{SITE_URL}/{HTML_FILENAME}">
  <style>
    body {{ font-family: Georgia, serif; max-width: 800px; margin: 0 auto; padding: 20px; line-height: 1.7; color: #222; }}
    h1 {{ border-bottom: 2px solid #888; padding-bottom: 8px; }}
    h2 {{ margin-top: 2em; color: #4b2e83; }}
    article {{ border-bottom: 1px solid #ccc; padding-bottom: 2em; margin-bottom: 2em; }}
    .page {{ margin: 1em 0; }}
    footer {{ font-style: italic; color: #666; margin-top: 1em; }}
    .meta {{ color: #888; font-size: 0.85em; }}
  </style>
</head>
<body>
  <h1>Vampirism Mod – All Lore Books</h1>
  <p class="meta">This page contains the full English text of all lore books from the <a href="https://github.com/{REPO}">Vampirism Minecraft mod</a>. Auto-generated on {generated_at}.</p>
  <p><a href="/">← Back to interactive reader</a></p>

{body}
</body>
</html>"""


## output -----------------------------------------------------------


class OutputWriter:
    """
    Writes `books.json` and `books-full.html`, creating the output directory if needed.
    Existing files are overwritten.
    """

    def __init__(self, out_dir: Path) -> None:
        self.out_dir: Path = out_dir

    def json_path(self) -> Path:
        return self.out_dir / JSON_FILENAME

    def html_path(self) -> Path:
        return self.out_dir / HTML_FILENAME

    def write(self, document: AggregateDocument, html: str) -> tuple[Path, Path]:
        self.out_dir.mkdir(parents=True, exist_ok=True)
        json_path: Path = self.json_path()
        html_path: Path = self.html_path()
        json_path.write_text(document.to_json(), encoding='utf-8')
        log.info(f'written: ``{json_path}`` ({humanize.naturalsize(json_path.stat().st_size)})')
        html_path.write_text(html, encoding='utf-8')
        log.info(f'written: ``{html_path}`` ({humanize.naturalsize(html_path.stat().st_size)})')
        return json_path, html_path


class CLI:
    """
    Manages command-line parsing for the script entrypoint.
    """

    @staticmethod
    def build_parser() -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(description='Fetch Vampirism lore books and build books.json + books-full.html.')
        parser.add_argument('--output-dir', default='public', help='Directory to write outputs (default: public)')
        parser.add_argument(
            '--test-limit',
            type=int,
            default=None,
            metavar='INTEGER',
            help='Optional. Only fetch the first this-many discovered books (useful for testing).',
        )
        return parser

    @staticmethod
    def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
        return CLI.build_parser().parse_args(argv)


def _now_iso() -> str:
    """
    Returns an ISO-8601 local timestamp with timezone info.
    """
    return datetime.now().astimezone().isoformat()


def main(argv: list[str] | None = None, transport: httpx.BaseTransport | None = None) -> int:
    """
    Fetches all book data, then writes the json and html artifacts.

    Flow:
    - Parses CLI args; reads the optional GITHUB_TOKEN.
    - Discovers book-ids; exits 1 if that fails (nothing gets written).
    - Fetches translation tables, then per-book authors and content; individual misses are only logged.
    - Stamps the document, renders the html, writes both files.
    - Any unexpected error is logged with its traceback and exits 1.

    `transport` lets tests swap in an httpx.MockTransport.
    Called by: dundermain
    """
    ## handle args --------------------------------------------------
    args: argparse.Namespace = CLI.parse_args(argv)
    out_dir: Path = Path(args.output_dir).expanduser().resolve()
    token: str | None = os.getenv('GITHUB_TOKEN') or None
    if token:
        log.info('using GITHUB_TOKEN for requests')

    try:
        ## fetch --------------------------------------------------------
        with build_http_client(token, transport) as client:
            aggregator = BookAggregator(ApiClient(client), test_limit=args.test_limit)
            document: AggregateDocument = aggregator.build()

        ## render and write ---------------------------------------------
        document.stamp()
        html: str = HtmlRenderer().render(document)
        OutputWriter(out_dir).write(document, html)
    except DiscoveryError as exc:
        log.error(f'fatal: {exc}')
        return 1
    except Exception:
        log.exception('fatal: unexpected error')
        return 1

    log.info(f'done; {len(document.book_ids)} book(s) processed')
    return 0

    ## end def main()


if __name__ == '__main__':
    raise SystemExit(main())
