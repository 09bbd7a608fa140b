from textwrap import dedent

import pytest
from fakes import MockFetchClient, MockSearchClient

from note_outline_api.config import Settings
from note_outline_api.servers import outline


@pytest.fixture(autouse=True)
def no_fetch_delay(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(outline, "FETCH_DELAY_SECONDS", 0)


@pytest.fixture
def settings() -> Settings:
    return Settings(serpapi_key="test-serpapi-key", api_token="")


@pytest.fixture
def organic_results() -> list[dict]:
    return [
        {"position": 1, "link": "https://note.com/alice/n/n1", "title": "Alice on productivity"},
        {"position": 2, "link": "https://example.com/productivity", "title": "Not a note"},
        {"position": 3, "link": "https://note.com/bob/n/n2", "title": "Bob's tips"},
        {"position": 4, "title": "Missing link"},
        {"position": 5, "link": "https://note.com/carol/n/n3"},
    ]


@pytest.fixture
def note_article_html() -> str:
    html_page = """
    <html>
        <head><title>
            Alice on productivity | note
        </title></head>
        <body>
            <h1>  Ten   productivity
                tips </h1>
            <h2>Morning routine</h2>
            <h3>Wake up early</h3>
            <h3>Plan the day</h3>
            <h2>Deep   work</h2>
            <h2>   </h2>
            <h3>Block distractions</h3>
        </body>
    </html>
    """

    return dedent(html_page).strip()


@pytest.fixture
def search_client(organic_results: list[dict]) -> MockSearchClient:
    return MockSearchClient(organic_results=organic_results)


@pytest.fixture
def fetch_client(note_article_html: str) -> MockFetchClient:
    return MockFetchClient(
        pages={
            "https://note.com/alice/n/n1": note_article_html,
            "https://note.com/carol/n/n3": "<html><head><title>Carol</title></head><body><h1>Carol</h1></body></html>",
        }
    )
