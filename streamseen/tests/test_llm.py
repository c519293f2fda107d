# tests/test_llm.py
import json

import httpx
import pytest
import respx
from openai import AsyncOpenAI

from streamseen.core.errors import ExternalProviderFailure
from streamseen.services import llm

CHAT_URL = "https://api.openai.com/v1/chat/completions"
RESPONSES_URL = "https://api.openai.com/v1/responses"


@pytest.fixture(autouse=True)
def _client(monkeypatch):
    monkeypatch.setattr(
        llm, "_client",
        AsyncOpenAI(api_key="test-key", base_url="https://api.openai.com/v1", max_retries=0),
    )


def _chat(content: str) -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-4o-mini",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 10, "completion_tokens": 10, "total_tokens": 20},
    }


def _response(parts: list) -> dict:
    return {
        "id": "resp_1",
        "object": "response",
        "created_at": 1700000000,
        "model": "gpt-4o-mini",
        "status": "completed",
        "output": [
            {"type": "web_search_call", "id": "ws_1", "status": "completed"},
            {
                "type": "message",
                "id": "msg_1",
                "role": "assistant",
                "status": "completed",
                "content": parts,
            },
        ],
        "parallel_tool_calls": True,
        "tool_choice": "auto",
        "tools": [],
    }


def _text(text: str, *citations) -> dict:
    return {
        "type": "output_text",
        "text": text,
        "annotations": [
            {"type": "url_citation", "url": url, "title": title, "start_index": 0, "end_index": 1}
            for url, title in citations
        ],
    }


# ── prompts ──────────────────────────────────────────────────────────

def test_recommendation_prompt_contents():
    prompt = llm.build_recommendation_prompt(
        genre="Thriller",
        mood="Any",
        platforms=["Netflix", "BBC iPlayer"],
        excluded_titles=["Dune", " dune ", "Heat", ""],
        content_type="Movie",
        series_status="Any",
    )
    assert "exactly ONE movie" in prompt
    assert "in the UK" in prompt
    assert "Netflix, BBC iPlayer" in prompt
    assert "Genre: Thriller." in prompt
    assert "Mood:" not in prompt
    assert "watchlist: Dune, Heat." in prompt
    assert "franchise_movies" in prompt
    assert "fully completed" not in prompt


def test_recommendation_prompt_completed_series():
    prompt = llm.build_recommendation_prompt(
        "Any", "Cosy", [], [], content_type="TV Show", series_status="Completed"
    )
    assert "exactly ONE TV show" in prompt
    assert "Mood: Cosy." in prompt
    assert "fully completed" in prompt
    assert "Do not recommend any" not in prompt
    assert "franchise" not in prompt


def test_availability_prompt_names_region():
    prompt = llm.build_availability_prompt("Severance", region="UK")
    assert '"Severance"' in prompt
    assert "in the UK" in prompt


# ── calls ────────────────────────────────────────────────────────────

@respx.mock
@pytest.mark.asyncio
async def test_get_recommendation_parses_and_sends_exclusions():
    payload = {
        "title": "Heat",
        "year": 1995,
        "summary": "Cops and robbers.",
        "genre": "Crime",
        "streaming_service": "Disney+",
        "reason": "Tense.",
        "content_type": "",
        "franchise_movies": None,
    }
    route = respx.post(CHAT_URL).mock(return_value=httpx.Response(200, json=_chat(json.dumps(payload))))

    rec = await llm.get_recommendation(genre="Crime", excluded_titles=["Dune"], content_type="Movie")

    assert rec.title == "Heat"
    assert rec.year == 1995
    assert rec.content_type == "Movie"
    assert rec.franchise_movies is None

    sent = json.loads(route.calls.last.request.content)
    assert sent["response_format"]["type"] == "json_schema"
    assert sent["response_format"]["json_schema"]["strict"] is True
    assert "Dune" in sent["messages"][1]["content"]


@respx.mock
@pytest.mark.asyncio
async def test_get_structured_info_accepts_fenced_json():
    payload = {
        "title": "The Two Towers",
        "year": 2002,
        "summary": "Part two.",
        "genre": "Fantasy",
        "content_type": "Movie",
        "franchise_movies": [{"title": "The Fellowship of the Ring", "year": 2001}],
    }
    respx.post(CHAT_URL).mock(
        return_value=httpx.Response(200, json=_chat("```json\n" + json.dumps(payload) + "\n```"))
    )

    info = await llm.get_structured_info("two towers")
    assert info.title == "The Two Towers"
    assert info.franchise_movies[0].year == 2001


@respx.mock
@pytest.mark.asyncio
async def test_provider_error_becomes_external_failure():
    respx.post(CHAT_URL).mock(return_value=httpx.Response(500, json={"error": {"message": "boom"}}))

    with pytest.raises(ExternalProviderFailure) as exc:
        await llm.get_recommendation()
    assert "Failed to get recommendation" in exc.value.message
    assert exc.value.status_code == 502


@respx.mock
@pytest.mark.asyncio
async def test_unparseable_answer_becomes_external_failure():
    respx.post(CHAT_URL).mock(return_value=httpx.Response(200, json=_chat("not json at all")))

    with pytest.raises(ExternalProviderFailure) as exc:
        await llm.get_structured_info("Nothing")
    assert '"Nothing"' in exc.value.message


@respx.mock
@pytest.mark.asyncio
async def test_find_availability_collects_sources():
    respx.post(RESPONSES_URL).mock(return_value=httpx.Response(200, json=_response([
        _text(
            "Severance is on Apple TV+.",
            ("https://tv.apple.com/severance", "Apple TV+"),
            ("https://tv.apple.com/severance", "Apple TV+ again"),
            ("https://www.justwatch.com/uk/severance", ""),
        ),
    ])))

    result = await llm.find_availability("Severance")

    assert result.text == "Severance is on Apple TV+."
    assert [(s.uri, s.title) for s in result.sources] == [
        ("https://tv.apple.com/severance", "Apple TV+"),
        ("https://www.justwatch.com/uk/severance", "Unknown Source"),
    ]


@respx.mock
@pytest.mark.asyncio
async def test_find_availability_empty_answer_fails():
    respx.post(RESPONSES_URL).mock(return_value=httpx.Response(200, json=_response([_text("  ")])))

    with pytest.raises(ExternalProviderFailure):
        await llm.find_availability("Severance")


@pytest.mark.asyncio
async def test_missing_api_key_is_reported(monkeypatch):
    monkeypatch.setattr(llm, "_client", None)
    monkeypatch.setattr(llm.settings, "openai_api_key", "")

    with pytest.raises(ExternalProviderFailure):
        await llm.get_structured_info("Heat")
