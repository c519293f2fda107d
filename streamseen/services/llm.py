# streamseen/services/llm.py
"""
Recommendation / availability / title-info calls to the OpenAI API.

No caching and no retries here: any provider failure becomes
ExternalProviderFailure with a user-facing message, and the cause is logged.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from openai import AsyncOpenAI, OpenAIError

from streamseen.core.errors import ExternalProviderFailure
from streamseen.core.settings import settings
from streamseen.schemas import GroundingSource, MediaRecord, SearchResult, TitleInfo

log = logging.getLogger(__name__)

_client: Optional[AsyncOpenAI] = None

_PROVIDER_ERRORS = (OpenAIError, ValueError, TypeError, AttributeError, IndexError, KeyError)


def client() -> AsyncOpenAI:
    """Lazily build the shared client from settings."""
    global _client
    if _client is None:
        if not settings.openai_api_key:
            raise ExternalProviderFailure("The recommendation service is not configured.")
        _client = AsyncOpenAI(
            api_key=settings.openai_api_key,
            timeout=settings.openai_timeout,
            max_retries=0,
        )
    return _client


# ──────────────────────────────────────────────────────────────────────
# JSON schemas (strict mode: every key required, optional ones nullable)
# ──────────────────────────────────────────────────────────────────────

_FRANCHISE = {
    "type": ["array", "null"],
    "description": "Other key movies in the same franchise, or null for standalone films and TV shows.",
    "items": {
        "type": "object",
        "properties": {
            "title": {"type": "string"},
            "year": {"type": "integer"},
        },
        "required": ["title", "year"],
        "additionalProperties": False,
    },
}

RECOMMENDATION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "description": "The title of the movie or TV show."},
        "year": {"type": "integer", "description": "The release year (start year for TV shows)."},
        "summary": {"type": "string", "description": "A concise plot summary."},
        "genre": {"type": "string", "description": "The primary genre."},
        "streaming_service": {"type": "string", "description": "Where this is available to stream."},
        "reason": {"type": "string", "description": "A brief, compelling reason this fits the criteria."},
        "content_type": {"type": "string", "enum": ["Movie", "TV Show"]},
        "franchise_movies": _FRANCHISE,
    },
    "required": [
        "title", "year", "summary", "genre", "streaming_service",
        "reason", "content_type", "franchise_movies",
    ],
    "additionalProperties": False,
}

TITLE_INFO_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "description": "The official title."},
        "year": {"type": "integer", "description": "The release year (start year for TV shows)."},
        "summary": {"type": "string", "description": "A concise plot summary."},
        "genre": {"type": "string", "description": "The primary genre."},
        "content_type": {"type": "string", "enum": ["Movie", "TV Show"]},
        "franchise_movies": _FRANCHISE,
    },
    "required": ["title", "year", "summary", "genre", "content_type", "franchise_movies"],
    "additionalProperties": False,
}

RECOMMENDATION_SYS_MSG = (
    "You are a movie and TV show recommendation expert for the {region} market. "
    "Help users overcome choice paralysis by giving a single, excellent recommendation "
    "based on their criteria. Return JSON matching the schema, with 'content_type' and "
    "'genre' set correctly. For a movie that is part of a franchise, list the other key "
    "movies in 'franchise_movies'."
)

TITLE_INFO_SYS_MSG = (
    "You are a media information service. Return accurate, structured data for the "
    "given movie or TV show title as JSON matching the schema."
)


# ──────────────────────────────────────────────────────────────────────
# Prompts
# ──────────────────────────────────────────────────────────────────────

def _unique(titles: Iterable[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for t in titles:
        t2 = (t or "").strip()
        if t2 and t2.casefold() not in seen:
            seen.add(t2.casefold())
            out.append(t2)
    return out


def build_recommendation_prompt(
    genre: str,
    mood: str,
    platforms: List[str],
    excluded_titles: List[str],
    content_type: str,
    series_status: str,
    region: str = "UK",
) -> str:
    kind = "movie" if content_type == "Movie" else "TV show"
    parts = [
        f"Based on the following criteria, recommend exactly ONE {kind}. "
        f"The user is in the {region}, so it must be available on streaming services there."
    ]
    if platforms:
        parts.append(f"Available on one of the following streaming services: {', '.join(platforms)}.")
    if genre and genre != "Any":
        parts.append(f"Genre: {genre}.")
    if mood and mood != "Any":
        parts.append(f"Mood: {mood}.")
    if content_type == "TV Show" and series_status == "Completed":
        parts.append(
            "The TV show must be fully completed with a conclusive ending. Do not recommend "
            "shows that were cancelled prematurely or left on a cliffhanger."
        )
    excluded = _unique(excluded_titles)
    if excluded:
        parts.append(
            "Do not recommend any of the following titles as I have already watched them "
            f"or they are on my watchlist: {', '.join(excluded)}."
        )
    parts.append(f"Set 'content_type' to '{content_type}' and give the most accurate primary genre.")
    if content_type == "Movie":
        parts.append(
            "If the movie is part of a larger film franchise, list the other key movies "
            "(sequels, prequels) in 'franchise_movies' with title and year; otherwise use null."
        )
    return " ".join(parts)


def build_availability_prompt(query: str, region: str = "UK") -> str:
    return (
        f'Where can I stream the movie or TV show "{query}" in the {region}? '
        f"List the primary streaming services in the {region} where it is available for "
        "subscription. If it is not on a subscription service, mention where it can be "
        "rented or purchased. Be concise and clear."
    )


def build_title_info_prompt(title: str) -> str:
    return (
        f'Provide structured information for the movie or TV show titled "{title}". '
        "Make sure the title, year and genre are accurate; for a TV show give the start year. "
        "If it is a movie that belongs to a franchise, list the other key movies in "
        "'franchise_movies'; otherwise use null."
    )


# ──────────────────────────────────────────────────────────────────────
# Calls
# ──────────────────────────────────────────────────────────────────────

def _parse_json(content: Optional[str]) -> Dict[str, Any]:
    text = (content or "").strip()
    # Strip markdown fences if the model added them anyway
    if text.startswith("```"):
        text = text.strip("`")
        first_nl = text.find("\n")
        if first_nl != -1 and "{" not in text[:first_nl]:
            text = text[first_nl + 1:].strip()
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return data


async def _structured_call(system: str, prompt: str, name: str, schema: Dict[str, Any]) -> Dict[str, Any]:
    resp = await client().chat.completions.create(
        model=settings.openai_model,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ],
        response_format={
            "type": "json_schema",
            "json_schema": {"name": name, "strict": True, "schema": schema},
        },
    )
    return _parse_json(resp.choices[0].message.content)


async def get_recommendation(
    genre: str = "Any",
    mood: str = "Any",
    platforms: Optional[List[str]] = None,
    excluded_titles: Optional[List[str]] = None,
    content_type: str = "Movie",
    series_status: str = "Any",
) -> MediaRecord:
    prompt = build_recommendation_prompt(
        genre, mood, platforms or [], excluded_titles or [], content_type, series_status,
        region=settings.streaming_region,
    )
    try:
        data = await _structured_call(
            RECOMMENDATION_SYS_MSG.format(region=settings.streaming_region),
            prompt, "recommendation", RECOMMENDATION_SCHEMA,
        )
        if not data.get("content_type"):
            data["content_type"] = content_type
        return MediaRecord.model_validate(data)
    except ExternalProviderFailure:
        raise
    except _PROVIDER_ERRORS as e:
        log.exception("llm: recommendation failed: %s", e)
        raise ExternalProviderFailure(
            "Failed to get recommendation. The model may be unable to find a match "
            "for your specific criteria."
        ) from e


async def get_structured_info(title: str) -> TitleInfo:
    try:
        data = await _structured_call(
            TITLE_INFO_SYS_MSG, build_title_info_prompt(title), "title_info", TITLE_INFO_SCHEMA
        )
        return TitleInfo.model_validate(data)
    except ExternalProviderFailure:
        raise
    except _PROVIDER_ERRORS as e:
        log.exception("llm: title info failed for %r: %s", title, e)
        raise ExternalProviderFailure(
            f'Failed to get details for "{title}". The title might be ambiguous or not found.'
        ) from e


def _collect_output(resp: Any) -> SearchResult:
    """Concatenate output_text parts and gather url citations from a Responses API result."""
    texts: List[str] = []
    sources: List[GroundingSource] = []
    seen = set()
    for item in getattr(resp, "output", None) or []:
        if getattr(item, "type", None) != "message":
            continue
        for part in getattr(item, "content", None) or []:
            if getattr(part, "type", None) != "output_text":
                continue
            texts.append(part.text or "")
            for ann in getattr(part, "annotations", None) or []:
                if getattr(ann, "type", None) != "url_citation":
                    continue
                uri = getattr(ann, "url", None)
                if not uri or uri in seen:
                    continue
                seen.add(uri)
                sources.append(GroundingSource(uri=uri, title=getattr(ann, "title", None) or "Unknown Source"))
    return SearchResult(text="".join(texts).strip(), sources=sources)


async def find_availability(query: str) -> SearchResult:
    try:
        resp = await client().responses.create(
            model=settings.openai_model,
            tools=[{"type": "web_search_preview"}],
            input=build_availability_prompt(query, region=settings.streaming_region),
        )
        result = _collect_output(resp)
        if not result.text:
            raise ValueError("empty search answer")
        return result
    except ExternalProviderFailure:
        raise
    except _PROVIDER_ERRORS as e:
        log.exception("llm: availability search failed for %r: %s", query, e)
        raise ExternalProviderFailure("Failed to find streaming information. Please try again.") from e
