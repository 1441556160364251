"""
Generative-AI collaborator.

Thin async wrappers around the Gemini generateContent REST endpoint, via httpx:

- VIN decode          -> {make, model, year}
- part photo ID       -> {name, make, model, category}
- SEO blog copy       -> {title, slug, content, keywords}
- map lookup          -> {summary, places: [{title, uri}]}

The service is a black box. Any transport error, non-2xx status, empty or
non-JSON reply, or a reply that does not fit its result model raises
ExternalServiceError. There are
no retries. The apply_* helpers map a successful result onto a listing draft
and never touch marketplace state.
"""

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional, Type, Union

import httpx
from pydantic import BaseModel, ValidationError as SchemaError

from catalog_data import CATEGORIES
from database import new_id
from errors import ExternalServiceError, ValidationError
from schemas import BlogPost, ListingDraft, NonEmptyStr

logger = logging.getLogger(__name__)

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_API_BASE = os.getenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_VISION_MODEL = os.getenv("GEMINI_VISION_MODEL", "gemini-2.5-pro")
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "30"))

MIN_VIN_LENGTH = 10

VIN_SYSTEM_PROMPT = (
    "You are an automotive expert. Respond ONLY with a JSON object containing "
    "'make', 'model', and 'year'. Use null if unknown."
)
PART_ID_PROMPT = (
    "Identify this car part. Provide the part name, likely vehicle make/model "
    "compatibility, and a general category. Format as JSON with keys: "
    "'name', 'make', 'model', 'category'."
)
SEO_PROMPT = (
    'Write a high-converting, SEO-optimized blog post for an auto parts marketplace specializing in "{keyword}". '
    "Include a catchy title, 5-10 high-traffic keywords for South Africa car parts search, "
    "a meta description, and at least 300 words of engaging content. "
    "Format as JSON with keys: 'title', 'slug', 'content', 'keywords' (array)."
)


# -------------------- Reply shapes --------------------

class VinResult(BaseModel):
    make: NonEmptyStr
    model: NonEmptyStr
    year: Optional[Union[int, str]] = None


class PartResult(BaseModel):
    name: NonEmptyStr
    make: Optional[str] = None
    model: Optional[str] = None
    category: Optional[str] = None


class SeoResult(BaseModel):
    title: NonEmptyStr
    slug: Optional[str] = None
    content: NonEmptyStr
    keywords: Optional[Union[List[str], str]] = None


class GenerativeClient:
    """
    Async Gemini client.

    A fresh httpx.AsyncClient is opened per call; pass ``transport`` to route
    requests somewhere other than the network (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        api_key: str = GEMINI_API_KEY,
        *,
        api_base: str = GEMINI_API_BASE,
        model: str = GEMINI_MODEL,
        vision_model: str = GEMINI_VISION_MODEL,
        timeout: float = AI_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.model = model
        self.vision_model = vision_model
        self.timeout = timeout
        self._transport = transport

    # -------------------- Transport --------------------

    async def _generate(self, model: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            logger.warning("AI request skipped: GEMINI_API_KEY is not configured")
            raise ExternalServiceError("AI service is not configured")

        url = f"/v1beta/models/{model}:generateContent"
        try:
            async with httpx.AsyncClient(
                base_url=self.api_base,
                headers={"x-goog-api-key": self.api_key, "Content-Type": "application/json"},
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            ) as client:
                response = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            logger.warning(f"AI request to {model} failed: {exc!r}")
            raise ExternalServiceError("AI service unreachable") from exc

        if response.status_code >= 400:
            logger.warning(f"AI request to {model} returned {response.status_code}: {response.text[:200]}")
            raise ExternalServiceError(f"AI service error ({response.status_code})")
        try:
            body = response.json()
        except ValueError as exc:
            raise ExternalServiceError("AI service returned a non-JSON envelope") from exc
        if not isinstance(body, dict):
            logger.warning(f"AI envelope from {model} is a {type(body).__name__}, not an object")
            raise ExternalServiceError("AI service returned an unexpected envelope")
        return body

    @staticmethod
    def _candidate(body: Dict[str, Any]) -> Dict[str, Any]:
        candidates = body.get("candidates")
        if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
            raise ExternalServiceError("No response from AI service")
        return candidates[0]

    @staticmethod
    def _candidate_text(candidate: Dict[str, Any]) -> str:
        content = candidate.get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            return ""
        return "".join(p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str))

    @classmethod
    def _text(cls, body: Dict[str, Any]) -> str:
        text = cls._candidate_text(cls._candidate(body))
        if not text.strip():
            raise ExternalServiceError("Empty response from AI service")
        return text

    async def generate_json(
        self,
        prompt: str,
        schema: Type[BaseModel],
        *,
        model: Optional[str] = None,
        system: Optional[str] = None,
        image_base64: Optional[str] = None,
        mime_type: str = "image/jpeg",
    ) -> Dict[str, Any]:
        """Ask for a JSON object and validate it against ``schema``.

        Returns the validated fields as a plain dict.
        """
        parts: list = []
        if image_base64:
            parts.append({"inline_data": {"mime_type": mime_type, "data": image_base64}})
        parts.append({"text": prompt})
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {"responseMimeType": "application/json"},
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}

        body = await self._generate(model or self.model, payload)
        text = self._text(body)
        try:
            result = json.loads(text)
        except ValueError as exc:
            logger.warning(f"AI reply was not valid JSON: {text[:200]!r}")
            raise ExternalServiceError("AI service returned malformed JSON") from exc
        if not isinstance(result, dict):
            raise ExternalServiceError("AI service returned an unexpected shape")
        try:
            return schema.model_validate(result).model_dump()
        except SchemaError as exc:
            fields = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
            logger.warning(f"AI reply failed {schema.__name__} validation on {fields}")
            raise ExternalServiceError(f"AI reply missing or invalid: {', '.join(fields)}") from exc

    # -------------------- Features --------------------

    async def decode_vin(self, vin: str) -> Dict[str, Any]:
        vin = (vin or "").strip().upper()
        if len(vin) < MIN_VIN_LENGTH:
            raise ValidationError(
                "Please enter a valid VIN (Vehicle Identification Number, typically 17 characters)"
            )
        return await self.generate_json(
            f"Analyze and decode this vehicle VIN: {vin}",
            VinResult,
            system=VIN_SYSTEM_PROMPT,
        )

    async def identify_part(self, image_base64: str, mime_type: str = "image/jpeg") -> Dict[str, Any]:
        if not image_base64:
            raise ValidationError("An image is required")
        return await self.generate_json(
            PART_ID_PROMPT,
            PartResult,
            model=self.vision_model,
            image_base64=image_base64,
            mime_type=mime_type,
        )

    async def generate_seo_post(self, keyword: str) -> Dict[str, Any]:
        return await self.generate_json(SEO_PROMPT.format(keyword=keyword.strip()), SeoResult)

    async def locate(self, query: str) -> Dict[str, Any]:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": query}]}],
            "tools": [{"googleMaps": {}}],
        }
        body = await self._generate(self.model, payload)
        candidate = self._candidate(body)
        text = self._candidate_text(candidate)
        grounding = candidate.get("groundingMetadata")
        chunks = grounding.get("groundingChunks") if isinstance(grounding, dict) else None
        if not isinstance(chunks, list):
            chunks = []
        places = [
            {"title": str(c["maps"].get("title", "")), "uri": str(c["maps"].get("uri", ""))}
            for c in chunks
            if isinstance(c, dict) and isinstance(c.get("maps"), dict)
        ]
        if not text.strip() and not places:
            raise ExternalServiceError("No location results")
        return {"summary": text.strip(), "places": places}


# -------------------- Result mapping --------------------

def apply_vin_result(draft: ListingDraft, result: Dict[str, Any]) -> ListingDraft:
    year = result.get("year")
    try:
        year = int(year) if year not in (None, "") else None
    except (TypeError, ValueError):
        year = None
    name = " ".join(str(x) for x in (year, result["make"], result["model"], draft.name) if x)
    return draft.model_copy(update={
        "make": result["make"],
        "model": result["model"],
        "year_start": year or draft.year_start,
        "year_end": year or draft.year_end,
        "name": name,
    })


def apply_part_identification(draft: ListingDraft, result: Dict[str, Any]) -> ListingDraft:
    category = result.get("category")
    return draft.model_copy(update={
        "name": result["name"],
        "make": result.get("make") or draft.make,
        "model": result.get("model") or draft.model,
        "category": category if category in CATEGORIES else draft.category,
    })


def slugify(title: str) -> str:
    return re.sub(r"\s+", "-", title.strip().lower())


def build_blog_post(result: Dict[str, Any]) -> BlogPost:
    keywords = result.get("keywords") or []
    if isinstance(keywords, str):
        keywords = [k.strip() for k in keywords.split(",") if k.strip()]
    return BlogPost(
        id=new_id(),
        title=result["title"],
        slug=result.get("slug") or slugify(result["title"]),
        content=result["content"],
        keywords=[str(k) for k in keywords],
    )
