"""
Shared fixtures for the PartsHub test suite.
"""

import json
from typing import Any, Dict, List

import httpx
import pytest
from fastapi.testclient import TestClient

import main
from ai_services import GenerativeClient
from database import DataStore
from marketplace import Marketplace
from media import MediaStore
from schemas import ProductCreate, SellerCreate

ADMIN_HEADERS = {"X-Admin-Key": main.ADMIN_API_KEY}


# ============================================================================
# Draft builders
# ============================================================================


def seller_payload(**overrides) -> Dict[str, Any]:
    data = {
        "business_name": "Gear City Spares",
        "contact_person": "Sipho Dlamini",
        "phone": "27821234567",
        "email": "sales@gearcity.example.com",
        "address": {"street": "1 Main Rd", "suburb": "Industria", "city": "Johannesburg", "province": "Gauteng", "postcode": "2093"},
    }
    data.update(overrides)
    return data


def product_payload(**overrides) -> Dict[str, Any]:
    data = {
        "name": "Toyota Hilux Alternator",
        "category": "Electrical Systems",
        "make": "Toyota",
        "model": "Hilux",
        "year_start": 2016,
        "year_end": 2022,
        "condition": "Used",
        "price": 2500.0,
        "quantity": 2,
        "description": "Tested and working.",
        "images": ["https://img.example.com/alternator.jpg"],
    }
    data.update(overrides)
    return data


@pytest.fixture
def seller_draft():
    def build(**overrides) -> SellerCreate:
        return SellerCreate.model_validate(seller_payload(**overrides))
    return build


@pytest.fixture
def product_draft():
    def build(**overrides) -> ProductCreate:
        return ProductCreate.model_validate(product_payload(**overrides))
    return build


# ============================================================================
# Engine fixtures
# ============================================================================


@pytest.fixture
def market() -> Marketplace:
    return Marketplace(DataStore())


@pytest.fixture
def approved_seller(market, seller_draft):
    seller = market.register_seller(seller_draft())
    return market.set_seller_status(seller.user_id, "APPROVED")


# ============================================================================
# Fake Gemini endpoint
# ============================================================================


class FakeGemini:
    """Queue of canned generateContent replies served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.replies: List[httpx.Response] = []
        self.requests: List[httpx.Request] = []

    def reply_json(self, result: Any) -> None:
        self.reply_text(json.dumps(result))

    def reply_text(self, text: str) -> None:
        body = {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}
        self.replies.append(httpx.Response(200, json=body))

    def reply_body(self, body: Dict[str, Any], status_code: int = 200) -> None:
        self.replies.append(httpx.Response(status_code, json=body))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.replies:
            raise httpx.ConnectError("no canned reply", request=request)
        return self.replies.pop(0)

    def last_payload(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def gemini() -> FakeGemini:
    return FakeGemini()


@pytest.fixture
def ai_client(gemini) -> GenerativeClient:
    return GenerativeClient(
        api_key="test-key",
        api_base="https://gemini.test",
        transport=httpx.MockTransport(gemini.handler),
    )


# ============================================================================
# HTTP client
# ============================================================================


@pytest.fixture
def client(market, ai_client):
    media = MediaStore(max_bytes=1024)
    main.app.dependency_overrides[main.get_marketplace] = lambda: market
    main.app.dependency_overrides[main.get_ai_client] = lambda: ai_client
    main.app.dependency_overrides[main.get_media_store] = lambda: media
    with TestClient(main.app) as c:
        yield c
    main.app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return dict(ADMIN_HEADERS)
