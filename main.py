import asyncio
import logging
import os
import secrets
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from bson import ObjectId

from ai_services import (
    GenerativeClient,
    apply_part_identification,
    apply_vin_result,
    build_blog_post,
)
from catalog_data import CATEGORIES, COMMON_PART_NAMES, MAKES, VEHICLE_MODELS
from database import db
from errors import ExternalServiceError, MarketplaceError
from marketplace import Marketplace, sort_listings
from media import MediaStore
from schemas import (
    BlogPost,
    Cart,
    CartItem,
    CatalogFilter,
    CheckoutPayload,
    Condition,
    Enquiry,
    EnquiryCreate,
    ListingDraft,
    LocateRequest,
    MediaUpload,
    Order,
    PartIdentifyRequest,
    Product,
    ProductCreate,
    ProductUpdate,
    SellerCreate,
    SellerProfile,
    SellerStatus,
    SellerStatusUpdate,
    SellerUpdate,
    SeoRequest,
    SortKey,
    VinDecodeRequest,
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ADMIN_API_KEY = os.getenv("ADMIN_API_KEY", "dev-admin-key")
AUTO_APPROVE_SELLERS = os.getenv("AUTO_APPROVE_SELLERS", "false").lower() in ("1", "true", "yes")
CHECKOUT_DELAY_SECONDS = float(os.getenv("CHECKOUT_DELAY_SECONDS", "0"))
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("partshub")

app = FastAPI(title="PartsHub Marketplace API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

marketplace = Marketplace(db, auto_approve_sellers=AUTO_APPROVE_SELLERS)
media_store = MediaStore(max_bytes=MAX_UPLOAD_BYTES)
ai_client = GenerativeClient()

# -------------------- Dependencies --------------------

def get_marketplace() -> Marketplace:
    return marketplace


def get_media_store() -> MediaStore:
    return media_store


def get_ai_client() -> GenerativeClient:
    return ai_client


def check_id(id_str: str) -> str:
    if not ObjectId.is_valid(id_str):
        raise HTTPException(status_code=400, detail="Invalid id format")
    return id_str


async def admin_dependency(x_admin_key: Optional[str] = Header(None)) -> None:
    if not x_admin_key or not secrets.compare_digest(x_admin_key, ADMIN_API_KEY):
        raise HTTPException(status_code=401, detail="Missing or invalid admin key")


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})


# -------------------- Health & Test --------------------

@app.get("/")
def read_root():
    return {"message": "PartsHub API is running"}


@app.get("/test")
def test_store(m: Marketplace = Depends(get_marketplace), ai: GenerativeClient = Depends(get_ai_client)):
    return {
        "backend": "✅ Running",
        "store": "in-memory",
        "collections": m.store.counts(),
        "ai_configured": bool(ai.api_key),
    }


@app.get("/reference")
def reference_data():
    return {"categories": CATEGORIES, "makes": MAKES, "models": VEHICLE_MODELS, "part_names": COMMON_PART_NAMES}


# -------------------- Sellers --------------------

@app.post("/sellers", response_model=SellerProfile, status_code=201)
def register_seller(payload: SellerCreate, m: Marketplace = Depends(get_marketplace)):
    return m.register_seller(payload)


@app.get("/sellers/{seller_id}", response_model=SellerProfile)
def get_seller(seller_id: str, m: Marketplace = Depends(get_marketplace)):
    return m.get_seller(check_id(seller_id))


@app.patch("/sellers/{seller_id}", response_model=SellerProfile)
def update_seller(seller_id: str, payload: SellerUpdate, m: Marketplace = Depends(get_marketplace)):
    return m.update_seller_profile(check_id(seller_id), payload)


@app.get("/sellers/{seller_id}/products", response_model=List[Product])
def seller_inventory(seller_id: str, m: Marketplace = Depends(get_marketplace)):
    return m.inventory(check_id(seller_id))


@app.post("/sellers/{seller_id}/products", response_model=Product, status_code=201)
def create_product(seller_id: str, payload: ProductCreate, m: Marketplace = Depends(get_marketplace)):
    return m.create_product(check_id(seller_id), payload)


@app.post("/sellers/{seller_id}/products/import", response_model=List[Product], status_code=201)
async def import_products(seller_id: str, request: Request, m: Marketplace = Depends(get_marketplace)):
    raw = await request.body()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV must be UTF-8 encoded")
    return await run_in_threadpool(m.import_products_csv, check_id(seller_id), text)


@app.get("/sellers/{seller_id}/enquiries", response_model=List[Enquiry])
def seller_enquiries(seller_id: str, m: Marketplace = Depends(get_marketplace)):
    return m.enquiries_for_seller(check_id(seller_id))


@app.get("/sellers/{seller_id}/orders", response_model=List[Order])
def seller_orders(seller_id: str, m: Marketplace = Depends(get_marketplace)):
    return m.orders_for_seller(check_id(seller_id))


@app.get("/sellers/{seller_id}/metrics", response_model=dict)
def seller_metrics(seller_id: str, m: Marketplace = Depends(get_marketplace)):
    return m.seller_metrics(check_id(seller_id))


# -------------------- Catalog --------------------

@app.get("/products", response_model=List[Product])
def list_catalog(
    q: Optional[str] = Query(None),
    make: Optional[str] = Query(None),
    model: Optional[str] = Query(None),
    year: Optional[int] = Query(None),
    category: Optional[str] = Query(None),
    condition: Optional[Condition] = Query(None),
    sort: Optional[SortKey] = Query(None),
    m: Marketplace = Depends(get_marketplace),
):
    filt = CatalogFilter(q=q, make=make, model=model, year=year, category=category, condition=condition)
    return sort_listings(m.list_catalog(filt), sort)


@app.get("/products/models", response_model=List[str])
def available_models(make: Optional[str] = Query(None), m: Marketplace = Depends(get_marketplace)):
    return m.available_models(make)


@app.get("/products/{product_id}", response_model=Product)
def get_listing(product_id: str, m: Marketplace = Depends(get_marketplace)):
    return m.get_listing(check_id(product_id))


@app.patch("/products/{product_id}", response_model=Product)
def update_product(product_id: str, payload: ProductUpdate, m: Marketplace = Depends(get_marketplace)):
    return m.update_product(check_id(product_id), payload)


@app.delete("/products/{product_id}", response_model=dict)
def delete_product(product_id: str, m: Marketplace = Depends(get_marketplace)):
    m.delete_product(check_id(product_id))
    return {"ok": True}


# -------------------- Enquiries --------------------

@app.post("/enquiries", response_model=dict, status_code=201)
def record_enquiry(payload: EnquiryCreate, m: Marketplace = Depends(get_marketplace)):
    enquiry = m.record_enquiry(payload)
    return {"reference_id": enquiry.id, "status": enquiry.status}


@app.post("/enquiries/{enquiry_id}/reply", response_model=Enquiry)
def mark_enquiry_replied(enquiry_id: str, m: Marketplace = Depends(get_marketplace)):
    return m.mark_enquiry_replied(enquiry_id)


# -------------------- Cart & Checkout --------------------

@app.post("/carts", response_model=Cart, status_code=201)
def create_cart(m: Marketplace = Depends(get_marketplace)):
    return m.create_cart()


@app.get("/carts/{cart_id}", response_model=dict)
def get_cart(cart_id: str, m: Marketplace = Depends(get_marketplace)):
    return m.cart_summary(check_id(cart_id))


@app.post("/carts/{cart_id}/items", response_model=dict)
def add_to_cart(cart_id: str, payload: CartItem, m: Marketplace = Depends(get_marketplace)):
    m.add_to_cart(check_id(cart_id), payload.product_id, payload.quantity)
    return m.cart_summary(cart_id)


@app.delete("/carts/{cart_id}/items/{product_id}", response_model=dict)
def remove_from_cart(cart_id: str, product_id: str, m: Marketplace = Depends(get_marketplace)):
    m.remove_from_cart(check_id(cart_id), product_id)
    return m.cart_summary(cart_id)


@app.post("/carts/{cart_id}/checkout", response_model=Order, status_code=201)
async def checkout(cart_id: str, payload: CheckoutPayload, m: Marketplace = Depends(get_marketplace)):
    check_id(cart_id)
    # simulated payment
    if CHECKOUT_DELAY_SECONDS > 0:
        await asyncio.sleep(CHECKOUT_DELAY_SECONDS)
    return await run_in_threadpool(m.checkout, cart_id, payload)


@app.get("/orders/{order_id}", response_model=Order)
def get_order(order_id: str, m: Marketplace = Depends(get_marketplace)):
    return m.get_order(order_id)


# -------------------- Media --------------------

@app.post("/media", response_model=dict, status_code=201)
def upload_media(payload: MediaUpload, store: MediaStore = Depends(get_media_store)):
    ref = store.put_base64(payload.content_base64, payload.mime_type)
    return {"ref": ref}


@app.get("/media/{ref}")
def get_media(ref: str, store: MediaStore = Depends(get_media_store)):
    data, mime_type = store.get(ref)
    return Response(content=data, media_type=mime_type)


# -------------------- AI assists --------------------

class DraftAssistResponse(BaseModel):
    draft: ListingDraft
    applied: bool
    notice: Optional[str] = None


@app.post("/ai/vin-decode", response_model=DraftAssistResponse)
async def vin_decode(payload: VinDecodeRequest, ai: GenerativeClient = Depends(get_ai_client)):
    try:
        result = await ai.decode_vin(payload.vin)
    except ExternalServiceError as exc:
        logger.warning(f"VIN decode failed: {exc.message}")
        return DraftAssistResponse(draft=payload.draft, applied=False, notice="Unable to decode VIN. Enter details manually.")
    draft = payload.draft.model_copy(update={"vin": payload.vin.strip().upper()})
    return DraftAssistResponse(draft=apply_vin_result(draft, result), applied=True)


@app.post("/ai/identify-part", response_model=DraftAssistResponse)
async def identify_part(payload: PartIdentifyRequest, ai: GenerativeClient = Depends(get_ai_client)):
    try:
        result = await ai.identify_part(payload.image_base64, payload.mime_type)
    except ExternalServiceError as exc:
        logger.warning(f"Part identification failed: {exc.message}")
        return DraftAssistResponse(draft=payload.draft, applied=False, notice="AI Analysis failed. Please try a clearer photo.")
    return DraftAssistResponse(draft=apply_part_identification(payload.draft, result), applied=True)


@app.post("/ai/locate", response_model=dict)
async def locate(payload: LocateRequest, ai: GenerativeClient = Depends(get_ai_client)):
    return await ai.locate(payload.query)


@app.get("/blog-posts", response_model=List[BlogPost])
def list_blog_posts(m: Marketplace = Depends(get_marketplace)):
    return m.list_blog_posts()


# -------------------- Admin --------------------

@app.get("/admin/sellers", response_model=List[SellerProfile], dependencies=[Depends(admin_dependency)])
def admin_list_sellers(status: Optional[SellerStatus] = Query(None), m: Marketplace = Depends(get_marketplace)):
    return m.list_sellers(status)


@app.patch("/admin/sellers/{seller_id}/status", response_model=SellerProfile, dependencies=[Depends(admin_dependency)])
def admin_set_seller_status(seller_id: str, payload: SellerStatusUpdate, m: Marketplace = Depends(get_marketplace)):
    return m.set_seller_status(check_id(seller_id), payload.status)


@app.get("/admin/overview", response_model=dict, dependencies=[Depends(admin_dependency)])
def admin_overview(m: Marketplace = Depends(get_marketplace)):
    overview = m.admin_overview()
    overview["recent_orders"] = [o.model_dump(mode="json") for o in overview["recent_orders"]]
    overview["recent_enquiries"] = [e.model_dump(mode="json") for e in overview["recent_enquiries"]]
    return overview


@app.post("/admin/blog-posts/generate", response_model=BlogPost, status_code=201, dependencies=[Depends(admin_dependency)])
async def admin_generate_blog_post(
    payload: SeoRequest,
    ai: GenerativeClient = Depends(get_ai_client),
    m: Marketplace = Depends(get_marketplace),
):
    result = await ai.generate_seo_post(payload.keyword)
    return m.add_blog_post(build_blog_post(result))


@app.post("/admin/seed", response_model=dict, dependencies=[Depends(admin_dependency)])
def admin_seed(m: Marketplace = Depends(get_marketplace)):
    return m.seed_demo()


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
