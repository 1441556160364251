"""
Schemas for the PartsHub marketplace

Each record model (SellerProfile, Product, Enquiry, Order, Cart, BlogPost) is
stored in the in-memory collection of the same lowercased name in database.py.
The *Create / *Update models are request bodies; drafts are validated here and
business rules (visibility, stock floor, media) are enforced by marketplace.py.
"""

from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, StringConstraints, model_validator

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

SellerStatus = Literal["PENDING_APPROVAL", "APPROVED", "DISABLED"]
ListingStatus = Literal["ACTIVE", "OUT_OF_STOCK", "SOLD", "INACTIVE"]
Condition = Literal["New", "Used", "Damaged/Salvage"]
Transmission = Literal["Manual", "Automatic"]
ShippingOption = Literal["Collection", "Courier"]
EnquiryChannel = Literal["DIRECT_CONTACT", "FORM"]
EnquiryStatus = Literal["New", "Replied"]
OrderStatus = Literal["PENDING_PAYMENT", "PAID", "PROCESSING", "SHIPPED", "COLLECTED", "CANCELLED"]
SortKey = Literal["newest", "price_asc", "price_desc"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ------------ Sellers ------------
class Address(BaseModel):
    street: str = ""
    suburb: str = ""
    city: NonEmptyStr
    province: str = ""
    postcode: str = ""


class SocialLinks(BaseModel):
    facebook: Optional[str] = None
    instagram: Optional[str] = None
    website: Optional[str] = None


class SellerCreate(BaseModel):
    business_name: NonEmptyStr
    contact_person: NonEmptyStr
    phone: NonEmptyStr = Field(..., description="Also used as the WhatsApp number")
    email: Optional[EmailStr] = None
    address: Address
    logo_url: Optional[str] = None
    social_links: SocialLinks = Field(default_factory=SocialLinks)
    whatsapp_enabled: bool = True
    operating_hours: Optional[str] = None


class SellerUpdate(BaseModel):
    business_name: Optional[NonEmptyStr] = None
    contact_person: Optional[NonEmptyStr] = None
    phone: Optional[NonEmptyStr] = None
    email: Optional[EmailStr] = None
    address: Optional[Address] = None
    logo_url: Optional[str] = None
    social_links: Optional[SocialLinks] = None
    whatsapp_enabled: Optional[bool] = None
    operating_hours: Optional[str] = None


class SellerStatusUpdate(BaseModel):
    status: SellerStatus


class SellerProfile(SellerCreate):
    user_id: str
    status: SellerStatus = "PENDING_APPROVAL"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ------------ Products ------------
class ListingDraft(BaseModel):
    """A partially filled listing form, as passed to the AI auto-fill helpers."""
    name: str = ""
    category: str = ""
    make: str = ""
    model: str = ""
    year_start: Optional[int] = None
    year_end: Optional[int] = None
    vin: Optional[str] = None


class ProductCreate(BaseModel):
    name: NonEmptyStr
    category: NonEmptyStr
    make: NonEmptyStr
    model: NonEmptyStr
    year_start: int = Field(..., ge=1900, le=2100)
    year_end: int = Field(..., ge=1900, le=2100)
    condition: Condition = "Used"
    price: float = Field(..., ge=0)
    quantity: int = Field(1, ge=0)
    sku: str = ""
    description: str = ""
    images: List[str] = []
    shipping_options: List[ShippingOption] = ["Collection"]
    location: str = ""
    is_vehicle: bool = False
    vin: Optional[str] = None
    mileage: Optional[int] = Field(None, ge=0)
    transmission: Optional[Transmission] = None

    @model_validator(mode="after")
    def check_year_range(self):
        if self.year_start > self.year_end:
            raise ValueError("year_start must not be after year_end")
        return self


class ProductUpdate(BaseModel):
    name: Optional[NonEmptyStr] = None
    category: Optional[NonEmptyStr] = None
    make: Optional[NonEmptyStr] = None
    model: Optional[NonEmptyStr] = None
    year_start: Optional[int] = Field(None, ge=1900, le=2100)
    year_end: Optional[int] = Field(None, ge=1900, le=2100)
    condition: Optional[Condition] = None
    price: Optional[float] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    sku: Optional[str] = None
    description: Optional[str] = None
    images: Optional[List[str]] = None
    shipping_options: Optional[List[ShippingOption]] = None
    status: Optional[ListingStatus] = None
    location: Optional[str] = None
    is_vehicle: Optional[bool] = None
    vin: Optional[str] = None
    mileage: Optional[int] = Field(None, ge=0)
    transmission: Optional[Transmission] = None


class Product(ProductCreate):
    id: str
    seller_id: str
    status: ListingStatus = "ACTIVE"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class CatalogFilter(BaseModel):
    q: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    category: Optional[str] = None
    condition: Optional[Condition] = None


# ------------ Enquiries ------------
class EnquiryCreate(BaseModel):
    product_id: str
    seller_id: str
    buyer_name: NonEmptyStr
    buyer_phone: str = ""
    buyer_email: Optional[str] = None
    message: str = ""
    attachments: List[str] = []
    channel: EnquiryChannel = "FORM"


class Enquiry(EnquiryCreate):
    id: str
    product_name: str
    status: EnquiryStatus = "New"
    created_at: datetime = Field(default_factory=utcnow)


# ------------ Cart ------------
class CartItem(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1)


class Cart(BaseModel):
    id: str
    items: List[CartItem] = []
    created_at: datetime = Field(default_factory=utcnow)


# ------------ Orders ------------
class CustomerDetails(BaseModel):
    name: NonEmptyStr
    phone: NonEmptyStr
    email: EmailStr


class CheckoutPayload(BaseModel):
    customer: CustomerDetails
    is_collection: bool = False
    delivery_address: Optional[str] = None

    @model_validator(mode="after")
    def check_delivery(self):
        if not self.is_collection and not (self.delivery_address or "").strip():
            raise ValueError("delivery_address is required unless the order is collected")
        return self


class OrderItem(BaseModel):
    product_id: str
    product_name: str
    seller_id: str
    price: float
    quantity: int = Field(..., ge=1)


class Order(BaseModel):
    id: str
    customer: CustomerDetails
    is_collection: bool
    delivery_address: Optional[str] = None
    items: List[OrderItem]
    total: float
    status: OrderStatus = "PAID"
    created_at: datetime = Field(default_factory=utcnow)


# ------------ Content & media ------------
class BlogPost(BaseModel):
    id: str
    title: str
    slug: str
    content: str
    keywords: List[str] = []
    created_at: datetime = Field(default_factory=utcnow)


class MediaUpload(BaseModel):
    content_base64: str
    mime_type: str = "image/jpeg"


# ------------ AI requests ------------
class VinDecodeRequest(BaseModel):
    vin: str
    draft: ListingDraft = Field(default_factory=ListingDraft)


class PartIdentifyRequest(BaseModel):
    image_base64: str
    mime_type: str = "image/jpeg"
    draft: ListingDraft = Field(default_factory=ListingDraft)


class SeoRequest(BaseModel):
    keyword: NonEmptyStr


class LocateRequest(BaseModel):
    query: NonEmptyStr
