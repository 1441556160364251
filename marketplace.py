"""
Catalog & marketplace state engine.

All mutations of sellers, products, enquiries, carts and orders go through a
Marketplace instance, so the visibility rule, the stock floor and the atomic
checkout hold in one place. Derived aggregates (seller metrics, admin overview)
are recomputed from the collections on every read; there is no index or cache.
"""

import csv
import io
import logging
import secrets
import string
import threading
from typing import Dict, Iterable, List, Optional

from catalog_data import (
    DEMO_PRODUCTS,
    DEMO_SELLERS,
    MAKES,
    OTHER_MAKE,
    PLACEHOLDER_IMAGE,
    VEHICLE_CATEGORIES,
)
from database import DataStore, new_id
from errors import EmptyCart, InvalidTransition, MissingMedia, NotFound, ValidationError
from schemas import (
    BlogPost,
    Cart,
    CartItem,
    CatalogFilter,
    CheckoutPayload,
    Enquiry,
    EnquiryCreate,
    Order,
    OrderItem,
    Product,
    ProductCreate,
    ProductUpdate,
    SellerCreate,
    SellerProfile,
    SellerStatus,
    SellerUpdate,
    utcnow,
)

logger = logging.getLogger(__name__)

VISIBLE_STATUSES = ("ACTIVE", "OUT_OF_STOCK")
KNOWN_MAKES = {m.lower() for m in MAKES}

# listing-form defaults for bulk-imported rows; model falls back to "Other"
CSV_ROW_DEFAULTS = {
    "name": "",
    "category": "Body Parts",
    "make": "Toyota",
    "model": OTHER_MAKE,
    "year_start": 2015,
    "year_end": 2024,
    "condition": "Used",
    "price": 0.0,
    "quantity": 1,
    "images": [PLACEHOLDER_IMAGE],
}

# (from, to) pairs an admin may apply
SELLER_TRANSITIONS = {
    ("PENDING_APPROVAL", "APPROVED"),
    ("APPROVED", "DISABLED"),
    ("DISABLED", "APPROVED"),
}

_REF_ALPHABET = string.ascii_uppercase + string.digits
_SKU_ALPHABET = string.digits + string.ascii_uppercase


def _random_code(length: int, alphabet: str = _REF_ALPHABET) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_sku(make: str) -> str:
    """Make prefix plus a random base36 suffix. Not checked against existing SKUs."""
    prefix = (make.strip() or "GEN")[:3].upper()
    return f"{prefix}-{_random_code(5, _SKU_ALPHABET)}"


def sort_listings(products: Iterable[Product], sort: Optional[str]) -> List[Product]:
    items = list(products)
    if sort == "newest":
        return sorted(items, key=lambda p: p.created_at, reverse=True)
    if sort == "price_asc":
        return sorted(items, key=lambda p: p.price)
    if sort == "price_desc":
        return sorted(items, key=lambda p: p.price, reverse=True)
    return items


def _to_int(value: str, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_float(value: str, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


class Marketplace:
    def __init__(self, store: Optional[DataStore] = None, auto_approve_sellers: bool = False):
        self.store = store if store is not None else DataStore()
        self.auto_approve_sellers = auto_approve_sellers
        self._lock = threading.RLock()

    # -------------------- Sellers --------------------

    def register_seller(self, draft: SellerCreate, auto_approve: Optional[bool] = None) -> SellerProfile:
        if auto_approve is None:
            auto_approve = self.auto_approve_sellers
        status = "APPROVED" if auto_approve else "PENDING_APPROVAL"
        with self._lock:
            seller = SellerProfile(user_id=new_id(), status=status, **draft.model_dump())
            self.store.put_seller(seller)
        logger.info(f"Seller {seller.user_id} registered ({seller.business_name}, status={status})")
        return seller

    def get_seller(self, seller_id: str) -> SellerProfile:
        seller = self.store.get_seller(seller_id)
        if seller is None:
            raise NotFound("Seller", seller_id)
        return seller

    def list_sellers(self, status: Optional[SellerStatus] = None) -> List[SellerProfile]:
        with self._lock:
            sellers = list(self.store.sellers.values())
        if status:
            sellers = [s for s in sellers if s.status == status]
        return sellers

    def update_seller_profile(self, seller_id: str, patch: SellerUpdate) -> SellerProfile:
        with self._lock:
            seller = self.get_seller(seller_id)
            update = patch.model_dump(exclude_unset=True)
            update = {k: v for k, v in update.items() if v is not None}
            updated = SellerProfile.model_validate({**seller.model_dump(), **update, "updated_at": utcnow()})
            self.store.put_seller(updated)
        return updated

    def set_seller_status(self, seller_id: str, new_status: SellerStatus) -> SellerProfile:
        with self._lock:
            seller = self.get_seller(seller_id)
            if seller.status == new_status:
                return seller
            if (seller.status, new_status) not in SELLER_TRANSITIONS:
                raise InvalidTransition(f"Cannot move seller from {seller.status} to {new_status}")
            updated = seller.model_copy(update={"status": new_status, "updated_at": utcnow()})
            self.store.put_seller(updated)
        logger.info(f"Seller {seller_id} status {seller.status} -> {new_status}")
        return updated

    def _seller_visible(self, seller_id: str) -> bool:
        seller = self.store.get_seller(seller_id)
        return seller is not None and seller.status == "APPROVED"

    # -------------------- Products --------------------

    def create_product(self, seller_id: str, draft: ProductCreate) -> Product:
        if not draft.images:
            raise MissingMedia()
        data = draft.model_dump()
        if not data["sku"].strip():
            data["sku"] = generate_sku(data["make"])
        if data["category"] in VEHICLE_CATEGORIES:
            data["is_vehicle"] = True
        if not data["is_vehicle"]:
            data["mileage"] = None
            data["transmission"] = None
        with self._lock:
            self.get_seller(seller_id)
            product = Product(id=new_id(), seller_id=seller_id, status="ACTIVE", **data)
            self.store.put_product(product)
        logger.info(f"Product {product.id} created by seller {seller_id} (sku={product.sku})")
        return product

    def import_products_csv(self, seller_id: str, text: str) -> List[Product]:
        """Bulk-create listings from CSV text.

        Recognised headers (case-insensitive): name / part name, price, category,
        make, model, sku, year / yearstart, yearend, description, condition.
        Blank or missing cells keep the listing-form defaults (CSV_ROW_DEFAULTS,
        location from the seller city). Rows are validated up front; if any row
        is invalid nothing is created.
        """
        seller = self.get_seller(seller_id)
        reader = csv.reader(io.StringIO(text))
        rows = [r for r in reader if any(cell.strip() for cell in r)]
        if not rows:
            return []
        headers = [h.strip().lower() for h in rows[0]]
        drafts = []
        for line_no, row in enumerate(rows[1:], start=2):
            item: Dict[str, object] = {**CSV_ROW_DEFAULTS, "location": seller.address.city}
            explicit_end = False
            for header, raw in zip(headers, row):
                val = raw.strip()
                if not val:
                    continue
                if header in ("name", "part name"):
                    item["name"] = val
                elif header == "price":
                    item["price"] = _to_float(val, 0.0)
                elif header in ("category", "make", "model", "sku", "description", "condition"):
                    item[header] = val
                elif header in ("year", "yearstart"):
                    item["year_start"] = _to_int(val, 2015)
                elif header == "yearend":
                    item["year_end"] = _to_int(val, item["year_start"])
                    explicit_end = True
            if not explicit_end and item["year_start"] > item["year_end"]:
                item["year_end"] = item["year_start"]
            try:
                drafts.append(ProductCreate.model_validate(item))
            except ValueError as exc:
                raise ValidationError(f"Row {line_no}: {exc}") from exc
        with self._lock:
            created = [self.create_product(seller_id, d) for d in drafts]
        logger.info(f"Imported {len(created)} products for seller {seller_id}")
        return created

    def get_product(self, product_id: str) -> Product:
        product = self.store.get_product(product_id)
        if product is None:
            raise NotFound("Product", product_id)
        return product

    def inventory(self, seller_id: str) -> List[Product]:
        with self._lock:
            self.get_seller(seller_id)
            return self.store.products_for_seller(seller_id)

    def update_product(self, product_id: str, patch: ProductUpdate) -> Product:
        update = patch.model_dump(exclude_unset=True)
        update = {k: v for k, v in update.items() if v is not None}
        with self._lock:
            product = self.get_product(product_id)
            if "images" in update and not update["images"]:
                raise MissingMedia()
            merged = {**product.model_dump(), **update}
            if merged["year_start"] > merged["year_end"]:
                raise ValidationError("year_start must not be after year_end")
            merged["updated_at"] = utcnow()
            updated = Product.model_validate(merged)
            self.store.put_product(updated)
        return updated

    def delete_product(self, product_id: str) -> None:
        with self._lock:
            if self.store.delete_product(product_id) is None:
                raise NotFound("Product", product_id)
        logger.info(f"Product {product_id} deleted")

    # -------------------- Catalog --------------------

    def is_visible(self, product: Product) -> bool:
        return product.status in VISIBLE_STATUSES and self._seller_visible(product.seller_id)

    def list_catalog(self, filt: Optional[CatalogFilter] = None) -> List[Product]:
        filt = filt or CatalogFilter()
        q = (filt.q or "").strip().lower()
        make = (filt.make or "").strip()
        model = (filt.model or "").strip().lower() if make else ""
        logger.debug(f"Catalog query {filt.model_dump(exclude_none=True)}")

        with self._lock:
            products = list(self.store.products.values())

        results = []
        for p in products:
            if not self.is_visible(p):
                continue
            if q and not (
                q in p.name.lower()
                or q in p.description.lower()
                or q in p.sku.lower()
                or (p.vin and q in p.vin.lower())
            ):
                continue
            if make:
                if make.lower() == OTHER_MAKE.lower():
                    if p.make.lower() in KNOWN_MAKES:
                        continue
                elif p.make.lower() != make.lower():
                    continue
            if model and p.model.lower() != model:
                continue
            if filt.year is not None and not (p.year_start <= filt.year <= p.year_end):
                continue
            if filt.category and p.category != filt.category:
                continue
            if filt.condition and p.condition != filt.condition:
                continue
            results.append(p)
        return results

    def available_models(self, make: Optional[str] = None) -> List[str]:
        products = self.list_catalog(CatalogFilter(make=make)) if make else self.list_catalog()
        return sorted({p.model for p in products})

    def get_listing(self, product_id: str) -> Product:
        product = self.get_product(product_id)
        if not self.is_visible(product):
            raise NotFound("Product", product_id)
        return product

    # -------------------- Enquiries --------------------

    def record_enquiry(self, draft: EnquiryCreate) -> Enquiry:
        with self._lock:
            product = self.get_product(draft.product_id)
            if product.seller_id != draft.seller_id:
                raise NotFound("Seller", draft.seller_id)
            ref = f"REF-{_random_code(6)}"
            while self.store.get_enquiry(ref) is not None:
                ref = f"REF-{_random_code(6)}"
            enquiry = Enquiry(id=ref, product_name=product.name, status="New", **draft.model_dump())
            self.store.put_enquiry(enquiry)
        logger.info(f"Enquiry {ref} recorded for product {product.id} via {enquiry.channel}")
        return enquiry

    def mark_enquiry_replied(self, enquiry_id: str) -> Enquiry:
        with self._lock:
            enquiry = self.store.get_enquiry(enquiry_id)
            if enquiry is None:
                raise NotFound("Enquiry", enquiry_id)
            updated = enquiry.model_copy(update={"status": "Replied"})
            self.store.put_enquiry(updated)
        return updated

    def enquiries_for_seller(self, seller_id: str) -> List[Enquiry]:
        with self._lock:
            self.get_seller(seller_id)
            return self.store.enquiries_for_seller(seller_id)

    # -------------------- Cart --------------------

    def create_cart(self) -> Cart:
        cart = Cart(id=new_id())
        with self._lock:
            self.store.put_cart(cart)
        return cart

    def get_cart(self, cart_id: str) -> Cart:
        cart = self.store.get_cart(cart_id)
        if cart is None:
            raise NotFound("Cart", cart_id)
        return cart

    def add_to_cart(self, cart_id: str, product_id: str, quantity: int = 1) -> Cart:
        if quantity < 1:
            raise ValidationError("quantity must be at least 1")
        with self._lock:
            cart = self.get_cart(cart_id)
            self.get_listing(product_id)
            items = [i.model_copy() for i in cart.items]
            for item in items:
                if item.product_id == product_id:
                    item.quantity += quantity
                    break
            else:
                items.append(CartItem(product_id=product_id, quantity=quantity))
            cart = cart.model_copy(update={"items": items})
            self.store.put_cart(cart)
        return cart

    def remove_from_cart(self, cart_id: str, product_id: str) -> Cart:
        with self._lock:
            cart = self.get_cart(cart_id)
            cart = cart.model_copy(update={"items": [i for i in cart.items if i.product_id != product_id]})
            self.store.put_cart(cart)
        return cart

    def cart_summary(self, cart_id: str) -> dict:
        cart = self.get_cart(cart_id)
        lines = []
        subtotal = 0.0
        for item in cart.items:
            product = self.store.get_product(item.product_id)
            if product is None:
                lines.append({"product_id": item.product_id, "quantity": item.quantity, "available": False})
                continue
            line_total = product.price * item.quantity
            subtotal += line_total
            lines.append({
                "product_id": product.id,
                "name": product.name,
                "condition": product.condition,
                "image": product.images[0] if product.images else None,
                "price": product.price,
                "quantity": item.quantity,
                "line_total": round(line_total, 2),
                "available": True,
            })
        return {
            "id": cart.id,
            "items": lines,
            "item_count": sum(i.quantity for i in cart.items),
            "subtotal": round(subtotal, 2),
        }

    # -------------------- Checkout --------------------

    def checkout(self, cart_id: str, details: CheckoutPayload) -> Order:
        """Turn a cart into a PAID order and decrement stock, all or nothing.

        Line items snapshot name, seller and price at call time. Stock is floored
        at 0 and a product that hits the floor becomes OUT_OF_STOCK.
        """
        with self._lock:
            cart = self.get_cart(cart_id)
            if not cart.items:
                raise EmptyCart()

            items: List[OrderItem] = []
            restocked: Dict[str, Product] = {}
            for line in cart.items:
                product = restocked.get(line.product_id) or self.get_product(line.product_id)
                items.append(OrderItem(
                    product_id=product.id,
                    product_name=product.name,
                    seller_id=product.seller_id,
                    price=product.price,
                    quantity=line.quantity,
                ))
                new_qty = max(0, product.quantity - line.quantity)
                update = {"quantity": new_qty, "updated_at": utcnow()}
                if new_qty == 0:
                    update["status"] = "OUT_OF_STOCK"
                restocked[product.id] = product.model_copy(update=update)

            order_id = f"SPF-{_random_code(7)}"
            while self.store.get_order(order_id) is not None:
                order_id = f"SPF-{_random_code(7)}"
            order = Order(
                id=order_id,
                customer=details.customer,
                is_collection=details.is_collection,
                delivery_address=None if details.is_collection else details.delivery_address,
                items=items,
                total=round(sum(i.price * i.quantity for i in items), 2),
                status="PAID",
            )

            # nothing above mutates the store
            for product in restocked.values():
                self.store.put_product(product)
            self.store.put_order(order)
            self.store.put_cart(cart.model_copy(update={"items": []}))

        logger.info(f"Order {order.id} placed: {len(items)} line(s), total {order.total}")
        return order

    def get_order(self, order_id: str) -> Order:
        order = self.store.get_order(order_id)
        if order is None:
            raise NotFound("Order", order_id)
        return order

    def orders_for_seller(self, seller_id: str) -> List[Order]:
        with self._lock:
            self.get_seller(seller_id)
            orders = list(self.store.orders.values())
        return [o for o in orders if any(i.seller_id == seller_id for i in o.items)]

    # -------------------- Blog --------------------

    def add_blog_post(self, post: BlogPost) -> BlogPost:
        with self._lock:
            self.store.append_blog_post(post)
        return post

    def list_blog_posts(self) -> List[BlogPost]:
        with self._lock:
            return list(self.store.blog_posts)

    # -------------------- Aggregates --------------------

    def seller_metrics(self, seller_id: str) -> dict:
        products = self.inventory(seller_id)
        enquiries = self.enquiries_for_seller(seller_id)
        orders = self.orders_for_seller(seller_id)
        revenue = sum(
            i.price * i.quantity
            for o in orders
            for i in o.items
            if i.seller_id == seller_id
        )
        return {
            "total_listings": len(products),
            "active_listings": sum(1 for p in products if p.status == "ACTIVE"),
            "new_enquiries": sum(1 for e in enquiries if e.status == "New"),
            "direct_contact_leads": sum(1 for e in enquiries if e.channel == "DIRECT_CONTACT"),
            "order_count": len(orders),
            "revenue": round(revenue, 2),
        }

    def admin_overview(self) -> dict:
        with self._lock:
            sellers = list(self.store.sellers.values())
            products = list(self.store.products.values())
            orders = list(self.store.orders.values())
            enquiries = list(self.store.enquiries.values())
        return {
            "revenue": round(sum(o.total for o in orders), 2),
            "total_listings": len(products),
            "active_listings": sum(1 for p in products if p.status == "ACTIVE"),
            "visible_listings": sum(1 for p in products if self.is_visible(p)),
            "sellers": {
                status: sum(1 for s in sellers if s.status == status)
                for status in ("PENDING_APPROVAL", "APPROVED", "DISABLED")
            },
            "order_count": len(orders),
            "enquiry_count": len(enquiries),
            "recent_orders": orders[-5:],
            "recent_enquiries": enquiries[-5:],
        }

    # -------------------- Demo data --------------------

    def reset(self) -> None:
        with self._lock:
            self.store.clear()

    def seed_demo(self) -> dict:
        with self._lock:
            if self.store.products:
                return {"status": "already-seeded"}
            seller_ids = {}
            for raw in DEMO_SELLERS:
                data = dict(raw)
                key = data.pop("key")
                seller = self.register_seller(SellerCreate.model_validate(data), auto_approve=True)
                seller_ids[key] = seller.user_id
            for raw in DEMO_PRODUCTS:
                data = dict(raw)
                seller_id = seller_ids[data.pop("seller")]
                self.create_product(seller_id, ProductCreate.model_validate(data))
        return {"status": "seeded", "sellers": len(DEMO_SELLERS), "products": len(DEMO_PRODUCTS)}
