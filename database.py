"""
In-memory collections for the marketplace.

Every collection is a dict keyed by record id; dicts keep insertion order, which
is the stable order the catalog is listed in. Nothing here is persisted.
"""

from typing import Dict, List, Optional

from bson import ObjectId

from schemas import BlogPost, Cart, Enquiry, Order, Product, SellerProfile


def new_id() -> str:
    return str(ObjectId())


class DataStore:
    def __init__(self) -> None:
        self.sellers: Dict[str, SellerProfile] = {}
        self.products: Dict[str, Product] = {}
        self.enquiries: Dict[str, Enquiry] = {}
        self.orders: Dict[str, Order] = {}
        self.carts: Dict[str, Cart] = {}
        self.blog_posts: List[BlogPost] = []

    # -------------------- writes --------------------

    def put_seller(self, seller: SellerProfile) -> None:
        self.sellers[seller.user_id] = seller

    def put_product(self, product: Product) -> None:
        self.products[product.id] = product

    def delete_product(self, product_id: str) -> Optional[Product]:
        return self.products.pop(product_id, None)

    def put_enquiry(self, enquiry: Enquiry) -> None:
        self.enquiries[enquiry.id] = enquiry

    def put_order(self, order: Order) -> None:
        self.orders[order.id] = order

    def put_cart(self, cart: Cart) -> None:
        self.carts[cart.id] = cart

    def append_blog_post(self, post: BlogPost) -> None:
        self.blog_posts.append(post)

    def clear(self) -> None:
        self.sellers.clear()
        self.products.clear()
        self.enquiries.clear()
        self.orders.clear()
        self.carts.clear()
        self.blog_posts.clear()

    # -------------------- reads --------------------

    def get_seller(self, seller_id: str) -> Optional[SellerProfile]:
        return self.sellers.get(seller_id)

    def get_product(self, product_id: str) -> Optional[Product]:
        return self.products.get(product_id)

    def get_enquiry(self, enquiry_id: str) -> Optional[Enquiry]:
        return self.enquiries.get(enquiry_id)

    def get_order(self, order_id: str) -> Optional[Order]:
        return self.orders.get(order_id)

    def get_cart(self, cart_id: str) -> Optional[Cart]:
        return self.carts.get(cart_id)

    def products_for_seller(self, seller_id: str) -> List[Product]:
        return [p for p in self.products.values() if p.seller_id == seller_id]

    def enquiries_for_seller(self, seller_id: str) -> List[Enquiry]:
        return [e for e in self.enquiries.values() if e.seller_id == seller_id]

    def counts(self) -> Dict[str, int]:
        return {
            "seller": len(self.sellers),
            "product": len(self.products),
            "enquiry": len(self.enquiries),
            "order": len(self.orders),
            "cart": len(self.carts),
            "blog_post": len(self.blog_posts),
        }


# module-level singleton used by the app
db = DataStore()
