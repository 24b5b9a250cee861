from schemas import Product

# Fixed storefront catalog; read-only for the life of the process
PRODUCTS: tuple[Product, ...] = (
    Product(id=1, name="Himalayan Dawn Green", price=650, size="80g", tag="Single estate"),
    Product(id=2, name="Moonlit Chamomile", price=580, size="50g", tag="Caffeine‑free"),
    Product(id=3, name="Smoked Oak Assam", price=720, size="100g", tag="Small batch"),
)


def list_products() -> list[Product]:
    return list(PRODUCTS)
