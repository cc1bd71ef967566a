from warmwelcome.routers import emails, shopify

__all__ = [
    "emails",
    "shopify",
]
