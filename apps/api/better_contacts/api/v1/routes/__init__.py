"""HTTP routers mounted under the API prefix by ``better_contacts.main``."""

__all__ = [
    "admin",
    "contacts",
    "enrichment",
    "health",
]
