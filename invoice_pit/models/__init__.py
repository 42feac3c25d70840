"""
データモデル
"""

from invoice_pit.models.database import Base, engine, SessionLocal, get_db, init_db, transaction
from invoice_pit.models.profile import Profile
from invoice_pit.models.organizer import Organizer
from invoice_pit.models.invoice import Invoice
from invoice_pit.models.organizer_invoice import OrganizerInvoice

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "init_db",
    "transaction",
    "Profile",
    "Organizer",
    "Invoice",
    "OrganizerInvoice",
]
