from .accounts import Account, SessionToken, UserPin
from .settings import UserSettings
from .company import CompanyProfile
from .clients import Client
from .inventory import Product
from .documents import Document, DocumentLine, DocumentSequence
from .ledger import LedgerEntry

__all__ = [
    "Account",
    "SessionToken",
    "UserPin",
    "UserSettings",
    "CompanyProfile",
    "Client",
    "Product",
    "Document",
    "DocumentLine",
    "DocumentSequence",
    "LedgerEntry",
]
