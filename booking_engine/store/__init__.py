from booking_engine.store.base import BookingStore, KeyedLocks
from booking_engine.store.importer import ImportSummary, import_site
from booking_engine.store.json_store import JsonFileBookingStore
from booking_engine.store.memory import InMemoryBookingStore

__all__ = [
    "BookingStore",
    "KeyedLocks",
    "ImportSummary",
    "import_site",
    "JsonFileBookingStore",
    "InMemoryBookingStore",
]
