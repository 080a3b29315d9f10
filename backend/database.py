import os

from dotenv import load_dotenv
from supabase import create_client

from helpers.calendar_helpers import DEFAULT_TIMEZONE, GoogleCalendarGateway
from helpers.sse_broker import SseBroker, broker
from storage import JsonFileStorage, MemoryStorage, SlotStorage, SupabaseStorage
from store import TrackerStore

load_dotenv()

# Storage: file (default) / supabase / memory
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "file").lower()
DATA_DIR = os.getenv("DATA_DIR", "data")

# Supabase
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
SUPABASE_SLOT_TABLE = os.getenv("SUPABASE_SLOT_TABLE", "slots")

# Google Calendar
CALENDAR_TIMEZONE = os.getenv("CALENDAR_TIMEZONE", DEFAULT_TIMEZONE)
GOOGLE_CALENDAR_ID = os.getenv("GOOGLE_CALENDAR_ID", "primary")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def create_storage(backend: str = STORAGE_BACKEND) -> SlotStorage:
    if backend == "file":
        return JsonFileStorage(DATA_DIR)
    if backend == "supabase":
        if not SUPABASE_URL or not SUPABASE_KEY:
            raise RuntimeError("SUPABASE_URL and SUPABASE_KEY are required for the supabase backend")
        return SupabaseStorage(create_client(SUPABASE_URL, SUPABASE_KEY), SUPABASE_SLOT_TABLE)
    if backend == "memory":
        return MemoryStorage()
    raise RuntimeError(f"Unknown STORAGE_BACKEND: {backend}")


store = TrackerStore(create_storage())
calendar_gateway = GoogleCalendarGateway(GOOGLE_CALENDAR_ID, CALENDAR_TIMEZONE)


# Providers for fastapi.Depends (overridden in tests)
def get_store() -> TrackerStore:
    return store


def get_calendar_gateway() -> GoogleCalendarGateway:
    return calendar_gateway


def get_broker() -> SseBroker:
    return broker
