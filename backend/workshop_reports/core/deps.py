from functools import lru_cache

from workshop_reports.db.session import SessionLocal
from workshop_reports.services.store import RecordStore, SqlRecordStore
from workshop_reports.services.sync.bus import MutationBroadcastBus, get_bus as _process_bus
from workshop_reports.services.sync.session import SessionRegistry

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

@lru_cache
def get_store() -> RecordStore:
    return SqlRecordStore(SessionLocal)

def get_bus() -> MutationBroadcastBus:
    return _process_bus()

@lru_cache
def get_registry() -> SessionRegistry:
    return SessionRegistry()
