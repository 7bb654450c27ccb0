from .store import InMemoryNotificationSender, InMemoryPetSource, InMemoryRecordStore

__all__ = ["InMemoryNotificationSender", "InMemoryPetSource", "InMemoryRecordStore"]
