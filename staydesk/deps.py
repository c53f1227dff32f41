from functools import lru_cache

from fastapi import Depends

from .db import SessionLocal
from .security import SettingsCredentialVerifier
from .services.lifecycle import BookingLifecycle
from .services.mail import MailgunNotifier
from .services.store import SqlBookingStore


@lru_cache
def get_store() -> SqlBookingStore:
    return SqlBookingStore(SessionLocal)


@lru_cache
def get_notifier() -> MailgunNotifier:
    return MailgunNotifier()


@lru_cache
def get_credential_verifier() -> SettingsCredentialVerifier:
    return SettingsCredentialVerifier()


def get_lifecycle(store: SqlBookingStore = Depends(get_store), notifier: MailgunNotifier = Depends(get_notifier)) -> BookingLifecycle:
    return BookingLifecycle(store, notifier)
