"""Push subscription and FCM token storage."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from .contract import FCM_TOKEN_DOCUMENT, FCM_TOKENS_COLLECTION, SUBSCRIPTIONS_COLLECTION
from .models import Subscription

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    def get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]: ...

    def set_document(self, collection: str, doc_id: str, body: Dict[str, Any]) -> None: ...

    def delete_document(self, collection: str, doc_id: str) -> bool: ...

    def list_documents(self, collection: str) -> List[Dict[str, Any]]: ...


class SubscriptionRegistry:
    """Subscriptions keyed by their endpoint URL; saving twice overwrites."""

    def __init__(self, store: DocumentStore, collection: str = SUBSCRIPTIONS_COLLECTION) -> None:
        self._store = store
        self._collection = collection

    def get(self, endpoint: str) -> Optional[Subscription]:
        body = self._store.get_document(self._collection, endpoint)
        return Subscription.from_dict(body) if body else None

    def set(self, endpoint: str, subscription: Subscription) -> None:
        self._store.set_document(self._collection, endpoint, subscription.to_dict())

    def save(self, subscription: Subscription) -> None:
        self.set(subscription.endpoint, subscription)

    def delete(self, endpoint: str) -> bool:
        return self._store.delete_document(self._collection, endpoint)

    def list_all(self) -> List[Subscription]:
        subscriptions: List[Subscription] = []
        for body in self._store.list_documents(self._collection):
            try:
                subscriptions.append(Subscription.from_dict(body))
            except ValueError:
                logger.warning("Skipping stored subscription without an endpoint")
        return subscriptions


class FcmTokenStore:
    """The single FCM registration token of this installation."""

    def __init__(
        self,
        store: DocumentStore,
        collection: str = FCM_TOKENS_COLLECTION,
        doc_id: str = FCM_TOKEN_DOCUMENT,
    ) -> None:
        self._store = store
        self._collection = collection
        self._doc_id = doc_id

    def get(self) -> Optional[str]:
        body = self._store.get_document(self._collection, self._doc_id)
        token = body.get("token") if body else None
        return token if isinstance(token, str) and token else None

    def set(self, token: str) -> None:
        self._store.set_document(
            self._collection,
            self._doc_id,
            {"token": token, "updatedAt": datetime.now(timezone.utc).isoformat()},
        )


__all__ = ["DocumentStore", "SubscriptionRegistry", "FcmTokenStore"]
