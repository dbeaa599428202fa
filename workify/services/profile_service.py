from __future__ import annotations

from workify.core.cache import TTLCache, user_intent_key, user_profile_key
from workify.db.store import Store
from workify.schemas.profile import Intent, ProfileResponse

_MISSING = object()


class ProfileService:
    def __init__(self, store: Store, cache: TTLCache) -> None:
        self._store = store
        self._cache = cache

    def save_resume(self, user_id: str, resume_text: str) -> ProfileResponse:
        profile = self._store.upsert_profile(user_id, resume_text)
        self._cache.delete(user_profile_key(user_id))
        return profile

    def get_resume(self, user_id: str) -> ProfileResponse | None:
        key = user_profile_key(user_id)
        cached = self._cache.get(key, _MISSING)
        if cached is not _MISSING:
            return cached
        profile = self._store.get_profile(user_id)
        if profile is not None:
            self._cache.set(key, profile)
        return profile

    def save_intent(self, user_id: str, intent: Intent) -> Intent:
        saved = self._store.upsert_intent(user_id, intent)
        self._cache.delete(user_intent_key(user_id))
        return saved

    def get_intent(self, user_id: str) -> Intent | None:
        key = user_intent_key(user_id)
        cached = self._cache.get(key, _MISSING)
        if cached is not _MISSING:
            return cached
        intent = self._store.get_intent(user_id)
        if intent is not None:
            self._cache.set(key, intent)
        return intent
