import logging
from typing import Optional

from studybuddy.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

API_KEY_STORAGE = "studyBuddy_apiKey"


class CredentialStore:
    """
    Clé du service IA, rangée dans le même stockage clé/valeur que les fiches.
    `fallback` (AI_API_KEY des settings) sert si aucune clé n'est enregistrée.
    """

    def __init__(self, kv: KeyValueStore, fallback: str = ""):
        self._kv = kv
        self._fallback = fallback or None

    def set_api_key(self, api_key: str) -> None:
        self._kv.set(API_KEY_STORAGE, api_key.strip())
        logger.info("AI API key updated")

    def get_api_key(self) -> Optional[str]:
        return self._kv.get(API_KEY_STORAGE) or self._fallback

    def clear_api_key(self) -> None:
        self._kv.delete(API_KEY_STORAGE)
