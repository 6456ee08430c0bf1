from dataclasses import dataclass

from fastapi import Request

from studybuddy.core.config import Settings
from studybuddy.services.ai_gateway import AIGateway
from studybuddy.services.completion_clients import build_completion_client
from studybuddy.services.content_store import ContentStore
from studybuddy.services.credentials import CredentialStore
from studybuddy.services.kv_store import KeyValueStore, build_kv_store
from studybuddy.services.library import FileLibrary
from studybuddy.services.metadata_store import MetadataStore


@dataclass
class Services:
    kv: KeyValueStore
    library: FileLibrary
    credentials: CredentialStore
    gateway: AIGateway

    def close(self) -> None:
        """Libère les connexions (moteur SQL, client HTTP)."""
        for resource in (self.kv, self.gateway.client):
            close = getattr(resource, "close", None)
            if close is not None:
                close()


def build_services(settings: Settings) -> Services:
    """
    Construit les services une seule fois par process : le stockage clé/valeur
    est partagé par référence entre fiches et clé IA.
    """
    kv = build_kv_store(settings.KV_BACKEND, settings.database_url)
    content = ContentStore(settings.STORAGE_PATH)
    library = FileLibrary(
        MetadataStore(kv),
        content,
        allowed_extensions=settings.allowed_extensions,
        max_upload_mb=settings.MAX_UPLOAD_MB,
    )
    library.initialize()

    credentials = CredentialStore(kv, fallback=settings.AI_API_KEY)
    client = build_completion_client(
        settings.AI_PROVIDER,
        endpoint=settings.AI_ENDPOINT,
        model=settings.AI_MODEL,
        timeout=settings.AI_TIMEOUT_SECONDS,
    )
    gateway = AIGateway(
        client,
        credentials,
        content,
        max_tokens=settings.AI_MAX_TOKENS,
        temperature=settings.AI_TEMPERATURE,
        char_budget=settings.PROMPT_CHAR_BUDGET,
        audio_segment_chars=settings.AUDIO_SEGMENT_CHARS,
    )
    return Services(kv=kv, library=library, credentials=credentials, gateway=gateway)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_library(request: Request) -> FileLibrary:
    return request.app.state.services.library


def get_credentials(request: Request) -> CredentialStore:
    return request.app.state.services.credentials


def get_gateway(request: Request) -> AIGateway:
    return request.app.state.services.gateway
