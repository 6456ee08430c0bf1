from fastapi import APIRouter, Depends

from studybuddy.core.deps import get_credentials
from studybuddy.core.security import get_api_key
from studybuddy.models.ai import ApiKeyRequest, ApiKeyStatus
from studybuddy.services.credentials import CredentialStore

router = APIRouter(prefix="/v1/settings", tags=["settings"])


@router.get("/ai-key", response_model=ApiKeyStatus)
def ai_key_status(credentials: CredentialStore = Depends(get_credentials)):
    # la clé elle-même n'est jamais renvoyée
    return ApiKeyStatus(isSet=bool(credentials.get_api_key()))


@router.put("/ai-key", response_model=ApiKeyStatus)
def set_ai_key(
    body: ApiKeyRequest,
    credentials: CredentialStore = Depends(get_credentials),
    _: str = Depends(get_api_key),
):
    credentials.set_api_key(body.apiKey)
    return ApiKeyStatus(isSet=True)


@router.delete("/ai-key", response_model=ApiKeyStatus)
def clear_ai_key(
    credentials: CredentialStore = Depends(get_credentials),
    _: str = Depends(get_api_key),
):
    credentials.clear_api_key()
    return ApiKeyStatus(isSet=bool(credentials.get_api_key()))
