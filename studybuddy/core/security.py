from fastapi import HTTPException, Request, Security
from fastapi.security.api_key import APIKeyHeader
from starlette.status import HTTP_401_UNAUTHORIZED

api_key_header = APIKeyHeader(name="x-api-key", auto_error=False)


def get_api_key(request: Request, api_key: str = Security(api_key_header)) -> str:
    """
    Vérifie que la clé API envoyée dans l'en-tête est correcte.
    Protège les routes qui modifient la bibliothèque.
    """
    if api_key and api_key == request.app.state.settings.API_KEY:
        return api_key
    raise HTTPException(
        status_code=HTTP_401_UNAUTHORIZED,
        detail="API Key invalide",
    )
