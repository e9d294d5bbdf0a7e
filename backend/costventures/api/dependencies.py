"""
Shared FastAPI dependencies.
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from costventures.core.errors import UnauthorizedError
from costventures.core.security import decode_token
from costventures.db.session import get_store
from costventures.db.store import LedgerStore
from costventures.models.user import User
from costventures.services.mail_service import MailManager

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    store: LedgerStore = Depends(get_store)
) -> int:
    """Resolve the bearer token to the id of an existing, activated user."""
    if credentials is None:
        raise UnauthorizedError()
    user_id = decode_token(credentials.credentials)
    if user_id is None:
        raise UnauthorizedError("Could not validate credentials")

    with store.reading():
        user = store.session.get(User, user_id)
    if user is None or not user.is_activated:
        raise UnauthorizedError("Could not validate credentials")
    return user_id


def get_mail_manager(request: Request) -> MailManager:
    return request.app.state.mail_manager
