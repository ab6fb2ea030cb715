import logging
from typing import Optional

from fastapi import Header, Request
from jose import JWTError, jwt

from plantnet.errors import Unauthorized

logger = logging.getLogger(__name__)


class TokenVerifier:
    """Checks a bearer token and returns the verified email claim.

    Tokens are JWTs minted by the service's own auth front-end and signed with
    ``JWT_SECRET`` (or the key matching ``JWT_ALGORITHM``). When an audience is
    configured it must appear as the ``aud`` claim.
    """

    def __init__(self, key: Optional[str], algorithm: str = "HS256", audience: Optional[str] = None):
        self.key = key
        self.algorithm = algorithm
        self.audience = audience

    def verify(self, token: str) -> str:
        if not self.key:
            raise Unauthorized()
        options = {"verify_aud": self.audience is not None}
        try:
            claims = jwt.decode(
                token,
                self.key,
                algorithms=[self.algorithm],
                audience=self.audience,
                options=options,
            )
        except JWTError as exc:
            logger.warning("Rejected bearer token: %s", exc)
            raise Unauthorized()

        email = claims.get("email")
        if not email:
            raise Unauthorized()
        return email


def verify_token(request: Request, authorization: str = Header(None)) -> str:
    try:
        scheme, token = authorization.split()
    except (AttributeError, ValueError):
        raise Unauthorized()
    if scheme.lower() != "bearer":
        raise Unauthorized()

    email = request.app.state.token_verifier.verify(token)
    request.state.token_email = email
    return email
