from pydantic import SecretStr

from fleetops.core.interfaces.session import SessionPort


class StaticTokenSession(SessionPort):
    """Session holding a bearer token obtained elsewhere (settings, secret store)."""

    def __init__(self, token: SecretStr | str):
        self._token = token if isinstance(token, SecretStr) else SecretStr(token)

    def get_token(self) -> str:
        return self._token.get_secret_value()
