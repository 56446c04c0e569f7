"""
OpenID provider table and authorization URL construction.

The protocol itself is provider-agnostic; providers differ only in the
authorization endpoint, the client id and a few extra query parameters.
A provider is usable once its client id is configured.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import urlencode

GOOGLE = "Connect with Google"
TWITCH = "Twitch"
FACEBOOK = "Facebook"


@dataclass(frozen=True)
class OpenIdProvider:
    """One OAuth/OpenID provider.

    Attributes:
        name: Label shown to the user and stored in SetupData/AccountData.
        authorization_endpoint: Provider URL the browser is sent to.
        client_id: OAuth client id registered with the provider.
        extra_params: Provider-specific query parameters.
    """

    name: str
    authorization_endpoint: str
    client_id: str
    extra_params: dict[str, str] = field(default_factory=dict)

    def authorization_url(self, *, nonce: str, redirect_uri: str) -> str:
        """Implicit-flow URL requesting an id_token bound to ``nonce``."""
        params = {
            "nonce": nonce,
            "redirect_uri": redirect_uri,
            "response_type": "id_token",
            "scope": "openid",
            **self.extra_params,
            "client_id": self.client_id,
        }
        return f"{self.authorization_endpoint}?{urlencode(params)}"


def default_providers(
    *,
    google_client_id: str | None = None,
    twitch_client_id: str | None = None,
    facebook_client_id: str | None = None,
) -> dict[str, OpenIdProvider]:
    """Provider table keyed by name, containing only configured providers."""
    providers: list[OpenIdProvider] = []
    if google_client_id:
        providers.append(
            OpenIdProvider(
                name=GOOGLE,
                authorization_endpoint="https://accounts.google.com/o/oauth2/v2/auth",
                client_id=google_client_id,
            )
        )
    if twitch_client_id:
        providers.append(
            OpenIdProvider(
                name=TWITCH,
                authorization_endpoint="https://id.twitch.tv/oauth2/authorize",
                client_id=twitch_client_id,
                extra_params={
                    "force_verify": "true",
                    "lang": "en",
                    "login_type": "login",
                },
            )
        )
    if facebook_client_id:
        providers.append(
            OpenIdProvider(
                name=FACEBOOK,
                authorization_endpoint="https://www.facebook.com/v19.0/dialog/oauth",
                client_id=facebook_client_id,
            )
        )
    return {p.name: p for p in providers}
