"""Built-in provider variants.

One ``ProviderSpec`` per supported identity provider. Endpoints point at each
provider's current documented OAuth 2.0 / OpenID Connect endpoints.
"""

from __future__ import annotations

from socialgate.models.errors import UnsupportedProviderError
from socialgate.providers import mappers
from socialgate.providers.base import (
    ClientAuthMethod,
    IdentitySource,
    ProviderKind,
    ProviderSpec,
)

GOOGLE = ProviderSpec(
    kind=ProviderKind.GOOGLE,
    display_name="Google",
    authorization_endpoint="https://accounts.google.com/o/oauth2/v2/auth",
    token_endpoint="https://oauth2.googleapis.com/token",
    userinfo_endpoint="https://openidconnect.googleapis.com/v1/userinfo",
    default_scopes="openid email profile",
    authorize_params={"access_type": "offline", "prompt": "consent"},
    mapper=mappers.map_google,
)

FACEBOOK = ProviderSpec(
    kind=ProviderKind.FACEBOOK,
    display_name="Facebook",
    authorization_endpoint="https://www.facebook.com/{version}/dialog/oauth",
    token_endpoint="https://graph.facebook.com/{version}/oauth/access_token",
    userinfo_endpoint="https://graph.facebook.com/{version}/me",
    default_scopes="email,public_profile",
    userinfo_params={"fields": "id,name,email,first_name,last_name,picture.type(large)"},
    default_version="v18.0",
    subject_keys=("id",),
    mapper=mappers.map_facebook,
)

APPLE = ProviderSpec(
    kind=ProviderKind.APPLE,
    display_name="Apple",
    authorization_endpoint="https://appleid.apple.com/auth/authorize",
    token_endpoint="https://appleid.apple.com/auth/token",
    userinfo_endpoint=None,
    default_scopes="name email",
    auth_method=ClientAuthMethod.PRIVATE_KEY_JWT,
    required_config=("client_id", "team_id", "key_id", "private_key", "redirect_uri"),
    # Apple only returns requested scopes to a form_post callback
    authorize_params={"response_mode": "form_post"},
    identity_source=IdentitySource.ID_TOKEN,
    subject_keys=("sub",),
    mapper=mappers.map_apple,
)

GITHUB = ProviderSpec(
    kind=ProviderKind.GITHUB,
    display_name="GitHub",
    authorization_endpoint="https://github.com/login/oauth/authorize",
    token_endpoint="https://github.com/login/oauth/access_token",
    userinfo_endpoint="https://api.github.com/user",
    default_scopes="read:user user:email",
    userinfo_headers={
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    },
    subject_keys=("id",),
    secondary_email_endpoint="https://api.github.com/user/emails",
    mapper=mappers.map_github,
)

LINKEDIN = ProviderSpec(
    kind=ProviderKind.LINKEDIN,
    display_name="LinkedIn",
    authorization_endpoint="https://www.linkedin.com/oauth/v2/authorization",
    token_endpoint="https://www.linkedin.com/oauth/v2/accessToken",
    userinfo_endpoint="https://api.linkedin.com/v2/userinfo",
    default_scopes="openid profile email",
    subject_keys=("sub",),
    mapper=mappers.map_linkedin,
)

TWITTER = ProviderSpec(
    kind=ProviderKind.TWITTER,
    display_name="Twitter",
    authorization_endpoint="https://x.com/i/oauth2/authorize",
    token_endpoint="https://api.x.com/2/oauth2/token",
    userinfo_endpoint="https://api.x.com/2/users/me",
    default_scopes="tweet.read users.read offline.access",
    auth_method=ClientAuthMethod.CLIENT_SECRET_BASIC,
    pkce=True,
    required_config=("client_id", "client_secret", "redirect_uri"),
    userinfo_params={"user.fields": "id,name,username,profile_image_url,verified"},
    envelope="data",
    subject_keys=("id",),
    mapper=mappers.map_twitter,
)

DISCORD = ProviderSpec(
    kind=ProviderKind.DISCORD,
    display_name="Discord",
    authorization_endpoint="https://discord.com/oauth2/authorize",
    token_endpoint="https://discord.com/api/oauth2/token",
    userinfo_endpoint="https://discord.com/api/users/@me",
    default_scopes="identify email",
    subject_keys=("id",),
    mapper=mappers.map_discord,
)

MICROSOFT = ProviderSpec(
    kind=ProviderKind.MICROSOFT,
    display_name="Microsoft",
    authorization_endpoint=(
        "https://login.microsoftonline.com/{version}/oauth2/v2.0/authorize"
    ),
    token_endpoint="https://login.microsoftonline.com/{version}/oauth2/v2.0/token",
    userinfo_endpoint="https://graph.microsoft.com/v1.0/me",
    default_scopes="openid profile email User.Read",
    authorize_params={"response_mode": "query"},
    userinfo_params={
        "$select": "id,displayName,givenName,surname,mail,userPrincipalName"
    },
    subject_keys=("id",),
    # ``api_version`` selects the tenant for this provider
    default_version="common",
    mapper=mappers.map_microsoft,
)

GENERIC = ProviderSpec(
    kind=ProviderKind.GENERIC,
    display_name="OAuth",
    authorization_endpoint="",
    token_endpoint="",
    userinfo_endpoint=None,
    default_scopes="openid email profile",
    required_config=(
        "client_id",
        "client_secret",
        "redirect_uri",
        "authorization_endpoint",
        "token_endpoint",
    ),
    subject_keys=("sub", "id", "user_id"),
    mapper=mappers.map_generic,
)

CATALOG: dict[ProviderKind, ProviderSpec] = {
    spec.kind: spec
    for spec in (
        GOOGLE,
        FACEBOOK,
        APPLE,
        GITHUB,
        LINKEDIN,
        TWITTER,
        DISCORD,
        MICROSOFT,
        GENERIC,
    )
}


def spec_for(kind: str) -> ProviderSpec:
    """Look up a built-in variant by its tag.

    Raises:
        UnsupportedProviderError: If no variant has this tag
    """
    try:
        return CATALOG[ProviderKind(kind)]
    except ValueError as e:
        raise UnsupportedProviderError(
            f"Unsupported provider kind: {kind}", kind=kind
        ) from e
