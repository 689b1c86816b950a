# ABOUTME: OAuth 2.0 sign-in with Google and LinkedIn as a two-step exchange.
# ABOUTME: authorization_url() starts the round-trip; handle_callback() returns an explicit OAuthResult.

import logging
from dataclasses import dataclass
from urllib.parse import urlencode
import requests
from requests.exceptions import RequestException

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

@dataclass(frozen=True)
class OAuthProvider:
    name: str
    authorize_url: str
    token_url: str
    userinfo_url: str
    scope: str
    client_id: str
    client_secret: str

@dataclass(frozen=True)
class OAuthProfile:
    provider: str
    provider_id: str
    email: str | None
    name: str | None
    picture: str | None
    access_token: str
    email_verified: bool = False

@dataclass(frozen=True)
class OAuthResult:
    ok: bool
    profile: OAuthProfile | None = None
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> "OAuthResult":
        return cls(ok=False, error=error)

# Both providers speak OpenID Connect, so the userinfo payload has the same shape
_ENDPOINTS = {
    'google': {
        'authorize_url': 'https://accounts.google.com/o/oauth2/v2/auth',
        'token_url': 'https://oauth2.googleapis.com/token',
        'userinfo_url': 'https://openidconnect.googleapis.com/v1/userinfo',
        'scope': 'openid profile email',
    },
    'linkedin': {
        'authorize_url': 'https://www.linkedin.com/oauth/v2/authorization',
        'token_url': 'https://www.linkedin.com/oauth/v2/accessToken',
        'userinfo_url': 'https://api.linkedin.com/v2/userinfo',
        'scope': 'openid profile email',
    },
}

def get_provider(name: str, config) -> OAuthProvider | None:
    """Build a provider from app config; None when unknown or not configured."""
    endpoints = _ENDPOINTS.get(name)
    if endpoints is None:
        return None
    prefix = name.upper()
    client_id = config.get(f"{prefix}_CLIENT_ID")
    client_secret = config.get(f"{prefix}_CLIENT_SECRET")
    if not client_id or not client_secret:
        logging.warning(f"OAuth provider '{name}' is not configured.")
        return None
    return OAuthProvider(name=name, client_id=client_id, client_secret=client_secret, **endpoints)

def authorization_url(provider: OAuthProvider, redirect_uri: str, state: str) -> str:
    """Step 1: where to send the browser."""
    params = {
        'response_type': 'code',
        'client_id': provider.client_id,
        'redirect_uri': redirect_uri,
        'scope': provider.scope,
        'state': state,
    }
    return f"{provider.authorize_url}?{urlencode(params)}"

def handle_callback(provider: OAuthProvider, args, redirect_uri: str, expected_state: str | None) -> OAuthResult:
    """Step 2: turn the provider's callback query into a profile, or a failure."""
    if args.get('error'):
        logging.warning(f"{provider.name} reported an OAuth error: {args.get('error')} {args.get('error_description', '')}")
        return OAuthResult.failure(args.get('error_description') or args.get('error'))

    code = args.get('code')
    if not code:
        logging.warning(f"{provider.name} callback arrived without an authorization code.")
        return OAuthResult.failure("Missing authorization code.")

    if not expected_state or args.get('state') != expected_state:
        logging.warning(f"{provider.name} callback state mismatch.")
        return OAuthResult.failure("Sign-in request could not be verified.")

    token_payload = {
        'grant_type': 'authorization_code',
        'code': code,
        'redirect_uri': redirect_uri,
        'client_id': provider.client_id,
        'client_secret': provider.client_secret,
    }
    logging.info(f"Exchanging {provider.name} authorization code at {provider.token_url}")

    try:
        response = requests.post(provider.token_url, data=token_payload, headers={'Accept': 'application/json'}, timeout=15)
        response.raise_for_status()
        access_token = response.json().get('access_token')
        if not access_token:
            logging.error(f"{provider.name} token response had no access_token.")
            return OAuthResult.failure("Provider did not return an access token.")

        response = requests.get(
            provider.userinfo_url,
            headers={'Authorization': f'Bearer {access_token}', 'Accept': 'application/json'},
            timeout=15,
        )
        response.raise_for_status()
        info = response.json()
    except RequestException as e:
        logging.error(f"Error during {provider.name} OAuth exchange: {e}")
        return OAuthResult.failure("Could not reach the sign-in provider.")
    except ValueError as e:
        logging.error(f"Could not parse {provider.name} OAuth response as JSON: {e}")
        return OAuthResult.failure("Unexpected response from the sign-in provider.")

    provider_id = info.get('sub') or info.get('id')
    if not provider_id:
        logging.error(f"{provider.name} userinfo had no subject id. Keys: {list(info.keys())}")
        return OAuthResult.failure("Provider did not identify the account.")

    email = info.get('email')
    profile = OAuthProfile(
        provider=provider.name,
        provider_id=str(provider_id),
        email=email.strip().lower() if email else None,
        name=info.get('name'),
        picture=info.get('picture'),
        access_token=access_token,
        # OIDC userinfo sends a boolean; anything else counts as unverified
        email_verified=info.get('email_verified') is True,
    )
    logging.info(f"{provider.name} sign-in succeeded for account {profile.provider_id}")
    return OAuthResult(ok=True, profile=profile)
