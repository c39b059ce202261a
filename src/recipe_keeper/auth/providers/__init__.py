"""Authentication providers package.

Providers implement the AuthProvider protocol; the factory picks one
from ``auth.mode``:

- LocalJWTAuthProvider: verifies access tokens with the shared secret
- HeaderAuthProvider: reads the user from headers (development only)
- DisabledAuthProvider: lets every request through (testing only)
"""

from recipe_keeper.auth.providers.exceptions import (
    AuthenticationError,
    AuthProviderError,
    AuthServiceUnavailableError,
    ConfigurationError,
    TokenExpiredError,
    TokenInvalidError,
)
from recipe_keeper.auth.providers.factory import (
    ANONYMOUS_USER_ID,
    DisabledAuthProvider,
    create_auth_provider,
    get_auth_provider,
    initialize_auth_provider,
    set_auth_provider,
    shutdown_auth_provider,
)
from recipe_keeper.auth.providers.header import HeaderAuthProvider
from recipe_keeper.auth.providers.local_jwt import LocalJWTAuthProvider
from recipe_keeper.auth.providers.models import AuthResult
from recipe_keeper.auth.providers.protocol import AuthProvider


__all__ = [
    "ANONYMOUS_USER_ID",
    "AuthProvider",
    "AuthProviderError",
    "AuthResult",
    "AuthServiceUnavailableError",
    "AuthenticationError",
    "ConfigurationError",
    "DisabledAuthProvider",
    "HeaderAuthProvider",
    "LocalJWTAuthProvider",
    "TokenExpiredError",
    "TokenInvalidError",
    "create_auth_provider",
    "get_auth_provider",
    "initialize_auth_provider",
    "set_auth_provider",
    "shutdown_auth_provider",
]
