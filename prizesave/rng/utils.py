import os
import logging
import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Ensure environment variables from .env are loaded when this module is imported.
load_dotenv()


def _base_url() -> str:
    fqdn = os.environ.get("RNG_BASE_FQDN")
    if not fqdn:
        raise RuntimeError("Environment variable 'RNG_BASE_FQDN' is not set")
    return "https://" + fqdn


def open_session():
    """Open a requests session to the randomness oracle and fetch CSRF.

    Returns
    -------
    tuple[requests.Session, str]
        The initialized session and CSRF token string.

    Raises
    ------
    RuntimeError
        If ``RNG_BASE_FQDN`` is not set or the session cannot be established,
        including when the server returns no cookies or a CSRF token cannot be
        retrieved. Any underlying exception is re-raised as a ``RuntimeError``
        with context.
    """
    url = _base_url()

    session = requests.Session()
    try:
        response = session.get(url)
        response.raise_for_status()

        cookies = session.cookies
        if cookies:
            # Do not log cookie values; just count for diagnostics.
            logger.debug(f"Received {len(cookies)} cookies from oracle")
        else:
            raise RuntimeError("Oracle did not return any cookies")

        csrf_token = response.cookies.get("csrftoken")
        if csrf_token:
            logger.debug("CSRF token acquired")
            return session, csrf_token
        else:
            raise RuntimeError("Oracle did not return a CSRF token")

    except Exception as e:
        logger.critical(f"Error occurred while starting oracle session: {e}")
        raise RuntimeError(f"Failed to establish oracle session: {e}") from e


def get_jwt_token(session: requests.Session) -> str:
    """Obtain a JWT access token using the oracle operator credentials.

    Parameters
    ----------
    session : requests.Session
        A live session for the randomness oracle.

    Returns
    -------
    str
        The JWT access token string.

    Raises
    ------
    RuntimeError
        If required environment variables are not set.
    requests.HTTPError
        If the login request fails.
    KeyError, ValueError
        If the response payload does not include an ``"access"`` field or is malformed.
    """
    credential = {
        "username": os.environ.get("RNG_ADMIN_USERNAME"),
        "password": os.environ.get("RNG_ADMIN_PASSWORD"),
    }
    # Never log raw credentials
    logger.debug("Attempting JWT login with configured oracle username")

    url = _base_url() + "/api/v1/auth/jwt-token"
    response = session.post(url, json=credential)
    response.raise_for_status()

    logger.debug("JWT token response received (content redacted)")

    return response.json()["access"]
