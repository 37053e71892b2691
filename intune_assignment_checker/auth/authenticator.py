"""
Authentication module — app-only (certificate or client secret) and delegated
device-code sign-in against the Microsoft identity platform, via MSAL.
"""

from __future__ import annotations

import base64
import getpass
import logging
import os
from typing import Optional

import msal
from cryptography.hazmat.primitives.hashes import SHA1
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    pkcs12,
)

from ..config import AuthConfig, CertificateAuth, REQUIRED_PERMISSIONS

logger = logging.getLogger("intune_assignment_checker.auth")

APP_SCOPES = ["https://graph.microsoft.com/.default"]
AUTHORITY = "https://login.microsoftonline.com/{tenant_id}"


class AuthenticationError(Exception):
    """Raised when no Graph session can be established."""
    pass


def load_certificate_credential(cert_config: CertificateAuth) -> dict[str, str]:
    """
    Read a base64-encoded PFX and return the MSAL client_credential dict
    (thumbprint and PEM private key).
    """
    password = cert_config.certificate_password or os.environ.get("INTUNE_CERT_PASSWORD", "")
    if not password:
        password = getpass.getpass("Enter the certificate password: ")

    try:
        with open(cert_config.certificate_path, "r", encoding="utf-8") as f:
            cert_bytes = base64.b64decode(f.read().strip())
        private_key, certificate, _ = pkcs12.load_key_and_certificates(
            cert_bytes, password.encode("utf-8") if password else None
        )
    except FileNotFoundError:
        raise AuthenticationError(
            f"Certificate file not found: {cert_config.certificate_path}"
        )
    except ValueError as e:
        raise AuthenticationError(f"Failed to load certificate: {e}")

    if private_key is None or certificate is None:
        raise AuthenticationError("Certificate file holds no key pair")

    thumbprint = certificate.fingerprint(SHA1()).hex()
    logger.info(f"Certificate loaded. Thumbprint: {thumbprint}")
    return {
        "thumbprint": thumbprint,
        "private_key": private_key.private_bytes(
            Encoding.PEM, PrivateFormat.PKCS8, NoEncryption()
        ).decode("utf-8"),
    }


class Authenticator:
    """
    Handles MSAL-based authentication for Microsoft Graph.
    Supports:
      - Certificate-based app-only authentication
      - Client-secret app-only authentication
      - Delegated device code flow
    """

    def __init__(self, config: AuthConfig):
        self.config = config
        self._access_token: Optional[str] = None

    def acquire_token(self) -> str:
        """Acquire an access token based on the configured auth mode."""
        if self.config.mode == "certificate":
            return self._acquire_certificate_token()
        if self.config.mode == "secret":
            return self._acquire_secret_token()
        if self.config.mode == "delegated":
            return self._acquire_delegated_token()
        raise AuthenticationError(f"Unknown auth mode: {self.config.mode}")

    def _acquire_certificate_token(self) -> str:
        cert_config = self.config.certificate
        if not cert_config:
            raise AuthenticationError("Certificate auth config not provided.")

        logger.info("Authenticating with certificate-based app credentials...")
        app = msal.ConfidentialClientApplication(
            client_id=cert_config.client_id,
            authority=AUTHORITY.format(tenant_id=cert_config.tenant_id),
            client_credential=load_certificate_credential(cert_config),
        )
        return self._token_from(app.acquire_token_for_client(scopes=APP_SCOPES), "Certificate")

    def _acquire_secret_token(self) -> str:
        secret_config = self.config.secret
        if not secret_config or not secret_config.client_secret:
            raise AuthenticationError("Client secret auth config not provided.")

        logger.info("Authenticating with client secret...")
        app = msal.ConfidentialClientApplication(
            client_id=secret_config.client_id,
            authority=AUTHORITY.format(tenant_id=secret_config.tenant_id),
            client_credential=secret_config.client_secret,
        )
        return self._token_from(app.acquire_token_for_client(scopes=APP_SCOPES), "Client secret")

    def _acquire_delegated_token(self) -> str:
        deleg_config = self.config.delegated
        if not deleg_config:
            raise AuthenticationError("Delegated auth config not provided.")

        logger.info("Initiating device code authentication flow...")
        app = msal.PublicClientApplication(
            client_id=deleg_config.client_id,
            authority=AUTHORITY.format(tenant_id=deleg_config.tenant_id),
        )

        flow = app.initiate_device_flow(scopes=deleg_config.scopes)
        if "user_code" not in flow:
            raise AuthenticationError(
                f"Device code flow failed: {flow.get('error_description', 'Unknown')}"
            )

        print(f"\n{'='*60}")
        print(f"  To sign in, open: {flow['verification_uri']}")
        print(f"  Enter code: {flow['user_code']}")
        print(f"{'='*60}\n")

        return self._token_from(app.acquire_token_by_device_flow(flow), "Delegated")

    def _token_from(self, result: dict, label: str) -> str:
        if "access_token" in result:
            self._access_token = result["access_token"]
            logger.info(f"{label} authentication successful.")
            return self._access_token
        error = result.get("error_description", result.get("error", "Unknown"))
        raise AuthenticationError(f"{label} auth failed: {error}")

    @staticmethod
    def list_required_permissions() -> dict[str, str]:
        """Return the map of required Graph API permissions."""
        return REQUIRED_PERMISSIONS
