"""
Authentication module — Supports interactive, username/password and certificate auth.
Uses MSAL for token acquisition against Microsoft Identity Platform.

Two sessions are opened: the admin session (required) and the governance
session (best-effort). The admin session holds one token per audience:
BAP and Power Apps share one, the Flow API has its own.
"""

from __future__ import annotations

import base64
import getpass
import logging
import os
from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives.serialization import pkcs12, Encoding, PrivateFormat, NoEncryption
from cryptography.hazmat.primitives.hashes import SHA1
import msal

from ..config import AuthConfig

logger = logging.getLogger("power_platform_inventory.auth")


class AuthenticationError(Exception):
    """Raised when authentication fails."""
    pass


@dataclass
class Sessions:
    """Access tokens for the admin and governance sessions."""
    admin_token: str
    flow_token: Optional[str] = None
    governance_token: Optional[str] = None


class Authenticator:
    """
    Handles MSAL-based authentication for the Power Platform admin APIs.
    Supports:
      - Interactive authentication (device code flow)
      - Username/password (non-interactive) authentication
      - Certificate-based app-only authentication
    """

    def __init__(self, config: AuthConfig):
        self.config = config
        self._app = None
        self._account: Optional[dict] = None

    def connect(self) -> Sessions:
        """
        Open both sessions. Failure of the admin session raises
        AuthenticationError; failure of the governance session is logged
        and leaves governance_token unset.
        """
        admin_token = self.acquire_token(self.config.admin_scopes)
        flow_token = self.acquire_token(self.config.flow_scopes)
        logger.info("Admin session established.")

        try:
            governance_token = self.acquire_token(self.config.governance_scopes)
            logger.info("Governance session established.")
        except AuthenticationError as e:
            logger.warning(
                f"Governance sign-in failed; DLP policies and role assignments "
                f"will not be collected: {e}"
            )
            governance_token = None

        return Sessions(
            admin_token=admin_token,
            flow_token=flow_token,
            governance_token=governance_token,
        )

    def acquire_token(self, scopes: list[str]) -> str:
        """Acquire an access token for the given scopes based on configured auth mode."""
        try:
            if self.config.mode == "interactive":
                return self._acquire_interactive_token(scopes)
            elif self.config.mode == "password":
                return self._acquire_password_token(scopes)
            elif self.config.mode == "certificate":
                return self._acquire_certificate_token(scopes)
        except AuthenticationError:
            raise
        except Exception as e:
            raise AuthenticationError(f"Token request failed: {type(e).__name__}: {e}") from e
        raise AuthenticationError(f"Unknown auth mode: {self.config.mode}")

    def _public_app(self) -> msal.PublicClientApplication:
        if self._app is None:
            self._app = msal.PublicClientApplication(
                client_id=self.config.client_id,
                authority=self.config.authority,
            )
        return self._app

    def _acquire_silent(self, scopes: list[str]) -> Optional[dict]:
        """Reuse the signed-in account for a second audience, if possible."""
        if not self._account:
            return None
        return self._public_app().acquire_token_silent(scopes, account=self._account)

    def _acquire_password_token(self, scopes: list[str]) -> str:
        """Acquire token with a username and password."""
        creds = self.config.password
        if not creds or not creds.username or not creds.password:
            raise AuthenticationError("Username/password auth requires both values.")

        logger.info(f"Authenticating as {creds.username} (non-interactive)...")
        app = self._public_app()
        result = self._acquire_silent(scopes)
        if not result or "access_token" not in result:
            result = app.acquire_token_by_username_password(
                creds.username, creds.password, scopes=scopes
            )
        return self._token_from_result(result, "Password auth")

    def _acquire_interactive_token(self, scopes: list[str]) -> str:
        """Acquire token using the device code flow, reusing the account if signed in."""
        result = self._acquire_silent(scopes)
        if result and "access_token" in result:
            return self._token_from_result(result, "Interactive auth")

        logger.info("Initiating device code authentication flow...")
        app = self._public_app()
        flow = app.initiate_device_flow(scopes=scopes)
        if "user_code" not in flow:
            raise AuthenticationError(
                f"Device code flow failed: {flow.get('error_description', 'Unknown')}"
            )

        print(f"\n{'='*60}")
        print(f"  To sign in, open: {flow['verification_uri']}")
        print(f"  Enter code: {flow['user_code']}")
        print(f"{'='*60}\n")

        result = app.acquire_token_by_device_flow(flow)
        return self._token_from_result(result, "Interactive auth")

    def _token_from_result(self, result: Optional[dict], label: str) -> str:
        if result and "access_token" in result:
            if self._app is not None and not self._account:
                accounts = self._app.get_accounts()
                if accounts:
                    self._account = accounts[0]
            logger.debug(f"{label} successful.")
            return result["access_token"]
        result = result or {}
        error = result.get("error_description", result.get("error", "Unknown"))
        raise AuthenticationError(f"{label} failed: {error}")

    def _acquire_certificate_token(self, scopes: list[str]) -> str:
        """Acquire token using certificate-based client credentials."""
        cert_config = self.config.certificate
        if not cert_config:
            raise AuthenticationError("Certificate auth config not provided.")

        if self._app is None:
            logger.info("Authenticating with certificate-based app credentials...")
            thumbprint, private_key_pem = self._load_certificate()
            self._app = msal.ConfidentialClientApplication(
                client_id=cert_config.client_id,
                authority=f"https://login.microsoftonline.com/{cert_config.tenant_id}",
                client_credential={
                    "thumbprint": thumbprint,
                    "private_key": private_key_pem,
                },
            )

        result = self._app.acquire_token_for_client(scopes=scopes)
        return self._token_from_result(result, "Certificate auth")

    def _load_certificate(self) -> tuple[str, str]:
        """Load a base64-encoded PFX and return (thumbprint, private key PEM)."""
        cert_config = self.config.certificate
        cert_path = cert_config.certificate_path
        password = cert_config.certificate_password
        if not password:
            password = os.environ.get("PP_CERT_PASSWORD", "")
        if not password:
            password = getpass.getpass("Enter the certificate password: ")

        try:
            with open(cert_path, "r") as f:
                cert_base64 = f.read().strip()

            cert_bytes = base64.b64decode(cert_base64)
            password_bytes = password.encode("utf-8") if password else None

            private_key, certificate, _ = pkcs12.load_key_and_certificates(
                cert_bytes, password_bytes
            )

            private_key_pem = private_key.private_bytes(
                Encoding.PEM, PrivateFormat.PKCS8, NoEncryption()
            ).decode("utf-8")
            thumbprint = certificate.fingerprint(SHA1()).hex()

            logger.info(f"Certificate loaded. Thumbprint: {thumbprint}")

        except FileNotFoundError:
            raise AuthenticationError(f"Certificate file not found: {cert_path}.")
        except Exception as e:
            raise AuthenticationError(f"Failed to load certificate: {e}")

        return thumbprint, private_key_pem
