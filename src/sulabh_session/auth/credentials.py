#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Password hashing and verification.
#
"""
Password hashing and verification (bcrypt).
"""

import bcrypt

from sulabh_session.auth.errors import CredentialBackendError


# bcrypt only looks at the first 72 bytes of its input.
MAX_SECRET_BYTES = 72


class CredentialVerifier:
    """
    Salted, adaptive password hashing.

    A mismatch is a boolean outcome; backend failures raise
    CredentialBackendError.
    """

    def __init__(self, rounds: int = 12):
        """
        Initializes the verifier.

        Args:
            rounds: bcrypt cost factor (log2 of iterations)
        """
        self.rounds = rounds
        self._dummy_hash = self.hash("dummy-password-for-timing")

    def hash(self, secret: str) -> str:
        """
        Hashes a secret with a fresh salt.

        Args:
            secret: Cleartext password

        Returns:
            bcrypt digest as string
        """
        encoded = secret.encode("utf-8")
        if len(encoded) > MAX_SECRET_BYTES:
            raise ValueError(f"Password exceeds {MAX_SECRET_BYTES} bytes")
        try:
            return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")
        except Exception as exc:
            raise CredentialBackendError(f"Password hashing failed: {exc}") from exc

    def verify(self, secret: str, digest: str) -> bool:
        """
        Compares a secret against a stored digest in constant time.

        Args:
            secret: Cleartext password
            digest: Stored bcrypt digest

        Returns:
            True if the secret matches
        """
        encoded = secret.encode("utf-8")
        if len(encoded) > MAX_SECRET_BYTES:
            self.verify_dummy(secret)
            return False
        try:
            return bcrypt.checkpw(encoded, digest.encode("utf-8"))
        except Exception as exc:
            raise CredentialBackendError(f"Password verification failed: {exc}") from exc

    def verify_dummy(self, secret: str) -> None:
        """Spends one comparison on an unknown account so timing does not reveal it."""
        encoded = secret.encode("utf-8")[:MAX_SECRET_BYTES]
        try:
            bcrypt.checkpw(encoded, self._dummy_hash.encode("utf-8"))
        except Exception as exc:
            raise CredentialBackendError(f"Password verification failed: {exc}") from exc
