#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: MySQL connection pool for the account store.
#
"""
MySQL connection pool for the account store.
"""

import logging

import mysql.connector.pooling
from mysql.connector import Error
from mysql.connector.constants import ClientFlag

from sulabh_session.config import DatabaseSettings
from sulabh_session.infrastructure.unit_of_work import UnitOfWork


logger = logging.getLogger("uvicorn.error")


class ConnectionPool:
    """
    Lazily created MySQL connection pool.

    Connections report matched (not changed) rows, so conditional updates
    can be checked through cursor.rowcount.
    """

    def __init__(self, settings: DatabaseSettings, pool_name: str = "sulabh_accounts"):
        """
        Initializes the pool wrapper.

        Args:
            settings: Database settings (host, port, credentials, pool size)
            pool_name: Name of the MySQL pool
        """
        self.settings = settings
        self.pool_name = pool_name
        self._pool = None

    def open(self) -> None:
        """
        Creates the pool.

        Raises:
            Error: On DB connection error
        """
        if self._pool is not None:
            return
        try:
            self._pool = mysql.connector.pooling.MySQLConnectionPool(
                pool_name=self.pool_name,
                pool_size=self.settings.pool_size,
                host=self.settings.host,
                port=self.settings.port,
                user=self.settings.user,
                password=self.settings.password,
                database=self.settings.name,
                autocommit=False,
                client_flags=[ClientFlag.FOUND_ROWS],
                use_pure=True,
            )
            logger.info("MySQL pool '%s' ready (%s connections)", self.pool_name, self.settings.pool_size)
        except Error as e:
            raise Error(f"Error creating connection pool: {e}")

    def get_connection(self):
        """
        Gets a connection from the pool, opening the pool on first use.

        Returns:
            Pooled MySQL connection (close() returns it to the pool)
        """
        if self._pool is None:
            self.open()
        return self._pool.get_connection()

    def unit_of_work(self) -> UnitOfWork:
        """Transaction scope over one pooled connection."""
        return UnitOfWork(self.get_connection())

    def close(self) -> None:
        """Drops the pool; connections are closed when released."""
        self._pool = None
