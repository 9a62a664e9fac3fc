#!/usr/bin/env python3
"""
Command line entry point for the Sulabh session service.
Creates the account schema, runs a one-off session sweep or launches the API.
"""

import sys
import asyncio
import argparse
import logging

from sulabh_session.config import load_settings


def main(argv=None):
   """Main function with argument parsing"""
   parser = argparse.ArgumentParser(
      description='Sulabh session service (uses cfg/config.yaml for defaults)',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
   Examples:
     sulabh-session --setup --config cfg/config.yaml
     sulabh-session --sweep
     sulabh-session --api --host 0.0.0.0 --port 5000

   Note: SULABH_JWT_SECRET, SULABH_ENV, SULABH_DB_BACKEND and SULABH_DB_PASSWORD
      override the matching config values (a .env file is honoured).
      """
   )
   parser.add_argument('--config',
                       default='cfg/config.yaml',
                       help='Path to config file (default: cfg/config.yaml)')
   parser.add_argument('--setup',
                       action="store_true",
                       help='Create the account and session tables (mysql backend only)')
   parser.add_argument('--sweep',
                       action="store_true",
                       help='Remove expired session records once and exit')
   parser.add_argument('--api',
                       action="store_true",
                       help='Launch the web API server (FastAPI)')
   parser.add_argument('--host',
                       default='127.0.0.1',
                       help='API server host (default: 127.0.0.1)')
   parser.add_argument('--port',
                       type=int,
                       default=5000,
                       help='API server port (default: 5000)')

   args = parser.parse_args(argv)

   if not (args.setup or args.sweep or args.api):
      parser.error("one of --setup, --sweep or --api is required")

   logging.basicConfig(
      level=logging.INFO,
      format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
   )

   try:
      settings = load_settings(args.config)
   except (RuntimeError, ValueError) as e:
      print(f"✗ Invalid configuration: {e}")
      return 1

   if args.setup:
      if settings.database.backend != "mysql":
         print("Nothing to set up: the memory backend needs no schema")
      else:
         from sulabh_session.infrastructure.connection_pool import ConnectionPool
         from sulabh_session.repositories.mysql_account_repository import MySQLAccountRepository

         pool = ConnectionPool(settings.database)
         try:
            MySQLAccountRepository(pool).ensure_schema()
         except Exception as e:
            print(f"✗ Schema creation failed: {e}")
            return 1
         finally:
            pool.close()
         print(f"✓ Schema ready in database '{settings.database.name}'")

   if args.sweep:
      from sulabh_session.api.main import build_repository
      from sulabh_session.auth.lifecycle import SessionLifecycleManager

      repository, pool = build_repository(settings)
      lifecycle = SessionLifecycleManager.from_settings(settings.auth, repository)
      try:
         result = asyncio.run(lifecycle.sweep())
      finally:
         if pool is not None:
            pool.close()
      print(f"✓ Removed {result.session_records} expired session record(s)")

   if args.api:
      import uvicorn
      from sulabh_session.api.main import create_app

      print(f"Starting Sulabh session API on http://{args.host}:{args.port}")
      print(f"API Documentation: http://{args.host}:{args.port}/api/docs")

      uvicorn.run(
         create_app(settings),
         host=args.host,
         port=args.port,
         log_level="info"
      )

   return 0


if __name__ == "__main__":
   sys.exit(main())
