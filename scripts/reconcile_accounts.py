#!/usr/bin/env python3
"""Re-apply every profile's authorization fields to its identity record."""

import argparse
import json
import logging
import sys

from adapters.db.firestore import FirestoreServiceFactory
from adapters.providers import Auth0IdentityProvider
from app_platform.config.portal import PortalConfig
from apps.portal_service.services import PropagationService, ReconciliationService

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def build_service(config: PortalConfig) -> ReconciliationService:
    factory = FirestoreServiceFactory(config=config)
    profiles = factory.get_profile_service()
    propagation = PropagationService(Auth0IdentityProvider(config.auth0), profiles)
    return ReconciliationService(profiles, propagation)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Reconcile identity claims with profile documents')
    parser.add_argument('--config', help='JSON config file (defaults to environment variables)')
    parser.add_argument('--dry-run', action='store_true', help='List profiles without touching identities')
    args = parser.parse_args(argv)

    config = PortalConfig.from_file(args.config) if args.config else PortalConfig.from_env()
    config.validate()

    report = build_service(config).sweep(dry_run=args.dry_run)
    print(json.dumps(report.to_dict(), indent=2, sort_keys=True))

    if not report.ok:
        logger.error(f"{len(report.failed)} profiles could not be reconciled")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
