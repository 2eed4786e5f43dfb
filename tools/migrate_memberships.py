#!/usr/bin/env python3
"""
Move memberships to deterministic `{communityId}_{userId}` ids.

Usage:
    python tools/migrate_memberships.py --dryRun
    python tools/migrate_memberships.py [--deleteOld] [--overwrite]

env: GOOGLE_APPLICATION_CREDENTIALS, or run from an authenticated environment
"""
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from membership_admin.jobs.migrate_memberships import main

if __name__ == "__main__":
    sys.exit(main())
