#!/usr/bin/env python3
"""
Delete memberships whose uid is no longer in Firebase Auth.

Usage:
    python tools/cleanup_orphan_members.py --serviceAccount=/path/to/serviceAccountKey.json [--communityId=COMMUNITY_ID] [--dryRun]
"""
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from membership_admin.jobs.cleanup_orphan_members import main

if __name__ == "__main__":
    sys.exit(main())
