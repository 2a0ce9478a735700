#!/usr/bin/env python3
"""
GitHub to Gitea - Migrate all repositories a GitHub user owns into Gitea.

Discovers every owned repository through the GitHub API, creates a matching
repository under the Gitea user (an existing one is reused) and transfers the
complete history with git clone --mirror / git push --mirror. Safe to rerun.
"""

from cli import main

if __name__ == "__main__":
    main()
