"""Environment configuration for GitHub data collection."""

import os

from dotenv import load_dotenv

load_dotenv()

# Auth: PAT (simple) or GitHub App (higher rate limits)
GITHUB_TOKEN = os.environ.get("GITHUB_TOKEN")

# GitHub App auth (optional, takes precedence over PAT if all are set)
GITHUB_APP_ID = os.environ.get("GITHUB_APP_ID")
GITHUB_APP_PRIVATE_KEY_PATH = os.environ.get("GITHUB_APP_PRIVATE_KEY_PATH")
GITHUB_APP_INSTALLATION_ID = os.environ.get("GITHUB_APP_INSTALLATION_ID")

# Analysis overrides (prmetrics.yaml supplies the rest)
REVIEWER_USERNAME = os.environ.get("REVIEWER_USERNAME")
ANALYSIS_START_DATE = os.environ.get("ANALYSIS_START_DATE")
ANALYSIS_END_DATE = os.environ.get("ANALYSIS_END_DATE")
OUTPUT_FORMAT = os.environ.get("OUTPUT_FORMAT")
OUTPUT_DIR = os.environ.get("OUTPUT_DIR")

# Collection settings
PER_PAGE = 100  # Max items per API page
MAX_PAGES = 100  # Hard stop for pagination loops
CONCURRENT_PRS = 4  # PRs whose comments are fetched concurrently
CONCURRENT_REACTION_REQUESTS = 8  # Reaction lookups in flight per PR
