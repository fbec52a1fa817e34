"""Shared constants for epicflow."""

import re

# Epic slug validation
SLUG_PATTERN = re.compile(r'^[a-z0-9][a-z0-9-]*$')
MAX_SLUG_LEN = 48

# Epic document file names: "007-checkout-flow.md"
EPIC_FILE_RE = re.compile(r'^(\d+)-(.+)\.md$')
EPIC_NUMBER_WIDTH = 3

# Steps the external runner knows, in workflow order
CHECK_STEPS = ("tests", "lint", "typecheck")
VCS_STEPS = ("vcs.commit", "vcs.push", "pr.create")
ALL_STEPS = CHECK_STEPS + VCS_STEPS

# Preflight failure reasons
DIRTY_WORKING_TREE = "DirtyWorkingTree"
ON_DEFAULT_BRANCH = "OnDefaultBranch"
BRANCH_BEHIND_REMOTE = "BranchBehindRemote"
DETACHED_HEAD = "DetachedHead"

# Config locations, relative to the repository root
CONFIG_DIR = ".epicflow"
PROJECT_ENV = "project.env"
STEPS_YAML = "steps.yaml"
