#!/usr/bin/env python3
"""epicflow CLI entrypoint."""

import sys
import argparse
import logging
from pathlib import Path

from epicflow import git
from epicflow.lib.config import ProjectConfig, load_project_config
from epicflow.lib.steps_config import load_steps_config
from epicflow.lib.validate import ValidationError
from epicflow.documents.store import DocumentStore
from epicflow.workflow.lifecycle import EpicLifecycle
from epicflow.workflow.preflight import PreflightChecker
from epicflow.workflow.steps import SubprocessStepRunner
from epicflow.commands import checks as cmd_checks_module
from epicflow.commands import complete as cmd_complete_module
from epicflow.commands import docs as cmd_docs_module
from epicflow.commands import epic as cmd_epic_module
from epicflow.commands import list as cmd_list_module
from epicflow.commands import pr as cmd_pr_module
from epicflow.commands import start as cmd_start_module


def get_repo_path(args) -> Path:
    """Repository root from --repo, else the git top-level of the cwd."""
    start = Path(args.repo).resolve() if args.repo else Path.cwd()
    root = git.get_repo_root(start)
    if root is None:
        print(f"ERROR: {start} is not inside a git repository", file=sys.stderr)
        sys.exit(2)
    return root


def get_project_config(args) -> ProjectConfig:
    repo_path = get_repo_path(args)
    try:
        return load_project_config(repo_path)
    except (ValueError, ValidationError) as e:
        print(f"ERROR: Invalid project config: {e}", file=sys.stderr)
        sys.exit(2)


def build_lifecycle(config: ProjectConfig) -> EpicLifecycle:
    """Wire the real store, runner and preflight checker for a repository."""
    runner = SubprocessStepRunner(
        config.repo_path,
        load_steps_config(config.repo_path),
        timeout=config.step_timeout,
        remote=config.remote,
    )
    preflight = PreflightChecker(
        config.repo_path,
        config.default_branch,
        remote=config.remote,
        fetch=config.fetch_before_check,
    )
    return EpicLifecycle(config, DocumentStore(config.docs_dir), runner, preflight)


def get_lifecycle(args) -> EpicLifecycle:
    return build_lifecycle(get_project_config(args))


def cmd_create_epic(args):
    return cmd_epic_module.cmd_create_epic(args, get_lifecycle(args))


def cmd_start(args):
    return cmd_start_module.cmd_start(args, get_lifecycle(args))


def cmd_start_checks(args):
    return cmd_checks_module.cmd_start_checks(args, get_lifecycle(args))


def cmd_create_changelog(args):
    return cmd_docs_module.cmd_create_changelog(args, get_lifecycle(args))


def cmd_document_epic(args):
    return cmd_docs_module.cmd_document_epic(args, get_lifecycle(args))


def cmd_complete_epic(args):
    return cmd_complete_module.cmd_complete_epic(args, get_lifecycle(args))


def cmd_create_pr(args):
    return cmd_pr_module.cmd_create_pr(args, get_lifecycle(args))


def cmd_list(args):
    return cmd_list_module.cmd_list(args, get_lifecycle(args))


def cmd_status(args):
    return cmd_list_module.cmd_status(args, get_lifecycle(args))


def _add_doc_options(parser, learnings: bool):
    parser.add_argument('slug', help='Epic slug (e.g. checkout-flow)')
    parser.add_argument('--pr-url', help='Pull request link (looked up with gh if omitted)')
    parser.add_argument('--summary', help='Changelog summary (defaults to the PRD objective)')
    parser.add_argument('--change', action='append', help='Key change for the changelog (repeatable)')
    parser.add_argument('--force', action='store_true', help='Overwrite an existing changelog')
    if learnings:
        parser.add_argument('--learning', '-l', action='append', help='Learning to append (repeatable)')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='epic', description='Epic lifecycle workflow CLI')
    parser.add_argument('--repo', '-C', help='Repository path (default: current directory)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Log lifecycle steps')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # epic create-epic
    p_create = subparsers.add_parser('create-epic', help='Create epic branch and Draft PRD')
    p_create.add_argument('name', nargs='?', help='Epic name (e.g. "Checkout Flow")')
    p_create.add_argument('--answers', '-a', help='YAML/JSON answers file instead of the interview')
    p_create.set_defaults(func=cmd_create_epic)

    # epic start
    p_start = subparsers.add_parser('start', help='Mark an epic In Progress')
    p_start.add_argument('slug', help='Epic slug')
    p_start.set_defaults(func=cmd_start)

    # epic start-checks
    p_checks = subparsers.add_parser('start-checks', help='Run tests, lint and typecheck')
    p_checks.set_defaults(func=cmd_start_checks)

    # epic create-changelog
    p_changelog = subparsers.add_parser('create-changelog', help='Write the epic changelog')
    _add_doc_options(p_changelog, learnings=False)
    p_changelog.set_defaults(func=cmd_create_changelog)

    # epic document-epic
    p_document = subparsers.add_parser('document-epic', help='Write changelog and append learnings')
    _add_doc_options(p_document, learnings=True)
    p_document.set_defaults(func=cmd_document_epic)

    # epic complete-epic
    p_complete = subparsers.add_parser('complete-epic', help='Check, document, commit and mark Complete')
    _add_doc_options(p_complete, learnings=True)
    p_complete.set_defaults(func=cmd_complete_epic)

    # epic create-pr
    p_pr = subparsers.add_parser('create-pr', help='Push the epic branch and open a PR')
    p_pr.add_argument('slug', nargs='?', help='Epic slug (default: epic of the current branch)')
    p_pr.set_defaults(func=cmd_create_pr)

    # epic list
    p_list = subparsers.add_parser('list', help='List epics')
    p_list.set_defaults(func=cmd_list)

    # epic status
    p_status = subparsers.add_parser('status', help='Show epic status')
    p_status.add_argument('slug', help='Epic slug')
    p_status.set_defaults(func=cmd_status)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
