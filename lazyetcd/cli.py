"""Command-line front door for lazyetcd.

Parses CLI options and resolves which etcd cluster to open (a saved
profile, an ad-hoc endpoint, or the in-process demo store). Then either
prints a one-shot tree dump or dispatches into the interactive runtime.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass

from . import __version__
from . import config as config_store
from .controller import ProfileOps, config_profile_ops
from .debug_log import configure_logging
from .errors import LazyEtcdError, NoDefaultProfileError, ProfileError
from .keyspace import format_tree_row, project, visible_rows
from .store import InMemoryStore, StoreClient, StoreConfig, StoreFactory, create_etcd_store
from .ui_theme import available_theme_names, resolve_theme

logger = logging.getLogger(__name__)

DEMO_PROFILE_NAME = "demo"
DEMO_ENDPOINT = "memory://demo"
# etcd3 ships protobuf modules generated for the pure-python runtime; must be
# set before the first etcd3 import and leaves an explicit user setting alone.
PROTOBUF_IMPLEMENTATION_ENV = "PROTOCOL_BUFFERS_PYTHON_IMPLEMENTATION"


@dataclass(frozen=True)
class Target:
    """Resolved connection target for this run."""

    store_config: StoreConfig
    profile_name: str
    factory: StoreFactory
    profiles: ProfileOps


def demo_target(store: InMemoryStore | None = None) -> Target:
    """Target backed by one shared in-memory store seeded with sample keys.

    Switching to the ``demo`` profile reconnects to the same store; any other
    name resolves through the saved profiles as usual.
    """
    demo_store = store if store is not None else InMemoryStore.with_demo_data(leader="demo-node")
    demo_config = StoreConfig(endpoints=(DEMO_ENDPOINT,))
    saved = config_profile_ops()

    def factory(store_config: StoreConfig) -> StoreClient:
        if store_config.endpoints == demo_config.endpoints:
            return demo_store
        return create_etcd_store(store_config)

    def resolve(name: str) -> StoreConfig:
        if name == DEMO_PROFILE_NAME:
            return demo_config
        return saved.resolve(name)

    def remember(name: str) -> None:
        if name != DEMO_PROFILE_NAME:
            saved.remember(name)

    profiles = ProfileOps(
        resolve=resolve,
        names=lambda: [DEMO_PROFILE_NAME, *saved.names()],
        remember=remember,
    )
    return Target(demo_config, DEMO_PROFILE_NAME, factory, profiles)


def resolve_target(args: argparse.Namespace) -> Target:
    """Pick the startup target from ``--demo``, ``--endpoint`` or ``--profile``."""
    if args.demo:
        return demo_target()
    profiles = config_profile_ops()
    if args.endpoint:
        profile = config_store.profile_from_endpoint(args.endpoint)
        return Target(profile.to_store_config(), "", create_etcd_store, profiles)
    if args.profile:
        profile = config_store.get_profile(args.profile)
    else:
        try:
            profile = config_store.default_profile()
        except NoDefaultProfileError:
            logger.info("no saved profiles; falling back to %s", config_store.LOCAL_ENDPOINT)
            profile = config_store.default_local_profile()
    return Target(profile.to_store_config(), profile.name, create_etcd_store, profiles)


def render_tree_dump(client: StoreClient, prefix: str = "", no_color: bool = True, theme_name: str | None = None) -> str:
    """Render the fully expanded tree for ``prefix`` as printable text."""
    theme = resolve_theme(theme_name, no_color=no_color)
    root = project(client.list(prefix))
    lines = [format_tree_row(row, set(), True, theme) for row in visible_rows(root, set(), expand_all=True)]
    return "\n".join(lines) + "\n"


def _print_tree(target: Target, prefix: str, no_color: bool, theme_name: str | None) -> None:
    client = target.factory(target.store_config)
    try:
        client.health_check()
        sys.stdout.write(render_tree_dump(client, prefix, no_color=no_color, theme_name=theme_name))
    finally:
        client.close()


def _list_profiles() -> None:
    profiles = config_store.load_profiles()
    if not profiles:
        sys.stdout.write(f"No profiles configured ({config_store.CONFIG_PATH}).\n")
        return
    active = config_store.load_active_profile_name()
    for profile in profiles:
        marker = "*" if profile.name == active else " "
        sys.stdout.write(f"{marker} {profile.display_string()}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazyetcd",
        description="Browse, edit, and watch an etcd keyspace in the terminal.",
    )
    target = parser.add_mutually_exclusive_group()
    target.add_argument("-p", "--profile", default=None, help="Saved connection profile to open.")
    target.add_argument("--endpoint", default=None, help="Connect to HOST:PORT[,HOST:PORT...] without a profile.")
    target.add_argument("--demo", action="store_true", help="Browse an in-process sample keyspace.")
    parser.add_argument("--list-profiles", action="store_true", help="Print saved profiles and exit.")
    parser.add_argument("--init-config", action="store_true", help="Write a config with a local profile and exit.")
    parser.add_argument(
        "--print",
        dest="print_prefix",
        nargs="?",
        const="",
        default=None,
        metavar="PREFIX",
        help="Print the key tree (optionally under PREFIX) and exit.",
    )
    parser.add_argument(
        "--theme",
        default=None,
        help=f"UI theme name ({', '.join(available_theme_names())}).",
    )
    parser.add_argument("--style", default="monokai", help="Pygments style for JSON values.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument("--log-file", default=None, help="Also append log records to this file.")
    parser.add_argument("--log-level", default="INFO", help="Log level (DEBUG, INFO, WARNING, ERROR).")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and launch lazyetcd."""
    os.environ.setdefault(PROTOBUF_IMPLEMENTATION_ENV, "python")
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        configure_logging(args.log_level, args.log_file)
    except ValueError as exc:
        parser.error(str(exc))

    if args.init_config:
        try:
            path = config_store.init_config()
        except ProfileError as exc:
            raise SystemExit(str(exc)) from exc
        sys.stdout.write(f"Wrote {path}\n")
        return
    if args.list_profiles:
        _list_profiles()
        return

    try:
        target = resolve_target(args)
    except ProfileError as exc:
        raise SystemExit(str(exc)) from exc

    theme_name = args.theme if args.theme is not None else config_store.load_theme_name()

    if args.print_prefix is not None:
        no_color = args.no_color or not sys.stdout.isatty()
        try:
            _print_tree(target, args.print_prefix, no_color, theme_name)
        except LazyEtcdError as exc:
            raise SystemExit(f"lazyetcd: {exc}") from exc
        return

    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        raise SystemExit("lazyetcd needs an interactive terminal (use --print for a one-shot tree dump).")

    from .runtime import AppOptions, EtcdBrowserApp, run_main_loop

    options = AppOptions(
        store_config=target.store_config,
        profile_name=target.profile_name,
        factory=target.factory,
        profiles=target.profiles,
        theme_name=theme_name,
        no_color=args.no_color,
        value_style=args.style,
    )
    app = EtcdBrowserApp(options)
    run_main_loop(app, stdin_fd=sys.stdin.fileno(), stdout_fd=sys.stdout.fileno())


if __name__ == "__main__":
    main()
