"""
Main entry point: serve a git repository's revisions over HTTP, or mount one read-only.
"""
import argparse
import logging
import sys
from typing import List, Optional

import uvicorn

from object_graph.errors import StoreError
from object_graph.git_store import GitObjectStore
from serving import Config, create_app, load_config
from snapshot_fs import SnapshotFSError, open_snapshot

logger = logging.getLogger(__name__)


def build_config(args: argparse.Namespace) -> Config:
    """Load the config file if one is given, then apply command line overrides."""
    if args.config:
        config = load_config(args.config)
    elif args.repo:
        config = Config(repo=args.repo)
    else:
        raise SystemExit("either --config or a repository path is required")
    for name in ("repo", "host", "port", "revision", "mountpoint", "log_level"):
        value = getattr(args, name, None)
        if value is not None:
            setattr(config, name, value)
    return config


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Browse git revisions as read-only filesystems")
    parser.add_argument("--config", help="JSON config file")
    parser.add_argument("--log-level", dest="log_level", help="Logging level (default INFO)")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Serve /tree/{revision}/{path} over HTTP")
    serve.add_argument("repo", nargs="?", help="Path to the git repository")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)

    mount = commands.add_parser("mount", help="Mount one revision with FUSE")
    mount.add_argument("repo", nargs="?", help="Path to the git repository")
    mount.add_argument("--revision", help="Revision to mount (default HEAD)")
    mount.add_argument("--mountpoint", help="Directory to mount at")
    return parser.parse_args(argv)


def serve(config: Config) -> None:
    store = GitObjectStore.open(config.repo)
    app = create_app(store, store)
    logger.info(f"Serving {config.repo} on {config.host}:{config.port}")
    uvicorn.run(app, host=config.host, port=config.port)


def mount(config: Config) -> None:
    # fusepy needs libfuse at import time; only load it when mounting
    from snapshot_fs.fuse_interface import mount as fuse_mount

    if not config.mountpoint:
        raise SystemExit("mount needs a mountpoint")
    store = GitObjectStore.open(config.repo)
    fs = open_snapshot(store, store, config.revision)
    fuse_mount(fs, config.mountpoint)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    config = build_config(args)
    logging.basicConfig(level=config.log_level.upper())
    try:
        if args.command == "serve":
            serve(config)
        else:
            mount(config)
    except (SnapshotFSError, StoreError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
