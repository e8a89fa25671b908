"""
ipctl CLI: command line administration for the platform.

The root group and every command beneath it are built at start-up from
the descriptor store and the handler registry, so the tree reflects the
active configuration (datasets feature flag, local-aaa store).

Entry point: ipctl.cli:main
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional, Sequence

import click

from .. import APP_NAME, log, terminal
from ..client.context import RequestContext
from ..client.http import HttpClient
from ..config import ConfigLoader
from ..errors import IpctlError
from ..handlers.runtime import Runtime
from ..metadata import current_sha, get_info
from .commands import GroupedGroup, build_root, category_id


def version_command() -> click.Command:
    """Build the ``version`` command.

    Returns:
        click.Command: Prints version, commit and the interpreter directory.
    """
    @click.command("version")
    def version():
        """Print the version information"""
        info = get_info()
        terminal.display("version: %s", info.version)
        terminal.display("commit: %s", info.build)
        terminal.display("executable: %s", Path(sys.executable).parent)
        terminal.display()

    return version


def banner() -> None:
    """Log the build identification, or the checkout commit for development builds."""
    info = get_info()
    if info.is_release():
        log.info("%s %s (%s)", info.name, info.version, info.build)
        return
    try:
        log.info("ipctl running from commit %s", current_sha())
    except RuntimeError:
        log.info("ipctl unable to determine source")


def _dispatch(root: click.Group, args: List[str], runtime: Runtime) -> int:
    """Run *root* on *args* and turn failures into an exit status.

    Args:
        root: The assembled command tree.
        args: Command-line arguments without the program name.
        runtime: Supplies the colour preference for error output.

    Returns:
        int: 0 on success, 1 for ipctl and OS errors, click usage errors
        keep their own status.
    """
    try:
        root.main(args=args, prog_name=APP_NAME, standalone_mode=False)
    except click.exceptions.Exit as exc:
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted!", err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except IpctlError as exc:
        log.error(exc, "%s", exc.describe())
        terminal.error(exc, runtime.no_color)
        return 1
    except OSError as exc:
        log.error(exc, "%s", exc)
        terminal.error(exc, runtime.no_color)
        return 1
    return 0


def execute(argv: Optional[Sequence[str]] = None) -> int:
    """Run ipctl with *argv* (default ``sys.argv[1:]``) and return the exit status."""
    args = list(sys.argv[1:] if argv is None else argv)

    term_cfg = terminal.load_from_env()
    try:
        cfg = ConfigLoader().with_args(args).load()
    except IpctlError as exc:
        terminal.error(exc, term_cfg.no_color)
        return 1

    log.initialize_logger(log.load_from_env(), no_color=term_cfg.no_color, argv=args)
    banner()

    try:
        profile = cfg.active_profile()
    except IpctlError as exc:
        log.error(exc, "%s", exc.describe())
        terminal.error(exc, term_cfg.no_color)
        return 1

    log.info("connection timeout is %s second(s)", profile.timeout)
    if profile.timeout > 0:
        ctx = RequestContext.with_timeout(profile.timeout)
    else:
        ctx = RequestContext.background()

    try:
        runtime = Runtime(
            client=HttpClient(ctx, profile),
            config=cfg,
            terminal=term_cfg,
            context=ctx,
        )
        root = build_root(runtime)
        root.add_command(version_command())
        return _dispatch(root, args, runtime)
    finally:
        ctx.cancel()


def main() -> None:
    """Console-script entry point."""
    sys.exit(execute())


__all__ = ["GroupedGroup", "build_root", "category_id", "execute", "main", "version_command"]
