"""
Command tree construction.

The tree is a fold over the handler registry: every verb collects the
leaves of the handlers that advertise it, a verb with no leaves is
dropped, and a category with no verbs is dropped. Help text for every
node comes from the descriptor store.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import click

from ..descriptors.schema import Descriptor
from ..descriptors.store import DescriptorStore, default_store
from ..errors import DescriptorError
from ..handlers import default_registry, local_aaa_registry
from ..handlers.command import CommandRunner, apply_root_flags, write_examples
from ..handlers.options import persistent_options
from ..handlers.registry import HandlerRegistry, Verb

logger = logging.getLogger("ipctl.cli.commands")

DESCRIPTION = """Manage Itential Platform

Find more information at: https://docs.itential.com"""

STANDARD_GROUPS: List[Tuple[str, str]] = [
    ("admin-essentials", "Admin Essentials Commands:"),
    ("automation-studio", "Automation Studio Commands:"),
    ("configuration-manager", "Configuration Manager Commands:"),
    ("operations-manager", "Operations Manager Commands:"),
    ("lifecycle-manager", "Lifecycle Manager Commands:"),
]

ASSET_VERBS = (
    Verb.GET, Verb.DESCRIBE, Verb.CREATE, Verb.DELETE, Verb.COPY,
    Verb.CLEAR, Verb.EDIT, Verb.IMPORT, Verb.EXPORT,
)
DATASET_VERBS = (Verb.LOAD, Verb.DUMP)
PLATFORM_VERBS = (Verb.API, Verb.INSPECT, Verb.START, Verb.STOP, Verb.RESTART)
REPOSITORY_VERBS = (Verb.PUSH, Verb.PULL)
LOCAL_AAA_VERBS = (Verb.GET, Verb.CREATE, Verb.DELETE)

Child = Tuple[click.Command, str]


def category_id(title: str) -> str:
    """Lowercase *title* and replace whitespace with hyphens."""
    return re.sub(r"\s+", "-", title.strip().lower())


class GroupedGroup(click.Group):
    """A click group that lists its commands under titled sections."""

    def __init__(self, *args, sections: Optional[Sequence[Tuple[str, str]]] = None, **kwargs):
        """Create a group.

        Args:
            sections: ``(id, title)`` pairs, listed in help in this order.
        """
        super().__init__(*args, **kwargs)
        self.sections: List[Tuple[str, str]] = list(sections or [])
        self.command_sections: Dict[str, str] = {}

    def add_section(self, section_id: str, title: str) -> None:
        """Add a help section unless one with *section_id* exists."""
        if section_id not in dict(self.sections):
            self.sections.append((section_id, title))

    def add_command(self, cmd: click.Command, name: Optional[str] = None, section: str = "") -> None:
        """Add *cmd*, listing it under *section* in help."""
        super().add_command(cmd, name)
        if section:
            self.command_sections[name or cmd.name] = section

    def list_commands(self, ctx: click.Context) -> List[str]:
        """Commands in insertion order."""
        return list(self.commands)

    def format_commands(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Write commands grouped by section; unsectioned ones come last."""
        rows: Dict[str, List[Tuple[str, str]]] = {}
        for name in self.list_commands(ctx):
            cmd = self.get_command(ctx, name)
            if cmd is None or cmd.hidden:
                continue
            section = self.command_sections.get(name, "")
            if section not in dict(self.sections):
                section = ""
            rows.setdefault(section, []).append((name, cmd.get_short_help_str(limit=80)))

        for section_id, title in self.sections:
            if rows.get(section_id):
                with formatter.section(title.rstrip(":")):
                    formatter.write_dl(rows[section_id])
        if rows.get(""):
            heading = "Additional Commands" if self.sections else "Commands"
            with formatter.section(heading):
                formatter.write_dl(rows[""])


class DescriptorGroup(GroupedGroup):
    """A verb or plugin node; its help comes from a descriptor.

    The node accepts the persistent root flags as well, so
    ``ipctl get --output json projects`` behaves like
    ``ipctl --output json get projects``.

    Args:
        descriptor: Supplies the name, help text and examples.
        runtime: Receives the persistent flags given at this level.
    """

    def __init__(self, descriptor: Descriptor, runtime=None, **kwargs):
        self.descriptor = descriptor
        if runtime is not None:
            kwargs.setdefault("params", persistent_options())
            kwargs.setdefault("callback", lambda **options: apply_root_flags(runtime, options))
        kwargs.setdefault("help", descriptor.long)
        kwargs.setdefault("short_help", descriptor.short)
        kwargs.setdefault("hidden", descriptor.hidden)
        if descriptor.include_groups:
            kwargs.setdefault("sections", STANDARD_GROUPS)
        super().__init__(descriptor.name, **kwargs)

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        write_examples(formatter, self.descriptor)


def make_child_command(
    descriptor: Optional[Descriptor],
    children: Sequence[Child],
    runtime=None,
) -> Optional[DescriptorGroup]:
    """Return a node holding *children*, or None if there is nothing to hold."""
    if descriptor is None or descriptor.disabled or not children:
        return None
    group = DescriptorGroup(descriptor, runtime=runtime)
    for cmd, section in children:
        group.add_command(cmd, section=section)
    return group


def make_root_commands(
    runtime,
    registry: HandlerRegistry,
    store: DescriptorStore,
    category: str,
    verbs: Sequence[Verb],
) -> List[click.Command]:
    """Build one node per verb in *verbs* from *registry*.

    Raises:
        DescriptorError: The verb-level descriptor category is missing.
    """
    commands: List[click.Command] = []
    for verb in verbs:
        try:
            descriptors = store.lookup(category)
        except DescriptorError as exc:
            raise DescriptorError(f"failed to build {verb.value} command: {exc.message}") from None

        children: List[Child] = []
        for handler in registry.handlers_for(verb):
            leaf = CommandRunner(runtime, verb, handler, store).build()
            if leaf is not None:
                children.append((leaf, handler.group))

        node = make_child_command(descriptors.get(verb.value), children, runtime)
        if node is None:
            logger.debug("dropping empty %s command", verb.value)
            continue
        commands.append(node)
    return commands


# ---------------------------------------------------------------------------
# Category builders
# ---------------------------------------------------------------------------


def asset_commands(runtime, registry, store) -> List[click.Command]:
    """Nodes for the asset verbs."""
    return make_root_commands(runtime, registry, store, "asset", ASSET_VERBS)


def dataset_commands(runtime, registry, store) -> List[click.Command]:
    """Nodes for ``dump`` and ``load``."""
    return make_root_commands(runtime, registry, store, "dataset", DATASET_VERBS)


def platform_commands(runtime, registry, store) -> List[click.Command]:
    """Nodes for inspect, start, stop, restart and api."""
    return make_root_commands(runtime, registry, store, "platform", PLATFORM_VERBS)


def repository_commands(runtime, registry, store) -> List[click.Command]:
    """Nodes for ``push`` and ``pull``."""
    return make_root_commands(runtime, registry, store, "repo", REPOSITORY_VERBS)


def plugin_commands(runtime, registry, store, local_aaa: Optional[HandlerRegistry] = None) -> List[click.Command]:
    """The ``local-aaa`` node, when configured, and ``client``.

    Args:
        runtime: The invocation runtime.
        registry: Handlers for the root verbs.
        store: Descriptor source.
        local_aaa: Account and group handlers; None leaves ``local-aaa`` out.

    Returns:
        list: The plugin commands.
    """
    commands: List[click.Command] = []

    if local_aaa is not None:
        verbs = make_root_commands(runtime, local_aaa, store, "localaaa", LOCAL_AAA_VERBS)
        node = make_child_command(
            store.lookup("localaaa").get("local-aaa"),
            [(cmd, "") for cmd in verbs],
            runtime,
        )
        if node is not None:
            commands.append(node)

    commands.extend(make_root_commands(runtime, registry, store, "localclient", (Verb.CLIENT,)))
    return commands


def add_category(root: GroupedGroup, title: str, builder: Callable[[], List[click.Command]]) -> None:
    """Attach the commands *builder* returns under a section named *title*.

    A builder that fails is logged and contributes nothing.
    """
    try:
        children = builder()
    except DescriptorError as exc:
        logger.error("%s", exc.message)
        return
    if not children:
        return
    section = category_id(title)
    root.add_section(section, title)
    for cmd in children:
        root.add_command(cmd, section=section)


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


def make_root(runtime) -> GroupedGroup:
    """The bare ``ipctl`` group carrying the persistent flags."""
    def callback(**options):
        apply_root_flags(runtime, options)

    return GroupedGroup(
        "ipctl",
        help=DESCRIPTION,
        params=persistent_options(),
        callback=callback,
        context_settings={"help_option_names": ["-h", "--help"]},
    )


def build_root(
    runtime,
    registry: Optional[HandlerRegistry] = None,
    store: Optional[DescriptorStore] = None,
    local_aaa: Optional[HandlerRegistry] = None,
) -> GroupedGroup:
    """Assemble the full command tree for *runtime*."""
    registry = registry or default_registry(runtime)
    store = store or default_store()
    if local_aaa is None:
        local_aaa = local_aaa_registry(runtime)

    root = make_root(runtime)
    add_category(root, "Asset Commands:", lambda: asset_commands(runtime, registry, store))
    if runtime.config.datasets_enabled:
        add_category(root, "Dataset Commands:", lambda: dataset_commands(runtime, registry, store))
    add_category(root, "Platform Commands:", lambda: platform_commands(runtime, registry, store))
    add_category(root, "Repository Commands:", lambda: repository_commands(runtime, registry, store))
    add_category(root, "Plugin Commands:", lambda: plugin_commands(runtime, registry, store, local_aaa))
    return root
