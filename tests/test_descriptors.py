"""Tests for the embedded command descriptors."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import make_runtime
from ipctl.descriptors import Descriptor, DescriptorStore, default_store, parse_category
from ipctl.errors import DescriptorError
from ipctl.handlers import ASSETS, AssetHandler
from ipctl.handlers.api import api_handlers
from ipctl.handlers.localaaa import local_aaa_handlers


class TestShippedDescriptors:
    """The YAML files bundled with the package."""

    def test_all_categories_load(self):
        categories = default_store().categories()
        for name in ("asset", "dataset", "platform", "repo", "repository", "api",
                     "server", "localaaa", "localclient", "projects", "adapters"):
            assert name in categories

    def test_short_is_first_line_of_long(self):
        for commands in default_store().categories().values():
            for descriptor in commands.values():
                assert descriptor.long.split("\n")[0] == descriptor.short

    def test_every_descriptor_has_use(self):
        for category, commands in default_store().categories().items():
            for key, descriptor in commands.items():
                assert descriptor.use, f"{category}/{key} has no use line"

    def test_every_asset_verb_is_described(self, runtime):
        store = default_store()
        for spec in ASSETS:
            handler = AssetHandler(runtime, spec)
            for verb in spec.capabilities:
                category, key = handler.descriptor_key(verb)
                assert store.get(category, key) is not None, f"missing {category}/{key}"

    def test_api_and_local_aaa_are_described(self, runtime):
        store = default_store()
        handlers = list(api_handlers(runtime)) + list(local_aaa_handlers(runtime, lambda: None))
        for handler in handlers:
            for verb in handler.capabilities:
                category, key = handler.descriptor_key(verb)
                assert store.get(category, key) is not None, f"missing {category}/{key}"

    def test_argument_counts(self):
        store = default_store()
        assert store.get("projects", "get").exact_args == 0
        assert store.get("projects", "describe").exact_args == 1
        assert store.get("projects", "load").exact_args == 1
        assert store.get("repository", "push").exact_args == 2


class TestStore:
    """Lookup semantics."""

    def test_missing_category(self):
        store = DescriptorStore.from_mapping({})
        with pytest.raises(DescriptorError, match="missing descriptor 'nope'"):
            store.lookup("nope")

    def test_get_returns_none_when_missing(self):
        store = DescriptorStore.from_mapping({"a": {}})
        assert store.get("a", "b") is None
        assert store.get("x", "b") is None

    def test_reads_directory(self, tmp_path: Path):
        (tmp_path / "things.yaml").write_text(
            "get:\n  use: things\n  description: |-\n    Show things\n    In detail.\n"
        )
        store = DescriptorStore(tmp_path)
        descriptor = store.get("things", "get")
        assert descriptor.short == "Show things"
        assert descriptor.long == "Show things\nIn detail."

    def test_invalid_document(self):
        with pytest.raises(DescriptorError):
            parse_category("- just\n- a list\n", "list.yaml")

    def test_invalid_field(self):
        with pytest.raises(DescriptorError, match="invalid descriptor 'get'"):
            parse_category("get:\n  exact_args: -1\n", "bad.yaml")


class TestDescriptor:
    """The descriptor model."""

    def test_name_is_first_word_of_use(self):
        assert Descriptor(use="project <name>").name == "project"
        assert Descriptor().name == ""

    def test_indented_example(self):
        descriptor = Descriptor(example="ipctl get projects\nipctl get adapters\n")
        assert descriptor.indented_example() == "  ipctl get projects\n  ipctl get adapters"

    def test_no_example(self):
        assert Descriptor().indented_example() == ""

    def test_unknown_keys_ignored(self):
        assert parse_category("get:\n  use: x\n  extra: 1\n")["get"].use == "x"
