"""The asset types ipctl knows about, grouped by platform application."""

from __future__ import annotations

from typing import List

from .assets import AssetSpec
from .registry import (
    CONTROLLER,
    COPIER,
    DUMPER,
    EDITOR,
    EXPORTER,
    IMPORTER,
    INSPECTOR,
    LOADER,
    READER,
    WRITER,
    Verb,
)

ADMIN_ESSENTIALS = "admin-essentials"
AUTOMATION_STUDIO = "automation-studio"
CONFIGURATION_MANAGER = "configuration-manager"
OPERATIONS_MANAGER = "operations-manager"
LIFECYCLE_MANAGER = "lifecycle-manager"

# Full round-trip support: read, write, copy, file and dataset transfer.
PORTABLE = READER | WRITER | COPIER | IMPORTER | EXPORTER | DUMPER | LOADER

ASSETS: List[AssetSpec] = [
    # automation studio
    AssetSpec(
        name="projects",
        singular="project",
        path="/automation-studio/projects",
        group=AUTOMATION_STUDIO,
        capabilities=PORTABLE,
        envelope="data",
        import_path="/automation-studio/projects/import",
        import_wrapper="project",
        export_path="/automation-studio/projects/{id}/export",
        columns=("name", "description"),
    ),
    AssetSpec(
        name="workflows",
        singular="workflow",
        path="/automation-studio/workflows",
        group=AUTOMATION_STUDIO,
        capabilities=READER | frozenset({Verb.DELETE, Verb.CLEAR}) | COPIER | IMPORTER | EXPORTER | DUMPER | LOADER,
        envelope="items",
        item_path="/workflow_builder/workflows/delete/{name}",
        import_path="/automation-studio/automations",
        import_wrapper="automation",
        columns=("name", "description"),
    ),
    AssetSpec(
        name="templates",
        singular="template",
        path="/automation-studio/templates",
        group=AUTOMATION_STUDIO,
        capabilities=PORTABLE | EDITOR,
        envelope="items",
        import_path="/automation-studio/templates/import",
        import_wrapper="templates",
        export_path="/automation-studio/templates/{id}/export",
        columns=("name", "group", "type"),
    ),
    AssetSpec(
        name="transformations",
        singular="transformation",
        path="/transformations",
        group=AUTOMATION_STUDIO,
        capabilities=PORTABLE | EDITOR,
        envelope="results",
        import_path="/transformations/import",
        columns=("name", "description"),
    ),
    AssetSpec(
        name="jsonforms",
        singular="jsonform",
        path="/json-forms/forms",
        group=AUTOMATION_STUDIO,
        capabilities=PORTABLE | EDITOR,
        import_path="/json-forms/import/forms",
        import_wrapper="forms",
        columns=("name", "description"),
    ),
    # operations manager
    AssetSpec(
        name="automations",
        singular="automation",
        path="/operations-manager/automations",
        group=OPERATIONS_MANAGER,
        capabilities=PORTABLE,
        envelope="data",
        import_path="/operations-manager/automations",
        import_wrapper="automations",
        export_path="/operations-manager/automations/{id}/export",
        columns=("name", "description"),
    ),
    # admin essentials
    AssetSpec(
        name="accounts",
        singular="account",
        path="/authorization/accounts",
        group=ADMIN_ESSENTIALS,
        capabilities=READER,
        key="username",
        envelope="results",
        columns=("username", "provenance", "inactive"),
    ),
    AssetSpec(
        name="groups",
        singular="group",
        path="/authorization/groups",
        group=ADMIN_ESSENTIALS,
        capabilities=PORTABLE,
        envelope="results",
        columns=("name", "provenance", "description"),
    ),
    AssetSpec(
        name="roles",
        singular="role",
        path="/authorization/roles",
        group=ADMIN_ESSENTIALS,
        capabilities=READER | WRITER | IMPORTER | EXPORTER,
        envelope="results",
        columns=("name", "provenance", "description"),
    ),
    AssetSpec(
        name="profiles",
        singular="profile",
        path="/profiles",
        group=ADMIN_ESSENTIALS,
        capabilities=PORTABLE | EDITOR,
        key="id",
        id_field="id",
        envelope="results",
        import_path="/profiles/import",
        import_wrapper="properties",
        export_path="/profiles/{id}/export",
        columns=("id", "description", "activeProfile"),
    ),
    AssetSpec(
        name="adapters",
        singular="adapter",
        path="/adapters",
        group=ADMIN_ESSENTIALS,
        capabilities=PORTABLE | EDITOR | CONTROLLER | INSPECTOR,
        id_field="name",
        envelope="results",
        import_path="/adapters/import",
        import_wrapper="properties",
        export_path="/adapters/{name}/export",
        health_path="/health/adapters",
        columns=("name", "model", "type"),
    ),
    AssetSpec(
        name="applications",
        singular="application",
        path="/applications",
        group=ADMIN_ESSENTIALS,
        capabilities=READER | CONTROLLER | INSPECTOR,
        id_field="name",
        envelope="results",
        health_path="/health/applications",
        columns=("name", "model", "type"),
    ),
    AssetSpec(
        name="integrations",
        singular="integration",
        path="/integrations",
        group=ADMIN_ESSENTIALS,
        capabilities=READER | WRITER | IMPORTER | EXPORTER,
        id_field="name",
        envelope="results",
        columns=("name", "model", "type"),
    ),
    AssetSpec(
        name="prebuilts",
        singular="prebuilt",
        path="/prebuilts",
        group=ADMIN_ESSENTIALS,
        capabilities=READER | frozenset({Verb.DELETE}) | IMPORTER | EXPORTER | DUMPER | LOADER,
        envelope="results",
        import_path="/prebuilts/import",
        import_wrapper="prebuilt",
        export_path="/prebuilts/{id}/export",
        columns=("name", "version", "description"),
    ),
    # configuration manager
    AssetSpec(
        name="device-groups",
        singular="device-group",
        path="/configuration_manager/deviceGroups",
        group=CONFIGURATION_MANAGER,
        capabilities=READER | WRITER | IMPORTER | EXPORTER,
        id_field="id",
        columns=("name", "description"),
    ),
    # lifecycle manager
    AssetSpec(
        name="models",
        singular="model",
        path="/lifecycle-manager/resources",
        group=LIFECYCLE_MANAGER,
        capabilities=PORTABLE,
        envelope="data",
        import_path="/lifecycle-manager/resources/import",
        import_wrapper="model",
        export_path="/lifecycle-manager/resources/{id}/export",
        columns=("name", "description"),
    ),
]
