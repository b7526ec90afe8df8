"""
pass-cli integration layer.

Public API:
    PassCliClient(...)                   → domain operations (async)
    ProcessRunner(cli_path)              → raw invocation + failure classification
    PassCliError / PassCliErrorType      → the error taxonomy
    error_guide(error_type)              → user-facing text and remedy
    Vault, Item, ItemDetail, ...         → normalized records
"""

from __future__ import annotations

from passdeck.passcli.client import (
    PassCliClient,
    default_password_options,
    password_generate_args,
)
from passdeck.passcli.errors import (
    PROTON_PASS_CLI_DOCS,
    ErrorGuide,
    PassCliError,
    PassCliErrorType,
    RemedialAction,
    error_guide,
)
from passdeck.passcli.models import (
    CustomField,
    CustomFieldType,
    Item,
    ItemDetail,
    ItemType,
    PasswordOptions,
    PasswordScore,
    PasswordType,
    Vault,
    VaultRole,
)
from passdeck.passcli.runner import ClassificationRule, ProcessRunner

__all__ = [
    "PROTON_PASS_CLI_DOCS",
    "ClassificationRule",
    "CustomField",
    "CustomFieldType",
    "ErrorGuide",
    "Item",
    "ItemDetail",
    "ItemType",
    "PassCliClient",
    "PassCliError",
    "PassCliErrorType",
    "PasswordOptions",
    "PasswordScore",
    "PasswordType",
    "ProcessRunner",
    "RemedialAction",
    "Vault",
    "VaultRole",
    "default_password_options",
    "error_guide",
    "password_generate_args",
]
