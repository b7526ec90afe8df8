"""
pass-cli error taxonomy.

Every failure that crosses the integration boundary is a ``PassCliError``
tagged with one of seven ``PassCliErrorType`` values. Only the process
runner and the output normalizer pick the tag; everything above passes it
through. ``error_guide()`` turns a tag into the text and remedial action a
front-end shows to the user.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

PROTON_PASS_CLI_DOCS = "https://protonpass.github.io/pass-cli/"


class PassCliErrorType(StrEnum):
    NOT_INSTALLED = "not_installed"
    NOT_AUTHENTICATED = "not_authenticated"
    NETWORK_ERROR = "network_error"
    KEYRING_ERROR = "keyring_error"
    TIMEOUT = "timeout"
    INVALID_OUTPUT = "invalid_output"
    UNKNOWN = "unknown"


class RemedialAction(StrEnum):
    INSTALL = "install"
    AUTHENTICATE = "authenticate"
    RESET_KEYRING = "reset_keyring"
    CHECK_CONNECTIVITY = "check_connectivity"
    RETRY = "retry"
    UPDATE_CLI = "update_cli"
    REPORT = "report"


# Fixed message templates raised by the runner. NOT_INSTALLED takes the
# resolved executable path; UNKNOWN carries the (truncated) CLI output instead.
ERROR_MESSAGES: dict[PassCliErrorType, str] = {
    PassCliErrorType.NOT_INSTALLED: (
        "pass-cli not found at '{cli_path}'. "
        "Install it or set the correct path in extension preferences."
    ),
    PassCliErrorType.NOT_AUTHENTICATED: "Not authenticated. Run pass-cli login to authenticate.",
    PassCliErrorType.NETWORK_ERROR: "Network error. Check your connection and try again.",
    PassCliErrorType.KEYRING_ERROR: (
        "pass-cli could not access secure key storage. Try: pass-cli logout --force, "
        "then set PROTON_PASS_KEY_PROVIDER=fs and login again."
    ),
    PassCliErrorType.TIMEOUT: "pass-cli timed out. Please try again.",
    PassCliErrorType.INVALID_OUTPUT: (
        "Unexpected output from pass-cli. Please update pass-cli and try again."
    ),
    PassCliErrorType.UNKNOWN: "An unknown error occurred while running pass-cli.",
}


class PassCliError(Exception):
    """A classified pass-cli failure."""

    def __init__(self, message: str, error_type: PassCliErrorType | str) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = PassCliErrorType(error_type)

    def __repr__(self) -> str:
        return f"PassCliError({self.message!r}, {self.error_type.value!r})"


@dataclass(frozen=True)
class ErrorGuide:
    """User-facing description of an error kind and what to do about it."""

    title: str
    description: str
    action: RemedialAction
    show_docs_link: bool
    show_retry: bool
    docs_url: str = PROTON_PASS_CLI_DOCS


def error_guide(
    error_type: PassCliErrorType | str,
    context_title: str | None = None,
) -> ErrorGuide:
    """Return the guide for an error kind.

    ``context_title`` names the failed operation (e.g. "Load Vaults") and only
    shapes the title of the catch-all ``unknown`` guide.
    """
    kind = PassCliErrorType(error_type)

    if kind is PassCliErrorType.NOT_INSTALLED:
        return ErrorGuide(
            title="Proton Pass CLI Not Installed",
            description=(
                "You need to install the Proton Pass CLI to use this extension. "
                "See the documentation to learn how to install it."
            ),
            action=RemedialAction.INSTALL,
            show_docs_link=True,
            show_retry=False,
        )
    if kind is PassCliErrorType.NOT_AUTHENTICATED:
        return ErrorGuide(
            title="Not Logged In",
            description="Run 'pass-cli login' in terminal to authenticate",
            action=RemedialAction.AUTHENTICATE,
            show_docs_link=True,
            show_retry=False,
        )
    if kind is PassCliErrorType.KEYRING_ERROR:
        return ErrorGuide(
            title="Keyring Access Failed",
            description=ERROR_MESSAGES[PassCliErrorType.KEYRING_ERROR],
            action=RemedialAction.RESET_KEYRING,
            show_docs_link=True,
            show_retry=True,
        )
    if kind is PassCliErrorType.NETWORK_ERROR:
        return ErrorGuide(
            title="Network Error",
            description="Check your internet connection and try again",
            action=RemedialAction.CHECK_CONNECTIVITY,
            show_docs_link=False,
            show_retry=True,
        )
    if kind is PassCliErrorType.TIMEOUT:
        return ErrorGuide(
            title="Request Timed Out",
            description="pass-cli took too long to respond. Please try again.",
            action=RemedialAction.RETRY,
            show_docs_link=False,
            show_retry=True,
        )
    if kind is PassCliErrorType.INVALID_OUTPUT:
        return ErrorGuide(
            title="Unexpected pass-cli Output",
            description=(
                "pass-cli returned data in an unexpected format. "
                "Update pass-cli to the latest version and try again."
            ),
            action=RemedialAction.UPDATE_CLI,
            show_docs_link=True,
            show_retry=True,
        )
    return ErrorGuide(
        title=f"Failed to {context_title}" if context_title else "An Error Occurred",
        description="An error occurred. Please try again, and report it if it persists.",
        action=RemedialAction.REPORT,
        show_docs_link=True,
        show_retry=True,
    )
