"""Editable form model for create/edit/search/profile prompts.

A form is plain data plus small editing helpers; the runtime binds keys to
these helpers and the controller reads ``values()`` on submit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .keyspace import Entry


class FormKind(Enum):
    CREATE = "create"
    EDIT = "edit"
    SEARCH = "search"
    PROFILE = "profile"


@dataclass
class FormField:
    name: str
    label: str
    value: str = ""
    placeholder: str = ""
    multiline: bool = False


@dataclass
class FormState:
    """Field values, focus, and inline error of one open form.

    ``original_key`` is set for edit forms so a changed key field can be
    detected as a rename.
    """

    kind: FormKind
    title: str
    fields: list[FormField] = field(default_factory=list)
    focus: int = 0
    original_key: str | None = None
    error: str = ""

    @property
    def focused(self) -> FormField:
        return self.fields[self.focus]

    def values(self) -> dict[str, str]:
        return {item.name: item.value for item in self.fields}

    def value(self, name: str) -> str:
        for item in self.fields:
            if item.name == name:
                return item.value
        raise KeyError(name)

    def next_field(self) -> None:
        if self.fields:
            self.focus = (self.focus + 1) % len(self.fields)

    def prev_field(self) -> None:
        if self.fields:
            self.focus = (self.focus - 1) % len(self.fields)

    def insert(self, text: str) -> None:
        self.focused.value += text
        self.error = ""

    def insert_newline(self) -> bool:
        """Break the line in a multi-line field; single-line fields ignore it."""
        if not self.focused.multiline:
            return False
        self.insert("\n")
        return True

    def backspace(self) -> None:
        target = self.focused
        target.value = target.value[:-1]
        self.error = ""

    def delete_word(self) -> None:
        target = self.focused
        stripped = target.value.rstrip()
        cut = max(stripped.rfind("/"), stripped.rfind(" "))
        target.value = stripped[: cut + 1] if cut >= 0 else ""
        self.error = ""

    def clear_field(self) -> None:
        self.focused.value = ""
        self.error = ""


def create_form(prefix: str = "") -> FormState:
    """New-key form; ``prefix`` pre-fills the key with the current branch."""
    return FormState(
        kind=FormKind.CREATE,
        title="Create key",
        fields=[
            FormField("key", "Key", prefix, placeholder="/path/to/key"),
            FormField("value", "Value", multiline=True),
            FormField("ttl", "TTL (seconds)", placeholder="empty = no expiry"),
        ],
    )


def edit_form(entry: Entry) -> FormState:
    return FormState(
        kind=FormKind.EDIT,
        title=f"Edit {entry.key}",
        fields=[
            FormField("key", "Key", entry.key),
            FormField("value", "Value", entry.value, multiline=True),
        ],
        focus=1,
        original_key=entry.key,
    )


def search_form(prefix: str = "") -> FormState:
    return FormState(
        kind=FormKind.SEARCH,
        title="Search by prefix",
        fields=[FormField("prefix", "Prefix", prefix, placeholder="empty = all keys")],
    )


def profile_form(names: list[str], current: str = "") -> FormState:
    hint = ", ".join(names) if names else "no profiles configured"
    return FormState(
        kind=FormKind.PROFILE,
        title="Switch profile",
        fields=[FormField("name", "Profile", current, placeholder=hint)],
    )


__all__ = [
    "FormKind",
    "FormField",
    "FormState",
    "create_form",
    "edit_form",
    "search_form",
    "profile_form",
]
