"""User commands: validate, call the store, re-project, update the session.

Every public command returns ``True`` on success. Failures never escape: each
one becomes exactly one status line and leaves the tree and selection as
they were (the partial-rename case is the one exception, since the keyspace
itself changed).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from . import clipboard
from . import config as config_store
from .errors import (
    LazyEtcdError,
    ModeAlreadyActiveError,
    NotConnectedError,
    PartialRenameError,
    ProfileError,
    StoreOperationError,
    ValidationError,
)
from .forms import FormKind, FormState, create_form, edit_form, profile_form, search_form
from .keyspace import ROOT_PATH, Entry, TreeNode, project
from .session import Mode, Session
from .store import ConnectionManager, StoreClient, StoreConfig
from .view import ViewCallbacks
from .watch import LiveUpdateIntegrator

logger = logging.getLogger(__name__)

SHORTCUTS_HINT = "/ Search  n New  e Edit  d Delete  w Watch  r Refresh  p Profile  q Quit  ? Help"
NOT_CONNECTED_HINT = "Not connected | p Profile  q Quit  ? Help"


@dataclass(frozen=True)
class ProfileOps:
    """Profile lookups used by profile switching."""

    resolve: Callable[[str], StoreConfig]
    names: Callable[[], list[str]]
    remember: Callable[[str], None]


def config_profile_ops() -> ProfileOps:
    """``ProfileOps`` backed by the persisted JSON config."""
    return ProfileOps(
        resolve=lambda name: config_store.get_profile(name).to_store_config(),
        names=lambda: [profile.name for profile in config_store.load_profiles()],
        remember=config_store.set_active_profile,
    )


def parse_ttl(text: str) -> int | None:
    """Parse the TTL form field; empty means no lease."""
    stripped = text.strip()
    if not stripped:
        return None
    try:
        ttl = int(stripped)
    except ValueError as exc:
        raise ValidationError(f"TTL must be a whole number of seconds, got {stripped!r}") from exc
    if ttl <= 0:
        raise ValidationError("TTL must be greater than zero")
    return ttl


class ActionController:
    """Maps commands onto store calls, projection, and session transitions."""

    def __init__(
        self,
        connection: ConnectionManager,
        session: Session,
        view: ViewCallbacks,
        integrator: LiveUpdateIntegrator | None = None,
        profiles: ProfileOps | None = None,
        copy_text: Callable[[str], bool] = clipboard.copy_text,
    ) -> None:
        self.connection = connection
        self.session = session
        self.view = view
        self.integrator = integrator if integrator is not None else LiveUpdateIntegrator(session, view)
        self.profiles = profiles if profiles is not None else config_profile_ops()
        self._copy_text = copy_text
        self.root: TreeNode = project([])
        self.last_prefix = ""
        self.last_result_count = 0
        self.last_error = ""
        self.form: FormState | None = None
        self.pending_delete: str | None = None

    # -- reporting ---------------------------------------------------------

    def _status(self, text: str, level: str = "info") -> None:
        self.view.set_status(text, level)

    def _fail(self, action: str, exc: LazyEtcdError) -> None:
        if isinstance(exc, NotConnectedError):
            text, level = "Not connected to etcd (press p to choose a profile)", "error"
        elif isinstance(exc, PartialRenameError):
            text = (
                f"Rename incomplete: {exc.old_key} was deleted but {exc.new_key} "
                f"was not written ({exc.cause})"
            )
            level = "error"
        elif isinstance(exc, (ValidationError, ModeAlreadyActiveError)):
            text, level = str(exc), "warning"
        else:
            text, level = f"{action}: {exc}", "error"
        logger.warning("%s", text)
        self.last_error = text
        self._status(text, level)

    # -- store helpers -----------------------------------------------------

    def _load_tree(self, client: StoreClient, prefix: str) -> TreeNode:
        return project(client.list(prefix))

    @staticmethod
    def _lease_ttl(client: StoreClient, entry: Entry) -> int | None:
        if not entry.has_lease:
            return None
        try:
            return client.lease_ttl(entry.lease_id)
        except StoreOperationError:
            # Expired or revoked lease: details fall back to the lease id.
            logger.debug("lease %x lookup failed for %s", entry.lease_id, entry.key, exc_info=True)
            return None

    def _install_tree(self, root: TreeNode, preferred_key: str | None = None) -> None:
        self.root = root
        self.session.reconcile_selection(root)
        expand_all = bool(self.last_prefix)
        self.view.show_tree(root, preferred_key or self.session.selected_key, expand_all)
        self.view.show_entry(self.session.selected_entry, None)

    # -- commands ----------------------------------------------------------

    def refresh(self) -> bool:
        """Reload entries (honoring the last search prefix) and re-project."""
        try:
            with self.connection.reading() as client:
                root = self._load_tree(client, self.last_prefix)
        except LazyEtcdError as exc:
            self._fail("Refresh failed", exc)
            return False
        self._install_tree(root)
        self._show_selected_ttl()
        count = root.count_leaves()
        logger.info("refreshed %d keys (prefix=%r)", count, self.last_prefix)
        self._status(f"Loaded {count} keys" + (f" under {self.last_prefix}" if self.last_prefix else ""))
        self.update_status_bar()
        return True

    def _show_selected_ttl(self) -> None:
        entry = self.session.selected_entry
        if entry is None or not entry.has_lease:
            return
        try:
            with self.connection.reading() as client:
                ttl = self._lease_ttl(client, entry)
        except NotConnectedError:
            return
        self.view.show_entry(entry, ttl)

    def put(self, key: str, value: str, ttl: int | None = None, original_key: str | None = None) -> bool:
        """Write ``key``; a different ``original_key`` makes this a rename (delete then put)."""
        key = key.strip()
        try:
            if not key:
                raise ValidationError("Key cannot be empty")
            renaming = original_key is not None and original_key != key
            with self.connection.reading() as client:
                if renaming:
                    client.delete(original_key)
                    try:
                        client.put(key, value, ttl)
                    except StoreOperationError as exc:
                        raise PartialRenameError(original_key, key, exc) from exc
                else:
                    client.put(key, value, ttl)
        except PartialRenameError as exc:
            self._reload_quietly()
            self._fail("Rename failed", exc)
            return False
        except LazyEtcdError as exc:
            self._fail("Failed to save", exc)
            return False

        logger.info("saved %s%s", key, f" (renamed from {original_key})" if renaming else "")
        try:
            with self.connection.reading() as client:
                root = self._load_tree(client, self.last_prefix)
                entry = client.get(key)
                ttl_left = self._lease_ttl(client, entry)
        except LazyEtcdError as exc:
            self._fail("Saved but failed to refresh details", exc)
            return True
        self.session.select_entry(entry)
        self._install_tree(root, preferred_key=entry.key)
        self.view.show_entry(entry, ttl_left)
        if renaming:
            self._status(f"Renamed: {original_key} -> {key}", "success")
        else:
            self._status(f"Saved: {key}", "success")
        self.update_status_bar()
        return True

    def _reload_quietly(self) -> None:
        try:
            with self.connection.reading() as client:
                root = self._load_tree(client, self.last_prefix)
        except LazyEtcdError:
            logger.warning("reload after partial rename failed", exc_info=True)
            return
        self._install_tree(root)

    def begin_delete(self) -> bool:
        """Ask for confirmation before deleting the selected key."""
        entry = self.session.selected_entry
        if entry is None:
            self._status("No key selected", "warning")
            return False
        try:
            self.session.enter_mode(Mode.CONFIRM_ACTIVE)
        except ModeAlreadyActiveError as exc:
            self._fail("Delete", exc)
            return False
        self.pending_delete = entry.key
        self.view.open_confirm(f"Delete key: {entry.key}?")
        return True

    def cancel_confirm(self) -> None:
        self.pending_delete = None
        if self.session.mode is Mode.CONFIRM_ACTIVE:
            self.session.exit_mode()
        self.view.close_confirm()

    def confirm_delete(self) -> bool:
        key = self.pending_delete
        self.cancel_confirm()
        if key is None:
            self._status("No key selected", "warning")
            return False
        return self.delete(key)

    def delete(self, key: str) -> bool:
        try:
            with self.connection.reading() as client:
                client.delete(key)
        except LazyEtcdError as exc:
            self._fail("Failed to delete", exc)
            return False
        logger.info("deleted %s", key)
        self.session.clear_selection()
        try:
            with self.connection.reading() as client:
                root = self._load_tree(client, self.last_prefix)
        except LazyEtcdError as exc:
            self.view.show_entry(None, None)
            self._fail(f"Deleted {key} but refresh failed", exc)
            return True
        self._install_tree(root)
        self._status(f"Deleted: {key}", "success")
        self.update_status_bar()
        return True

    def search(self, prefix: str) -> bool:
        """Show only keys under ``prefix``; an empty prefix shows everything."""
        prefix = prefix.strip()
        if not prefix:
            return self.clear_search()
        try:
            with self.connection.reading() as client:
                root = self._load_tree(client, prefix)
        except LazyEtcdError as exc:
            self._fail("Search failed", exc)
            return False
        count = root.count_leaves()
        self.last_prefix = prefix
        self.last_result_count = count
        self.session.clear_selection()
        self._install_tree(root, preferred_key=ROOT_PATH)
        self.view.show_message("Search", f"Search results for: {prefix}\n\n{count} keys found")
        logger.info("search %r -> %d keys", prefix, count)
        self._status(f"Search: {prefix} ({count} keys)")
        return True

    def clear_search(self) -> bool:
        previous = self.last_prefix
        self.last_prefix = ""
        if not self.refresh():
            self.last_prefix = previous
            return False
        self.last_result_count = self.root.count_leaves()
        self._status("All keys loaded")
        return True

    def watch(self, key: str | None = None) -> bool:
        """Watch ``key`` (default: selection), replacing any live watch."""
        target = key or self.session.selected_key
        if not target:
            self._status("No key selected", "warning")
            return False
        if self.session.mode not in (Mode.BROWSING, Mode.WATCH_ACTIVE):
            self._fail("Watch", ModeAlreadyActiveError(self.session.mode.value, Mode.WATCH_ACTIVE.value))
            return False
        selected = self.session.selected_entry
        current_value = selected.value if selected is not None and selected.key == target else None
        try:
            with self.connection.reading() as client:
                self.integrator.start(client, target, current_value=current_value)
        except LazyEtcdError as exc:
            self._fail("Watch failed", exc)
            return False
        if self.session.mode is Mode.BROWSING:
            self.session.enter_mode(Mode.WATCH_ACTIVE)
        self.view.open_watch(target)
        self._status(f"Watching {target} (Esc to stop)")
        return True

    def close_watch(self) -> None:
        key = self.integrator.stop()
        if self.session.mode is Mode.WATCH_ACTIVE:
            self.session.exit_mode()
        self.view.close_watch()
        if key is not None:
            self._status(f"Watch stopped for {key}", "warning")

    def select_node(self, node: TreeNode | None) -> None:
        """Track the node under the cursor; branches clear the selection."""
        if node is None or node.entry is None:
            self.session.clear_selection()
            self.view.show_entry(None, None)
            return
        entry = node.entry
        self.session.select_entry(entry)
        ttl = None
        if entry.has_lease:
            try:
                with self.connection.reading() as client:
                    ttl = self._lease_ttl(client, entry)
            except NotConnectedError:
                ttl = None
        self.view.show_entry(entry, ttl)

    def copy_selected_value(self) -> bool:
        entry = self.session.selected_entry
        if entry is None:
            self._status("No key selected", "warning")
            return False
        if not self._copy_text(entry.value):
            self._status("Clipboard unavailable (install wl-copy, xclip, or xsel)", "warning")
            return False
        self._status(f"Copied value of {entry.key}", "success")
        return True

    # -- forms -------------------------------------------------------------

    def _open_form(self, form: FormState) -> bool:
        try:
            self.session.enter_mode(Mode.FORM_ACTIVE)
        except ModeAlreadyActiveError as exc:
            self._fail(form.title, exc)
            return False
        self.form = form
        self.view.open_form(form)
        return True

    def begin_edit(self) -> bool:
        entry = self.session.selected_entry
        if entry is None:
            self._status("No key selected", "warning")
            return False
        return self._open_form(edit_form(entry))

    def begin_create(self, prefix: str = "") -> bool:
        return self._open_form(create_form(prefix))

    def begin_search(self) -> bool:
        return self._open_form(search_form(self.last_prefix or "/"))

    def begin_profile(self) -> bool:
        try:
            names = self.profiles.names()
        except ProfileError as exc:
            self._fail("Profiles", exc)
            return False
        return self._open_form(profile_form(names, self.connection.profile_name))

    def cancel_form(self) -> None:
        self.form = None
        if self.session.mode is Mode.FORM_ACTIVE:
            self.session.exit_mode()
        self.view.close_form()

    def submit_form(self) -> bool:
        """Run the command for the open form; the form stays open on failure."""
        form = self.form
        if form is None:
            return False
        values = form.values()
        try:
            if form.kind is FormKind.CREATE:
                ok = self.put(values["key"], values["value"], parse_ttl(values.get("ttl", "")))
            elif form.kind is FormKind.EDIT:
                ok = self.put(values["key"], values["value"], original_key=form.original_key)
            elif form.kind is FormKind.SEARCH:
                ok = self.search(values["prefix"])
            else:
                ok = self.connect_profile(values["name"])
        except ValidationError as exc:
            self._fail(form.title, exc)
            ok = False
        if ok:
            self.cancel_form()
        else:
            form.error = self.last_error
        return ok

    # -- connection --------------------------------------------------------

    def connect_profile(self, name: str) -> bool:
        name = name.strip()
        try:
            if not name:
                raise ValidationError("Profile name cannot be empty")
            store_config = self.profiles.resolve(name)
        except LazyEtcdError as exc:
            self._fail("Profile", exc)
            return False
        if not self.connect(store_config, name):
            return False
        try:
            self.profiles.remember(name)
        except ProfileError:
            logger.warning("could not persist active profile %s", name, exc_info=True)
        return True

    def connect(self, store_config: StoreConfig, profile_name: str = "") -> bool:
        """Swap the live connection, dropping watch, selection, and search filter."""
        self._drop_watch()
        try:
            self.connection.connect(store_config, profile_name)
        except LazyEtcdError as exc:
            self._fail("Connection failed", exc)
            self.view.set_status_bar(NOT_CONNECTED_HINT)
            return False
        self.session.clear_selection()
        self.last_prefix = ""
        if not self.refresh():
            return True
        label = profile_name or ", ".join(store_config.endpoints)
        self._status(f"Connected to {label}", "success")
        return True

    def disconnect(self) -> None:
        self._drop_watch()
        self.connection.disconnect()
        self.view.set_status_bar(NOT_CONNECTED_HINT)

    def _drop_watch(self) -> None:
        if self.integrator.active or self.session.mode is Mode.WATCH_ACTIVE:
            self.integrator.stop()
            if self.session.mode is Mode.WATCH_ACTIVE:
                self.session.exit_mode()
            self.view.close_watch()

    def update_status_bar(self) -> None:
        if not self.connection.is_connected:
            self.view.set_status_bar(NOT_CONNECTED_HINT)
            return
        try:
            with self.connection.reading() as client:
                status = client.status()
                count = client.count()
        except LazyEtcdError as exc:
            logger.warning("status query failed: %s", exc)
            self.view.set_status_bar(f"Connected | status unavailable | {SHORTCUTS_HINT}")
            return
        profile = self.connection.profile_name
        prefix = f"Connected [{profile}]" if profile else "Connected"
        self.view.set_status_bar(f"{prefix} | Leader: {status.leader or '-'} | Keys: {count} | {SHORTCUTS_HINT}")


__all__ = [
    "ActionController",
    "NOT_CONNECTED_HINT",
    "ProfileOps",
    "SHORTCUTS_HINT",
    "config_profile_ops",
    "parse_ttl",
]
