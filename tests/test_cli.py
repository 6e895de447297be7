"""CLI argument, target resolution, and one-shot output tests.

Verifies how ``lazyetcd.cli.main`` picks the cluster to open and what it
prints for the non-interactive flags.
"""

from __future__ import annotations

import io
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazyetcd import __version__, cli, config
from lazyetcd.store import InMemoryStore


class CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.config_path = Path(self._tmp.name) / "lazyetcd" / "config.json"
        patcher = mock.patch("lazyetcd.config.CONFIG_PATH", self.config_path)
        patcher.start()
        self.addCleanup(patcher.stop)

    def run_main(self, argv: list[str]) -> str:
        out = io.StringIO()
        with mock.patch.object(sys, "stdout", out):
            cli.main(argv)
        return out.getvalue()


class ParserTests(unittest.TestCase):
    def test_defaults(self) -> None:
        args = cli.build_parser().parse_args([])
        self.assertIsNone(args.profile)
        self.assertIsNone(args.print_prefix)
        self.assertEqual(args.style, "monokai")
        self.assertEqual(args.log_level, "INFO")

    def test_print_flag_with_and_without_prefix(self) -> None:
        parser = cli.build_parser()
        self.assertEqual(parser.parse_args(["--print"]).print_prefix, "")
        self.assertEqual(parser.parse_args(["--print", "/config/"]).print_prefix, "/config/")

    def test_target_flags_are_mutually_exclusive(self) -> None:
        with mock.patch.object(sys, "stderr", io.StringIO()):
            with self.assertRaises(SystemExit):
                cli.build_parser().parse_args(["--demo", "--endpoint", "a:1"])

    def test_version(self) -> None:
        out = io.StringIO()
        with mock.patch.object(sys, "stdout", out):
            with self.assertRaises(SystemExit) as ctx:
                cli.main(["--version"])
        self.assertEqual(ctx.exception.code, 0)
        self.assertIn(__version__, out.getvalue())


class ResolveTargetTests(CliTestCase):
    def test_endpoint_flag_builds_adhoc_config(self) -> None:
        args = cli.build_parser().parse_args(["--endpoint", "a:1, b:2"])

        target = cli.resolve_target(args)

        self.assertEqual(target.store_config.endpoints, ("a:1", "b:2"))
        self.assertEqual(target.profile_name, "")

    def test_falls_back_to_local_profile_without_config(self) -> None:
        target = cli.resolve_target(cli.build_parser().parse_args([]))

        self.assertEqual(target.profile_name, config.LOCAL_PROFILE_NAME)
        self.assertEqual(target.store_config.endpoints, (config.LOCAL_ENDPOINT,))

    def test_active_profile_is_used_by_default(self) -> None:
        config.add_profile(config.Profile(name="dev", endpoints=("dev:2379",)))
        config.add_profile(config.Profile(name="prod", endpoints=("prod:2379",)))
        config.set_active_profile("prod")

        target = cli.resolve_target(cli.build_parser().parse_args([]))

        self.assertEqual(target.profile_name, "prod")

    def test_unknown_profile_exits(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            cli.main(["-p", "missing"])
        self.assertIn("missing", str(ctx.exception.code))

    def test_demo_profile_ops_reconnect_to_shared_store(self) -> None:
        store = InMemoryStore()
        target = cli.demo_target(store)

        self.assertIs(target.factory(target.store_config), store)
        self.assertEqual(target.profiles.resolve(cli.DEMO_PROFILE_NAME), target.store_config)
        self.assertEqual(target.profiles.names(), [cli.DEMO_PROFILE_NAME])
        target.profiles.remember(cli.DEMO_PROFILE_NAME)
        self.assertFalse(self.config_path.exists())


class OneShotCommandTests(CliTestCase):
    def test_print_demo_tree(self) -> None:
        lines = self.run_main(["--demo", "--print"]).splitlines()

        self.assertEqual(lines[0], "etcd")
        self.assertIn("▾ config/", lines)
        self.assertIn("  ▾ db/", lines)
        self.assertIn("  ▾ api/", lines)
        self.assertNotIn("\x1b", "".join(lines))

    def test_print_under_prefix(self) -> None:
        text = self.run_main(["--demo", "--print", "/services/"])

        self.assertIn("api/", text)
        self.assertNotIn("config/", text)

    def test_render_tree_dump_of_empty_store(self) -> None:
        self.assertEqual(cli.render_tree_dump(InMemoryStore()), "etcd\n")

    def test_list_profiles_marks_active(self) -> None:
        config.add_profile(config.Profile(name="dev", endpoints=("dev:2379",)))
        config.add_profile(config.Profile(name="prod", endpoints=("prod:2379",), username="root"))
        config.set_active_profile("dev")

        lines = self.run_main(["--list-profiles"]).splitlines()

        self.assertEqual(lines, ["* dev (dev:2379) [default]", "  prod (prod:2379) [auth]"])

    def test_list_profiles_without_config(self) -> None:
        self.assertIn("No profiles configured", self.run_main(["--list-profiles"]))

    def test_main_defaults_protobuf_runtime_before_store_import(self) -> None:
        with mock.patch.dict(os.environ, clear=False):
            os.environ.pop(cli.PROTOBUF_IMPLEMENTATION_ENV, None)
            self.run_main(["--list-profiles"])
            self.assertEqual(os.environ[cli.PROTOBUF_IMPLEMENTATION_ENV], "python")

    def test_main_keeps_explicit_protobuf_runtime(self) -> None:
        with mock.patch.dict(os.environ, {cli.PROTOBUF_IMPLEMENTATION_ENV: "upb"}):
            self.run_main(["--list-profiles"])
            self.assertEqual(os.environ[cli.PROTOBUF_IMPLEMENTATION_ENV], "upb")

    def test_init_config_once(self) -> None:
        self.assertIn(str(self.config_path), self.run_main(["--init-config"]))
        self.assertEqual(config.get_profile("local").endpoints, ("localhost:2379",))

        with self.assertRaises(SystemExit):
            self.run_main(["--init-config"])

    def test_bad_log_level_is_usage_error(self) -> None:
        with mock.patch.object(sys, "stderr", io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                cli.main(["--log-level", "chatty", "--list-profiles"])
        self.assertEqual(ctx.exception.code, 2)


class InteractiveDispatchTests(CliTestCase):
    def test_requires_tty(self) -> None:
        with mock.patch.object(sys, "stdin", io.StringIO()), mock.patch.object(sys, "stdout", io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                cli.main(["--demo"])
        self.assertIn("interactive terminal", str(ctx.exception.code))

    def test_runs_app_with_resolved_target(self) -> None:
        fake_tty = mock.Mock()
        fake_tty.isatty.return_value = True
        fake_tty.fileno.return_value = 7

        with mock.patch.object(sys, "stdin", fake_tty), mock.patch.object(sys, "stdout", fake_tty), mock.patch(
            "lazyetcd.runtime.EtcdBrowserApp"
        ) as app_cls, mock.patch("lazyetcd.runtime.run_main_loop") as run_loop:
            cli.main(["--demo", "--theme", "nord", "--no-color"])

        options = app_cls.call_args.args[0]
        self.assertEqual(options.profile_name, cli.DEMO_PROFILE_NAME)
        self.assertEqual(options.theme_name, "nord")
        self.assertTrue(options.no_color)
        run_loop.assert_called_once_with(app_cls.return_value, stdin_fd=7, stdout_fd=7)


if __name__ == "__main__":
    unittest.main()
