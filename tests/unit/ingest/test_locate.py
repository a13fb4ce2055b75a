"""Tests for ``.tf`` source lookup and git attribution."""

from __future__ import annotations

import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from planview.ingest import TerraformLocator, find_terraform_files, make_locator, resource_type_and_name
from planview.models import Action, ChangeRecord


def _record(address: str, **kwargs) -> ChangeRecord:
    return ChangeRecord(address=address, action=Action.UPDATE, **kwargs)


def _completed(stdout: str = "", returncode: int = 0) -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(args=["git"], returncode=returncode, stdout=stdout)


class ResourceNameTests(unittest.TestCase):
    def test_explicit_fields_win(self) -> None:
        self.assertEqual(resource_type_and_name(_record("x", type="aws_vpc", name="main")), ("aws_vpc", "main"))

    def test_address_fallbacks(self) -> None:
        self.assertEqual(resource_type_and_name(_record("aws_instance.web[0]")), ("aws_instance", "web"))
        self.assertEqual(resource_type_and_name(_record("data.aws_ami.ubuntu")), ("aws_ami", "ubuntu"))
        self.assertEqual(resource_type_and_name(_record("module.vpc.aws_subnet.a")), ("aws_subnet", "a"))
        self.assertIsNone(resource_type_and_name(_record("module.vpc")))
        self.assertIsNone(resource_type_and_name(_record("")))


class TerraformLocatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name).resolve()
        (self.root / "compute.tf").write_text('resource "aws_instance" "web" {\n}\n', encoding="utf-8")
        (self.root / "modules" / "net").mkdir(parents=True)
        (self.root / "modules" / "net" / "main.tf").write_text(
            'data "aws_ami" "ubuntu" {}\nresource "aws_subnet" "a" {}\n', encoding="utf-8"
        )
        (self.root / ".terraform").mkdir()
        (self.root / ".terraform" / "cached.tf").write_text('resource "aws_s3_bucket" "hidden" {}\n', encoding="utf-8")
        (self.root / "notes.txt").write_text('resource "aws_instance" "web"', encoding="utf-8")

    def test_find_terraform_files_skips_hidden_directories(self) -> None:
        files = [path.relative_to(self.root).as_posix() for path in find_terraform_files(self.root)]

        self.assertEqual(files, ["compute.tf", "modules/net/main.tf"])

    def test_locate_returns_relative_location(self) -> None:
        locator = TerraformLocator(self.root)

        location = locator(_record("aws_instance.web", type="aws_instance", name="web"))

        self.assertEqual(location.file_path, "compute.tf")
        self.assertEqual(location.file_name, "compute.tf")

    def test_data_sources_and_module_resources(self) -> None:
        locate = make_locator(self.root)

        data = locate(_record("data.aws_ami.ubuntu", mode="data"))
        subnet = locate(_record("module.net.aws_subnet.a"))

        self.assertEqual(data.file_path, "modules/net/main.tf")
        self.assertEqual(subnet.file_name, "main.tf")

    def test_unknown_resources_are_not_located(self) -> None:
        locator = TerraformLocator(self.root)

        self.assertIsNone(locator(_record("aws_s3_bucket.hidden")))
        self.assertIsNone(locator(_record("aws_instance.web", mode="data")))

    def test_git_attribution(self) -> None:
        responses = {
            "rev-parse --git-dir": _completed(".git"),
            "ls-files": _completed("compute.tf"),
            "status": _completed(" M compute.tf\n"),
            "log": _completed("abcdef1234567890|Dev|dev@example.com|1700000000|add web\n"),
            "rev-parse --abbrev-ref": _completed("main\n"),
        }

        def fake_run(args, **kwargs):
            command = " ".join(args[3:])
            for prefix, response in responses.items():
                if command.startswith(prefix):
                    return response
            raise AssertionError(command)

        locator = TerraformLocator(self.root, git=True)
        with mock.patch("planview.ingest.locate.subprocess.run", side_effect=fake_run) as run:
            location = locator(_record("aws_instance.web"))
            again = locator(_record("aws_instance.web"))

        self.assertIs(location, again)
        self.assertEqual(run.call_count, 5)
        self.assertTrue(location.is_tracked)
        self.assertTrue(location.has_uncommitted_changes)
        self.assertEqual(location.short_commit_id, "abcdef12")
        self.assertEqual(location.branch, "main")
        self.assertEqual(location.author_email, "dev@example.com")
        self.assertEqual(location.commit_message, "add web")
        self.assertIsNotNone(location.commit_date)
        self.assertEqual(location.status_summary(), "Has uncommitted changes")

    def test_not_a_repository(self) -> None:
        locator = TerraformLocator(self.root, git=True)
        with mock.patch("planview.ingest.locate.subprocess.run", return_value=_completed(returncode=128)):
            location = locator(_record("aws_instance.web"))

        self.assertEqual(location.error, "Not a git repository")
        self.assertFalse(location.is_valid)

    def test_git_missing_is_reported_not_raised(self) -> None:
        locator = TerraformLocator(self.root, git=True)
        with mock.patch("planview.ingest.locate.subprocess.run", side_effect=FileNotFoundError("git")):
            location = locator(_record("aws_instance.web"))

        self.assertEqual(location.file_path, "compute.tf")
        self.assertEqual(location.error, "Not a git repository")


if __name__ == "__main__":
    unittest.main()
