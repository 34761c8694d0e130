"""Command line behaviour: argument handling, exit codes and the printed summary."""

import logging

import pytest

from workos_bulk_deleter import cli
from workos_bulk_deleter.client import Page
from workos_bulk_deleter.exceptions import WorkOSApiError

from conftest import FakeWorkOS, make_org, make_user, utc


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("WORKOS_API_KEY", "sk_test_cli")
    monkeypatch.delenv("CONCURRENCY", raising=False)
    monkeypatch.delenv("MAX_REQUESTS_PER_SECOND", raising=False)
    return tmp_path


@pytest.fixture
def service(monkeypatch):
    fake = FakeWorkOS(
        organizations=[
            make_org("org_a", utc(2005, 12, 17, 9), name="Acme"),
            make_org("org_b", utc(2005, 12, 19, 9), name="Globex"),
        ],
        users=[make_user("user_a", utc(2005, 12, 17, 9), email="ada@example.com")],
    )
    created = []

    def factory(api_key, base_url, timeout):
        created.append((api_key, base_url, timeout))
        return fake

    monkeypatch.setattr(cli, "WorkOSClient", factory)
    fake.created = created
    return fake


def run_cli(env, *args):
    return cli.main([*args, "--log-dir", str(env / "logs")])


class TestSuccess:
    def test_deletes_matching_organizations(self, env, service, capsys) -> None:
        assert run_cli(env, "2005-12-17") == 0

        assert set(service.organizations) == {"org_b"}
        assert service.users.keys() == {"user_a"}
        assert service.created == [("sk_test_cli", "https://api.workos.com", 30)]
        out = capsys.readouterr().out
        assert "Target: Delete organizations created on 2005-12-17" in out
        assert "DELETION SUMMARY" in out
        assert "✓ Successfully deleted: 1" in out
        assert "Users:" not in out

    def test_users_and_range(self, env, service, capsys) -> None:
        assert run_cli(env, "--users", "2005-12-17", "2005-12-19") == 0

        assert service.organizations == {}
        assert service.users == {}
        out = capsys.readouterr().out
        assert "between 2005-12-17 and 2005-12-19 (inclusive)" in out
        assert "Users:" in out

    def test_dry_run(self, env, service, capsys) -> None:
        assert run_cli(env, "--dry-run", "--users", "2005-12-17") == 0

        assert service.delete_calls == []
        out = capsys.readouterr().out
        assert "Mode: DRY RUN (no actual deletions)" in out
        assert "🔍 DRY RUN MODE - No actual deletions were performed" in out

    def test_writes_log_file(self, env, service) -> None:
        run_cli(env, "2005-12-17")
        assert list((env / "logs").glob("deletion_*.log"))

    def test_overrides_reach_banner(self, env, service, capsys) -> None:
        run_cli(env, "--concurrency", "3", "--rate-limit", "12", "2005-12-17")
        out = capsys.readouterr().out
        assert "Concurrency: 3 parallel operations" in out
        assert "Rate limit: 12 requests/second" in out
        assert "Throughput: ~720 deletions/minute" in out


class TestFailures:
    def test_failed_deletion_exits_1_and_is_listed(self, env, service, capsys) -> None:
        service.failing_ids["org_a"] = WorkOSApiError(409, "Organization has active users")

        assert run_cli(env, "2005-12-17") == 1

        out = capsys.readouterr().out
        assert "Failed organization deletions:" in out
        assert "1. Acme (org_a)" in out
        assert "Error: Organization has active users (HTTP 409)" in out

    def test_rerun_over_deleted_entities_reports_not_found(self, env, service, capsys) -> None:
        stale = list(service.organizations.values())
        assert run_cli(env, "2005-12-17") == 0

        # The listing still returns the organization that is already gone.
        service.list_organizations = lambda limit, order, after=None: Page(stale, None)

        assert run_cli(env, "2005-12-17") == 1
        assert "Error: Could not find resource org_a (HTTP 404)" in capsys.readouterr().out

    def test_fetch_failure_aborts_with_exit_1(self, env, service, capsys) -> None:
        service.list_error = WorkOSApiError(500, "Internal error")

        assert run_cli(env, "2005-12-17") == 1

        captured = capsys.readouterr()
        assert "Run failed during fetch organizations" in captured.err
        assert service.delete_calls == []


class TestInvalidInput:
    def test_missing_api_key(self, env, service, monkeypatch, capsys) -> None:
        monkeypatch.delenv("WORKOS_API_KEY")
        assert run_cli(env, "2005-12-17") == 1
        assert "WORKOS_API_KEY" in capsys.readouterr().err
        assert service.created == []

    @pytest.mark.parametrize("args", [
        ["17-12-2005"],
        ["2005-12-25", "2005-12-17"],
        ["2005-12-17", "2005-12-18", "2005-12-19"],
        ["--concurrency", "0", "2005-12-17"],
    ])
    def test_invalid_arguments_exit_1(self, env, service, args) -> None:
        assert run_cli(env, *args) == 1
        assert service.created == []

    def test_missing_date_exits_1(self, env, service) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 1

    def test_bad_numeric_option_exits_1(self, env, service) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--rate-limit", "fast", "2005-12-17"])
        assert exc_info.value.code == 1

    def test_help_exits_0(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--help"])
        assert exc_info.value.code == 0
        assert "--dry-run" in capsys.readouterr().out
