"""Tests for individual deployment steps."""

from pathlib import Path

import pytest

from app_deployer.config import CommandConfig
from app_deployer.errors import FailureCode
from app_deployer.gitops import GitRepositoryManager
from app_deployer.interaction import AskOperator, AutoResponseHandler, ConfirmationGate, Forbidden, Forced
from app_deployer.local import CheckoutProbe
from app_deployer.orchestrator import (
    CacheInvalidateStep,
    DatabaseMigrateStep,
    DependencyInstallStep,
    DeploymentRequest,
    FrontendBuildStep,
    GitUpdateStep,
    StepStatus,
    WebServerReloadStep,
    WorkerRestartStep,
)
from app_deployer.orchestrator.steps import render_command

from conftest import RecordingSession

COMMANDS = CommandConfig()


@pytest.fixture
def checkout(tmp_path: Path) -> Path:
    return tmp_path


def _request(path: Path, **overrides) -> DeploymentRequest:
    return DeploymentRequest(ref="release-2.0", path=path, **overrides)


class TestRenderCommand:
    def test_each_argument_is_formatted(self, checkout):
        command = render_command(
            ["php", "{path}/scripts/build/build.php", "update", "{ref}"], _request(checkout)
        )
        assert command == ["php", f"{checkout}/scripts/build/build.php", "update", "release-2.0"]

    def test_values_with_spaces_stay_one_argument(self, checkout):
        command = render_command(["supervisorctl", "restart", "{worker}"], _request(checkout), worker="a b")
        assert command == ["supervisorctl", "restart", "a b"]

    def test_literal_braces_are_kept(self, checkout):
        command = render_command(
            ["find", "{cache_dir}", "-type", "f", "-exec", "rm", "{}", "+"],
            _request(checkout),
            cache_dir="/app/cache",
        )
        assert command == ["find", "/app/cache", "-type", "f", "-exec", "rm", "{}", "+"]

    def test_unknown_placeholders_are_left_as_is(self, checkout):
        command = render_command(["echo", "{worker}", "{0}", "{ref"], _request(checkout))
        assert command == ["echo", "{worker}", "{0}", "{ref"]

    def test_cache_clear_with_exec_template_runs(self, checkout):
        (checkout / "public" / "cache" / "translate").mkdir(parents=True)
        session = RecordingSession()
        template = ["find", "{cache_dir}", "-type", "f", "-exec", "rm", "{}", "+"]
        result = CacheInvalidateStep(session, CheckoutProbe(), template).execute(_request(checkout))

        assert result.status is StepStatus.SUCCESS
        assert session.commands[0][-3:] == ["rm", "{}", "+"]


class TestGitUpdateStep:
    def test_success_collects_output(self, checkout):
        session = RecordingSession(
            {
                ("git", "checkout"): (0, "HEAD is now at 1a2b3c4 Release 2.0"),
                ("git", "branch"): (0, "* (HEAD detached at release-2.0)\n"),
            }
        )
        step = GitUpdateStep(session, GitRepositoryManager(session))
        result = step.execute(_request(checkout))

        assert result.status is StepStatus.SUCCESS
        assert "HEAD is now at 1a2b3c4 Release 2.0" in result.output_lines
        assert result.exit_code == 0

    def test_merge_failure_code(self, checkout):
        session = RecordingSession(
            {("git", "branch"): (0, "* main\n"), ("git", "merge"): (1, "fatal: refusing to merge")}
        )
        result = GitUpdateStep(session, GitRepositoryManager(session)).execute(_request(checkout))

        assert result.status is StepStatus.FAILED
        assert result.failure_code is FailureCode.MERGE_FAILED
        assert result.command == ["git", "merge", "origin/release-2.0"]
        assert result.output_lines == ["fatal: refusing to merge"]

    def test_option_like_ref_fails_the_step(self, checkout):
        session = RecordingSession()
        result = GitUpdateStep(session, GitRepositoryManager(session)).execute(
            DeploymentRequest(ref="--detach", path=checkout)
        )

        assert result.status is StepStatus.FAILED
        assert result.failure_code is FailureCode.CHECKOUT_FAILED
        assert "--detach" in result.message


class TestDependencyInstallStep:
    def test_runs_in_checkout(self, checkout):
        session = RecordingSession()
        step = DependencyInstallStep(session, CheckoutProbe(), COMMANDS.dependency_install)
        result = step.execute(_request(checkout))

        assert result.status is StepStatus.SUCCESS
        assert session.commands == [["composer", "install", "--no-dev"]]

    def test_failure_reports_command_and_output(self, checkout):
        session = RecordingSession({("composer",): (2, "Your requirements could not be resolved\nProblem 1")})
        step = DependencyInstallStep(session, CheckoutProbe(), COMMANDS.dependency_install)
        result = step.execute(_request(checkout))

        assert result.status is StepStatus.FAILED
        assert result.failure_code is FailureCode.DEPENDENCY_INSTALL_FAILED
        assert result.exit_code == 2
        assert result.command == ["composer", "install", "--no-dev"]
        assert result.output_lines == ["Your requirements could not be resolved", "Problem 1"]

    def test_configured_manifest_missing_skips(self, checkout):
        session = RecordingSession()
        probe = CheckoutProbe(backend_manifest="composer.json")
        result = DependencyInstallStep(session, probe, COMMANDS.dependency_install).execute(_request(checkout))

        assert result.status is StepStatus.SKIPPED
        assert session.calls == []


class TestFrontendBuildStep:
    def test_no_manifest_skips_without_commands(self, checkout):
        session = RecordingSession()
        result = FrontendBuildStep(session, CheckoutProbe(), COMMANDS.frontend_build).execute(_request(checkout))

        assert result.status is StepStatus.SKIPPED
        assert result.exit_code is None
        assert session.calls == []

    def test_builds_when_manifest_present(self, checkout):
        (checkout / "package.json").write_text("{}", encoding="utf-8")
        session = RecordingSession()
        result = FrontendBuildStep(session, CheckoutProbe(), COMMANDS.frontend_build).execute(_request(checkout))

        assert result.status is StepStatus.SUCCESS
        assert session.commands == [["npm", "ci"], ["npm", "run", "build"]]

    def test_stops_at_first_failing_command(self, checkout):
        (checkout / "package.json").write_text("{}", encoding="utf-8")
        session = RecordingSession({("npm", "ci"): (1, "npm ERR! missing lockfile")})
        result = FrontendBuildStep(session, CheckoutProbe(), COMMANDS.frontend_build).execute(_request(checkout))

        assert result.status is StepStatus.FAILED
        assert result.failure_code is FailureCode.DEPENDENCY_INSTALL_FAILED
        assert session.commands == [["npm", "ci"]]


class TestCacheInvalidateStep:
    def test_missing_cache_dir_skips(self, checkout):
        session = RecordingSession()
        result = CacheInvalidateStep(session, CheckoutProbe(), COMMANDS.cache_clear).execute(_request(checkout))

        assert result.status is StepStatus.SKIPPED
        assert session.calls == []

    def test_clears_files_in_cache_dir(self, checkout):
        cache_dir = checkout / "public" / "cache" / "translate"
        cache_dir.mkdir(parents=True)
        session = RecordingSession()
        result = CacheInvalidateStep(session, CheckoutProbe(), COMMANDS.cache_clear).execute(_request(checkout))

        assert result.status is StepStatus.SUCCESS
        assert session.commands[0][:2] == ["find", str(cache_dir)]
        assert session.commands[0][-1] == "-delete"

    def test_failure_code(self, checkout):
        (checkout / "public" / "cache" / "translate").mkdir(parents=True)
        session = RecordingSession({("find",): (1, "find: Permission denied")})
        result = CacheInvalidateStep(session, CheckoutProbe(), COMMANDS.cache_clear).execute(_request(checkout))

        assert result.failure_code is FailureCode.CACHE_CLEAR_FAILED


class TestWebServerReloadStep:
    def test_unconfigured_is_skipped(self, checkout):
        session = RecordingSession()
        result = WebServerReloadStep(session, COMMANDS.web_server_reload).execute(_request(checkout))
        assert result.status is StepStatus.SKIPPED
        assert session.calls == []

    def test_graceful_restart(self, checkout):
        session = RecordingSession({("apachectl",): (1, "httpd not running")})
        result = WebServerReloadStep(session, ["apachectl", "graceful"]).execute(_request(checkout))

        assert result.failure_code is FailureCode.RESTART_FAILED
        assert session.commands == [["apachectl", "graceful"]]


class TestDatabaseMigrateStep:
    def test_forced_runs_without_prompt(self, checkout):
        session = RecordingSession()
        handler = AutoResponseHandler()
        step = DatabaseMigrateStep(session, ConfirmationGate(handler), COMMANDS.database_migrate)
        result = step.execute(_request(checkout, update_database=Forced(True)))

        assert result.status is StepStatus.SUCCESS
        assert handler.asked == []
        assert session.commands == [["php", f"{checkout}/scripts/build/build.php", "update"]]

    def test_forbidden_is_skipped(self, checkout):
        session = RecordingSession()
        handler = AutoResponseHandler(always_confirm=True)
        step = DatabaseMigrateStep(session, ConfirmationGate(handler), COMMANDS.database_migrate)
        result = step.execute(_request(checkout, update_database=Forbidden()))

        assert result.status is StepStatus.SKIPPED
        assert handler.asked == []
        assert session.calls == []

    def test_declined_prompt_is_skipped(self, checkout):
        session = RecordingSession()
        handler = AutoResponseHandler()
        step = DatabaseMigrateStep(session, ConfirmationGate(handler), COMMANDS.database_migrate)
        result = step.execute(_request(checkout, update_database=AskOperator()))

        assert result.status is StepStatus.SKIPPED
        assert len(handler.asked) == 1
        assert session.calls == []

    def test_failure_code(self, checkout):
        session = RecordingSession({("php",): (255, "SQLSTATE[HY000] [2002] Connection refused")})
        step = DatabaseMigrateStep(session, ConfirmationGate(AutoResponseHandler()), COMMANDS.database_migrate)
        result = step.execute(_request(checkout, update_database=Forced(True)))

        assert result.failure_code is FailureCode.MIGRATION_FAILED
        assert result.exit_code == 255


class TestWorkerRestartStep:
    def test_forced_worker(self, checkout):
        session = RecordingSession()
        step = WorkerRestartStep(session, ConfirmationGate(AutoResponseHandler()), COMMANDS.worker_restart)
        result = step.execute(_request(checkout, restart_worker=Forced("queue-worker")))

        assert result.status is StepStatus.SUCCESS
        assert session.commands == [["supervisorctl", "restart", "queue-worker"]]

    def test_empty_answer_skips(self, checkout):
        session = RecordingSession()
        handler = AutoResponseHandler()
        step = WorkerRestartStep(session, ConfirmationGate(handler), COMMANDS.worker_restart)
        result = step.execute(_request(checkout))

        assert result.status is StepStatus.SKIPPED
        assert len(handler.asked) == 1
        assert session.calls == []

    def test_prompted_worker(self, checkout):
        session = RecordingSession()
        handler = AutoResponseHandler(default_responses={"worker": "mailer"})
        step = WorkerRestartStep(session, ConfirmationGate(handler), COMMANDS.worker_restart)
        step.execute(_request(checkout))

        assert session.commands == [["supervisorctl", "restart", "mailer"]]

    def test_failure_code(self, checkout):
        session = RecordingSession({("supervisorctl",): (1, "queue-worker: ERROR (no such process)")})
        step = WorkerRestartStep(session, ConfirmationGate(AutoResponseHandler()), COMMANDS.worker_restart)
        result = step.execute(_request(checkout, restart_worker=Forced("queue-worker")))

        assert result.failure_code is FailureCode.RESTART_FAILED
