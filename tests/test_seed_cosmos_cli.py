"""
Test suite for the seed_cosmos command-line entrypoint.
"""

import subprocess
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cosmos_seeder.errors import AuthorizationError, ConfigurationError, PipelineStageError
from cosmos_seeder.ingestion import seed_cosmos
from cosmos_seeder.schemas import UploadSummary


@pytest.fixture
def credential() -> MagicMock:
    """Provide a stand-in async Azure credential."""
    cred = MagicMock()
    cred.close = AsyncMock()
    return cred


@pytest.fixture
def run_seed_mock(credential):
    """Patch run_seed, the credential chain and the azd lookup in the CLI module."""
    with patch.object(seed_cosmos, "run_seed", new=AsyncMock(return_value=UploadSummary(uploaded=3, total=3))) as m, \
            patch.object(seed_cosmos, "build_credential", return_value=credential), \
            patch.object(seed_cosmos, "endpoint_from_azd", return_value=None):
        yield m


def test_main_should_seed_and_exit_zero(run_seed_mock, capsys) -> None:
    code = seed_cosmos.main(["--yes", "--endpoint", "https://acct", "--batch-size", "7", "--delay", "0"])

    assert code == 0
    kwargs = run_seed_mock.call_args.kwargs
    assert kwargs["endpoint"] == "https://acct"
    assert kwargs["batch_size"] == 7
    assert kwargs["batch_delay"] == 0.0
    assert kwargs["report"] is print
    assert "completed successfully" in capsys.readouterr().out


def test_main_should_exit_one_with_checklist_on_fatal_error(run_seed_mock, capsys) -> None:
    run_seed_mock.side_effect = PipelineStageError("upload", AuthorizationError("denied", status_code=403))

    code = seed_cosmos.main(["--yes", "--database", "db1", "--container", "c1"])

    out = capsys.readouterr().out
    assert code == 1
    assert "Seeding failed during upload" in out
    assert "Database 'db1' and container 'c1' exist" in out


def test_main_should_stop_when_not_confirmed(run_seed_mock, monkeypatch, capsys) -> None:
    monkeypatch.delenv("FORCE", raising=False)
    monkeypatch.setattr("builtins.input", lambda prompt: "n")

    code = seed_cosmos.main([])

    assert code == 0
    run_seed_mock.assert_not_called()
    assert "Operation cancelled." in capsys.readouterr().out


def test_main_should_skip_prompt_when_forced(run_seed_mock, monkeypatch) -> None:
    monkeypatch.setenv("FORCE", "true")
    monkeypatch.setattr("builtins.input", lambda prompt: pytest.fail("prompted despite FORCE"))

    assert seed_cosmos.main([]) == 0
    run_seed_mock.assert_called_once()


@pytest.mark.parametrize("reply,expected", [("y", True), ("Y", True), ("yes", True), ("", False), ("no", False)])
def test_confirm_should_accept_only_yes(reply, expected, capsys) -> None:
    assert seed_cosmos.confirm("vectordb", "Container3", ask=lambda prompt: reply) is expected


def test_main_should_pass_credential_and_close_it(run_seed_mock, credential) -> None:
    assert seed_cosmos.main(["--yes", "--endpoint", "https://acct"]) == 0

    assert run_seed_mock.call_args.kwargs["credential"] is credential
    credential.close.assert_awaited_once()


@pytest.mark.parametrize("value", ["0", "-2", "five"])
def test_main_should_reject_invalid_batch_size(run_seed_mock, value, capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        seed_cosmos.main(["--yes", "--endpoint", "https://acct", "--batch-size", value])

    assert exc_info.value.code == 2
    assert "--batch-size" in capsys.readouterr().err
    run_seed_mock.assert_not_called()


def test_main_should_exit_one_on_configuration_error(run_seed_mock, capsys) -> None:
    run_seed_mock.side_effect = ConfigurationError("Cosmos DB endpoint not configured.")

    assert seed_cosmos.main(["--yes"]) == 1
    assert "endpoint not configured" in capsys.readouterr().out


def test_main_should_fall_back_to_azd_endpoint(run_seed_mock, monkeypatch) -> None:
    monkeypatch.setattr(seed_cosmos.settings, "COSMOS_DB_ENDPOINT", "")

    with patch.object(seed_cosmos, "endpoint_from_azd", return_value="https://from-azd"):
        assert seed_cosmos.main(["--yes"]) == 0

    assert run_seed_mock.call_args.kwargs["endpoint"] == "https://from-azd"


class TestEndpointFromAzd:
    """Test suite for endpoint_from_azd()."""

    def test_should_return_none_without_azd(self) -> None:
        with patch.object(seed_cosmos.shutil, "which", return_value=None):
            assert seed_cosmos.endpoint_from_azd() is None

    def test_should_parse_cosmos_endpoint_from_env_values(self) -> None:
        stdout = 'AZURE_LOCATION="eastus"\nAZURE_COSMOS_DB_ENDPOINT="https://acct.documents.azure.com:443/"\n'
        with patch.object(seed_cosmos.shutil, "which", return_value="/usr/bin/azd"), \
                patch.object(seed_cosmos.subprocess, "run",
                             return_value=subprocess.CompletedProcess([], 0, stdout=stdout)) as run:
            assert seed_cosmos.endpoint_from_azd() == "https://acct.documents.azure.com:443/"

        assert run.call_args.args[0] == ["azd", "env", "get-values"]

    def test_should_return_none_when_azd_fails(self) -> None:
        with patch.object(seed_cosmos.shutil, "which", return_value="/usr/bin/azd"), \
                patch.object(seed_cosmos.subprocess, "run",
                             side_effect=subprocess.CalledProcessError(1, ["azd"])):
            assert seed_cosmos.endpoint_from_azd() is None
