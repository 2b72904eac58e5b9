from click.testing import CliRunner

import xstreamprov.cli as cli_module


class FakeProvisioner:
    captured = {}

    def __init__(self, **kwargs):
        FakeProvisioner.captured = kwargs

    def run(self):
        return 0


def test_cli_uses_config_and_allows_cli_override(tmp_path, monkeypatch):
    config_file = tmp_path / ".xstreamprov.yml"
    config_file.write_text(
        "host: config-host\n"
        "port: 1522\n"
        "pdb_name: SALESPDB\n"
        "schemas: [SALES, FINANCE]\n"
        "server_name: XOUT_CFG\n",
        encoding="utf-8",
    )
    monkeypatch.setattr(cli_module, "XStreamProvisioner", FakeProvisioner)

    runner = CliRunner()
    result = runner.invoke(
        cli_module.main,
        [
            "--config",
            str(config_file),
            "--host",
            "cli-host",
            "--server-name",
            "XOUT_CLI",
            "--password",
            "sys-pw",
            "--admin-password",
            "admin-pw",
            "--connect-password",
            "connect-pw",
        ],
    )

    assert result.exit_code == 0, result.output
    captured = FakeProvisioner.captured
    assert captured["connection"].host == "cli-host"
    assert captured["connection"].port == 1522
    assert captured["connection"].sysdba is True
    assert captured["settings"].pdb_name == "SALESPDB"
    assert captured["settings"].schemas == ("SALES", "FINANCE")
    assert captured["settings"].server_name == "XOUT_CLI"
    assert captured["settings"].admin_password == "admin-pw"


def test_cli_reads_passwords_from_environment(tmp_path, monkeypatch):
    monkeypatch.setattr(cli_module, "XStreamProvisioner", FakeProvisioner)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XSTREAMPROV_DB_PASSWORD", "env-sys")
    monkeypatch.setenv("XSTREAMPROV_ADMIN_PASSWORD", "env-admin")
    monkeypatch.setenv("XSTREAMPROV_CONNECT_PASSWORD", "env-connect")

    result = CliRunner().invoke(cli_module.main, ["--host", "db", "--schema", "hr", "--schema", "co"])

    assert result.exit_code == 0, result.output
    captured = FakeProvisioner.captured
    assert captured["connection"].password == "env-sys"
    assert captured["settings"].connect_password == "env-connect"
    assert captured["settings"].schemas == ("HR", "CO")


def test_cli_uses_default_config_file_when_present(tmp_path, monkeypatch):
    (tmp_path / ".xstreamprov.yml").write_text("host: default-host\nskip_verify: true\n", encoding="utf-8")
    monkeypatch.setattr(cli_module, "XStreamProvisioner", FakeProvisioner)
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(
        cli_module.main,
        ["--password", "p", "--admin-password", "a", "--connect-password", "c"],
    )

    assert result.exit_code == 0, result.output
    assert FakeProvisioner.captured["connection"].host == "default-host"
    assert FakeProvisioner.captured["skip_verify"] is True


def test_cli_dry_run_needs_no_host_or_passwords(tmp_path, monkeypatch):
    monkeypatch.setattr(cli_module, "XStreamProvisioner", FakeProvisioner)
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, ["--dry-run"])

    assert result.exit_code == 0, result.output
    assert FakeProvisioner.captured["connection"] is None
    assert FakeProvisioner.captured["dry_run"] is True


def test_cli_requires_host_outside_dry_run(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, [])

    assert result.exit_code != 0
    assert "Missing required option '--host'" in result.output


def test_cli_reports_config_errors(tmp_path):
    config_file = tmp_path / "bad.yml"
    config_file.write_text("password: nope\n", encoding="utf-8")

    result = CliRunner().invoke(cli_module.main, ["--config", str(config_file)])

    assert result.exit_code != 0
    assert "Passwords are not read from config files" in result.output
