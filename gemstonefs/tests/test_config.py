import os.path

from configparser import ConfigParser

from gemstonefs.config import Config, LimitsConfig, WorkspaceConfig


def test_limits_config_defaults():
    parser = ConfigParser()
    parser.read_string("[limits]")

    cfg = LimitsConfig.load(parser["limits"])

    assert cfg.query_limit == 65525
    assert cfg.symbol_list_limit == 65525
    assert cfg.fileout_limit == 1024 * 1024
    assert cfg.evaluate_limit == 1024


def test_limits_config_load():
    parser = ConfigParser()
    parser.read_string(
        """
        [limits]
        query_limit = 123
        symbol_list_limit = 456
        fileout_limit = 789
        evaluate_limit = 10
        """
    )

    cfg = LimitsConfig.load(parser["limits"])

    assert cfg.query_limit == 123
    assert cfg.symbol_list_limit == 456
    assert cfg.fileout_limit == 789
    assert cfg.evaluate_limit == 10


def test_workspace_config_load():
    parser = ConfigParser()
    parser.read_string(
        """
        [workspace]
        path = ~/test.code-workspace
        """
    )

    cfg = WorkspaceConfig.load(parser["workspace"])

    assert cfg.path == os.path.expanduser("~/test.code-workspace")


def test_config_defaults(tmpdir, caplog):
    cfg = Config.load(str(tmpdir / "nonexistent"))

    assert cfg.limits == LimitsConfig()
    assert cfg.workspace == WorkspaceConfig()
    assert "no config file" in caplog.text


def test_config_load(tmp_path):
    (tmp_path / "config").write_text(
        """
        [limits]
        fileout_limit = 2048

        [workspace]
        path = ~/test.code-workspace
        """
    )

    cfg = Config.load(str(tmp_path / "config"))

    assert cfg.limits.fileout_limit == 2048
    assert cfg.limits.query_limit == 65525
    assert cfg.workspace.path == os.path.expanduser("~/test.code-workspace")


def test_config_load_failure_nonfatal(tmp_path, caplog):
    (tmp_path / "config").write_text("blabla")

    cfg = Config.load(str(tmp_path / "config"))

    assert cfg.limits is not None
    assert "failed to read config file" in caplog.text


def test_config_invalid_value_nonfatal(tmp_path):
    (tmp_path / "config").write_text("[limits]\nquery_limit = lots\n")

    cfg = Config.load(str(tmp_path / "config"))

    assert cfg.limits.query_limit == 65525
