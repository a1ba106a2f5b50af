import pytest

import app


def test_parse_args_defaults_to_config_port() -> None:
    assert app.parse_args([]).health_check_port is None


def test_parse_args_reads_port() -> None:
    assert app.parse_args(["--health-check-port", "9000"]).health_check_port == 9000


def test_parse_args_rejects_unknown_flags() -> None:
    with pytest.raises(SystemExit):
        app.parse_args(["--max-connections", "3"])
