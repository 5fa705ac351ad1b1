import subprocess
from unittest.mock import patch

import pytest

from scripts import run_load_test


def test_defaults_target_recommendation_locustfile():
    with patch("scripts.run_load_test.subprocess.run") as mock_run:
        run_load_test.main(["https://staging.example"])

    cmd = mock_run.call_args.args[0]
    assert cmd[:3] == ["locust", "-f", "load/recommendations.py"]
    assert cmd[cmd.index("-u") + 1] == str(run_load_test.DEFAULT_USERS)
    assert cmd[-2:] == ["--host", "https://staging.example"]


def test_custom_arguments():
    with patch("scripts.run_load_test.subprocess.run") as mock_run:
        run_load_test.main(
            ["https://x", "--users", "5", "--spawn-rate", "1", "--duration", "30s"]
        )

    cmd = mock_run.call_args.args[0]
    assert cmd[cmd.index("-u") + 1] == "5"
    assert cmd[cmd.index("-r") + 1] == "1"
    assert cmd[cmd.index("-t") + 1] == "30s"


def test_failed_run_propagates_exit_code():
    with patch(
        "scripts.run_load_test.subprocess.run",
        side_effect=subprocess.CalledProcessError(3, ["locust"]),
    ):
        with pytest.raises(SystemExit) as exc_info:
            run_load_test.main(["https://x"])

    assert exc_info.value.code == 3
