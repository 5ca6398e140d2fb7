"""Tests for the command-line entry point."""

from datetime import timedelta

import pytest

from aq_sensor_lib import cli
from aq_sensor_lib.errors import DeviceIOError
from fakes.fake_serial import FakeSerial

ENV_VARS = ["SERIAL_DEVICE_PATH", "METRIC_NAMESPACE", "POLL_INTERVAL_MS", "LOG_LEVEL"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class StubMetricsClient:
    def __init__(self) -> None:
        self.batches = []

    def submit(self, namespace, data) -> None:
        self.batches.append((namespace, list(data)))


def parse(argv):
    return cli.config_from_args(cli.build_parser().parse_args(argv))


def test_missing_required_arguments_listed_together(monkeypatch, caplog) -> None:
    """Test that all missing flags are reported in one message."""
    def fail(*args, **kwargs):
        raise AssertionError("pipeline dependencies must not be created")

    monkeypatch.setattr(cli, "CloudWatchMetricsClient", fail)

    assert cli.main([]) == 1
    assert any(
        "missing required argument(s): serial-device-path, metric-namespace" in r.getMessage()
        for r in caplog.records
    )


def test_single_missing_argument() -> None:
    """Test the message when only the namespace is missing."""
    with pytest.raises(ValueError, match=r"missing required argument\(s\): metric-namespace$"):
        parse(["--serial-device-path", "/dev/ttyUSB0"])


def test_flags_build_config() -> None:
    """Test a fully specified command line."""
    config = parse(
        [
            "--poll-interval", "2500",
            "--serial-device-path", "/dev/ttyUSB0",
            "--metric-namespace", "Home/AirQuality",
        ]
    )

    assert config.serial_device_path == "/dev/ttyUSB0"
    assert config.metric_namespace == "Home/AirQuality"
    assert config.poll_interval_ms == 2500
    assert config.poll_interval_s == 2.5
    assert config.warm_up_period == timedelta(hours=2)


def test_default_poll_interval() -> None:
    """Test the 5 second default poll interval."""
    config = parse(["--serial-device-path", "/dev/ttyUSB0", "--metric-namespace", "NS"])
    assert config.poll_interval_ms == 5000


def test_environment_fallbacks(monkeypatch) -> None:
    """Test that environment variables fill in missing flags."""
    monkeypatch.setenv("SERIAL_DEVICE_PATH", "/dev/ttyAMA0")
    monkeypatch.setenv("METRIC_NAMESPACE", "Garage/AirQuality")
    monkeypatch.setenv("POLL_INTERVAL_MS", "10000")

    config = parse([])

    assert config.serial_device_path == "/dev/ttyAMA0"
    assert config.metric_namespace == "Garage/AirQuality"
    assert config.poll_interval_ms == 10000


def test_flag_overrides_environment(monkeypatch) -> None:
    """Test that an explicit flag wins over the environment."""
    monkeypatch.setenv("POLL_INTERVAL_MS", "10000")
    config = parse(
        ["--serial-device-path", "/dev/ttyUSB0", "--metric-namespace", "NS", "--poll-interval", "750"]
    )
    assert config.poll_interval_ms == 750


@pytest.mark.parametrize("argv_extra", [["--poll-interval", "0"], ["--poll-interval", "-5"]])
def test_invalid_poll_interval(argv_extra) -> None:
    """Test that a non-positive poll interval is rejected."""
    with pytest.raises(ValueError, match="poll_interval_ms"):
        parse(["--serial-device-path", "/dev/ttyUSB0", "--metric-namespace", "NS"] + argv_extra)


def test_invalid_poll_interval_environment(monkeypatch) -> None:
    """Test a non-numeric POLL_INTERVAL_MS."""
    monkeypatch.setenv("POLL_INTERVAL_MS", "soon")
    with pytest.raises(ValueError, match="POLL_INTERVAL_MS"):
        parse(["--serial-device-path", "/dev/ttyUSB0", "--metric-namespace", "NS"])


def test_serial_open_failure_exits_nonzero(monkeypatch, caplog) -> None:
    """Test that an unopenable device stops the process before polling."""
    def fail_open(cls, serial_device_path, baud=9600):
        raise DeviceIOError(f"Failed to open {serial_device_path} at {baud} baud")

    monkeypatch.setattr(cli, "CloudWatchMetricsClient", StubMetricsClient)
    monkeypatch.setattr(cli.AirQualitySensor, "open", classmethod(fail_open))

    status = cli.main(["--serial-device-path", "/dev/ttyUSB9", "--metric-namespace", "NS"])

    assert status == 1
    assert any("/dev/ttyUSB9" in r.getMessage() for r in caplog.records)


def test_main_runs_until_serial_failure(monkeypatch) -> None:
    """Test the wiring from command line to submitted metrics."""
    fake_serial = FakeSerial(uptime=timedelta(hours=4))
    fake_serial.fail_read_after_requests = 2
    metrics_client = StubMetricsClient()

    def open_fake(cls, serial_device_path, baud=9600):
        return cls.from_serial(fake_serial, settle_delay=0.0, read_backoff=0.001)

    monkeypatch.setattr(cli, "CloudWatchMetricsClient", lambda: metrics_client)
    monkeypatch.setattr(cli.AirQualitySensor, "open", classmethod(open_fake))

    status = cli.main(
        [
            "--serial-device-path", "/dev/ttyUSB0",
            "--metric-namespace", "Home/AirQuality",
            "--poll-interval", "10",
        ]
    )

    assert status == 1
    assert len(metrics_client.batches) == 2
    assert all(ns == "Home/AirQuality" for ns, _ in metrics_client.batches)
    assert not fake_serial.is_open


def test_log_level_flag_configures_logging_before_validation(monkeypatch) -> None:
    """Test that --log-level is applied even when the rest of the config is invalid."""
    levels = []
    monkeypatch.setattr(cli, "configure_logging", levels.append)

    status = cli.main(["--log-level", "debug"])

    assert status == 1
    assert levels == ["debug"]


def test_log_level_environment_fallback(monkeypatch) -> None:
    """Test LOG_LEVEL as the default for --log-level."""
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    args = cli.build_parser().parse_args([])
    assert args.log_level == "WARNING"
