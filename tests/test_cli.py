"""Tests for the environment check and the logger."""

from __future__ import annotations


def test_doctor_reports_stack(capsys):
    """pbceri-doctor lists the numeric stack, the backend and the communicator."""
    from pbceri.cli.doctor import main

    main()
    out = capsys.readouterr().out
    assert "pbceri environment check" in out
    assert "- numpy: OK" in out
    assert "- lattice-sum backend: python" in out
    assert "- communicator: SerialCommunicator (rank=0, size=1" in out


def test_logger_levels(capsys, monkeypatch):
    """Messages below the logger verbosity are dropped; errors always print."""
    from pbceri.utils import Logger, new_logger

    log = new_logger(verbose=Logger.WARN)
    log.info("hidden %d", 1)
    log.warn("shown %d", 2)
    log.error("always")
    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "WARN: shown 2" in out
    assert "ERROR: always" in out

    monkeypatch.setenv("PBCERI_VERBOSE", "5")
    assert new_logger().verbose == Logger.DEBUG
