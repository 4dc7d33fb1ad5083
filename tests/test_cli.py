"""Tests for the command line interface."""

from face_locker.cli import build_parser, main


class TestParser:
    """Argument parsing."""

    def test_verify(self):
        args = build_parser().parse_args(["verify", "alice", "--contact", "owner@example.com"])

        assert args.command == "verify"
        assert args.identity == "alice"
        assert args.contact == "owner@example.com"
        assert args.gallery is None

    def test_global_options(self):
        args = build_parser().parse_args(["--debug", "-c", "my.yaml", "calibrate", "--samples", "5"])

        assert args.debug is True
        assert args.config == "my.yaml"
        assert args.samples == 5

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "face-locker" in capsys.readouterr().out
