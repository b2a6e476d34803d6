"""Tests for the subject-registry command line."""

from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from subject_registry.cli import main
from subject_registry.infrastructure.serialization import encode_change_event
from tests.builders import ChangeEventBuilder


class TestDecodeCommand:
    def test_decodes_valid_payload(self):
        payload = encode_change_event(ChangeEventBuilder().with_subject_id("42").build())

        result = CliRunner().invoke(main, ["decode", payload.hex()])

        assert result.exit_code == 0
        assert "John Doe" in result.output
        assert "42" in result.output

    def test_reports_undecodable_payload(self):
        result = CliRunner().invoke(main, ["decode", "0102030405"])

        assert result.exit_code == 1
        assert "✗" in result.output

    def test_rejects_non_hex_input(self):
        result = CliRunner().invoke(main, ["decode", "not-hex"])

        assert result.exit_code == 2
        assert "not valid hex" in result.output


class TestServeCommands:
    def test_help_lists_commands(self):
        result = CliRunner().invoke(main, ["--help"])

        assert result.exit_code == 0
        for command in ("consume", "billing", "decode"):
            assert command in result.output

    @patch("subject_registry.cli._serve_forever", new_callable=AsyncMock)
    def test_consume_starts_serving(self, serve):
        result = CliRunner().invoke(main, ["consume", "--nats-url", "nats://broker:4222"])

        assert result.exit_code == 0
        factory = serve.await_args.args[0]
        assert factory.settings.nats.servers == ["nats://broker:4222"]

    @patch("subject_registry.cli._serve_forever", new_callable=AsyncMock)
    def test_billing_starts_serving(self, serve):
        result = CliRunner().invoke(main, ["billing"])

        assert result.exit_code == 0
        serve.assert_awaited_once()

    def test_invalid_nats_url(self):
        result = CliRunner().invoke(main, ["consume", "--nats-url", "http://broker"])

        assert result.exit_code != 0
