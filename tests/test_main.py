"""
==============================================================================
Command Line Tests
==============================================================================

Tests for argument parsing, terminal output and the non-camera commands.

==============================================================================
"""

from pathlib import Path

import httpx
import pytest

from fastpack.analysis import AnalysisCounters, BucketCounts
from fastpack.core.security import TokenStore
from fastpack.main import FastPackApp, build_parser, format_counters, format_record, run

from conftest import SHIPMENT_ID, shipment_payload


@pytest.fixture
def make_app(backend_app, settings):
    def factory(token=None) -> FastPackApp:
        return FastPackApp(
            settings,
            token_store=TokenStore(token),
            transport=httpx.ASGITransport(app=backend_app),
        )
    return factory


class TestParser:
    """Tests for build_parser."""

    def test_pack_defaults(self):
        """Test pack defaults to the settings camera and a 60s timeout."""
        args = build_parser().parse_args(["pack"])

        assert args.camera is None
        assert args.image is None
        assert args.timeout == 60.0

    def test_pack_image_and_photo(self):
        """Test paths are parsed as Path."""
        args = build_parser().parse_args(["pack", "--image", "label.png", "--photo", "box.jpg"])

        assert args.image == Path("label.png")
        assert args.photo == Path("box.jpg")

    def test_camera_and_image_exclusive(self):
        """Test --camera and --image cannot be combined."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["pack", "--camera", "1", "--image", "x.png"])

    def test_command_required(self):
        """Test a command must be given."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestFormatting:
    """Tests for terminal output."""

    def test_format_counters(self):
        """Test the summary table lists both groups."""
        counters = AnalysisCounters(
            total=6,
            self_managed=BucketCounts(ready_to_print=1, ready_to_prepare=2, pending=0),
            dispatch=BucketCounts(ready_to_print=0, ready_to_prepare=0, pending=3),
        )

        text = format_counters(counters)

        assert "Total shipments: 6" in text
        assert text.splitlines()[3].split() == ["Self-managed", "1", "2", "0"]
        assert text.splitlines()[4].split() == ["Dispatch", "0", "0", "3"]

    def test_format_record(self, make_record, packed_photo):
        """Test the record summary shows items and photo."""
        text = format_record(make_record().with_packed_photo(packed_photo))

        assert f"Shipment {SHIPMENT_ID} (2 units)" in text
        assert "2 x Taza de ceramica [Azul]" in text
        assert packed_photo.url in text


class TestCommands:
    """Tests for commands run against the fake backend."""

    async def test_summary(self, make_app, backend_app, capsys):
        """Test summary prints the counters."""
        backend_app.state.shipments = {1: shipment_payload(1)}
        args = build_parser().parse_args(["summary"])
        app = make_app("test-token")

        assert await args.handler(app, args) == 0

        assert "Total shipments: 1" in capsys.readouterr().out
        await app.aclose()

    async def test_summary_requires_login(self, make_app, capsys):
        """Test commands needing a token refuse to run without one."""
        args = build_parser().parse_args(["summary"])
        app = make_app()

        assert await args.handler(app, args) == 1

        assert "Not logged in" in capsys.readouterr().out
        await app.aclose()

    async def test_summary_backend_failure(self, make_app, backend_app, capsys):
        """Test a failing backend prints the error."""
        backend_app.state.fail_with = 500
        args = build_parser().parse_args(["summary"])
        app = make_app("test-token")

        assert await args.handler(app, args) == 1

        assert "Could not load summary: API error: 500" in capsys.readouterr().out
        await app.aclose()

    async def test_login_and_logout(self, make_app, capsys):
        """Test login stores the token and logout clears it."""
        app = make_app()
        parser = build_parser()

        login = parser.parse_args(["login", "--email", "packer@example.com", "--password", "secret"])
        assert await login.handler(app, login) == 0
        assert app.token_store.get_token() == "token-packer@example.com"

        logout = parser.parse_args(["logout"])
        assert await logout.handler(app, logout) == 0
        assert app.token_store.get_token() is None

        out = capsys.readouterr().out
        assert "Logged in as Packer" in out
        assert "Logged out" in out
        await app.aclose()

    async def test_login_failure(self, make_app, capsys):
        """Test a rejected login exits with 1."""
        app = make_app()
        args = build_parser().parse_args(["login", "--email", "packer@example.com", "--password", "bad"])

        assert await args.handler(app, args) == 1

        assert "Login failed: Invalid credentials" in capsys.readouterr().out
        await app.aclose()

    async def test_run_logout_with_file_store(self, settings, capsys):
        """Test run() wires the file token store from settings."""
        settings.token_path.parent.mkdir(parents=True, exist_ok=True)
        settings.token_path.write_text('{"token": "abc"}')
        args = build_parser().parse_args(["logout"])

        assert await run(args, settings) == 0

        assert "Logged out" in capsys.readouterr().out
        assert not settings.token_path.exists()
