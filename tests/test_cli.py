"""
Tests for the command-line front end.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

import main
from profile_sync.errors import AuthenticationError, ValidationError
from profile_sync.models import PhoneType, ProfileData
from profile_sync.services import ReconcileResult


@pytest.fixture
def fake_service(settings):
    service = MagicMock()
    service.load.return_value = ProfileData(id="42", full_name="Karimov Ali")
    service.profile = ProfileData(id="42", full_name="Karimov Ali")
    with patch("main.get_settings", return_value=settings), \
            patch("main.setup_logging"), \
            patch("main.ProfileService", return_value=service):
        yield service


class TestParser:
    def test_address_arguments(self):
        args = main.build_parser().parse_args(
            ["address", "add", "--province", "1", "--district", "4", "--district", "5"]
        )
        value = main._address_value(args)
        assert value.province_id == 1
        assert value.district_ids == [4, 5]

    def test_education_currently_studying(self):
        args = main.build_parser().parse_args(
            ["education", "add", "--institution", "TTU", "--start", "2020", "--end", "2024", "--current"]
        )
        entry = main._education(args)
        assert entry.end_year is None
        assert entry.currently_studying is True

    def test_phone_type_choices(self):
        with pytest.raises(SystemExit):
            main.build_parser().parse_args(["phone", "set", "mobile", "+992912345678"])


class TestMain:
    def test_show_prints_json(self, fake_service, capsys):
        assert main.main(["show", "--user", "42"]) == 0

        fake_service.load.assert_called_once_with("42")
        output = json.loads(capsys.readouterr().out)
        assert output["id"] == "42"
        assert output["full_name"] == "Karimov Ali"

    def test_output_file(self, fake_service, tmp_path, capsys):
        target = tmp_path / "out" / "profile.json"
        main.main(["--output", str(target), "show"])

        assert json.loads(target.read_text(encoding="utf-8"))["id"] == "42"
        assert capsys.readouterr().out == ""

    def test_phone_set(self, fake_service):
        fake_service.set_phone.return_value = ReconcileResult(ok=True)

        assert main.main(["phone", "set", "tj", "+992912345678"]) == 0
        fake_service.set_phone.assert_called_once_with(PhoneType.TJ, "+992912345678")

    def test_failed_reconcile_exit_code(self, fake_service):
        fake_service.remove_social_network.return_value = ReconcileResult(
            ok=False, error=ValidationError("rejected", 422)
        )

        with pytest.raises(SystemExit) as exc_info:
            main.main(["social", "remove", "1"])
        assert exc_info.value.code == ValidationError.exit_code

    def test_api_error_exit_code(self, fake_service):
        fake_service.load.side_effect = AuthenticationError("expired", 401)

        with pytest.raises(SystemExit) as exc_info:
            main.main(["show"])
        assert exc_info.value.code == AuthenticationError.exit_code

    def test_unloaded_profile_blocks_mutations(self, fake_service):
        fake_service.load.return_value = ProfileData()

        with pytest.raises(SystemExit) as exc_info:
            main.main(["remote", "on"])
        assert exc_info.value.code == 1
        fake_service.set_can_work_remotely.assert_not_called()
