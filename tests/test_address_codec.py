"""
Tests for profile_sync.services.address_codec.
"""

from profile_sync.models.address import AddressValue
from profile_sync.services import address_codec


class TestEncode:
    """Tests for rendering an address selection as IRIs."""

    def test_no_province_returns_none(self):
        """Without a province nothing is submitted, whatever else is set."""
        value = AddressValue(city_id=2, district_ids=[4], settlement_id=9)
        assert address_codec.encode(value) is None

    def test_city_with_suburb(self):
        value = AddressValue(province_id=1, city_id=2, suburb_ids=[5, 6])
        assert address_codec.encode(value) == {
            "province": "/api/provinces/1",
            "city": "/api/cities/2",
            "suburb": "/api/suburbs/5",
        }

    def test_district_with_settlement_and_village(self):
        value = AddressValue(province_id=1, district_ids=[4], settlement_id=8, village_id=12)
        assert address_codec.encode(value) == {
            "province": "/api/provinces/1",
            "district": "/api/districts/4",
            "settlement": "/api/settlements/8",
            "village": "/api/villages/12",
        }

    def test_district_with_community(self):
        value = AddressValue(province_id=1, district_ids=[4], community_id=3)
        data = address_codec.encode(value)
        assert data["community"] == "/api/communities/3"
        assert "settlement" not in data

    def test_city_takes_precedence_over_district(self):
        value = AddressValue(province_id=1, city_id=2, district_ids=[4])
        data = address_codec.encode(value)
        assert "city" in data
        assert "district" not in data

    def test_province_always_present_for_valid_values(self):
        for value in (
            AddressValue(province_id=1, city_id=2),
            AddressValue(province_id=1, district_ids=[3]),
        ):
            assert value.is_submittable()
            assert address_codec.encode(value)["province"] == "/api/provinces/1"


class TestDecode:
    """Tests for extracting level ids from server addresses."""

    def test_object_form(self):
        value = address_codec.decode({
            "id": 11,
            "province": {"id": 1, "title": "Dushanbe"},
            "city": {"id": 2, "title": "Dushanbe city"},
            "suburb": {"id": 5, "title": "Sino"},
        })
        assert value.province_id == 1
        assert value.city_id == 2
        assert value.suburb_ids == [5]
        assert value.district_ids == []

    def test_iri_form(self):
        value = address_codec.decode({
            "province": "/api/provinces/1",
            "district": "/api/districts/4",
            "community": "/api/communities/3",
        })
        assert value.province_id == 1
        assert value.district_ids == [4]
        assert value.community_id == 3

    def test_malformed_levels_are_absent(self):
        value = address_codec.decode({"province": 17, "city": "Khujand", "district": {"title": "x"}})
        assert value == AddressValue()

    def test_encode_then_decode_keeps_ids(self):
        value = AddressValue(province_id=1, district_ids=[4], settlement_id=8, village_id=12)
        decoded = address_codec.decode(address_codec.encode(value))
        assert decoded == value


class TestDisplayText:
    """Tests for the human-readable address line."""

    def test_fixed_level_order(self):
        text = address_codec.to_display_text({
            "village": {"id": 9, "title": "Village"},
            "district": {"id": 4, "title": "Rudaki"},
            "province": {"id": 1, "title": "RRP"},
        })
        assert text == "RRP, Rudaki, Village"

    def test_empty_address(self):
        assert address_codec.to_display_text({}) == ""

    def test_skips_empty_titles(self):
        text = address_codec.to_display_text({
            "province": {"id": 1, "title": "Sughd"},
            "city": {"id": 2, "title": "  "},
        })
        assert text == "Sughd"


class TestIriForm:
    def test_keeps_id_and_converts_objects(self):
        data = address_codec.to_iri_form({
            "id": 11,
            "province": {"id": 1, "title": "Dushanbe"},
            "city": "/api/cities/2",
        })
        assert data == {"id": 11, "province": "/api/provinces/1", "city": "/api/cities/2"}
