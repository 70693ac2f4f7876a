"""Unit tests for raw record to Lead conversion."""

import pytest

from lead_discovery.integrations.google_maps import PlaceResult
from lead_discovery.integrations.yelp import YelpBusiness
from lead_discovery.models.lead import LeadSource
from lead_discovery.search.converter import (
    SOURCE_CONFIDENCE,
    coerce_float,
    coerce_int,
    industry_from_types,
    parse_address_blob,
    parse_address_components,
    parse_location_hint,
    perplexity_to_lead,
    place_to_lead,
    yelp_to_lead,
)

SANTA_FE_COMPONENTS = [
    {"long_name": "123", "short_name": "123", "types": ["street_number"]},
    {"long_name": "Main Street", "short_name": "Main St", "types": ["route"]},
    {"long_name": "Santa Fe", "short_name": "Santa Fe", "types": ["locality", "political"]},
    {
        "long_name": "New Mexico",
        "short_name": "NM",
        "types": ["administrative_area_level_1", "political"],
    },
    {"long_name": "87501", "short_name": "87501", "types": ["postal_code"]},
]


class TestIndustryFromTypes:
    @pytest.mark.unit
    def test_first_specific_type(self):
        assert industry_from_types(["point_of_interest", "car_repair", "store"]) == "car repair"

    @pytest.mark.unit
    def test_fallback_when_only_generic(self):
        assert industry_from_types(["point_of_interest", "establishment"], "plumbers") == "plumbers"


class TestAddressParsing:
    """Tests for structured and free-text address parsing."""

    @pytest.mark.unit
    def test_components(self):
        assert parse_address_components(SANTA_FE_COMPONENTS) == ("Santa Fe", "NM", "87501")

    @pytest.mark.unit
    def test_components_postal_town(self):
        components = [{"long_name": "Bath", "types": ["postal_town"]}]

        assert parse_address_components(components) == ("Bath", "", None)

    @pytest.mark.unit
    def test_blob_us_address(self):
        assert parse_address_blob("123 Main St, Santa Fe, NM 87501, USA") == (
            "Santa Fe",
            "NM",
            "87501",
        )

    @pytest.mark.unit
    def test_blob_zip_plus_four(self):
        assert parse_address_blob("9 Elm Ave, Austin, TX 78701-1234") == (
            "Austin",
            "TX",
            "78701-1234",
        )

    @pytest.mark.unit
    def test_blob_state_without_zip(self):
        assert parse_address_blob("1 A St, Austin, Texas") == ("Austin", "Texas", None)

    @pytest.mark.unit
    def test_blob_single_part(self):
        assert parse_address_blob("Main Street") == ("", "", None)

    @pytest.mark.unit
    def test_location_hint(self):
        assert parse_location_hint("Santa Fe, New Mexico") == ("Santa Fe", "New Mexico")
        assert parse_location_hint("Denver") == ("Denver", "")
        assert parse_location_hint(None) == ("", "")


class TestCoercion:
    @pytest.mark.unit
    def test_float(self):
        assert coerce_float("4.2") == 4.2
        assert coerce_float("") is None
        assert coerce_float("n/a") is None

    @pytest.mark.unit
    def test_int(self):
        assert coerce_int("120") == 120
        assert coerce_int(15.0) == 15
        assert coerce_int(None) is None


class TestPlaceToLead:
    """Tests for Google Places conversion."""

    @pytest.mark.unit
    def test_full_record(self):
        place = PlaceResult(
            place_id="place_abc",
            name="ABC Plumbing",
            formatted_address="123 Main St, Santa Fe, NM 87501, USA",
            national_phone="(505) 555-0100",
            international_phone="+1 505-555-0100",
            website="https://abcplumbing.com",
            rating=4.6,
            review_count=87,
            types=["plumber", "point_of_interest"],
            address_components=SANTA_FE_COMPONENTS,
        )

        lead = place_to_lead(place, "plumbers")

        assert lead is not None
        assert lead.name == "ABC Plumbing"
        assert lead.industry == "plumber"
        assert (lead.city, lead.state, lead.postal_code) == ("Santa Fe", "NM", "87501")
        assert lead.phone == "(505) 555-0100"
        assert lead.website == "https://abcplumbing.com"
        assert lead.source == LeadSource.GOOGLE_PLACES.value
        assert lead.confidence_score == SOURCE_CONFIDENCE[LeadSource.GOOGLE_PLACES.value]
        assert lead.provider_id == "place_abc"
        assert lead.opportunity_score == 50

    @pytest.mark.unit
    def test_international_phone_fallback(self):
        place = PlaceResult(
            place_id="p1",
            name="Shop",
            formatted_address="1 Road, Santa Fe, NM 87501",
            international_phone="+1 505-555-0199",
        )

        assert place_to_lead(place).phone == "+1 505-555-0199"

    @pytest.mark.unit
    def test_address_blob_fallback(self):
        place = PlaceResult(
            place_id="p1",
            name="Shop",
            formatted_address="1 Road, Santa Fe, NM 87501, USA",
        )

        lead = place_to_lead(place)

        assert (lead.city, lead.state, lead.postal_code) == ("Santa Fe", "NM", "87501")

    @pytest.mark.unit
    def test_missing_name_rejected(self):
        place = PlaceResult(place_id="p1", name="  ", formatted_address="1 Road")

        assert place_to_lead(place) is None

    @pytest.mark.unit
    def test_missing_address_rejected(self):
        place = PlaceResult(place_id="p1", name="Shop", formatted_address="")

        assert place_to_lead(place) is None

    @pytest.mark.unit
    def test_permanently_closed_rejected(self):
        place = PlaceResult(
            place_id="p1",
            name="Shop",
            formatted_address="1 Road",
            business_status="CLOSED_PERMANENTLY",
        )

        assert place_to_lead(place) is None

    @pytest.mark.unit
    def test_blank_website_becomes_none(self):
        place = PlaceResult(place_id="p1", name="Shop", formatted_address="1 Road", website="  ")

        assert place_to_lead(place).website is None


class TestYelpToLead:
    @pytest.mark.unit
    def test_conversion(self):
        business = YelpBusiness(
            id="yelp-123",
            name="Taco Town",
            address="55 Sunset Blvd",
            city="Los Angeles",
            state="CA",
            zip_code="90028",
            phone="(323) 555-0110",
            rating=4.0,
            review_count=210,
            yelp_url="https://www.yelp.com/biz/taco-town",
            categories=["Mexican", "Tacos"],
        )

        lead = yelp_to_lead(business, "tacos")

        assert lead.industry == "Mexican"
        assert lead.website is None
        assert lead.provider_id == "yelp:yelp-123"
        assert lead.source == LeadSource.YELP.value

    @pytest.mark.unit
    def test_missing_address_rejected(self):
        assert yelp_to_lead(YelpBusiness(id="x", name="No Address")) is None


class TestPerplexityToLead:
    @pytest.mark.unit
    def test_conversion_with_string_numbers(self):
        row = {
            "name": "Desert Dental",
            "address": "400 Cerrillos Rd, Santa Fe, NM 87505",
            "phone": "(505) 555-0123",
            "website": "desertdental.com",
            "rating": "4.2",
            "reviewCount": "120",
        }

        lead = perplexity_to_lead(row, "dentists", "Santa Fe, New Mexico")

        assert lead.rating == 4.2
        assert lead.review_count == 120
        assert lead.industry == "dentists"
        assert (lead.city, lead.state, lead.postal_code) == ("Santa Fe", "NM", "87505")
        assert lead.source == LeadSource.PERPLEXITY.value

    @pytest.mark.unit
    def test_location_hint_fills_missing_city(self):
        row = {"name": "Corner Cafe", "address": "12 Plaza", "phone": "555-0100"}

        lead = perplexity_to_lead(row, "cafe", "Santa Fe, New Mexico")

        assert (lead.city, lead.state) == ("Santa Fe", "New Mexico")

    @pytest.mark.unit
    def test_missing_name_rejected(self):
        assert perplexity_to_lead({"address": "12 Plaza"}) is None
