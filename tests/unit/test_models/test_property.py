"""Unit tests for Property model."""

import pytest
from pydantic import ValidationError

from estatedb.models.property import PROPERTY_VALIDATOR, Address, GeoPoint, Property, PropertyStatus, PropertyType
from tests.fixtures.listings import east_legon_house
from tests.utils.factories import create_property_data


def _error_locs(exc_info) -> list[tuple]:
    return [error["loc"] for error in exc_info.value.errors()]


@pytest.mark.unit
class TestPropertyModel:
    """Test Property model validation."""

    def test_create_property_with_all_fields(self):
        """Test the sample listing validates."""
        listing = Property(**east_legon_house())

        assert listing.title == "3-Bedroom House in East Legon"
        assert listing.type == "HOUSE"
        assert listing.status == "FOR_SALE"
        assert listing.address.city == "Accra"
        assert listing.location.longitude == -0.1667
        assert listing.location.latitude == 5.6167

    def test_create_property_minimal(self):
        """Test optional fields may be omitted."""
        data = create_property_data()
        for optional in ("description", "bedrooms", "bathrooms", "area_sqft", "amenities", "images"):
            data.pop(optional)

        listing = Property(**data)

        assert listing.description is None
        assert listing.bedrooms is None
        assert listing.amenities is None

    @pytest.mark.parametrize("property_type", [value.value for value in PropertyType])
    def test_each_type_accepted(self, property_type):
        """Test every declared property type is valid."""
        assert Property(**create_property_data(type=property_type)).type == property_type

    @pytest.mark.parametrize("property_type", ["BOAT", "land", "Villa"])
    def test_unknown_type_rejected(self, property_type):
        """Test type outside the enum is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            Property(**create_property_data(type=property_type))

        assert ("type",) in _error_locs(exc_info)

    @pytest.mark.parametrize("status", [value.value for value in PropertyStatus])
    def test_each_status_accepted(self, status):
        """Test every declared listing status is valid."""
        assert Property(**create_property_data(status=status)).status == status

    def test_enum_members_stored_as_values(self):
        """Test enum members normalize to their string values."""
        listing = Property(**create_property_data(type=PropertyType.LAND, status=PropertyStatus.SOLD))

        assert listing.model_dump()["type"] == "LAND"
        assert listing.model_dump()["status"] == "SOLD"

    @pytest.mark.parametrize("price", [0, 250000, 1999.99])
    def test_price_accepts_non_negative_numbers(self, price):
        """Test int and float prices from zero up."""
        listing = Property(**create_property_data(price=price))

        assert listing.price == price
        assert type(listing.price) is type(price)

    @pytest.mark.parametrize("price", [-1, -0.01, "250000", True, None])
    def test_price_rejects_invalid(self, price):
        """Test negative, string, boolean and null prices."""
        with pytest.raises(ValidationError) as exc_info:
            Property(**create_property_data(price=price))

        assert ("price",) in _error_locs(exc_info)

    @pytest.mark.parametrize("field", ["bedrooms", "bathrooms", "area_sqft"])
    def test_counts_reject_negative(self, field):
        """Test room counts and area are non-negative."""
        with pytest.raises(ValidationError):
            Property(**create_property_data(**{field: -1}))

    @pytest.mark.parametrize("price", [float("nan"), float("inf"), float("-inf")])
    def test_price_rejects_non_finite(self, price):
        """Test NaN and infinite prices fail the non-negative bound."""
        with pytest.raises(ValidationError) as exc_info:
            Property(**create_property_data(price=price))

        assert ("price",) in _error_locs(exc_info)

    def test_price_rejects_integers_beyond_64_bits(self):
        """Test integer prices must fit a BSON long."""
        with pytest.raises(ValidationError):
            Property(**create_property_data(price=2**63))

    @pytest.mark.parametrize("field", ["bedrooms", "bathrooms", "area_sqft"])
    def test_counts_reject_values_beyond_32_bits(self, field):
        """Test room counts and area must fit a BSON int."""
        assert getattr(Property(**create_property_data(**{field: 2**31 - 1})), field) == 2**31 - 1
        with pytest.raises(ValidationError):
            Property(**create_property_data(**{field: 3_000_000_000}))

    @pytest.mark.parametrize("field", ["bedrooms", "bathrooms", "area_sqft"])
    def test_counts_reject_fractions(self, field):
        """Test room counts and area are integers."""
        with pytest.raises(ValidationError):
            Property(**create_property_data(**{field: 2.5}))

    def test_counts_accept_zero_and_null(self):
        """Test zero and null counts are valid."""
        listing = Property(**create_property_data(bedrooms=0, bathrooms=None))

        assert listing.bedrooms == 0
        assert listing.bathrooms is None

    def test_amenities_must_be_strings(self):
        """Test amenity items are strings."""
        with pytest.raises(ValidationError):
            Property(**create_property_data(amenities=["Pool", 3]))

    def test_missing_agent_id_rejected(self):
        """Test agent_id is required."""
        data = create_property_data()
        data.pop("agent_id")

        with pytest.raises(ValidationError) as exc_info:
            Property(**data)

        assert ("agent_id",) in _error_locs(exc_info)


@pytest.mark.unit
class TestGeoPoint:
    """Test GeoJSON point validation."""

    @pytest.mark.parametrize("coordinates", [[-0.1667], [-0.1667, 5.6167, 10.0], []])
    def test_coordinates_need_exactly_two(self, coordinates):
        """Test coordinate arity is exactly two."""
        with pytest.raises(ValidationError) as exc_info:
            GeoPoint(type="Point", coordinates=coordinates)

        assert exc_info.value.errors()[0]["loc"] == ("coordinates",)

    def test_coordinates_with_three_elements_fail_on_property(self):
        """Test arity failure surfaces under location.coordinates."""
        data = create_property_data(location={"type": "Point", "coordinates": [-0.1667, 5.6167, 10.0]})

        with pytest.raises(ValidationError) as exc_info:
            Property(**data)

        assert ("location", "coordinates") in _error_locs(exc_info)

    @pytest.mark.parametrize("coordinates", [[181.0, 0.0], [-180.5, 0.0], [0.0, 90.1], [0.0, -91]])
    def test_coordinates_out_of_range(self, coordinates):
        """Test longitude in [-180, 180] and latitude in [-90, 90]."""
        with pytest.raises(ValidationError):
            GeoPoint(type="Point", coordinates=coordinates)

    @pytest.mark.parametrize("coordinates", [[180, 90], [-180, -90], [0, 0]])
    def test_coordinates_on_bounds_accepted(self, coordinates):
        """Test boundary values are valid."""
        assert GeoPoint(type="Point", coordinates=coordinates).coordinates == coordinates

    @pytest.mark.parametrize("coordinates", [["-0.1667", "5.6167"], [True, 5.6]])
    def test_coordinates_must_be_numbers(self, coordinates):
        """Test strings and booleans are not coordinates."""
        with pytest.raises(ValidationError):
            GeoPoint(type="Point", coordinates=coordinates)

    def test_type_must_be_point(self):
        """Test only GeoJSON points are accepted."""
        with pytest.raises(ValidationError):
            GeoPoint(type="Polygon", coordinates=[0.0, 0.0])

    def test_longitude_first(self):
        """Test coordinate order is [longitude, latitude]."""
        point = GeoPoint(type="Point", coordinates=[-0.1667, 5.6167])

        assert point.longitude == -0.1667
        assert point.latitude == 5.6167


@pytest.mark.unit
class TestAddress:
    """Test embedded address validation."""

    def test_postal_code_optional(self):
        """Test postal_code may be omitted."""
        address = Address(street="12 Palm St", city="Accra", state="Greater Accra", country="Ghana")

        assert address.postal_code is None

    def test_missing_city_reported_with_path(self):
        """Test nested missing fields report a dotted location."""
        data = create_property_data()
        del data["address"]["city"]

        with pytest.raises(ValidationError) as exc_info:
            Property(**data)

        assert ("address", "city") in _error_locs(exc_info)


@pytest.mark.unit
def test_property_validator_matches_model():
    """Test the server-side validator mirrors the model."""
    schema = PROPERTY_VALIDATOR["$jsonSchema"]

    assert set(schema["required"]) == {
        "title", "type", "status", "price", "location", "address", "agent_id", "created_at",
    }
    assert schema["properties"]["type"]["enum"] == ["HOUSE", "APARTMENT", "LAND", "COMMERCIAL"]
    assert schema["properties"]["status"]["enum"] == ["FOR_SALE", "SOLD", "FOR_RENT", "RENTED"]
    coordinates = schema["properties"]["location"]["properties"]["coordinates"]
    assert coordinates["minItems"] == 2
    assert coordinates["maxItems"] == 2
    assert schema["properties"]["address"]["required"] == ["street", "city", "state", "country"]
