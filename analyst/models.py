import datetime
from types import MappingProxyType
from typing import Any, Mapping, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from analyst.types import Options

REQUEST_DEFAULTS: Mapping[str, Any] = MappingProxyType(
    {
        "accessModes": "WALK",
        "egressModes": "WALK",
        "fromTime": 25200,
        "toTime": 32400,
        "walkSpeed": 1.3333333333333333,
        "bikeSpeed": 4.1,
        "carSpeed": 20,
        "streetTime": 90,
        "maxWalkTime": 20,
        "maxBikeTime": 45,
        "maxCarTime": 45,
        "minBikeTime": 10,
        "minCarTime": 10,
        "suboptimalMinutes": 5,
        "analyst": True,
        "bikeSafe": 1,
        "bikeSlope": 1,
        "bikeTime": 1,
    }
)


def request_defaults(today: datetime.date) -> Options:
    """Return a fresh copy of the request defaults dated `today`."""
    return {**REQUEST_DEFAULTS, "date": today.isoformat()}


def merge_options(base: Mapping[str, Any], overrides: Optional[Mapping[str, Any]]) -> Options:
    return {**base, **(overrides or {})}


class LatLng(BaseModel):
    lat: float
    lng: float = Field(validation_alias=AliasChoices("lng", "lon"))

    @model_validator(mode="before")
    @classmethod
    def from_pair(cls, v):
        if isinstance(v, (tuple, list)):
            if len(v) != 2:
                raise ValueError(f"must be a (lat, lng) pair, but has {len(v)} items")
            return {"lat": v[0], "lng": v[1]}
        return v

    @field_validator("lat")
    def lat_is_in_range(cls, v):
        if v < -90.0 or v > 90.0:
            raise ValueError("must be between -90 and 90")
        return v

    @field_validator("lng")
    def lng_is_in_range(cls, v):
        if v < -180.0 or v > 180.0:
            raise ValueError("must be between -180 and 180")
        return v

    @classmethod
    def coerce(cls, point: Any) -> "LatLng":
        if isinstance(point, cls):
            return point
        return cls.model_validate(point)


class ClientConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    api_url: str = "http://localhost:8000/api"
    tile_url: str = "http://localhost:8000/tile"
    graph_id: Optional[str] = None
    destination_pointset_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("destination_pointset_id", "shapefile_id"),
    )
    profile: bool = True
    connectivity_type: str = "AVERAGE"
    time_limit: int = 3600
    show_points: bool = False
    show_iso: bool = True
    request_options: Options = Field(default_factory=dict)
    tile_layer_options: Options = Field(default_factory=dict)

    @field_validator("api_url", "tile_url")
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    @field_validator("profile", mode="before")
    def profile_defaults_to_true(cls, v):
        return True if v is None else v

    @field_validator("connectivity_type", mode="before")
    def connectivity_type_is_upper(cls, v):
        # Server enum names are upper case, e.g. AVERAGE, BEST_CASE
        return str(v or "AVERAGE").upper()

    @field_validator("time_limit", mode="before")
    def time_limit_defaults_when_unset(cls, v):
        return v or 3600

    @field_validator("time_limit")
    def time_limit_is_positive(cls, v):
        if v <= 0:
            raise ValueError(f"must be a positive number of seconds, got {v}")
        return v

    @field_validator("show_points", "show_iso", mode="before")
    def flags_are_booleans(cls, v, info):
        if v is None:
            return info.field_name == "show_iso"
        return bool(v)

    @field_validator("request_options", "tile_layer_options", mode="before")
    def options_default_to_empty(cls, v):
        return dict(v or {})
