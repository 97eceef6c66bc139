from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SingleOptions(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    from_lat: float = Field(alias="fromLat")
    from_lon: float = Field(alias="fromLon")
    to_lat: Optional[float] = Field(None, alias="toLat")
    to_lon: Optional[float] = Field(None, alias="toLon")


class SingleRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    graph_id: str = Field(alias="graphId")
    destination_pointset_id: Optional[str] = Field(None, alias="destinationPointsetId")
    profile: bool = True
    options: SingleOptions
