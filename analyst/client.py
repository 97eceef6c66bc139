import asyncio
import datetime
import logging
from typing import Any, Callable, NamedTuple, Optional

import httpx

from analyst.errors import (
    MissingDestinationPointsetIdError,
    MissingGraphIdError,
    MissingPointError,
    NetworkError,
    NoResultYetError,
    ResponseParseError,
    ServerError,
)
from analyst.layers import (
    TileLayer,
    TileLayerFactory,
    TileLayerHandle,
    set_layer_url,
    tile_url,
)
from analyst.models import ClientConfig, LatLng, merge_options, request_defaults
from analyst.types import Options, PointLike

logger = logging.getLogger(__name__)

HEADERS = {"Accept": "application/json", "Content-Type": "application/json"}


class SinglePointResult(NamedTuple):
    tile_layer: TileLayerHandle
    results: dict[str, Any]


class Analyst:
    """Client for single point requests against a transport analysis API.

    Results are rendered by a remote tile server; the client only keeps the
    last result `key` and one tile layer whose URL template it rewrites.

    Concurrent `single_point_request` calls on one instance race on `key` and
    `tile_layer`: whichever response arrives last wins.

    Example:
        >>> async with Analyst(ipyleaflet.TileLayer, api_url=..., tile_url=...,
        ...                    graph_id="g", shapefile_id="s") as analyst:
        ...     res = await analyst.single_point_request({"lat": 39.0, "lng": -77.0})
        ...     m.add(res.tile_layer)
    """

    def __init__(
        self,
        tile_layer_factory: Optional[TileLayerFactory] = None,
        config: Optional[ClientConfig] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        today: Optional[Callable[[], datetime.date]] = None,
        **config_kwargs: Any,
    ):
        if config is None:
            config = ClientConfig(**config_kwargs)
        elif config_kwargs:
            if "shapefile_id" in config_kwargs:
                config_kwargs["destination_pointset_id"] = config_kwargs.pop("shapefile_id")
            config = ClientConfig(**{**config.model_dump(), **config_kwargs})
        self.config = config
        self.tile_layer_factory = tile_layer_factory or TileLayer

        today = today or datetime.date.today
        self.request_options = merge_options(
            request_defaults(today()), config.request_options
        )
        self.tile_layer_options = dict(config.tile_layer_options)

        self.key: Optional[str] = None
        self.tile_layer: Optional[TileLayerHandle] = None

        self._owns_http = http_client is None
        if http_client is None:
            http_client = httpx.AsyncClient(timeout=None)
        self._http = http_client

    async def __aenter__(self) -> "Analyst":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def update_tile_layer(
        self, key: Optional[str] = None, comparison_key: Optional[str] = None
    ) -> TileLayerHandle:
        """Create the single point tile layer, or point the existing one at `key`.

        Falls back to the stored key. With `comparison_key` the layer renders
        the difference between both results.

        Raises:
            NoResultYetError: When there is neither a `key` nor a stored key
        """
        key = key or self.key
        if not key:
            raise NoResultYetError()

        url = tile_url(
            self.config.tile_url,
            key,
            comparison_key,
            connectivity_type=self.config.connectivity_type,
            time_limit=self.config.time_limit,
            show_points=self.config.show_points,
            show_iso=self.config.show_iso,
        )

        if self.tile_layer is None:
            logger.debug("Creating tile layer for %s", url)
            self.tile_layer = self.tile_layer_factory(url=url, **self.tile_layer_options)
        else:
            set_layer_url(self.tile_layer, url)

        return self.tile_layer

    async def list_shapefiles(self) -> list[dict[str, Any]]:
        shapefiles = await self._get("/shapefiles")
        if not isinstance(shapefiles, list):
            raise ResponseParseError(
                f"Expected a list of shapefiles, got {type(shapefiles).__name__}"
            )
        return shapefiles

    async def single_point_request(
        self,
        point: Optional[PointLike],
        options: Optional[Options] = None,
        *,
        graph_id: Optional[str] = None,
        destination_pointset_id: Optional[str] = None,
    ) -> SinglePointResult:
        """Run a single point request and point the tile layer at its result.

        The stored key and tile layer are only touched once a valid response
        has been received.

        Raises:
            MissingPointError: When `point` is empty
            MissingDestinationPointsetIdError: When no shapefile is configured
            MissingGraphIdError: When no graph is configured
            APIError: When the request itself fails
        """
        body = self._single_body(
            point,
            options,
            graph_id=graph_id,
            destination_pointset_id=destination_pointset_id,
        )
        results = await self._post("/single", body)

        key = _result_key(results)
        tile_layer = self.update_tile_layer(key)
        self.key = key
        logger.info("Stored single point result %s", key)

        return SinglePointResult(tile_layer=tile_layer, results=results)

    async def vector_request(
        self,
        point: Optional[PointLike],
        options: Optional[Options] = None,
        *,
        graph_id: Optional[str] = None,
    ) -> Any:
        """Run a request without a destination point set and return the raw response."""
        body = self._single_body(point, options, graph_id=graph_id, vector=True)
        return await self._post("/single", body)

    async def single_point_comparison(
        self,
        point: Optional[PointLike],
        options_a: Optional[Options] = None,
        options_b: Optional[Options] = None,
    ) -> list[dict[str, Any]]:
        """Run two single point requests concurrently, e.g. one per graph.

        `graphId` and `destinationPointsetId` inside each option set override
        the configured ones. Fails as soon as either request fails. Neither
        result is stored; build the comparison layer with
        `update_tile_layer(key_b, comparison_key=key_a)`.
        """
        body_a = self._single_body(point, options_a)
        body_b = self._single_body(point, options_b)

        results = await asyncio.gather(
            self._post("/single", body_a), self._post("/single", body_b)
        )
        for result in results:
            _result_key(result)
        return list(results)

    def _single_body(
        self,
        point: Optional[PointLike],
        options: Optional[Options],
        *,
        graph_id: Optional[str] = None,
        destination_pointset_id: Optional[str] = None,
        vector: bool = False,
    ) -> dict[str, Any]:
        if not point:
            raise MissingPointError()
        latlng = LatLng.coerce(point)

        options = merge_options(self.request_options, options)
        # Per-call ids travel at the top level of the body, not in options
        options_graph_id = options.pop("graphId", None)
        options_pointset_id = options.pop("destinationPointsetId", None)
        graph_id = graph_id or options_graph_id or self.config.graph_id
        destination_pointset_id = (
            destination_pointset_id
            or options_pointset_id
            or self.config.destination_pointset_id
        )

        options["fromLat"] = options["toLat"] = latlng.lat
        options["fromLon"] = options["toLon"] = latlng.lng

        if not vector and not destination_pointset_id:
            raise MissingDestinationPointsetIdError()
        if not graph_id:
            raise MissingGraphIdError()

        body = {"graphId": graph_id, "profile": self.config.profile, "options": options}
        if not vector:
            body["destinationPointsetId"] = destination_pointset_id
        return body

    async def _get(self, path: str) -> Any:
        url = f"{self.config.api_url}{path}"
        logger.debug("GET %s", url)
        try:
            r = await self._http.get(url, headers=HEADERS)
        except httpx.TransportError as err:
            raise NetworkError(f"GET {url} failed: {err}") from err
        return _json(r)

    async def _post(self, path: str, body: dict[str, Any]) -> Any:
        url = f"{self.config.api_url}{path}"
        logger.debug("POST %s", url)
        try:
            r = await self._http.post(url, json=body, headers=HEADERS)
        except httpx.TransportError as err:
            raise NetworkError(f"POST {url} failed: {err}") from err
        return _json(r)


def _json(r: httpx.Response) -> Any:
    if r.is_error:
        detail = _error_detail(r)
        logger.warning(
            "%s %s returned %s", r.request.method, r.request.url, r.status_code
        )
        raise ServerError(r.status_code, detail)
    try:
        return r.json()
    except ValueError as err:
        raise ResponseParseError(f"Response is not valid JSON: {err}") from err


def _error_detail(r: httpx.Response) -> str:
    try:
        res = r.json()
    except ValueError:
        return r.text
    if isinstance(res, dict) and "detail" in res:
        return str(res["detail"])
    return r.text


def _result_key(results: Any) -> str:
    key = results.get("key") if isinstance(results, dict) else None
    if not isinstance(key, str) or not key:
        raise ResponseParseError("Response has no result key")
    return key
