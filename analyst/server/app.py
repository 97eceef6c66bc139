import uuid
from typing import Any, Iterable, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from analyst.server.models import SingleRequest

TILE_HEADERS = {"Cache-Control": "max-age=31536000, immutable"}


class ResultStore:
    """In-memory registry of graphs, shapefiles and computed results."""

    def __init__(
        self,
        graphs: Iterable[str] = ("default",),
        shapefiles: Optional[list[dict[str, Any]]] = None,
    ):
        self.graphs = set(graphs)
        if shapefiles is None:
            shapefiles = [{"id": "default", "name": "Default destinations"}]
        self.shapefiles = {s["id"]: s for s in shapefiles}
        self.results: dict[str, SingleRequest] = {}

    def add(self, req: SingleRequest) -> str:
        key = str(uuid.uuid4())
        self.results[key] = req
        return key


async def http_exception_handler(request, exc):
    return JSONResponse(
        jsonable_encoder({"code": exc.status_code, "detail": str(exc.detail)}),
        status_code=exc.status_code,
    )


async def validation_exception_handler(request, exc):
    return JSONResponse(
        jsonable_encoder({"code": 400, "detail": str(exc)}), status_code=400
    )


async def internal_exception_handler(request: Request, exc: Exception):
    return JSONResponse(
        jsonable_encoder({"code": 500, "detail": "Internal Server Error"}),
        status_code=500,
    )


def vector_result(key: str, req: SingleRequest) -> dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "key": key,
        "features": [
            {
                "type": "Feature",
                "geometry": {
                    "type": "Point",
                    "coordinates": [req.options.from_lon, req.options.from_lat],
                },
                "properties": {"time": 0},
            }
        ],
    }


def create_app(store: Optional[ResultStore] = None) -> FastAPI:
    """Build a stand-in analysis server around `store`."""
    store = store or ResultStore()

    api = APIRouter(prefix="/api")
    tile = APIRouter(prefix="/tile")

    @api.get("/shapefiles")
    async def shapefiles():
        return list(store.shapefiles.values())

    @api.post("/single")
    async def single(req: SingleRequest):
        if req.graph_id not in store.graphs:
            raise HTTPException(status_code=404, detail=f"Graph {req.graph_id} not found")
        pointset_id = req.destination_pointset_id
        if pointset_id is not None and pointset_id not in store.shapefiles:
            raise HTTPException(
                status_code=404, detail=f"Shapefile {pointset_id} not found"
            )

        key = store.add(req)
        if pointset_id is None:
            return vector_result(key, req)
        return {"key": key, "graphId": req.graph_id, "destinationPointsetId": pointset_id}

    @tile.get(
        r"/single/{key_path:path}/{z}/{x}/{y}.png",
        responses={204: {"description": "Tile is known but not rendered."}},
    )
    def single_tile(key_path: str, z: int, x: int, y: int):
        for key in key_path.split("/"):
            if key not in store.results:
                raise HTTPException(status_code=404, detail=f"Result {key} not found")
        return Response(status_code=204, headers=TILE_HEADERS)

    app = FastAPI(title="analyst development server")
    app.include_router(api)
    app.include_router(tile)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(500, internal_exception_handler)
    app.state.store = store
    return app


app = create_app()
