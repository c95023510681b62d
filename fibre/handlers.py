from fastapi import Response
from fastapi.responses import JSONResponse, PlainTextResponse

# Blank 16x16 icon, served as data URI text rather than decoded image bytes.
FAVICON = (
    "data:image/x-icon;base64,iVBORw0KGgoAAAANSUhEUgAAABAAAAAQEAYAAABPYyMiAAAABmJLR0T"
    "///////8JWPfcAAAACXBIWXMAAABIAAAASABGyWs+AAAAF0lEQVRIx2NgGAWjYBSMglEwCkbBSAcACBA"
    "AAeaR9cIAAAAASUVORK5CYII=\n"
)
NOT_FOUND_BODY = '404 page not found'
HEALTHCHECK_BODY = '{"alive": true}'


def json_status_response(message: str, status_code: int) -> JSONResponse:
    """Encode a bare string message as a JSON body with the given status."""
    return JSONResponse(content=message, status_code=status_code)


def not_found() -> Response:
    return PlainTextResponse(NOT_FOUND_BODY, status_code=404)


async def favicon() -> Response:
    return Response(
        content=FAVICON,
        media_type='image/x-icon',
        headers={'Cache-Control': 'public, max-age=7776000'},
    )


async def healthcheck() -> Response:
    return Response(content=HEALTHCHECK_BODY, media_type='application/json')
