from httpx import AsyncClient

FAVICON = "data:image/x-icon;base64,iVBORw0KGgoAAAANSUhEUgAAABAAAAAQEAYAAABPYyMiAAAABmJLR0T///////8JWPfcAAAACXBIWXMAAABIAAAASABGyWs+AAAAF0lEQVRIx2NgGAWjYBSMglEwCkbBSAcACBAAAeaR9cIAAAAASUVORK5CYII=\n"


async def test_favicon_returns_literal_data_uri(service_client: AsyncClient):
    resp = await service_client.get('/favicon.ico', params={'v': '2'}, headers={'accept': 'image/png'})

    assert resp.status_code == 200
    assert resp.headers['content-type'] == 'image/x-icon'
    assert resp.headers['cache-control'] == 'public, max-age=7776000'
    assert resp.text == FAVICON


async def test_healthcheck_body_is_literal(service_client: AsyncClient):
    resp = await service_client.get('/healthcheck')

    assert resp.status_code == 200
    assert resp.headers['content-type'] == 'application/json'
    assert resp.text == '{"alive": true}'


async def test_unknown_route_returns_plain_404(service_client: AsyncClient):
    resp = await service_client.get('/notfound')

    assert resp.status_code == 404
    assert resp.text == '404 page not found'


async def test_other_http_errors_keep_json_detail(service_client: AsyncClient):
    resp = await service_client.post('/healthcheck')

    assert resp.status_code == 405
    assert resp.json() == {'detail': 'Method Not Allowed'}


def test_json_status_response_encodes_string():
    from fibre.handlers import json_status_response

    resp = json_status_response('Invalid api_key', 401)

    assert resp.status_code == 401
    assert resp.body == b'"Invalid api_key"'
    assert resp.headers['content-type'] == 'application/json'


def test_not_found_response():
    from fibre.handlers import not_found

    resp = not_found()

    assert resp.status_code == 404
    assert resp.body == b'404 page not found'
