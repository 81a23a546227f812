def data_of(response, status_code: int = 200):
    """Assert the status and success envelope, return ``data``."""
    assert response.status_code == status_code, response.text
    body = response.json()
    assert body["success"] is True
    return body.get("data")


def assert_error(response, status_code: int, message: str = None) -> dict:
    assert response.status_code == status_code, response.text
    body = response.json()
    assert body["success"] is False
    if message is not None:
        assert message in body["message"]
    return body
