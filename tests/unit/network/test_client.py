from unittest.mock import Mock, patch

import pytest
import requests

from stay_settlement.network.client import PmsRequestError, pms_request

API_KEY = "pms-key-1"


def response(status_code: int, body=None, content: bytes = b"{}") -> Mock:
    res = Mock(status_code=status_code, ok=200 <= status_code < 300, content=content, text="")
    res.json.return_value = body
    return res


@pytest.mark.unit
@patch("stay_settlement.network.client.requests.request")
def test_pms_request_success(mock_request: Mock) -> None:
    """
    Test that pms_request returns the decoded body and sends the API key.

    Args:
        mock_request (Mock): Mocked requests.request call.
    """
    mock_request.return_value = response(200, {"id": 42})

    data = pms_request(
        "POST", "api/reservations", API_KEY, endpoint="create_reservation", json_body={"a": 1}
    )

    assert data == {"id": 42}
    args, kwargs = mock_request.call_args
    assert args == ("POST", "https://login.smoobu.com/api/reservations")
    assert kwargs["headers"]["Api-Key"] == API_KEY
    assert kwargs["json"] == {"a": 1}
    assert kwargs["timeout"] == 10


@pytest.mark.unit
@patch("stay_settlement.network.client.requests.request")
def test_pms_request_non_2xx_keeps_status(mock_request: Mock) -> None:
    mock_request.return_value = response(404, content=b"not found")

    with pytest.raises(PmsRequestError) as exc_info:
        pms_request("DELETE", "api/reservations/1", API_KEY, endpoint="cancel_reservation")

    assert exc_info.value.status_code == 404


@pytest.mark.unit
@patch("stay_settlement.network.client.requests.request")
def test_pms_request_timeout_has_no_status(mock_request: Mock) -> None:
    mock_request.side_effect = requests.Timeout("read timed out")

    with pytest.raises(PmsRequestError) as exc_info:
        pms_request("GET", "api/rates", API_KEY, endpoint="rates", timeout=0.5)

    assert exc_info.value.status_code is None
    assert "timed out" in str(exc_info.value)


@pytest.mark.unit
@patch("stay_settlement.network.client.requests.request")
def test_pms_request_connection_error(mock_request: Mock) -> None:
    mock_request.side_effect = requests.ConnectionError("refused")

    with pytest.raises(PmsRequestError):
        pms_request("GET", "api/rates", API_KEY, endpoint="rates")


@pytest.mark.unit
@patch("stay_settlement.network.client.requests.request")
def test_pms_request_empty_body(mock_request: Mock) -> None:
    mock_request.return_value = response(204, content=b"")

    assert pms_request("DELETE", "api/reservations/1", API_KEY, endpoint="cancel_reservation") == {}


@pytest.mark.unit
@patch("stay_settlement.network.client.requests.request")
def test_pms_request_invalid_json(mock_request: Mock) -> None:
    res = response(200, content=b"<html>")
    res.json.side_effect = ValueError("no json")
    mock_request.return_value = res

    with pytest.raises(PmsRequestError) as exc_info:
        pms_request("GET", "api/rates", API_KEY, endpoint="rates")

    assert exc_info.value.status_code == 200


@pytest.mark.unit
@patch("stay_settlement.network.client.requests.request")
def test_pms_request_non_object_body(mock_request: Mock) -> None:
    mock_request.return_value = response(200, body=[1, 2])

    with pytest.raises(PmsRequestError):
        pms_request("GET", "api/rates", API_KEY, endpoint="rates")
