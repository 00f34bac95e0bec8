import logging
from unittest.mock import MagicMock

from gateway.utils import mask_token
from gateway.utils.traced_requests import traced_request


def _tracer():
    tracer = MagicMock()
    span = MagicMock()
    tracer.start_as_current_span.return_value.__enter__.return_value = span
    return tracer, span


def test_span_attributes_set_and_none_skipped():
    tracer, span = _tracer()

    with traced_request(
        tracer,
        operation="gateway_forward",
        start_message="forwarding",
        extra_attrs={"gateway.method": "GET", "gateway.status_code": None},
    ) as current:
        assert current is span

    tracer.start_as_current_span.assert_called_once_with("gateway_forward")
    span.set_attribute.assert_called_once_with("gateway.method", "GET")


def test_secret_masked_in_start_message(caplog):
    tracer, _ = _tracer()

    with caplog.at_level(logging.DEBUG, logger="uvicorn.error"):
        with traced_request(
            tracer,
            operation="gateway_forward",
            start_message="key=AIzaSECRETVALUE",
            secret="AIzaSECRETVALUE",
        ):
            pass

    assert "AIzaSECRETVALUE" not in caplog.text
    assert "AIza****" in caplog.text


def test_mask_token():
    assert mask_token("token abcdef here", "abcdef") == "token abcd**** here"
    assert mask_token("unchanged", None) == "unchanged"
    assert mask_token("unchanged", "") == "unchanged"
