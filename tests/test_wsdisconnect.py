from agentforge.wsconnect import GatewayResponse
from agentforge.wsdisconnect import handle_disconnect


class _Store:
    def __init__(self, fail=False):
        self.connections = {"conn_1": object(), "conn_2": object()}
        self.fail = fail

    def delete_connection(self, conn_id):
        if self.fail:
            raise RuntimeError("delete failed")
        self.connections.pop(conn_id, None)


def test_disconnect_removes_connection():
    store = _Store()
    resp = handle_disconnect(store, {"requestContext": {"connectionId": "conn_1"}})
    assert resp == GatewayResponse(200, '{"status":"disconnected"}')
    assert list(store.connections) == ["conn_2"]


def test_missing_connection_id():
    store = _Store()
    resp = handle_disconnect(store, {"requestContext": {}})
    assert resp == GatewayResponse(400, '{"error":"missing connectionId"}')
    assert len(store.connections) == 2


def test_missing_request_context():
    resp = handle_disconnect(_Store(), {})
    assert resp.status_code == 400


def test_store_failure_is_internal_error():
    resp = handle_disconnect(_Store(fail=True), {"requestContext": {"connectionId": "conn_1"}})
    assert resp == GatewayResponse(500, '{"error":"internal"}')


def test_wire_form():
    resp = handle_disconnect(_Store(), {"requestContext": {"connectionId": "conn_2"}})
    assert resp.as_dict() == {"statusCode": 200, "body": '{"status":"disconnected"}'}