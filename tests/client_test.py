import unittest
from unittest import mock

from bson import BSON
import pytest
import zmq

from wikirpc.client import Client, Error


def mock_context(response):
    context = mock.Mock()
    socket = context.socket.return_value
    socket.recv.return_value = BSON.encode(response)
    return context, socket


def sent_request(socket):
    return BSON(socket.send.call_args[0][0]).decode()


def test_client_returns_result_on_success():
    context, socket = mock_context(
        response={"id": "abc", "result": 7, "error": None})

    client = Client('inproc://wikirpc', context=context)
    assert client['plugin.math.add'](3, 4) == 7
    context.socket.assert_called_once_with(zmq.REQ)
    socket.connect.assert_called_once_with('inproc://wikirpc')
    assert sent_request(socket) == {"id": mock.ANY,
                                    "method": "plugin.math.add",
                                    "params": [3, 4]}


def test_client_raises_exception_on_failure():
    context, socket = mock_context(
        response={"id": "abc", "result": None,
                  "error": {"type": "wikirpc.exceptions.RemoteError",
                            "message": "Method does not exist - wrong parameter count.",
                            "code": -32603,
                            "args": ["Method does not exist - wrong parameter count.",
                                     -32603]}})

    client = Client('inproc://wikirpc', context=context)
    with pytest.raises(Error) as info:
        client.plugin.math.add(3)
    assert info.value.code == -32603


def test_dotted_names_resolve_to_dotted_methods():
    context, socket = mock_context(
        response={"id": "abc", "result": 2, "error": None})

    client = Client('inproc://wikirpc', context=context)
    assert client.wiki.getRPCVersionSupported() == 2
    assert sent_request(socket)['method'] == 'wiki.getRPCVersionSupported'


class ClientErrorTest(unittest.TestCase):

    def setUp(self):
        self.exc = Error(
            request={"id": "abc", "method": "dokuwiki.getVersion",
                     "params": []},
            response={"id": "abc", "result": None,
                      "error": {"type": "wikirpc.exceptions.AccessDeniedError",
                                "message": "server error. not authorized to call method",
                                "code": -32604,
                                "args": ["server error. not authorized to call method",
                                         -32604]}})

    def test_error_is_a_subclass_of_dynamically_created_classes(self):
        assert isinstance(self.exc, Error)
        assert isinstance(self.exc, Error.AccessDeniedError)
        assert isinstance(self.exc, Error['AccessDeniedError'])
        assert isinstance(self.exc, Error['wikirpc.exceptions.AccessDeniedError'])
        assert isinstance(self.exc, Error.RemoteError)
        assert isinstance(self.exc, Error.for_code(-32604))

    def test_error_stores_request_info(self):
        assert self.exc.id == "abc"
        assert self.exc.method == "dokuwiki.getVersion"
        assert self.exc.params == []

    def test_error_stores_fault_info(self):
        assert self.exc.type == "wikirpc.exceptions.AccessDeniedError"
        assert self.exc.message == "server error. not authorized to call method"
        assert self.exc.code == -32604
        assert str(self.exc) == "server error. not authorized to call method"


def test_access_denied_is_caught_as_remote_error():
    context, socket = mock_context(
        response={"id": "abc", "result": None,
                  "error": {"type": "wikirpc.exceptions.AccessDeniedError",
                            "message": "server error. RPC server not enabled.",
                            "code": -32604}})

    client = Client('inproc://wikirpc', context=context)
    with pytest.raises(Error.RemoteError) as info:
        client.dokuwiki.getVersion()
    assert info.value.code == -32604


def test_error_classes_by_code():
    assert Error.for_code(-32603) is Error.RemoteError
    assert Error.for_code(-32604) is Error.AccessDeniedError
    assert issubclass(Error.AccessDeniedError, Error.RemoteError)
    assert not issubclass(Error.RemoteError, Error.AccessDeniedError)
    assert Error.for_code(-32500) is Error


def test_untyped_error_is_classified_by_code():
    exc = Error(request={"id": "abc", "method": "wiki.two", "params": [1]},
                response={"id": "abc", "result": None,
                          "error": {"message": "Method does not exist",
                                    "code": -32603}})
    assert isinstance(exc, Error.RemoteError)
    assert not isinstance(exc, Error.AccessDeniedError)
    assert exc.type is None
    assert exc.code == -32603


def test_untyped_error_with_unknown_code_is_plain_error():
    exc = Error(request={"id": "abc", "method": "wiki.two", "params": []},
                response={"id": "abc", "result": None,
                          "error": {"message": "boom", "code": 7}})
    assert type(exc) is Error
    assert str(exc) == "boom"
