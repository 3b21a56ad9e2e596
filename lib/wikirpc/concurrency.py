"""Handing a server's startup outcome back to the thread that started it."""

from contextlib import contextmanager
import threading


class Callback(object):

    """
    A one-shot rendezvous carrying either a value or an exception.

    A server running in its own thread calls :meth:`send` with its bound
    socket, or lets :meth:`catch_exceptions` forward a startup failure; the
    thread that started it blocks in :meth:`wait` until one of those happens.
    """

    def __init__(self):
        self.event = threading.Event()
        self.value = None
        self.exception = None

    def send(self, value):
        self.value = value
        self.event.set()

    def throw(self, exception):
        self.exception = exception
        self.event.set()

    @contextmanager
    def catch_exceptions(self):
        """Forward an exception raised in the block to the waiting thread."""

        try:
            yield
        except Exception as exc:
            self.throw(exc)
            raise

    def wait(self, timeout=None):
        """Wait for the callback to be called, and return/raise."""

        if not self.event.wait(timeout):
            raise RuntimeError("Timed out waiting for callback")
        if self.exception is not None:
            raise self.exception
        return self.value


class DummyCallback(Callback):

    """A callback nobody waits on."""

    def send(self, value):
        pass

    def throw(self, exception):
        pass
