import os
import signal
import socket
import threading
import time

import flask
import requests

from svckit.http_server import Server, serve_until_signal


def _app():
    app = flask.Flask("test")

    @app.route("/ping")
    def ping():
        return "pong"

    return app


def _free_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_server_runs_until_stopped():
    stop = threading.Event()
    server = Server(_app(), 0, host="127.0.0.1")
    thread = server.run(stop)
    url = f"http://127.0.0.1:{server.bound_port}/ping"
    response = requests.get(url, timeout=2)
    assert response.status_code == 200
    assert response.text == "pong"

    stop.set()
    thread.join(timeout=3)
    assert not thread.is_alive()
    try:
        requests.get(url, timeout=1)
        reachable = True
    except requests.ConnectionError:
        reachable = False
    assert reachable is False


def test_serve_until_signal():
    port = _free_port()
    seen = []

    def poke():
        deadline = time.monotonic() + 3
        while time.monotonic() < deadline:
            try:
                seen.append(requests.get(f"http://127.0.0.1:{port}/ping", timeout=1).text)
                break
            except requests.ConnectionError:
                time.sleep(0.05)
        os.kill(os.getpid(), signal.SIGTERM)

    threading.Thread(target=poke, daemon=True).start()
    assert serve_until_signal(_app(), str(port)) == signal.SIGTERM
    assert seen == ["pong"]