import importlib.util
import os
from pathlib import Path
import socket
import sqlite3
import subprocess
import sys
import time

import pytest
import requests

BACKEND_DIR = Path(__file__).resolve().parents[1]


def _localhost_bind_allowed() -> bool:
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", 0))
        return True
    except OSError:
        return False


LOCALHOST_BIND_ALLOWED = _localhost_bind_allowed()


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def _start_server(db_url: str, port: int) -> subprocess.Popen:
    env = os.environ.copy()
    env["DATABASE_URL"] = db_url
    env["RUN_MIGRATIONS_ON_STARTUP"] = "true"
    env["PORT"] = str(port)

    return subprocess.Popen(
        [
            sys.executable,
            "-m",
            "uvicorn",
            "server:app",
            "--host",
            "127.0.0.1",
            "--port",
            str(port),
        ],
        cwd=str(BACKEND_DIR),
        env=env,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
    )


@pytest.fixture()
def api_server(tmp_path):
    if not LOCALHOST_BIND_ALLOWED:
        pytest.skip("Localhost socket binding is blocked in this sandbox environment")

    db_path = tmp_path / "grocerynana-server-test.db"
    port = _free_port()
    base_url = f"http://127.0.0.1:{port}"
    process = _start_server(f"sqlite:///{db_path}", port)

    deadline = time.time() + 20
    started = False
    while time.time() < deadline:
        try:
            response = requests.get(f"{base_url}/", timeout=0.5)
            if response.status_code == 200:
                started = True
                break
        except requests.RequestException:
            time.sleep(0.2)

    if not started:
        output = ""
        if process.stdout:
            process.terminate()
            output = process.stdout.read()
        process.kill()
        raise RuntimeError(f"Uvicorn did not start in time. Output:\n{output}")

    try:
        yield base_url, db_path
    finally:
        process.terminate()
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            process.kill()


def test_server_migrates_and_reports_health(api_server):
    base_url, db_path = api_server

    hello = requests.get(f"{base_url}/", timeout=3)
    health = requests.get(f"{base_url}/api/health", timeout=3)

    assert hello.json() == {"message": "Hello World from GroceryNana Backend!"}
    assert health.status_code == 200
    assert health.json()["status"] == "ok"

    with sqlite3.connect(str(db_path)) as conn:
        rows = conn.execute("SELECT id FROM _migration_test").fetchall()
    assert rows == [(1,)]


def test_server_refuses_to_start_on_unwritable_store(tmp_path):
    if not LOCALHOST_BIND_ALLOWED:
        pytest.skip("Localhost socket binding is blocked in this sandbox environment")

    process = _start_server(f"sqlite:///{tmp_path / 'missing' / 'x.db'}", _free_port())
    try:
        returncode = process.wait(timeout=20)
    except subprocess.TimeoutExpired:
        process.kill()
        pytest.fail("Server kept running although migrations could not be applied")

    assert returncode != 0


def test_package_is_runnable_as_module():
    assert importlib.util.find_spec("grocerynana.__main__") is not None


def test_module_entry_point_validates_settings_before_serving():
    env = os.environ.copy()
    env["PORT"] = "0"

    result = subprocess.run(
        [sys.executable, "-m", "grocerynana"],
        cwd=str(BACKEND_DIR),
        env=env,
        capture_output=True,
        text=True,
        timeout=30,
    )

    assert result.returncode != 0
    assert "PORT must be between 1 and 65535" in result.stderr
