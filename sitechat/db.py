# File-backed document storage, one folder per session identifier
import json
import os
import threading

import config

_lock = threading.Lock()


def session_dir(session_id: str) -> str:
    return os.path.join(config.PROSPECTS_DIR, session_id)


def ensure_session(session_id: str) -> str:
    """Create the session folder and its assets directory on first mutation"""
    path = session_dir(session_id)
    os.makedirs(os.path.join(path, "assets"), exist_ok=True)
    return path


def get(session_id: str, name: str):
    """Read a JSON document, or None when it was never written"""
    path = os.path.join(session_dir(session_id), f"{name}.json")
    with _lock:
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)


def set(session_id: str, name: str, data):
    """Write a JSON document atomically"""
    folder = ensure_session(session_id)
    path = os.path.join(folder, f"{name}.json")
    tmp_path = f"{path}.tmp"
    with _lock:
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
        return True


def delete(session_id: str, name: str):
    path = os.path.join(session_dir(session_id), f"{name}.json")
    with _lock:
        if os.path.exists(path):
            os.remove(path)


def write_file(session_id: str, filename: str, content: str):
    """Write a non-JSON artifact such as index.html or styles.css"""
    folder = ensure_session(session_id)
    with _lock:
        with open(os.path.join(folder, filename), "w", encoding="utf-8") as f:
            f.write(content)
        return True


def read_file(session_id: str, filename: str):
    path = os.path.join(session_dir(session_id), filename)
    with _lock:
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
